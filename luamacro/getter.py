""" Module getter.py.
Getter and Putter, the API through which a macro's transformer reads its
input and builds its replacement.

A Getter is a view over the single forward cursor (a TokIter) owned by the
expansion in progress.  Reading from a Getter consumes the input which the
expansion would otherwise scan next, so a transformer can take as much of the
following text as it needs.

Every structured accessor (name, number, string, expecting, names, list)
first skips whitespace and comments.  The raw accessors peek and next do not.

The Getter remembers the tokens it consumed.  If a transformer puts any of
them into its replacement, they are still input tokens, and they keep their
own expansion marks rather than being attributed to the transformer's macro.
"""

from __future__ import annotations

from luamacro.common import *
from luamacro.errors import ExpectedTokenMissing, UnexpectedToken
from luamacro.tokens import (Tok, Tokens, TokIter, lua_number, lua_quote,
                             lua_unquote)
from luamacro.tokentype import *

__all__ = 'Getter Putter'.split()

# Closing bracket for each opening bracket.
_brackets = {'(': ')', '[': ']', '{': '}'}


class Getter:
    """ Structured read access to the remaining input of an expansion. """

    intoks: TokIter

    # Every token consumed through this Getter, in order.
    taken: list[Tok]

    def __init__(self, intoks: TokIter, origin: Tok = None):
        self.intoks = intoks
        # The macro name token, for __LINE__ and for error locations if the
        # input runs out.
        self.origin = origin
        self.taken = []

    def _take(self) -> Tok:
        tok = next(self.intoks)
        self.taken.append(tok)
        return tok

    def peek(self) -> Tok:
        """ The current token, not consumed. """
        tok = self.intoks.peek()
        if tok is None:
            # Only after the EOF token has been taken.
            return Tok(TokType.EOF, '', self.origin and self.origin.lineno)
        return tok

    def next(self) -> Tok:
        """ Consume and return the current token.  Never goes past EOF. """
        tok = self.peek()
        if tok.type.eof:
            return tok
        return self._take()

    def skip_space(self) -> Tok:
        """
        Consume any whitespace and comments.  Return the following token,
        which is not consumed.
        """
        while True:
            tok = self.peek()
            if not tok.type.ws:
                return tok
            self._take()

    def _get(self, typ: TokType, what: str) -> Tok:
        self.skip_space()
        tok = self.next()
        if tok.type is not typ:
            raise UnexpectedToken(f"Expected {what}, got {tok.value!r}", tok)
        return tok

    def name(self) -> str:
        """ An identifier. """
        return self._get(TokType.IDEN, 'a name').value

    def number(self) -> int | float:
        """ A number literal, as a Python number. """
        return lua_number(self._get(TokType.NUMBER, 'a number').value)

    def string(self) -> str:
        """ A string literal, as its contents. """
        return lua_unquote(self._get(TokType.STRING, 'a string').value)

    def expecting(self, expected: TokType | str) -> str:
        """
        Consume a token which is either of the given type or has the given
        value.  Returns the token value.
        """
        self.skip_space()
        tok = self.next()
        if isinstance(expected, TokType):
            ok = tok.type is expected
            what = expected.value
        else:
            ok = tok.value == expected
            what = repr(expected)
        if not ok:
            raise ExpectedTokenMissing(
                f"Expected {what}, got {tok.value or 'end of input'!r}", tok)
        return tok.value

    def _more(self, stop: str) -> Tok:
        """ Next token, not consumed, which must not be EOF. """
        tok = self.peek()
        if tok.type.eof:
            raise ExpectedTokenMissing(
                f"Expected {stop!r} before end of input", self.origin or tok)
        return tok

    def names(self, stop: str) -> list[str]:
        """
        Comma separated identifiers, up to the given stop value, which is not
        consumed.  The list may be empty.
        """
        names = []
        if self.skip_space().value == stop:
            return names
        while True:
            names.append(self.name())
            tok = self.skip_space()
            if tok.value == stop:
                return names
            self._more(stop)
            self.expecting(',')

    def list(self, stop: str = ')') -> list[Tokens]:
        """
        Comma separated arguments, up to and including the given stop value.
        Each argument is a Tokens, stripped of whitespace.  Commas within
        nested brackets don't separate arguments.  An empty list (only
        whitespace before the stop) gives a single empty argument.
        """
        args: list[Tokens] = []
        arg = Tokens()
        closers: list[str] = []         # Pending close brackets.
        while True:
            tok = self._more(stop)
            self._take()
            value = tok.value
            if tok.type.op:
                if not closers:
                    if value == stop:
                        args.append(arg.strip())
                        return args
                    if value == ',':
                        args.append(arg.strip())
                        arg = Tokens()
                        continue
                if value in _brackets:
                    closers.append(_brackets[value])
                elif closers and value == closers[-1]:
                    closers.pop()
            arg.append(tok)

    def upto(self, stop: str) -> Tokens:
        """
        All tokens up to the first one with the stop value, which is not
        consumed.
        """
        toks = Tokens()
        while self._more(stop).value != stop:
            toks.append(self._take())
        return toks

    def line(self) -> Tokens:
        """
        All tokens up to the end of the current line.  The whitespace token
        containing the newline is not consumed.
        """
        toks = Tokens()
        while True:
            tok = self.peek()
            if tok.type.eof or (tok.type.ws and '\n' in tok.value):
                return toks
            toks.append(self._take())

    def block(self) -> Tokens:
        """
        All tokens up to the keyword which closes the current block, which is
        consumed.  Nested blocks are included.
        """
        toks = Tokens()
        level = 0
        while True:
            tok = self._more('end')
            self._take()
            if tok.type.kw:
                if tok.value in block_openers:
                    level += 1
                elif tok.value in block_closers:
                    if not level:
                        return toks
                    level -= 1
            toks.append(tok)

    def __repr__(self) -> str:
        return f"<Getter at {self.peek()!r}>"


class Putter:
    """
    Builds a replacement token list.  Every method except get_tokens()
    returns the Putter itself, so calls can be chained:

        put.keyword('local').space().iden(name).op('=').number(42)

    No validation is done other than giving each token its type.
    """

    def __init__(self, toks: Iterable[Tok] = None):
        self.toks = Tokens(toks)

    def token(self, typ: TokType, value: str) -> Putter:
        self.toks.append(Tok(typ, value))
        return self

    def iden(self, name: str) -> Putter:
        return self.token(TokType.IDEN, name)

    def keyword(self, word: str) -> Putter:
        return self.token(TokType.KEYWORD, word)

    def op(self, value: str) -> Putter:
        return self.token(TokType.OP, value)

    def string(self, s: str) -> Putter:
        """ A string literal with given contents. """
        return self.token(TokType.STRING, lua_quote(s))

    def number(self, n: int | float) -> Putter:
        return self.token(TokType.NUMBER, repr(n))

    def space(self, ws: str = ' ') -> Putter:
        return self.token(TokType.SPACE, ws)

    def tokenlist(self, toks: Iterable[Tok]) -> Putter:
        """ Append existing tokens unchanged. """
        self.toks.extend(toks)
        return self

    def names(self, names: Iterable[str]) -> Putter:
        """ Names, separated by commas. """
        for i, name in enumerate(names):
            if i: self.op(',')
            self.iden(name)
        return self

    def get_tokens(self) -> Tokens:
        return Tokens(self.toks)

    def __str__(self) -> str:
        return str(self.toks)

    def __repr__(self) -> str:
        return f"<Putter {self.toks!r}>"
