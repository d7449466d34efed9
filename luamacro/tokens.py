""" Module tokens.py.
Tok class and related definitions.

A Tok is an immutable (type, value) pair, remembering the source line it
came from.  Whitespace and comments are tokens too, so the concatenation of
all token values in a stream is exactly the text which was lexed.

Tokens is the list form (a TokenList), and TokIter is the single forward
cursor used during expansion, which can have tokens pushed back onto its
front.
"""

from __future__ import annotations

from dataclasses import dataclass

from luamacro.common import *
from luamacro.errors import TypeMismatch
from luamacro.tokentype import *

__all__ = ('Tok Tokens TokIter lua_quote lua_unquote lua_number'
           .split())

@dataclass(frozen=True)
class Tok:
    """
    A Lua token, with a type and value.  Also has the line number where it
    was found, and the name of the macro whose expansion produced it (if any).
    Can make a copy of self, with some attributes changed.
    """
    type: TokType
    value: str
    # Logical line number in the source, starting at 1.  Tokens generated by
    # a macro expansion get the line of the macro invocation.
    lineno: int = 0
    # Name of the macro whose replacement produced this token, or None if
    # the token came from the source (or from a macro argument).  A token is
    # never expanded by the macro it came from.
    exp_from: str = None

    def copy(self, **attrs) -> Tok:
        """ Make a copy, and update attributes using keywords. """
        return dataclasses.replace(self, **attrs)

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        rep = f"{self.type!r}:{self.value!r}"
        if self.lineno:
            rep = f"{rep} @{self.lineno}"
        if self.exp_from:
            rep = f"{rep} <- {self.exp_from}"
        return f"<Tok {rep}>"


class Tokens(collections.UserList[Tok]):
    """
    A list of Tok tokens, constructed from an iterable of these tokens.

    It behaves like a list.  Tokens.data is the list of stored tokens.  List
    methods work as usual, except that those which produce a new object will
    return a Tokens.  str(tokens) is the concatenation of all the token values.
    """

    def __init__(self, input: Iterable[Tok] = None):
        super().__init__(input)

    @staticmethod
    def join(*tokens: Tok) -> Tokens:
        """ New Tokens object from given token objects. """
        return Tokens(tokens)

    def __str__(self) -> str:
        return ''.join(map(operator.attrgetter('value'), self.data))

    def __repr__(self) -> str:
        if not self:
            return "<No tokens>"
        s = str(self)
        more = "..." if len(s) > 20 else ""
        return f"<Tokens {s!r:.20}{more}>"

    def values(self) -> list[str]:
        """ Values of the significant tokens. """
        return [tok.value for tok in self if tok.type.norm]

    def strip(self) -> Tokens:
        """ Copy without leading or trailing whitespace, comments or EOF. """
        toks = self.data
        start, stop = 0, len(toks)
        while start < stop and not toks[start].type.norm:
            start += 1
        while stop > start and not toks[stop - 1].type.norm:
            stop -= 1
        return Tokens(toks[start:stop])

    def split_commas(self) -> list[Tokens]:
        """
        Break into pieces at top level commas, each piece stripped.  Commas
        within (), [] or {} don't split.  Empty input gives no pieces.
        """
        if not self.strip():
            return []
        pieces = [Tokens()]
        level = 0
        for tok in self:
            if tok.type.op:
                if tok.value in '([{':
                    level += 1
                elif tok.value in ')]}':
                    level -= 1
                elif tok.value == ',' and not level:
                    pieces.append(Tokens())
                    continue
            pieces[-1].append(tok)
        return [piece.strip() for piece in pieces]

    def _single(self, what: str, check: Callable[[Tok], bool]) -> Tok:
        toks = self.strip()
        if len(toks) != 1 or not check(toks[0]):
            tok = toks and toks[0] or None
            raise TypeMismatch(f"Expected {what}, got {str(toks)!r}", tok)
        return toks[0]

    def get_iden(self) -> str:
        """ The name, if this is a single identifier. """
        return self._single('an identifier',
                            lambda tok: tok.type.id).value

    def get_number(self) -> int | float:
        """ The value, if this is a single number, possibly negated. """
        toks = self.strip()
        if len(toks) == 2 and toks[0].value == '-' and toks[1].type.num:
            return -lua_number(toks[1].value)
        return lua_number(self._single('a number',
                                       lambda tok: tok.type.num).value)

    def get_string(self) -> str:
        """ The contents, if this is a single string literal. """
        return lua_unquote(self._single('a string',
                                        lambda tok: tok.type.str).value)


class TokIter(typing.Iterator[Tok]):
    """
    A specialized Iterator of Tok objects.

    It represents the remaining input, which is an underlying iterator, and
    in front of it, any tokens which have been pushed back.  Iteration takes
    the pushed back tokens first, in order, then continues with the
    underlying iterator.

    Tokens can be placed in front of the remaining iteration, possibly after
    it has been partly or fully iterated, with self.putback(token) or
    self.prepend(Iterable).

    The peek() method gets the first token (if any), without removing it from
    the iteration order.

    The get_tokens() method runs the iterator completely and returns a Tokens
    object which contains the resulting tokens.
    """

    # Tokens pushed back, in reverse order, so the next one is at the end.
    pending: list[Tok]

    # The underlying iterator.  Becomes None once exhausted.
    gen: Iterator[Tok] | None

    def __init__(self, gen: Iterable[Tok] = None):
        self.pending = []
        self.gen = gen is not None and iter(gen) or None

    def __iter__(self): return self

    def __next__(self) -> Tok:
        if self.pending:
            return self.pending.pop()
        if self.gen is None:
            raise StopIteration
        try:
            return next(self.gen)
        except StopIteration:
            self.gen = None
            raise

    def __bool__(self) -> bool: return self.peek() is not None

    def peek(self) -> Tok | None:
        """ The next token, or None, without consuming it. """
        if not self.pending:
            tok = next(self, None)
            if tok is None:
                return None
            self.pending.append(tok)
        return self.pending[-1]

    def putback(self, token: Tok) -> None:
        """ Puts a given token in front of the existing iteration. """
        self.pending.append(token)

    def prepend(self, toks: Iterable[Tok]) -> None:
        """
        Puts the given tokens, in order, in front of the existing iteration.
        """
        self.pending.extend(reversed(list(toks)))

    def get_tokens(self) -> Tokens:
        """
        Runs the iteration, then returns a Tokens containing the iterated
        tokens.  This exhausts iteration of self.
        """
        return Tokens(self)

    def __repr__(self) -> str:
        return f"<TokIter {len(self.pending)} pending>"


# Lua literal helpers...

_escapes = {
    'a': '\a', 'b': '\b', 'f': '\f', 'n': '\n', 'r': '\r', 't': '\t',
    'v': '\v', '\\': '\\', '"': '"', "'": "'", '\n': '\n',
    }

_escape_re = re.compile(r'''\\(?:
      (?P<dec>[0-9]{1,3})
    | x(?P<hex>[0-9a-fA-F]{2})
    | u\{(?P<uni>[0-9a-fA-F]+)\}
    | z\s*
    | (?P<ch>.)
    )''', re.VERBOSE | re.DOTALL)

def _unescape(m: re.Match) -> str:
    if m['dec']: return chr(int(m['dec']))
    if m['hex']: return chr(int(m['hex'], 16))
    if m['uni']: return chr(int(m['uni'], 16))
    if m['ch'] is None: return ''            # \z skips following whitespace
    return _escapes.get(m['ch'], m['ch'])

def lua_unquote(value: str) -> str:
    """ The contents of a Lua string literal, quoted or long bracket. """
    m = re.match(r'\[(=*)\[', value)
    if m:
        body = value[m.end() : -m.end()]
        # A newline directly after the opening bracket is not part of it.
        if body.startswith('\r\n'): return body[2:]
        if body.startswith('\n'): return body[1:]
        return body
    return _escape_re.sub(_unescape, value[1:-1])

def lua_quote(s: str) -> str:
    """ A double quoted Lua string literal with the given contents. """
    out = []
    for c in s:
        if c in '\\"':
            out.append('\\' + c)
        elif c == '\n':
            out.append('\\n')
        elif c == '\r':
            out.append('\\r')
        elif c == '\0' or (ord(c) < 32 and c != '\t'):
            out.append(f'\\{ord(c):03d}')
        else:
            out.append(c)
    return f'"{"".join(out)}"'

def lua_number(value: str) -> int | float:
    """ The value of a Lua numeric literal. """
    v = value.lower()
    if v.startswith('0x'):
        if '.' in v or 'p' in v:
            return float.fromhex(v)
        return int(v, 16)
    try:
        return int(v, 10)
    except ValueError:
        return float(v)
