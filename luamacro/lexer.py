""" lexer.py

Builds the default Lua tokenizer, a LuaLex, using a LexerFactory class
instance.

It uses the ply.lex module.  See "Alternative specification of lexers" section
in https://github.com/dabeaz/ply/blob/master/doc/ply.md for example of
creating a lexer using a class to hold the specs and create the lex.Lexer.

The tokenizer is lossless.  Whitespace and comments are returned as tokens,
and the values of all the tokens together are exactly the input data.  The
token stream ends with an EOF token, whose value is empty.
"""

from __future__ import annotations

from ply import lex
from ply.lex import LexToken, Lexer, TOKEN

from luamacro.common import *
from luamacro.errors import UnexpectedToken
from luamacro.tokens import Tok, Tokens
from luamacro.tokentype import *

__all__ = 'default_lexer LuaLex LexerFactory'.split()

def default_lexer() -> LuaLex:
    return LexerFactory.create()

""" Lex Rules ...  All rules are methods of the LexerFactory, so lex.lex()
    applies them in the order they are defined in the class body.  Ambiguous
    regexes must appear in the desired order:

      1. Comments, before the '-' operator.
      2. Long bracket strings, before the '[' operator.
      3. Quoted strings.
      4. Numbers, before the '.' operator.
      5. Names, which become KEYWORD tokens if reserved.
      6. Whitespace.
      7. Operators, longest first, then any other single character.

    Each rule sets t.type to one of the names in LexerFactory.tokens, which
    are the names of TokType members.
"""

def _long_bracket_end(t: LexToken, opener: str, what: str) -> None:
    """
    Extend token t, which begins with the long bracket `opener`, through the
    matching closing bracket.  Moves the lexer past it.
    """
    lexer: Lexer = t.lexer
    data: str = lexer.lexdata
    close = ']' + '=' * (len(opener) - 2) + ']'
    end = data.find(close, lexer.lexpos)
    if end < 0:
        raise UnexpectedToken(
            f"Unfinished long {what} starting with {opener!r}",
            lineno=data.count('\n', 0, t.lexpos) + 1)
    stop = end + len(close)
    t.value = data[t.lexpos : stop]
    lexer.lexpos = stop


class LexerFactory:
    """
    An instance of this class will create a lex.Lexer object with the create()
    method.  The class attributes are used by lex.lex(module=self).  The
    lexing rules are methods.
    """

    tokens: list[str] = [typ.name for typ in TokType if not typ.eof]

    @TOKEN(r'--(?:\[=*\[)?')
    def t_COMMENT(self, t: LexToken) -> LexToken:
        if t.value.endswith('['):
            _long_bracket_end(t, t.value[2:], 'comment')
        else:
            # A short comment runs to the end of the line, excluding the
            # newline.
            lexer = t.lexer
            end = lexer.lexdata.find('\n', lexer.lexpos)
            if end < 0: end = len(lexer.lexdata)
            t.value = lexer.lexdata[t.lexpos : end]
            lexer.lexpos = end
        return t

    @TOKEN(r'\[=*\[')
    def t_LONG_STRING(self, t: LexToken) -> LexToken:
        _long_bracket_end(t, t.value, 'string')
        t.type = 'STRING'
        return t

    @TOKEN(r'''"(?:[^"\\\n]|\\z\s*|\\(?:.|\n))*"'''
           r'''|'(?:[^'\\\n]|\\z\s*|\\(?:.|\n))*\'''')
    def t_STRING(self, t: LexToken) -> LexToken:
        return t

    @TOKEN(r'0[xX](?:[0-9a-fA-F]+(?:\.[0-9a-fA-F]*)?|\.[0-9a-fA-F]+)'
           r'(?:[pP][+-]?[0-9]+)?'
           r'|(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?')
    def t_NUMBER(self, t: LexToken) -> LexToken:
        return t

    @TOKEN(r'[A-Za-z_][A-Za-z0-9_]*')
    def t_IDEN(self, t: LexToken) -> LexToken:
        if t.value in keywords:
            t.type = 'KEYWORD'
        return t

    @TOKEN(r'\s+')
    def t_SPACE(self, t: LexToken) -> LexToken:
        return t

    @TOKEN('|'.join(map(re.escape, lua_operators))
           + r'''|[^\sA-Za-z0-9_"']''')
    def t_OP(self, t: LexToken) -> LexToken:
        return t

    def t_error(self, t: LexToken) -> None:
        # Only an unmatched quote character gets here.
        data: str = t.lexer.lexdata
        line = data.find('\n', t.lexpos)
        text = data[t.lexpos : line < 0 and len(data) or line]
        raise UnexpectedToken(
            f"Unfinished string {text!r}",
            lineno=data.count('\n', 0, t.lexpos) + 1)

    @classmethod
    def create(cls) -> LuaLex:
        fact = cls()
        lexer = lex.lex(module=fact, errorlog=lex.NullLogger())
        return LuaLex(lexer)


class LuaLex:
    """
    Wrapper around a lex.Lexer built by the LexerFactory.  It maintains the
    current line number (the lex.Lexer has a line number but relies on rule
    actions to advance it) and turns LexTokens into Tok objects.
    """

    lex: Lexer                  # Lexer doing the matching.
    lineno: int = 1             # Line number of the next token.
    clones: list[Lexer]         # Any available clones of self.lex.

    def __init__(self, lex: Lexer):
        self.lex = lex
        self.clones = []

    def input(self, data: str) -> None:
        """ Begin lexing the given data, at line 1. """
        self.lex.input(data)
        self.lineno = 1

    def nexttok(self) -> Tok | None:
        """ Get the next token from lexer, or None at the end of the data. """
        t: LexToken | None = self.lex.token()
        if not t: return None
        tok = Tok(TokType[t.type], t.value, self.lineno)
        self.lineno += t.value.count('\n')
        return tok

    def tokens(self, data: str) -> Iterator[Tok]:
        """
        Generate all tokens for the entire data string, followed by an EOF
        token.
        """
        self.input(data)
        while True:
            tok = self.nexttok()
            if not tok: break
            yield tok
        yield Tok(TokType.EOF, '', self.lineno)

    @contextlib.contextmanager
    def cloned(self) -> Iterator[LuaLex]:
        """
        A new LuaLex using a clone of self.lex, so that self can continue
        lexing where it left off.
        """
        lex = self.clones and self.clones.pop() or self.lex.clone()
        try:
            clone = LuaLex(lex)
            clone.clones = self.clones
            yield clone
        finally:
            self.clones.append(lex)

    def parse_tokens(self, data: str, lineno: int = 0) -> Tokens:
        """
        All the tokens in given data, without an EOF token, using a clone of
        self.  Tokens get the given line number, if any.
        """
        with self.cloned() as lexer:
            lexer.input(data)
            toks = Tokens(iter(lexer.nexttok, None))
        if lineno:
            toks = Tokens(tok.copy(lineno=lineno) for tok in toks)
        return toks

    def __repr__(self) -> str:
        return f"<LuaLex line {self.lineno}>"
