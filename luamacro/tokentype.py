""" Module tokentype.py.

The TokType enumeration, which gives the kind of every Tok, along with the
Lua vocabulary that the lexer and the block tracker need to know about.

Each TokType member has boolean attributes which are used in place of
comparing the type to several members:

    ws      SPACE or COMMENT.  Insignificant to the Lua grammar.
    id      IDEN.  Can be an identifier-namespace macro.
    op      OP.  Can be (part of) an operator-namespace macro.
    kw      KEYWORD.
    str     STRING.
    num     NUMBER.
    eof     EOF.  Terminates every token stream produced by the lexer.
    norm    Anything which is neither whitespace nor EOF.
"""

from __future__ import annotations

import enum

from luamacro.common import *

__all__ = ('TokType keywords block_openers block_closers lua_operators'
           .split())

class TokType(enum.Enum):
    IDEN = 'iden'
    KEYWORD = 'keyword'
    OP = 'op'
    STRING = 'string'
    NUMBER = 'number'
    SPACE = 'space'
    COMMENT = 'comment'
    EOF = 'eof'

    @property
    def ws(self) -> bool:
        return self in (TokType.SPACE, TokType.COMMENT)

    @property
    def id(self) -> bool: return self is TokType.IDEN

    @property
    def op(self) -> bool: return self is TokType.OP

    @property
    def kw(self) -> bool: return self is TokType.KEYWORD

    @property
    def str(self) -> bool: return self is TokType.STRING

    @property
    def num(self) -> bool: return self is TokType.NUMBER

    @property
    def eof(self) -> bool: return self is TokType.EOF

    @property
    def norm(self) -> bool:
        return not (self.ws or self.eof)

    def __repr__(self) -> str:
        return self.name


# Reserved words of Lua 5.4.
keywords: frozenset[str] = frozenset('''
    and break do else elseif end false for function goto if in
    local nil not or repeat return then true until while
    '''.split())

# Keywords which change the block depth.  'while' and 'for' open their block
# with the 'do' which follows the loop header, so they are not counted here.
block_openers: frozenset[str] = frozenset('do if function repeat'.split())
block_closers: frozenset[str] = frozenset('end until'.split())

# Multi-character operators, longest first so that a lexer trying them in
# order finds the longest match.
lua_operators: tuple[str, ...] = (
    '...', '..', '==', '~=', '<=', '>=', '//', '::', '<<', '>>',
    )
