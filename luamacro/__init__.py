""" luamacro.
Lexically scoped macro expansion for Lua source.
"""

__version__ = '0.1.0'

from luamacro.errors import *
from luamacro.tokentype import TokType
from luamacro.tokens import Tok, Tokens, TokIter
from luamacro.lexer import LuaLex, default_lexer
from luamacro.getter import Getter, Putter
from luamacro.macros import Macro, Macros
from luamacro.preprocessor import Preprocessor, PreprocessorHooks
