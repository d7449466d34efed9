""" Lua macro preprocessor.

The Preprocessor class specifies a single object (often called `prep` in the
code) which expands the macros in one compilation unit at a time, and keeps
the macro definitions from one unit to the next.

Overall plan:

1. Lexing.
    The source text is turned into Tok objects by a LuaLex (a.k.a. lexer).
    Whitespace and comments are tokens too, so the output of a unit with no
    macros is identical to its input.  A unit can also be given as Tokens
    produced by some other tokenizer.

2. Expansion.
    A MacroExp scans the tokens forward, once.  Keywords are passed through,
    and the block keywords change the block depth, firing any handlers
    waiting for the depth to be vacated.  A name registered as a macro is
    replaced, and the replacement is scanned next.  See macros.py.

3. Scoping.
    Macros.set_scoped_macro() defines a macro which is removed again when the
    current block ends, by way of a deferred handler.  The MacroContexts let
    macros publish values, such as the current iteration of a loop, to other
    macros which are expanded in the meantime.

4. Errors.
    Any error raises a MacroError, and the unit produces no output at all.
    The caller (such as lcmd.CmdPreprocessor) reports it through the hooks.
"""

from __future__ import annotations

from typing import TextIO

from luamacro.common import *
from luamacro.blocks import Blocks
from luamacro.builtins import install_builtins
from luamacro.context import MacroContexts
from luamacro.debug_log import DebugLog
from luamacro.errors import MacroError
from luamacro.getter import Getter, Putter
from luamacro.hooks import PreprocessorHooks
from luamacro.lexer import LuaLex, default_lexer
from luamacro.macros import Macro, Macros
from luamacro.tokens import Tok, Tokens, TokIter

__all__ = ['Preprocessor', 'PreprocessorHooks']


class Preprocessor(PreprocessorHooks):
    """
    Generic preprocessor object, which expands the macros in Lua source and
    returns the resulting tokens.

    It interacts with a subclass as follows:
        1. Subclass __init__() sets some attributes to non-default values,
           then calls Preprocessor.__init__().  These attributes are listed
           below.
        2. Macros are defined with self.define(), and handlers registered
           with self.defer() and self.keyword_handler().
        3. Subclass calls self.substitute() for each compilation unit.
        4. Subclass does something with the tokens, such as writing them to
           an output file, or handing str(tokens) to a Lua compiler.
    """

    # These class attributes can be overridden on self as instance attributes
    # by the subclass constructor.  This should be done BEFORE calling
    # self.__init__, unless otherwise indicated. ...

    # Write a diagnostic log file with this name.
    debug: str = None

    # Write error and warning messages to this file.  Constructor will change
    # None to sys.stderr.
    diag: TextIO = None

    # Define the built-in macros (__FILE__, _UNROLL_, @define, etc.).
    builtins: bool = True

    # Amount of detail in messages.
    verbose: int = 0

    # These attributes vary during preprocessing...

    # Name of the compilation unit being expanded.
    filename: str = None

    def __init__(self, lexer: LuaLex = None):
        super().__init__()
        self.diag = self.diag or sys.stderr
        self.log = DebugLog(self)
        if lexer is None:
            lexer = default_lexer()
        self.lexer = lexer
        self.blocks = Blocks(self.log)
        self.contexts = MacroContexts(self.log)
        self.macros = Macros(self)
        if self.builtins:
            install_builtins(self)

    def reset(self) -> None:
        """ Forget the block state and contexts of any previous unit.
        Macro definitions and keyword handlers are kept.
        """
        self.blocks.reset()
        self.contexts.reset()

    def substitute(self, source: str | TextIO | Tokens,
                   filename: str = None) -> Tokens:
        """
        Expand all the macros in one compilation unit.  `source` is the text,
        a file opened for reading, or the Tokens from some tokenizer.  Returns
        the expanded Tokens, ending with an EOF token.  Raises a MacroError if
        the unit fails.
        """
        if isinstance(source, str):
            intoks = TokIter(self.lexer.tokens(source))
        elif isinstance(source, (Tokens, list)):
            intoks = TokIter(source)
        else:
            filename = filename or getattr(source, 'name', None)
            intoks = TokIter(self.lexer.tokens(source.read()))
        self.filename = filename or '<string>'
        self.reset()
        self.log.write(f"Expanding {self.filename}")
        try:
            return self.macros.expand(intoks)
        except MacroError as e:
            if not e.filename:
                e.filename = self.filename
            self.log.write(f"ERROR: {e.kind}: {e.msg}", lineno=e.lineno)
            raise
        finally:
            self.log.writelog()

    def substitute_tostring(self, source: str | TextIO | Tokens,
                            filename: str = None) -> str:
        return str(self.substitute(source, filename))

    def define(self, spec: str, subst: Any = None) -> Macro:
        """ See Macros.define(). """
        return self.macros.define(spec, subst)

    def undef(self, name: str) -> None:
        self.macros.undef(name)

    def set_scoped_macro(self, name: str, text: Any) -> Macro:
        """ See Macros.set_scoped_macro(). """
        return self.macros.set_scoped_macro(name, text)

    def defer(self, handler: Callable[[], Any], depth: int = None) -> None:
        """ Call handler when given depth (default current depth) is vacated.
        Whatever it returns is scanned next.
        """
        self.blocks.defer(handler, depth)

    def keyword_handler(self, keyword: str,
                        handler: Callable[[Tok, Getter], Any]) -> None:
        """ Call handler(tok, get) every time the keyword is scanned.  The
        pseudo keywords 'BEGIN' and 'END' mean the start and end of the unit.
        """
        self.blocks.keyword_handler(keyword, handler)

    def as_tokens(self, result: Any, lineno: int = 0) -> Tokens:
        """
        Tokens for whatever a transformer or handler returned.  This can be
        None, text to be lexed, a Putter, a Tok, or an iterable of Tok.
        """
        if result is None:
            return Tokens()
        if isinstance(result, Tokens):
            return result
        if isinstance(result, Putter):
            return result.get_tokens()
        if isinstance(result, Tok):
            return Tokens.join(result)
        if isinstance(result, str):
            return self.lexer.parse_tokens(result, lineno)
        if isinstance(result, (int, float)) and not isinstance(result, bool):
            return self.lexer.parse_tokens(repr(result), lineno)
        if isinstance(result, Iterable):
            toks = Tokens(result)
            if all(isinstance(tok, Tok) for tok in toks):
                return toks
        raise TypeError(
            f"Cannot make tokens from {type(result).__name__} {result!r}")

    def _error_msg(self, file: str, msg: str, line: int = 0,
                   warn: bool = False):
        """ Prints error or warning message to diagnostic output
        and increments the return code or warning count.
        """
        file = file or self.filename or '<unknown>'
        if self.verbose < 2:
            file = os.path.basename(file)
        if line:
            file = f"{file}:{line}"

        type = warn and 'warning' or 'ERROR'
        self.log.write(f"{type}: {msg}", lineno=line)
        msg = f"{file} {type}: {msg}"
        print(msg, file = self.diag)
        if warn:
            self.warnings += 1
        else:
            self.return_code += 1

    def on_error_token(self, token: Tok, msg: str) -> None:
        """
        Called when the preprocessor has encountered an error associated with
        a token.
        """
        self.on_error(self.filename, token and token.lineno, msg)

    def on_warn_token(self, token: Tok, msg: str) -> None:
        """
        Called when the preprocessor has encountered a warning associated with
        a token.
        """
        self.on_warn(self.filename, token and token.lineno, msg)
