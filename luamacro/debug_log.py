""" Module debug_log.
DebugLog class.
    Methods to write interesting information while expanding macros.
"""
from __future__ import annotations

from luamacro.common import *

__all__ = 'DebugLog',

# ----------------------------------------------------------------------
# class DebugLog
#
# Methods to write information to the debug log file, if enabled.
# ----------------------------------------------------------------------

class DebugLog:
    def __init__(self, prep: Preprocessor):
        self.prep = prep
        # Name of the log file, or None if not logging.
        self.enable: str | None = prep.debug
        self.loglines: list[tuple[str, str]] = []
        self.wrapper = textwrap.TextWrapper(width=80)
        self.nesting = 0

    @contextlib.contextmanager
    def nest(self, n: int = 1) -> Iterator[None]:
        """ Indent messages written during the context. """
        self.nesting += n
        try: yield
        finally: self.nesting -= n

    def arg(self, name: str, arg: Tokens, ref: Tok, **kwds) -> None:
        if not self.enable: return
        self.write(f"Arg {name} = {str(arg)!r}", token=ref, **kwds)

    def define(self, macro: Macro, **kwds) -> None:
        if not self.enable: return
        self.write(f"Define {macro!r}", lineno=macro.lineno, **kwds)

    def expand(self, ref: Tok, macro: Macro, call: MacroCall = None,
               **kwds) -> None:
        """ Name of the macro appears in `ref` token. """
        if not self.enable: return
        params = macro.is_func and "()" or ""
        self.write(f"Expand macro {macro.name}{params}", token=ref, **kwds)
        with self.nest():
            if call and call.args:
                for name, arg in zip(macro.params, call.args):
                    self.arg(name, arg, ref)

    def replaced(self, ref: Tok, new: Tokens, **kwds) -> None:
        if not self.enable: return
        with self.nest():
            self.write(f"Replacement = {str(new)!r}", token=ref, **kwds)

    def not_expanded(self, ref: Tok, **kwds) -> None:
        if not self.enable: return
        self.write(f"Macro {ref.value} not expanded: "
                   f"it is in its own replacement.", token=ref, **kwds)

    def block(self, ref: Tok, msg: str, fired: int = 0, **kwds) -> None:
        if not self.enable: return
        if fired:
            msg = f"{msg}, {fired} handler(s)"
        self.write(msg, token=ref, **kwds)

    def scope(self, name: str, restored: Macro | None, **kwds) -> None:
        if not self.enable: return
        if restored:
            self.write(f"End of scope, {name} restored to {restored!r}",
                       **kwds)
        else:
            self.write(f"End of scope, {name} undefined", **kwds)

    def write(self, text: str, *, indent = 0, token: Tok = None,
              lineno: int = None):
        """ Common method for all logging.
        Logs a single message, which may contain multiple lines.
        Resulting lines are saved in self.loglines, to be written
        to the log file by self.writelog().
        """
        if not self.enable: return
        prep = self.prep
        if token and not lineno:
            lineno = token.lineno
        filename = prep.filename or '<unknown>'
        if prep.verbose < 2:
            filename = os.path.basename(filename)
        left = lineno and f"{filename}:{lineno}" or filename
        # Leading text for right side.
        wrapper = self.wrapper
        wrapper.initial_indent = (
            f"{'| ' * (prep.blocks.depth + indent)}"
            f"{'  ' * self.nesting}"
            )
        wrapper.subsequent_indent = wrapper.initial_indent + '... '
        for line in text.splitlines():
            if not line.strip(): continue
            for line2 in wrapper.wrap(line):
                self.loglines.append((left, line2))
                left = ''

    def writelog(self):
        """ This writes the entire output log file, if enabled.
        Called after everything has been processed.
        """
        if self.enable:
            with open(self.enable, "wt") as file:
                if self.loglines:
                    lefts, _ = zip(*self.loglines)
                    leftwidth = max(len(s) for s in lefts)
                    for left, right in self.loglines:

                        print("%-*s %s" % (leftwidth, left, right), file=file)
