""" hooks.py module.
Customization for Preprocessor via PreprocessorHooks mixin class.
"""

from __future__ import annotations

import sys

from luamacro.errors import MacroError

__all__ = 'PreprocessorHooks'.split()

# ------------------------------------------------------------------
# Preprocessor event hooks
#
# Override these to customise preprocessing
# ------------------------------------------------------------------

class PreprocessorHooks(object):
    """ Override these in your subclass of Preprocessor
    to customise preprocessing
    """
    # Count of error and warning messages issued.
    return_code: int = 0
    warnings: int = 0

    def on_error(self, file: str, line: int, msg: str) -> None:
        """Called when the preprocessor has encountered an error,
        e.g. malformed input.

        The default simply prints to diagnostic file and increments
        the return code.
        """
        self._error_msg(file, msg, line)

    def on_warn(self, file: str, line: int, msg: str) -> None:
        """Called for a condition which is suspicious but not fatal, such as
        a macro redefined with a different meaning at the same block depth.

        The default prints to diagnostic file and increments the warning
        count.
        """
        self._error_msg(file, msg, line, warn=True)

    def on_macro_error(self, e: MacroError) -> None:
        """Called by the command line driver when a compilation unit fails.
        No output is written for that unit.

        The default reports the error with on_error().
        """
        self.on_error(e.filename, e.lineno, f"{e.kind}: {e.msg}")

    def finish(self) -> None:
        """ Called after the preprocessing is complete. """
        msg = f"{self.return_code} error(s), {self.warnings} warning(s)."
        print(msg, file=self.diag)
        if self.return_code or self.warnings:
            if self.diag is not sys.stderr:
                print(f'{msg}  See diagnostic output {self.diag.name!r}.',
                      file=sys.stderr)
