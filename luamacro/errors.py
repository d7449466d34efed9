""" Module errors.py.
Exceptions raised while expanding a compilation unit.

Every error is fatal for the unit being expanded.  The exception carries the
offending token (when known) so that the message can name the line where it
originated, even if the token was produced by a macro expansion.
"""

from __future__ import annotations

__all__ = ('MacroError UnexpectedToken ExpectedTokenMissing TypeMismatch '
           'ArityMismatch UnbalancedBlock UnterminatedScope '
           'UndefinedMacroInvocation').split()


class MacroError(Exception):
    """ Base class of all expansion errors. """

    # Source name, filled in by the Preprocessor if not known at raise time.
    filename: str = None

    def __init__(self, msg: str, tok: Tok = None, *, lineno: int = None,
                 filename: str = None):
        super().__init__(msg)
        self.msg = msg
        self.tok = tok
        if lineno is None and tok is not None:
            lineno = tok.lineno
        self.lineno = lineno
        if filename: self.filename = filename

    @property
    def kind(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        where = self.filename or '<unknown>'
        if self.lineno:
            where = f"{where}:{self.lineno}"
        return f"{where}: {self.kind}: {self.msg}"


class UnexpectedToken(MacroError):
    """ A token of the wrong kind, or an untokenizable input. """

class ExpectedTokenMissing(MacroError):
    """ A required token (or value) is not present. """

class TypeMismatch(MacroError):
    """ A token list does not have the shape of the requested value. """

class ArityMismatch(MacroError):
    """ A function macro was passed the wrong number of arguments. """

class UnbalancedBlock(MacroError):
    """ Block closed at depth 0, or still open at end of input. """

class UnterminatedScope(MacroError):
    """ A deferred handler was never fired. """

class UndefinedMacroInvocation(MacroError):
    """ A transformer or handler failed with some other exception. """
