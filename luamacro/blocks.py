""" Module blocks.py.
Tracks the block depth of the Lua source being expanded, and the handlers
which fire when blocks are opened or closed.

The depth starts at 0 for the whole unit.  A block-opening keyword ('do',
'if', 'function', 'repeat') increments it, and a block-closing keyword ('end',
'until') decrements it.  Everything between an opening keyword and its
closing keyword is at the higher depth.  When the closing keyword is seen,
that depth is said to be vacated.

A deferred handler is registered for a particular depth, usually the
current one.  It fires exactly once, when that depth is vacated.  Handlers
for the same depth fire in reverse order of registration.  Depth 0 is
vacated only at the end of the input.

A keyword handler is registered for a keyword, and fires every time that
keyword is scanned (after the keyword has been output and the depth
changed).  The pseudo keywords 'BEGIN' and 'END' fire at the start and end of
the input.

At a closing keyword, the output of the deferred handlers is put back first.
The keyword handlers then run, so one which reads ahead sees that output, and
whatever they produce is scanned before it.

The Blocks object only keeps the books.  The expansion calls the handlers and
deals with whatever they produce.
"""

from __future__ import annotations

from luamacro.common import *
from luamacro.errors import UnbalancedBlock, UnterminatedScope
from luamacro.tokentype import *

__all__ = 'Blocks'.split()

# A deferred handler takes no arguments.  A keyword handler is given the
# keyword token and a Getter.  Either one returns replacement text, tokens,
# or None.
Handler = Callable[..., Any]


class Blocks:

    depth: int = 0

    # Deferred handlers for each depth, in order of registration.
    deferred: dict[int, list[Handler]]

    # Handlers for each keyword, in order of registration.
    keyword_handlers: dict[str, list[Handler]]

    def __init__(self, log: DebugLog = None):
        self.log = log
        self.reset()
        self.keyword_handlers = {}

    def reset(self) -> None:
        """ Forget the depth and any deferred handlers.  For a new unit. """
        self.depth = 0
        self.deferred = {}

    def defer(self, handler: Handler, depth: int = None) -> None:
        """
        Register handler to fire when given depth (by default, the current
        depth) is vacated.
        """
        if depth is None:
            depth = self.depth
        if depth < 0:
            raise ValueError(f"Cannot defer a handler to depth {depth}.")
        self.deferred.setdefault(depth, []).append(handler)

    def keyword_handler(self, keyword: str, handler: Handler) -> None:
        self.keyword_handlers.setdefault(keyword, []).append(handler)

    def handlers_for(self, keyword: str) -> list[Handler]:
        return list(self.keyword_handlers.get(keyword, ()))

    def open(self, tok: Tok) -> None:
        """ Enter a new block with given opening keyword. """
        self.depth += 1
        if self.log:
            self.log.block(tok, f"Open {tok.value!r}, depth {self.depth}")

    def close(self, tok: Tok) -> list[Handler]:
        """
        Leave the current block with given closing keyword.  Returns the
        deferred handlers for the vacated depth, in the order to fire them.
        """
        if not self.depth:
            raise UnbalancedBlock(
                f"{tok.value!r} without a matching block opener", tok)
        handlers = self.deferred.pop(self.depth, [])
        if self.log:
            self.log.block(tok, f"Close {tok.value!r}, depth {self.depth}",
                           fired=len(handlers))
        self.depth -= 1
        return handlers[::-1]

    def finish(self, tok: Tok) -> list[Handler]:
        """
        At the end of the input, returns the deferred handlers for depth 0, in
        the order to fire them.  Raise UnbalancedBlock if not at depth 0.
        """
        if self.depth:
            raise UnbalancedBlock(
                f"{self.depth} block(s) not closed at end of input", tok)
        return self.deferred.pop(0, [])[::-1]

    def check_finished(self, tok: Tok) -> None:
        """ Raise UnterminatedScope if any deferred handler is left. """
        if self.depth:
            raise UnbalancedBlock(
                f"{self.depth} block(s) not closed at end of input", tok)
        pending = sum(map(len, self.deferred.values()))
        if pending:
            depths = ', '.join(map(str, sorted(self.deferred)))
            raise UnterminatedScope(
                f"{pending} scope handler(s) never fired, for depth {depths}",
                tok)

    def __repr__(self) -> str:
        return f"<Blocks depth {self.depth}>"
