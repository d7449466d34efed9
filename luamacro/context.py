""" Module context.py.
Named stacks of values published by expansions in progress.

An iterating macro pushes a value under its own name when its expansion
begins, updates it for each iteration, and pops it when the expansion ends.
Any other macro expanded in the meantime can ask for the current value by
name, and so behave differently when it is used inside that construct,
without the two macro definitions knowing about each other.
"""

from __future__ import annotations

from luamacro.common import *

__all__ = 'MacroContexts'.split()


class MacroContexts:

    stacks: dict[str, Stack[Any]]

    def __init__(self, log: DebugLog = None):
        self.log = log
        self.stacks = {}

    def reset(self) -> None:
        self.stacks.clear()

    def push(self, name: str, value: Any = None) -> None:
        self.stacks.setdefault(name, Stack()).append(value)
        if self.log:
            self.log.write(f"Context {name} = {value!r}, "
                           f"level {len(self.stacks[name])}")

    def _stack(self, name: str) -> Stack[Any]:
        stack = self.stacks.get(name)
        if not stack:
            raise KeyError(f"Macro context {name!r} is not active")
        return stack

    def update(self, name: str, value: Any) -> None:
        """ Replace the innermost value for name. """
        self._stack(name)[-1] = value
        if self.log:
            self.log.write(f"Context {name} = {value!r}")

    def pop(self, name: str) -> Any:
        """ End the innermost context for name.  Returns its last value. """
        stack = self._stack(name)
        value = stack.pop()
        if not stack:
            del self.stacks[name]
        if self.log:
            self.log.write(f"Context {name} ended")
        return value

    def value_of(self, name: str) -> Any | None:
        """ The innermost value for name, or None if not active. """
        stack = self.stacks.get(name)
        return stack[-1] if stack else None

    def active(self, name: str) -> bool:
        return bool(self.stacks.get(name))

    def depth(self, name: str) -> int:
        """ How many contexts for name are nested. """
        return len(self.stacks.get(name, ()))

    @contextlib.contextmanager
    def nest(self, name: str, value: Any = None) -> Iterator[None]:
        """ Push a value for the duration of the context. """
        self.push(name, value)
        try: yield
        finally: self.pop(name)

    def __repr__(self) -> str:
        return f"<MacroContexts {sorted(self.stacks)}>"
