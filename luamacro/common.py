""" Module common.py.
Various things generally useful to many other modules.
"""

from __future__ import annotations

import collections
import contextlib
import dataclasses
import itertools
import operator
import os
import re
import sys
import textwrap
import typing
from typing import Any, Callable, Iterable, Iterator

T = typing.TypeVar('T')

class Stack(collections.UserList[T]):
    """
    Maintains a stack of T objects.  It's a list with extra frills.
    """

    def top(self, default: T = None) -> T | None:
        return self and self[-1] or default

    def truncate(self, depth: int) -> None:
        """ Pop items until only `depth` of them remain. """
        del self[depth:]


def is_iden_name(name: str) -> bool:
    """ True if name can be a Lua identifier (or keyword). """
    return bool(re.fullmatch(r'[A-Za-z_][A-Za-z0-9_]*', name))
