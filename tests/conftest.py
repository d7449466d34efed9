# tests/conftest.py

import io

import pytest

from luamacro.lexer import default_lexer
from luamacro.preprocessor import Preprocessor


@pytest.fixture
def prep():
    """A Preprocessor with the built-in macros, writing diagnostics to a
    string buffer."""
    p = Preprocessor()
    p.diag = io.StringIO()
    return p


@pytest.fixture
def lex():
    """Function to lex a fragment of Lua into Tokens (without EOF)."""
    return default_lexer().parse_tokens
