# tests/test_getter.py

import pytest

from luamacro.errors import ExpectedTokenMissing, UnexpectedToken
from luamacro.getter import Getter, Putter
from luamacro.lexer import default_lexer
from luamacro.tokens import TokIter
from luamacro.tokentype import TokType


def getter(text):
    return Getter(TokIter(default_lexer().tokens(text)))

# --- Getter ---

def test_name_number_string_skip_space():
    get = getter('  foo 42 "bar" ')
    assert get.name() == 'foo'
    assert get.number() == 42
    assert get.string() == 'bar'
    assert get.skip_space().type is TokType.EOF

def test_next_never_passes_eof():
    get = getter('x')
    assert get.next().value == 'x'
    assert get.next().type is TokType.EOF
    assert get.next().type is TokType.EOF

def test_peek_does_not_skip_space():
    get = getter(' x')
    assert get.peek().type is TokType.SPACE
    assert get.skip_space().value == 'x'

def test_wrong_kind():
    with pytest.raises(UnexpectedToken):
        getter('42').name()
    with pytest.raises(UnexpectedToken):
        getter('x').number()

def test_expecting():
    get = getter(' = x')
    assert get.expecting('=') == '='
    assert get.expecting(TokType.IDEN) == 'x'
    with pytest.raises(ExpectedTokenMissing):
        getter('x').expecting('=')

def test_names():
    get = getter('a, b ,c) rest')
    assert get.names(')') == ['a', 'b', 'c']
    assert get.peek().value == ')'
    assert getter(')').names(')') == []

def test_list_balances_brackets():
    get = getter('a, f(b, c), {d, e}, t[1]) + 1')
    args = get.list()
    assert [str(arg) for arg in args] == ['a', 'f(b, c)', '{d, e}', 't[1]']
    assert get.skip_space().value == '+'

def test_list_empty():
    assert [str(arg) for arg in getter(' )').list()] == ['']

def test_list_runs_out():
    with pytest.raises(ExpectedTokenMissing):
        getter('a, (b)').list()

def test_upto_leaves_stop():
    get = getter('x = 1 do y end')
    assert str(get.upto('do')) == 'x = 1 '
    assert get.peek().value == 'do'
    with pytest.raises(ExpectedTokenMissing):
        getter('x y').upto(';')

def test_line():
    get = getter('a b\nc')
    assert str(get.line()) == 'a b'
    assert get.peek().value == '\n'
    assert str(getter('last').line()) == 'last'

def test_block_includes_nested_blocks():
    get = getter(' x do y end if z then w end end tail')
    assert str(get.block()) == ' x do y end if z then w end '
    assert get.skip_space().value == 'tail'
    with pytest.raises(ExpectedTokenMissing):
        getter('do x end').block()

def test_taken_records_consumed_tokens():
    get = getter('a, b')
    get.name()
    assert [tok.value for tok in get.taken] == ['a']

# --- Putter ---

def test_putter_chains():
    put = (Putter().keyword('local').space().iden('x').op('=')
           .string('a"b').op(';').number(42))
    assert str(put) == 'local x="a\\"b";42'
    assert [tok.type for tok in put.get_tokens()] == [
        TokType.KEYWORD, TokType.SPACE, TokType.IDEN, TokType.OP,
        TokType.STRING, TokType.OP, TokType.NUMBER,
    ]

def test_putter_names_and_tokenlist():
    put = Putter().names(['a', 'b', 'c'])
    assert str(put) == 'a,b,c'
    put = Putter().op('(').tokenlist(put.get_tokens()).op(')')
    assert str(put) == '(a,b,c)'
