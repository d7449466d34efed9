# tests/test_blocks.py

import pytest

from luamacro.blocks import Blocks
from luamacro.context import MacroContexts
from luamacro.errors import UnbalancedBlock, UnterminatedScope
from luamacro.tokens import Tok
from luamacro.tokentype import TokType

DO = Tok(TokType.KEYWORD, 'do', 1)
END = Tok(TokType.KEYWORD, 'end', 2)

# --- Blocks ---

def test_blocks_fire_lifo_at_vacated_depth():
    blocks = Blocks()
    order = []
    blocks.defer(lambda: order.append('outer'))
    blocks.open(DO)
    for n in range(3):
        blocks.defer(lambda n=n: order.append(n))
    assert blocks.depth == 1
    for handler in blocks.close(END):
        handler()
    assert order == [2, 1, 0]
    assert blocks.depth == 0
    for handler in blocks.finish(END):
        handler()
    assert order == [2, 1, 0, 'outer']
    blocks.check_finished(END)

def test_blocks_close_at_depth_zero():
    with pytest.raises(UnbalancedBlock):
        Blocks().close(END)

def test_blocks_unclosed_at_finish():
    blocks = Blocks()
    blocks.open(DO)
    with pytest.raises(UnbalancedBlock):
        blocks.finish(END)

def test_blocks_unfired_handler():
    blocks = Blocks()
    blocks.defer(lambda: None, depth=2)
    with pytest.raises(UnterminatedScope):
        blocks.check_finished(END)

# --- MacroContexts ---

def test_contexts_stack():
    ctx = MacroContexts()
    assert ctx.value_of('L') is None
    assert not ctx.active('L')
    ctx.push('L', 0)
    assert ctx.value_of('L') == 0
    assert ctx.active('L')
    ctx.push('L', 'inner')
    ctx.update('L', 'x')
    assert ctx.value_of('L') == 'x'
    assert ctx.depth('L') == 2
    assert ctx.pop('L') == 'x'
    assert ctx.value_of('L') == 0
    ctx.pop('L')
    assert not ctx.active('L')
    with ctx.nest('L', 5):
        assert ctx.value_of('L') == 5
    assert ctx.value_of('L') is None

def test_contexts_inactive():
    ctx = MacroContexts()
    with pytest.raises(KeyError):
        ctx.update('L', 1)
    with pytest.raises(KeyError):
        ctx.pop('L')

# --- Block depth during expansion ---

def test_balanced_blocks(prep):
    for text in ['do end', 'if a then b() elseif c then d() else e() end',
                 'while a do for i = 1, 2 do end end',
                 'repeat local function f() end until x',
                 'x = function() return 1 end']:
        assert prep.substitute_tostring(text) == text
        assert prep.blocks.depth == 0

@pytest.mark.parametrize('text', [
    'end', 'do end end', 'repeat until a until b', 'if a then end end'])
def test_too_many_closers(prep, text):
    with pytest.raises(UnbalancedBlock):
        prep.substitute(text)

@pytest.mark.parametrize('text', ['do', 'function f()', 'repeat x = 1'])
def test_unclosed_block(prep, text):
    with pytest.raises(UnbalancedBlock):
        prep.substitute(text)

def test_unbalanced_error_location(prep):
    with pytest.raises(UnbalancedBlock) as info:
        prep.substitute('x = 1\nend\n', 'unit.lua')
    assert info.value.lineno == 2
    assert info.value.filename == 'unit.lua'
    assert str(info.value) == (
        "unit.lua:2: UnbalancedBlock: 'end' without a matching block opener")

# --- Scoped macros ---

def test_block_lexical_scoping(prep):
    prep.define('X', '1')
    text = ('if C then\n'
            '  @scope X 42\n'
            '  assert(X == 42)\n'
            'end\n'
            'assert(X == 1)\n')
    assert prep.substitute_tostring(text) == (
        'if C then\n'
        '  \n'
        '  assert(42 == 42)\n'
        'end\n'
        'assert(1 == 1)\n')

def test_set_scoped_macro_restores(prep):
    def set_(get, put):
        name = get.name()
        prep.set_scoped_macro(name, str(get.number()))
    prep.define('SET', set_)
    out = prep.substitute_tostring(
        'do\n'
        '  SET N 10 SET M 20\n'
        '  a = N + M\n'
        '  do\n'
        '    SET N 5\n'
        '    b = N + M\n'
        '  end\n'
        '  c = N\n'
        'end\n'
        'd = N\n')
    assert 'a = 10 + 20' in out
    assert 'b = 5 + 20' in out
    assert 'c = 10' in out
    assert 'd = N' in out
    assert not prep.macros.defined('N')
    assert not prep.macros.defined('M')

def test_scoped_macro_over_global_definition(prep):
    prep.define('N', '1')
    prep.define('SET', lambda get, put: prep.set_scoped_macro(
        get.name(), '2') and None)
    assert prep.substitute_tostring('do SET N x = N end y = N') == (
        'do  x = 2 end y = 1')
    assert prep.macros.get('N').value.values() == ['1']

def test_scoped_macro_at_top_level_ends_with_unit(prep):
    prep.define('SET', lambda get, put: prep.set_scoped_macro(
        get.name(), '7') and None)
    assert prep.substitute_tostring('SET Q x = Q') == ' x = 7'
    assert not prep.macros.defined('Q')

# --- Deferred handlers ---

def test_deferred_order_and_count(prep):
    fired = []
    def defer(get, put):
        name = get.name()
        prep.defer(lambda: fired.append(name))
    prep.define('DEFER', defer)
    prep.define('MARK', lambda get, put: fired.append('mark'))
    prep.substitute('do DEFER a DEFER b DEFER c MARK end MARK')
    assert fired == ['mark', 'c', 'b', 'a', 'mark']

def test_deferred_output_is_rescanned(prep):
    prep.define('DONE', '"done"')
    prep.define('CLOSE', lambda get, put: prep.defer(lambda: ' DONE'))
    assert prep.substitute_tostring('do CLOSE end') == 'do  end "done"'

def test_deferred_to_outer_depth(prep):
    fired = []
    prep.define('LATER', lambda get, put: prep.defer(
        lambda: fired.append(prep.blocks.depth), depth=0))
    prep.substitute('do do LATER end end x = 1')
    assert fired == [0]

def test_unterminated_scope(prep):
    prep.define('LATER', lambda get, put: prep.defer(lambda: None, depth=3))
    with pytest.raises(UnterminatedScope):
        prep.substitute('LATER')

def test_handler_exception_is_wrapped(prep):
    from luamacro.errors import UndefinedMacroInvocation

    prep.define('OOPS', lambda get, put: prep.defer(lambda: {}['key']))
    with pytest.raises(UndefinedMacroInvocation):
        prep.substitute('do OOPS end')

# --- Keyword handlers ---

def test_keyword_handler(prep):
    prep.keyword_handler('function', lambda tok, get: ' --[[fn]]')
    assert (prep.substitute_tostring('local function f() end')
            == 'local function --[[fn]] f() end')

def test_keyword_handler_reads_ahead(prep):
    names = []
    def local(tok, get):
        names.append(get.name())
    prep.keyword_handler('local', local)
    prep.substitute('local x = 1 local y = 2')
    assert names == ['x', 'y']

def test_begin_and_end_handlers(prep):
    prep.keyword_handler('BEGIN', lambda tok, get: '-- begin\n')
    prep.keyword_handler('END', lambda tok, get: '\n-- end')
    assert prep.substitute_tostring('x = 1') == '-- begin\nx = 1\n-- end'

def test_closer_handler_reads_deferred_output(prep):
    seen = []
    prep.define('CLOSE', lambda get, put: prep.defer(lambda: ' tail'))
    prep.keyword_handler('end', lambda tok, get: seen.append(get.name()))
    assert prep.substitute_tostring('do CLOSE end other') == 'do  end other'
    assert seen == ['tail']

def test_closer_handler_output_comes_first(prep):
    prep.define('CLOSE', lambda get, put: prep.defer(lambda: ' deferred'))
    prep.keyword_handler('end', lambda tok, get: ' keyword')
    assert (prep.substitute_tostring('do CLOSE end')
            == 'do  end keyword deferred')

def test_defer_to_negative_depth():
    with pytest.raises(ValueError):
        Blocks().defer(lambda: None, depth=-1)
