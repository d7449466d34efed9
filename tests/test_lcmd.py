# tests/test_lcmd.py

from luamacro.lcmd import main


def run(*args):
    return main(['luamacro', *map(str, args)], exit=False)

def test_expands_to_output_file(tmp_path):
    src = tmp_path / 'in.lua'
    src.write_text('print(GREETING, __FILE__)\n')
    out = tmp_path / 'out.lua'
    diag = tmp_path / 'diag.txt'
    code = run('-DGREETING="hi"', src, '-o', out, '--diag', diag)
    assert code == 0
    assert out.read_text() == f'print("hi", "{src}")\n'
    assert '0 error(s), 0 warning(s).' in diag.read_text()

def test_error_writes_nothing(tmp_path):
    src = tmp_path / 'in.lua'
    src.write_text('x = 1\nend\n')
    out = tmp_path / 'out.lua'
    diag = tmp_path / 'diag.txt'
    code = run(src, '-o', out, '--diag', diag)
    assert code == 1
    assert not out.exists()
    assert 'in.lua:2 ERROR: UnbalancedBlock' in diag.read_text()

def test_undef_and_no_value_define(tmp_path, capsys):
    src = tmp_path / 'in.lua'
    src.write_text('x = __FILE__ + FLAG\n')
    code = run('-U__FILE__', '-DFLAG', src, '--diag', tmp_path / 'diag.txt')
    assert code == 0
    assert capsys.readouterr().out == 'x = __FILE__ + 1\n'

def test_no_builtins(tmp_path, capsys):
    src = tmp_path / 'in.lua'
    src.write_text('_STR_(x)')
    code = run('--no-builtins', src, '--diag', tmp_path / 'diag.txt')
    assert code == 0
    assert capsys.readouterr().out == '_STR_(x)'

def test_bad_command_line_define(tmp_path):
    src = tmp_path / 'in.lua'
    src.write_text('x')
    diag = tmp_path / 'diag.txt'
    code = run('-Dend=1', src, '--diag', diag)
    assert code == 1
    assert '<command line>' in diag.read_text()

def test_define_with_empty_value(tmp_path, capsys):
    src = tmp_path / 'in.lua'
    src.write_text('x = {EMPTY}')
    code = run('-DEMPTY=', src, '--diag', tmp_path / 'diag.txt')
    assert code == 0
    assert capsys.readouterr().out == 'x = {}'
