# tests/test_lexer.py

import pytest

from luamacro.errors import UnexpectedToken
from luamacro.lexer import default_lexer
from luamacro.tokentype import TokType

SOURCE = '''-- a comment
local s = "a \\"quoted\\" string" .. [[long
string]] .. 'single'
--[==[ long
comment ]==]
for i = 1, 0x1F do print(i ~= 3.5e2, #t, a//b, t.x:y()) end
::top:: goto top
'''

def significant(text):
    return [(tok.type, tok.value) for tok in default_lexer().tokens(text)
            if tok.type.norm]

# --- Losslessness ---

def test_tokens_reconstruct_input():
    toks = list(default_lexer().tokens(SOURCE))
    assert ''.join(tok.value for tok in toks) == SOURCE
    assert toks[-1].type is TokType.EOF
    assert toks[-1].value == ''

def test_empty_input_gives_only_eof():
    toks = list(default_lexer().tokens(''))
    assert [tok.type for tok in toks] == [TokType.EOF]

# --- Token kinds ---

def test_basic_kinds():
    assert significant('local x = y .. "s" -- c\n') == [
        (TokType.KEYWORD, 'local'),
        (TokType.IDEN, 'x'),
        (TokType.OP, '='),
        (TokType.IDEN, 'y'),
        (TokType.OP, '..'),
        (TokType.STRING, '"s"'),
    ]

def test_comments_are_whitespace_tokens():
    toks = list(default_lexer().tokens('a --[[ x\ny ]] b -- end\n'))
    comments = [tok.value for tok in toks if tok.type is TokType.COMMENT]
    assert comments == ['--[[ x\ny ]]', '-- end']
    assert all(tok.type.ws for tok in toks
               if tok.type in (TokType.SPACE, TokType.COMMENT))

def test_numbers():
    values = [value for typ, value in significant('0x1F 3.5e2 .5 10 0x.8p1')
              if typ is TokType.NUMBER]
    assert values == ['0x1F', '3.5e2', '.5', '10', '0x.8p1']

def test_operators_longest_first():
    assert [value for typ, value in significant('a...b..c==d~=e//f::g')
            if typ is TokType.OP] == ['...', '..', '==', '~=', '//', '::']

def test_other_characters_are_single_ops():
    assert significant('@ $ ! ?') == [
        (TokType.OP, '@'), (TokType.OP, '$'), (TokType.OP, '!'),
        (TokType.OP, '?'),
    ]

def test_keywords():
    kinds = dict((value, typ) for typ, value in
                 significant('while x do break end until goto'))
    assert kinds['while'] is TokType.KEYWORD
    assert kinds['goto'] is TokType.KEYWORD
    assert kinds['x'] is TokType.IDEN

def test_long_string_with_level():
    assert significant('x = [==[a]]b]==]') == [
        (TokType.IDEN, 'x'),
        (TokType.OP, '='),
        (TokType.STRING, '[==[a]]b]==]'),
    ]

# --- Line numbers ---

def test_line_numbers():
    toks = [tok for tok in default_lexer().tokens('a\nb\n\nc --[[\n]] d')
            if tok.type.norm]
    assert [(tok.value, tok.lineno) for tok in toks] == [
        ('a', 1), ('b', 2), ('c', 4), ('d', 5),
    ]

def test_parse_tokens_does_not_disturb_main_lexer():
    lexer = default_lexer()
    gen = lexer.tokens('one two')
    first = next(gen)
    assert str(lexer.parse_tokens('x y z')) == 'x y z'
    rest = ''.join(tok.value for tok in gen)
    assert first.value + rest == 'one two'

# --- Errors ---

def test_unfinished_string():
    with pytest.raises(UnexpectedToken) as info:
        list(default_lexer().tokens('x = 1\ny = "abc\n'))
    assert info.value.lineno == 2

def test_unfinished_long_string():
    with pytest.raises(UnexpectedToken):
        list(default_lexer().tokens('x = [[abc'))
