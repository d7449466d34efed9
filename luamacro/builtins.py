""" Module builtins.py.
The built-in macros, which every Preprocessor defines unless its `builtins`
attribute is false.

    __FILE__            String literal with the name of the unit.
    __LINE__            Line number where it appears.
    _STR_(x)            String literal with the text of x.
    _CONCAT_(a, b)      A single name made of a and b.

    @define NAME(params) text
    @define NAME text
                        Defines a macro with the rest of the line.
    @undef NAME         Removes the active definition of NAME.
    @scope NAME text    Defines NAME with the rest of the line, until the
                        end of the current block.

    _UNROLL_ var = first, last [, step] do BODY end
                        Copies BODY for each value of var, as a separate
                        block, with var defined as that value.  While the
                        copies are expanded, the context named '_UNROLL_'
                        holds the current value.
"""

from __future__ import annotations

from luamacro.common import *
from luamacro.errors import ExpectedTokenMissing, TypeMismatch, UnexpectedToken
from luamacro.getter import Getter, Putter
from luamacro.tokens import Tokens
from luamacro.tokentype import *

__all__ = 'install_builtins'.split()


def install_builtins(prep: Preprocessor) -> None:
    """ Define all the built-in macros in prep. """
    for spec, fn in builtin_macros(prep).items():
        prep.define(spec, fn)


def builtin_macros(prep: Preprocessor) -> dict[str, Callable]:
    """ The transformers for the built-in macros, by name (with params). """

    def file(get: Getter, put: Putter) -> None:
        put.string(prep.filename or '')

    def line(get: Getter, put: Putter) -> None:
        put.number(get.origin.lineno)

    def stringize(x: Tokens) -> Putter:
        return Putter().string(str(x))

    def concat(a: Tokens, b: Tokens) -> Putter:
        name = str(a.strip()) + str(b.strip())
        if not is_iden_name(name) or name in keywords:
            raise TypeMismatch(f"_CONCAT_ result {name!r} is not a name",
                               a and a[0] or None)
        return Putter().iden(name)

    def directive(get: Getter, put: Putter) -> None:
        tok = get.skip_space()
        word = get.name()
        if word == 'define':
            prep.macros.define(str(get.line()), lineno=tok.lineno)
        elif word == 'undef':
            prep.undef(get.name())
        elif word == 'scope':
            name = get.name()
            prep.set_scoped_macro(name, get.line())
        else:
            raise UnexpectedToken(f"Unknown directive @{word}", tok)

    def unroll(get: Getter, put: Putter) -> None:
        var = get.name()
        get.expecting('=')
        bounds = get.upto('do').split_commas()
        if len(bounds) not in (2, 3):
            raise ExpectedTokenMissing(
                "_UNROLL_ requires first, last and optional step",
                get.origin)
        first, last, *step = (bound.get_number() for bound in bounds)
        step = step[0] if step else 1
        if not all(isinstance(n, int) for n in (first, last, step)):
            raise TypeMismatch("_UNROLL_ bounds must be integers", get.origin)
        if not step:
            raise TypeMismatch("_UNROLL_ step cannot be 0", get.origin)
        get.expecting('do')
        body = get.block()
        prep.contexts.push('_UNROLL_', first)
        values = range(first, last + (step > 0 and 1 or -1), step)
        for i, value in enumerate(values):
            if i: put.space()
            (put.keyword('do').space()
                .iden('__UNROLL_STEP__').space().iden(var).space()
                .number(value)
                .tokenlist(body)
                .keyword('end')
                )
        put.iden('__UNROLL_DONE__')

    def unroll_step(get: Getter, put: Putter) -> None:
        # Start of one copy of the body, which is at a new depth.
        var = get.name()
        value = get.number()
        prep.contexts.update('_UNROLL_', value)
        prep.set_scoped_macro(var, repr(value))

    def unroll_done(get: Getter, put: Putter) -> None:
        prep.contexts.pop('_UNROLL_')

    return {
        '__FILE__': file,
        '__LINE__': line,
        '_STR_(x)': stringize,
        '_CONCAT_(a, b)': concat,
        '@': directive,
        '_UNROLL_': unroll,
        '__UNROLL_STEP__': unroll_step,
        '__UNROLL_DONE__': unroll_done,
        }
