""" macros
Manages macro definitions and lookups for a Lua compilation unit, and the
substitution engine which expands them.
"""
from __future__ import annotations

from typing import ClassVar

from luamacro.common import *
from luamacro.errors import (ArityMismatch, ExpectedTokenMissing, MacroError,
                             UndefinedMacroInvocation, UnexpectedToken)
from luamacro.getter import Getter, Putter
from luamacro.tokens import Tok, Tokens, TokIter
from luamacro.tokentype import *

__all__ = ('Macro ObjMacro FuncMacro DynMacro MacroStack Macros MacroCall '
           'MacroExp').split()

''' Expansion is a single forward scan over one TokIter.  When a macro name is
found, its replacement is put back in front of the remaining input, and the
scan continues with the first replacement token.  Nothing is ever expanded in
place, so there is no recursion in the engine itself.

Every replacement token which was not taken from the input is marked with the
name of the macro which produced it (Tok.exp_from).  A token is never matched
by the macro named in its mark, so a macro whose replacement contains its own
name cannot loop.  A different macro can still produce the name again later
in the scan, which is how a macro schedules a later invocation of itself.
The same holds for static macros, so a cycle of them, such as A defined as B
and B defined as A, expands forever.

The arguments of a transformer with parameters are fully expanded, each on
its own, before the transformer is called.  Within them, keywords do not
change the block depth.
'''

# ------------------------------------------------------------------
# Macro object
#
# This object holds information about one macro definition.
#
#    .name      - Macro name, an identifier or a run of operator characters.
#    .namespace - 'iden' or 'op', depending on the name.
#    .params    - Names of formal parameters, or None for object style.
#    .value     - Replacement tokens, for static macros.
#    .depth     - Block depth where the macro was defined.
#    .lineno    - Line number of the definition, if known.
#
# The variant (static or callable) and the shape (with or without params)
# are fixed when the macro is defined.
# ------------------------------------------------------------------

class Macro:
    """ The definition of a macro. """
    is_func: bool = False                   # Takes an argument list
    is_dyn: ClassVar[bool] = False          # True for DynMacro class

    params: tuple[str, ...] | None = None
    value: Tokens

    def __init__(self, name: str, value: Tokens = None, *,
                 params: Iterable[str] = None, depth: int = 0,
                 lineno: int = 0):
        self.name = name
        self.value = Tokens(value)
        if params is not None:
            self.params = tuple(params)
        self.depth = depth
        self.lineno = lineno

    @property
    def namespace(self) -> str:
        return is_iden_name(self.name) and 'iden' or 'op'

    def expand(self, call: MacroCall) -> Any:
        """ The replacement for given call, in any form that
        Preprocessor.as_tokens() accepts.
        """
        return self.value

    def sameas(self, other: Macro) -> bool:
        """ True if the two definitions are the same, ignoring whitespace. """
        if type(self) is not type(other): return False
        return (self.params == other.params
                and self.value.values() == other.value.values())


class ObjMacro(Macro):
    """ Object style macro with static replacement text. """

    def __repr__(self):
        return f"{self.name}={str(self.value)!r}"


class FuncMacro(Macro):
    """ Function style macro with static replacement text.  Parameter names
    in the text are replaced by the corresponding arguments.
    """
    is_func: bool = True

    def expand(self, call: MacroCall) -> Tokens:
        args = dict(zip(self.params, call.args))
        result = Tokens()
        for tok in self.value:
            if tok.type.id and tok.value in args:
                result.extend(args[tok.value])
            else:
                result.append(tok)
        return result

    def __repr__(self):
        return f"{self.name}({', '.join(self.params)})={str(self.value)!r}"


class DynMacro(Macro):
    """ Macro whose replacement comes from a Transformer callable.

    With params, the transformer is called with one Tokens per parameter.
    Otherwise, it is called with a Getter positioned after the macro name and
    a new Putter.  If it returns None, the contents of the Putter are used.
    """
    is_dyn: ClassVar[bool] = True

    def __init__(self, name: str, fn: Callable[..., Any], **kwds):
        super().__init__(name, **kwds)
        self.fn = fn
        self.is_func = self.params is not None

    def expand(self, call: MacroCall) -> Any:
        if self.is_func:
            return self.fn(*call.args)
        put = Putter()
        result = self.fn(call.get, put)
        if result is None:
            return put
        return result

    def sameas(self, other: Macro) -> bool:
        return super().sameas(other) and self.fn is other.fn

    def __repr__(self) -> str:
        params = self.params is not None and f"({', '.join(self.params)})" or ''
        return f"{self.name}{params}={getattr(self.fn, '__name__', self.fn)}"


class MacroStack(Stack[Macro]):
    """ The definitions of one name.  The top one is active. """


class Macros:
    """ All the macro definitions known to a Preprocessor, in two namespaces.
    Identifier macros are matched at IDEN tokens, and operator macros at OP
    tokens.  Each name has a MacroStack, so that a new definition shadows the
    previous one until it is removed.
    """

    idens: dict[str, MacroStack]
    ops: dict[str, MacroStack]

    def __init__(self, prep: Preprocessor):
        self.prep = prep
        self.lexer = prep.lexer
        self.log = prep.log
        self.idens = {}
        self.ops = {}
        # Length of the longest operator macro name.
        self.maxop = 0

    def table(self, name: str) -> dict[str, MacroStack]:
        """ The namespace where given name belongs. """
        return self.idens if is_iden_name(name) else self.ops

    def define(self, spec: str, subst: Any = None, *, warn: bool = True,
               lineno: int = 0) -> Macro:
        """
        Define a new macro.  `spec` is the name, followed by a parameter list
        in parentheses for a function style macro.  Without a `subst`, the
        replacement text follows in `spec` itself, as in
        "MAX(a, b) ((a) > (b) and (a) or (b))".

        `subst` is either the replacement text, a Tokens, or a Transformer
        callable.  A '(' directly after the name begins the parameter list.
        """
        prep = self.prep
        deftoks = self.lexer.parse_tokens(spec, lineno)
        get = Getter(TokIter(deftoks))
        first = get.skip_space()
        if first.type.eof:
            raise ExpectedTokenMissing("Macro definition requires a name",
                                       lineno=lineno or None)
        if first.type.kw:
            raise UnexpectedToken(
                f"Keyword {first.value!r} cannot be a macro name", first)
        name = get.next().value
        if first.type.op:
            # The name is the run of adjacent operator characters.
            while get.peek().type.op and get.peek().value != '(':
                name += get.next().value
        elif not first.type.id:
            raise UnexpectedToken(
                f"Macro definition {first.value!r} requires an identifier "
                f"or operator name", first)

        params: list[str] | None = None
        if get.peek().value == '(':
            get.next()
            params = get.names(')')
            get.expecting(')')
            if len(set(params)) != len(params):
                raise UnexpectedToken(
                    f"Duplicate parameter name in macro {name}", first)

        rest = Tokens(get.intoks).strip()
        kwds = dict(params=params, depth=prep.blocks.depth,
                    lineno=lineno)
        if subst is None:
            m = (params is None and ObjMacro or FuncMacro)(name, rest, **kwds)
        else:
            if rest:
                raise UnexpectedToken(
                    f"Unexpected {str(rest)!r} after macro name {name}",
                    rest[0])
            if callable(subst):
                m = DynMacro(name, subst, **kwds)
            else:
                value = prep.as_tokens(subst, lineno).strip()
                m = (params is None and ObjMacro or FuncMacro)(
                    name, value, **kwds)
        self.push(m, warn=warn)
        return m

    def push(self, m: Macro, *, warn: bool = True) -> None:
        """ Make given macro the active definition of its name. """
        table = self.table(m.name)
        stack = table.setdefault(m.name, MacroStack())
        older = stack.top()
        if (warn and older and older.depth == m.depth
                and not m.sameas(older)):
            self.prep.on_warn_token(
                Tok(TokType.IDEN, m.name, m.lineno),
                f"Macro {m.name} redefined with different meaning.")
        stack.append(m)
        if table is self.ops:
            self.maxop = max(self.maxop, len(m.name))
        self.log.define(m)

    def undef(self, name: str) -> None:
        """ Remove the active definition of name, if any.  A previous
        definition becomes active again.
        """
        table = self.table(name)
        stack = table.get(name)
        if stack:
            stack.pop()
            if not stack:
                del table[name]

    def get(self, name: str) -> Macro | None:
        stack = self.table(name).get(name)
        return stack and stack.top() or None

    def defined(self, name: str) -> bool:
        return name in self.table(name)

    def set_scoped_macro(self, name: str, text: Any) -> Macro:
        """
        Define name as an object macro which lasts until the current block
        depth is vacated.  Then the definitions of name are restored to what
        they were before, including being undefined.
        """
        table = self.table(name)
        height = len(table.get(name, ()))
        m = self.define(name, text, warn=False)

        def restore() -> None:
            stack = table.get(name)
            if stack is None: return
            stack.truncate(height)
            if not stack:
                del table[name]
            self.log.scope(name, stack.top())

        self.prep.blocks.defer(restore)
        return m

    def match(self, tok: Tok, intoks: TokIter) -> tuple[Macro, Tok] | None:
        """
        The macro invoked by given token, and the token for the complete name.
        Operator names can span several adjacent OP tokens.  These are taken
        from intoks, and any that are not part of the name are put back.
        Returns None if there is no match.
        """
        if tok.type.op and self.ops:
            run = [tok]
            length = len(tok.value)
            while length < self.maxop:
                nxt = intoks.peek()
                if not nxt or not nxt.type.op: break
                run.append(next(intoks))
                length += len(nxt.value)
            # The longest name wins.
            for n in range(len(run), 0, -1):
                name = ''.join(t.value for t in run[:n])
                stack = self.ops.get(name)
                if not stack: continue
                if any(t.exp_from == name for t in run[:n]):
                    self.log.not_expanded(tok)
                    continue
                intoks.prepend(run[n:])
                if n > 1:
                    tok = tok.copy(value=name)
                return stack.top(), tok
            intoks.prepend(run[1:])
            return None
        if tok.type.id:
            stack = self.idens.get(tok.value)
            if not stack: return None
            if tok.exp_from == tok.value:
                self.log.not_expanded(tok)
                return None
            return stack.top(), tok
        return None

    def expand(self, intoks: TokIter, nested: bool = False) -> Tokens:
        """ Completely macro expands a token iterator.  A nested expansion
        (of a macro argument) does not track blocks, and ends without an EOF
        token when the input runs out.
        """
        return MacroExp(self, intoks, nested)()

    def __repr__(self) -> str:
        return f"<Macros {len(self.idens)} idens, {len(self.ops)} ops>"


class MacroCall:
    """
    An invocation of a macro.  Gathers any argument list from the input, and
    produces the replacement tokens with the subst() method.
    """
    # Argument tokens for each parameter, for a function style macro.
    args: list[Tokens] = None

    def __init__(self, exp: MacroExp, m: Macro, nametok: Tok):
        self.exp = exp
        self.m = m
        self.nametok = nametok
        # All input is consumed through this Getter.
        self.get = Getter(exp.intoks, origin=nametok)

    def getargs(self) -> None:
        """
        Parse argument list from the input, for a function style macro.
        Does nothing if an object style macro.
        """
        m = self.m
        if not m.is_func:
            return
        get = self.get
        tok = get.skip_space()
        if tok.value != '(':
            raise ExpectedTokenMissing(
                f"Macro {m.name} requires an argument list, got "
                f"{tok.value or 'end of input'!r}", tok)
        get.next()
        args = get.list(')')
        if len(args) == 1 and not args[0] and not m.params:
            args = []
        if len(args) != len(m.params):
            raise ArityMismatch(
                f"Macro {m.name} takes {len(m.params)} argument(s), "
                f"{len(args)} given", self.nametok)
        if m.is_dyn:
            # The transformer sees the arguments after expansion.
            macros = self.exp.macros
            args = [macros.expand(TokIter(arg), nested=True)
                    for arg in args]
        self.args = args

    def subst(self) -> Tokens:
        """ The replacement tokens, marked as coming from this macro except
        for those taken from the input.
        """
        m = self.m
        prep = self.exp.prep
        nametok = self.nametok
        self.getargs()
        prep.log.expand(nametok, m, self)
        try:
            result = prep.as_tokens(m.expand(self))
        except MacroError:
            raise
        except Exception as e:
            raise UndefinedMacroInvocation(
                f"Macro {m.name} failed: {type(e).__name__}: {e}",
                nametok) from e
        taken = {id(tok) for tok in self.get.taken}
        return Tokens(
            tok if id(tok) in taken
            else tok.copy(exp_from=m.name, lineno=nametok.lineno)
            for tok in result)

    def __repr__(self) -> str:
        return f"<MacroCall {self.m.name} @{self.nametok.lineno}>"


class MacroExp:
    """ Handles a single call to Macros.expand() using its __call__(). """

    # Input tokens to consume during the expansion.  Includes macro
    # replacement tokens awaiting rescan.
    intoks: TokIter

    def __init__(self, macros: Macros, intoks: TokIter, nested: bool = False):
        self.macros = macros
        self.prep = macros.prep
        self.blocks = self.prep.blocks
        self.intoks = intoks
        # Expanding a macro argument, which is not a whole unit.
        self.nested = nested

    def __call__(self) -> Tokens:
        """
        Expands all of self.intoks, through the EOF token.  After each
        expansion, rescans that expansion plus all following tokens.  Returns
        the output tokens.
        """
        intoks = self.intoks
        blocks = self.blocks
        nested = self.nested
        out = Tokens()
        finishing = False

        if not nested:
            first = intoks.peek() or Tok(TokType.EOF, '', 1)
            self.fire_keyword('BEGIN', first)

        while True:
            tok = next(intoks, None)
            if tok is None:
                if nested:
                    return out
                # Input without a final EOF token.
                tok = Tok(TokType.EOF, '', out and out[-1].lineno or 1)
            typ = tok.type
            if typ.eof:
                if not finishing:
                    # Let handlers add more input, once.
                    finishing = True
                    handlers = blocks.finish(tok)
                    intoks.putback(tok)
                    self.fire_keyword('END', tok)
                    self.fire_deferred(handlers, tok)
                    continue
                blocks.check_finished(tok)
                out.append(tok)
                return out

            if typ.kw:
                out.append(tok)
                if nested:
                    continue
                if tok.value in block_openers:
                    blocks.open(tok)
                    self.fire_keyword(tok.value, tok)
                elif tok.value in block_closers:
                    handlers = blocks.close(tok)
                    # Keyword handlers read ahead through the deferred
                    # output, and their own output is scanned before it.
                    self.fire_deferred(handlers, tok)
                    self.fire_keyword(tok.value, tok)
                else:
                    self.fire_keyword(tok.value, tok)
                continue

            match = self.macros.match(tok, intoks)
            if not match:
                out.append(tok)
                continue
            m, nametok = match
            call = MacroCall(self, m, nametok)
            repl = call.subst()
            self.prep.log.replaced(nametok, repl)
            intoks.prepend(repl)

    def run_handlers(self, handlers: list[Callable], tok: Tok,
                     *args) -> Tokens:
        """ Call each handler in turn.  Returns all their output. """
        result = Tokens()
        for handler in handlers:
            try:
                toks = self.prep.as_tokens(handler(*args), tok.lineno)
            except MacroError:
                raise
            except Exception as e:
                raise UndefinedMacroInvocation(
                    f"Handler {getattr(handler, '__name__', handler)} "
                    f"failed: {type(e).__name__}: {e}", tok) from e
            result.extend(t.copy(lineno=t.lineno or tok.lineno)
                          for t in toks)
        return result

    def run_keyword(self, keyword: str, tok: Tok) -> Tokens:
        handlers = self.blocks.handlers_for(keyword)
        if not handlers:
            return Tokens()
        return self.run_handlers(handlers, tok, tok,
                                 Getter(self.intoks, origin=tok))

    def fire_keyword(self, keyword: str, tok: Tok) -> None:
        """ Run handlers for keyword, and scan their output next. """
        self.intoks.prepend(self.run_keyword(keyword, tok))

    def fire_deferred(self, handlers: list[Callable], tok: Tok) -> None:
        self.intoks.prepend(self.run_handlers(handlers, tok))
