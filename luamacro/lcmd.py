# Lua macro preprocessor command line

from __future__ import annotations

import sys, argparse, traceback, os

if __name__ == '__main__' and __package__ is None:
    sys.path.append(os.path.dirname(os.path.dirname(
        os.path.abspath(__file__))))

from luamacro import __version__ as version
from luamacro.errors import MacroError
from luamacro.preprocessor import Preprocessor
from luamacro.tokens import Tokens

__all__ = ['CmdPreprocessor', 'main']


class CmdPreprocessor(Preprocessor):
    """
    Specialized Preprocessor subclass for use as a command-line tool.  It is
    constructed from an argv list, such as found in sys.argv, and expands all
    the input files.

    The output is written only if every input file was expanded without
    error.  Errors are reported through self.on_macro_error().
    """

    args: argparse.Namespace

    def __init__(self, argv: list[str]):
        if len(argv) < 2:
            argv = [argv[0], '--help']

        unknowns: list[str]         # Unknown argument names

        args, unknowns = self.make_args(argv)
        for arg in unknowns:
            print(f"NOTE: Argument '{arg}' not known, ignoring!",
                  file=sys.stderr)
        self.args = args

        self.verbose = args.v
        self.debug = args.debug
        self.diag = args.diag
        self.builtins = args.builtins
        super().__init__()

        # `defines` includes -U names with a trailing '-' and no '='
        try:
            for d in args.defines or ():
                if '=' not in d and d.endswith('-'):
                    self.undef(d[:-1])
                else:
                    name, eq, value = d.partition('=')
                    self.define(f"{name} {value if eq else '1'}")
        except MacroError as e:
            e.filename = e.filename or '<command line>'
            self.on_macro_error(e)
            return

        results: list[Tokens] = []
        for input in args.inputs:
            try:
                results.append(self.substitute(input, input.name))
            except MacroError as e:
                self.on_macro_error(e)
            finally:
                if input is not sys.stdin:
                    input.close()

        if not self.return_code:
            self.write(results, args.output)

    def finish(self) -> None:
        super().finish()
        if self.diag is not sys.stderr:
            self.diag.close()

    def write(self, results: list[Tokens], output: str) -> None:
        """ Write all the expanded text to the output path, '-' for stdout. """
        text = ''.join(map(str, results))
        if output == '-':
            sys.stdout.write(text)
        else:
            with open(output, 'wt', encoding='utf-8') as oh:
                oh.write(text)

    def make_args(self, argv) -> tuple[argparse.Namespace, list[str]]:
        """
        Read the command line arguments with the argparse module.  Return a
        Namespace object from the known args, and a list of unknown items in
        argv.
        """
        argp = argparse.ArgumentParser(prog='luamacro',
            description=
    '''Expands lexically scoped macros in Lua source, writing Lua source
    which any Lua compiler accepts.''',
            epilog=
    '''Nothing is written if any input file has an error.''')
        add = argp.add_argument
        add('inputs', metavar='input', default=[sys.stdin], nargs='*',
            type=argparse.FileType('rt', encoding='utf-8-sig'),
            help='Files to preprocess (use \'-\' for stdin)'
            )
        add('-o', '--output', dest='output', metavar='path', default='-',
            help='Output to a file instead of stdout',
            )
        add('-D', dest='defines', metavar='MACRO[=VAL]',
            action='append',
            help='''Predefine MACRO as a macro with value VAL.
                      If just MACRO is given, VAL is taken to be 1.
                      MACRO may have a parameter list, as in -D"SQ(x)=x*x".''',
            )
        add('-U', dest='defines', metavar='macro',
            action=UndefAction,
            help='''Remove the active definition of macro, such as a
                 built-in one.  Processed in order with any -D options.''',
            )
        add('--no-builtins', dest='builtins', action='store_false',
            help='Do not define the built-in macros.',
            )
        add('--debug', dest='debug', metavar='path', type=str,
            const="luamacro_debug.log", nargs='?',
            help='''
                Generate a log file for logging execution.
                Default = luamacro_debug.log.
                ''',
            )
        add('--diag', dest='diag', metavar='path', nargs='?',
            type=argparse.FileType('wt'),
            help='Write diagnostics to a file instead of stderr.',
            )
        add("-v", action="count", default=0,
            help="Print more log details; repeat for still more.",
            )
        add('--version', action='version', version='luamacro ' + version)
        return argp.parse_known_args(argv[1:])


class UndefAction(argparse.Action):
    """
    An action which stores its argument followed by a "-" to distinguish it
    from a define. """
    def __init__(self, **kwds): super().__init__(**kwds)

    def __call__(self, parser, namespace, values, option_string) -> None:
        items = getattr(namespace, self.dest) or []
        items.append(values + "-")
        setattr(namespace, self.dest, items)


def main(argv: list[str] = None, exit: bool = True) -> int:
    """ Run the command line in argv (default sys.argv).  Returns the exit
    code, or exits with it.
    """
    try:
        p = CmdPreprocessor(argv or sys.argv)
        p.finish()
        code = p.return_code and 1 or 0
    except Exception as e:
        traceback.print_exc()
        code = 2
    if exit:
        sys.exit(code)
    return code

if __name__ == "__main__":
    main()
