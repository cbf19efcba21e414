import argparse, json, logging, sys, pathlib
from .config import EvalConfig, OVERFLOW_POLICIES, WRAP
from .errors import IntLangError
from .inspectors import ast_ascii_tree, ast_graphviz, ast_to_dict, tokenize
from .interpreter import compile_from_source
from .parser import Dialect, parse

logger = logging.getLogger(__name__)

LOG_LEVELS = {
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def _dialect(args) -> Dialect:
    return Dialect.FLAT if args.flat else Dialect.FUNCTION


def _run(args) -> int:
    src = pathlib.Path(args.file).read_text(encoding='utf-8')
    config = EvalConfig(overflow=args.overflow, max_depth=args.max_depth)
    trace = None
    if args.trace:
        trace = lambda e, v: print(f"  {e} = {v}", file=sys.stderr)
    print(compile_from_source(src, _dialect(args), config, trace))
    return 0


def _ast(args) -> int:
    src = pathlib.Path(args.file).read_text(encoding='utf-8')
    prog = parse(src, _dialect(args))
    if args.json:
        print(json.dumps(ast_to_dict(prog), indent=2))
    elif args.dot:
        print(ast_graphviz(prog).source)
    else:
        print(ast_ascii_tree(prog))
    return 0


def _tokens(args) -> int:
    src = pathlib.Path(args.file).read_text(encoding='utf-8')
    for t in tokenize(src, _dialect(args)):
        print(f"{t['line']}:{t['col']}\t{t['kind']}\t{t['lexeme']}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog='intlang', description='IntLang interpreter')
    ap.add_argument('--log-level', choices=list(LOG_LEVELS), default='WARNING',
                    help='set the logging level')
    sub = ap.add_subparsers(dest='cmd', required=True)

    runp = sub.add_parser('run', help='Interpret a program and print its result')
    runp.add_argument('file')
    runp.add_argument('--flat', action='store_true', help='source uses the flat `main { ... }` dialect')
    runp.add_argument('--overflow', choices=OVERFLOW_POLICIES, default=WRAP,
                      help='what + and - do on 32-bit overflow')
    runp.add_argument('--max-depth', type=int, default=EvalConfig.max_depth,
                      help='maximum evaluation nesting depth')
    runp.add_argument('--trace', action='store_true', help='print every evaluated node to stderr')
    runp.set_defaults(func=_run)

    astp = sub.add_parser('ast', help='Print the lowered AST')
    astp.add_argument('file')
    astp.add_argument('--flat', action='store_true')
    fmt = astp.add_mutually_exclusive_group()
    fmt.add_argument('--json', action='store_true', help='print as JSON')
    fmt.add_argument('--dot', action='store_true', help='print as Graphviz source')
    astp.set_defaults(func=_ast)

    tokp = sub.add_parser('tokens', help='Print the token stream')
    tokp.add_argument('file')
    tokp.add_argument('--flat', action='store_true')
    tokp.set_defaults(func=_tokens)
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(stream=sys.stderr, level=LOG_LEVELS[args.log_level])
    try:
        return args.func(args)
    except IntLangError as e:
        logger.debug("%s failed", args.cmd, exc_info=True)
        print(f"error: {type(e).__name__}: {e}", file=sys.stderr)
        return 1
    except ValueError as e:  # bad EvalConfig values
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == '__main__':
    sys.exit(main())
