import logging
from enum import Enum
from functools import lru_cache
from typing import List, Optional, Sequence, Union

from lark import Lark, Token, Transformer, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken

from .astnodes import Binary, Expr, Function, Literal, Operator, Reference, Unary, Var
from .errors import CannotParse, MissingMain, SourceSyntaxError, TrailingInput

logger = logging.getLogger(__name__)

INT_MIN = -2 ** 31
INT_MAX = 2 ** 31 - 1

ENTRY_POINT = "main"
DISCARD = ""  # flat-dialect expression statement; no NAME can be empty


class Dialect(Enum):
    FUNCTION = "program"
    FLAT = "flat_program"


class Lowering(Transformer):
    """Turns grammar matches into AST nodes.

    Applied inline by the LALR parser, so each callback receives children
    that are already lowered. Instances hold no state and are shared.
    """

    def program(self, children):
        return list(children)

    def flat_program(self, children):
        return [s if isinstance(s, Var) else Var(DISCARD, s) for s in children]

    def function(self, children):
        name, args, *body = children
        vars_ = tuple(s for s in body if isinstance(s, Var))
        exprs = tuple(s for s in body if not isinstance(s, Var))
        return Function(name=str(name), args=args or (), vars=vars_, exprs=exprs, ret=0)

    def args(self, children):
        return tuple(children)

    def arg(self, children):
        name, type_name = children
        return (str(name), str(type_name) if type_name is not None else None)

    def variable(self, children):
        name, expr = children
        return Var(str(name), expr)

    def binary(self, children):
        if len(children) == 1:
            return children[0]
        lhs, op, rhs = children
        return Binary(lhs, Operator.from_symbol(str(op)), rhs)

    def unary(self, children):
        op, child = children
        return Unary(Operator.from_symbol(str(op)), child)

    def complement(self, children):
        (child,) = children
        return Binary(child, Operator.COMP, Literal(0))

    def crement_binary(self, children):
        lhs, op = children
        return Binary(lhs, Operator.from_symbol(str(op)), Literal(1))

    def integer(self, children):
        (tok,) = children
        value = int(tok)
        if not INT_MIN <= value <= INT_MAX:
            raise SourceSyntaxError(f"Integer literal {tok} does not fit in 32 bits",
                                    tok.line, tok.column)
        return Literal(value)

    def name(self, children):
        (tok,) = children
        return Reference(str(tok))

    def call(self, children):
        tok, *args = children
        args = [a for a in args if a is not None]
        if args:
            logger.debug("call %s(...) at %s:%s ignores its %d argument(s)",
                         tok, tok.line, tok.column, len(args))
        return Reference(str(tok))


_LOWERING = Lowering()


@lru_cache(maxsize=None)
def grammar_parser(lowered: bool = True) -> Lark:
    """Build (once) the LALR parser, either lowering to AST or keeping the raw tree."""
    return Lark.open(
        "grammar.lark",
        rel_to=__file__,
        parser="lalr",
        start=[d.value for d in Dialect],
        maybe_placeholders=True,
        propagate_positions=not lowered,
        transformer=_LOWERING if lowered else None,
    )


def normalize_source(source: str) -> str:
    return source.replace("\r\n", "\n").replace("\r", "\n")


def _first_offset(source: str) -> int:
    return len(source) - len(source.lstrip())


def _accepts_end(err: UnexpectedInput) -> bool:
    ip = getattr(err, "interactive_parser", None)
    if ip is None:
        return False
    return "$END" in ip.choices()


def _convert_error(err: UnexpectedInput, source: str):
    pos = getattr(err, "pos_in_stream", None)
    line = getattr(err, "line", None)
    col = getattr(err, "column", None)
    if pos is None or pos <= _first_offset(source):
        return CannotParse()
    if isinstance(err, UnexpectedToken):
        text = str(err.token) or err.token.type
    elif isinstance(err, UnexpectedCharacters):
        text = source[pos:pos + 1]
    else:
        text = ""
    if _accepts_end(err):
        return TrailingInput(source[pos:].strip() or text, line, col)
    if isinstance(err, UnexpectedToken):
        expected = ", ".join(sorted(err.expected))
        message = f"Unexpected token {text!r}, expected one of: {expected}"
    else:
        message = f"Unexpected character {text!r}"
    return SourceSyntaxError(message, line, col, err.get_context(source).rstrip())


def _run(source: str, dialect: Dialect, lowered: bool):
    source = normalize_source(source)
    try:
        return grammar_parser(lowered).parse(source, start=dialect.value)
    except UnexpectedInput as e:
        raise _convert_error(e, source) from None


def order_main_first(functions: Sequence[Function]) -> List[Function]:
    ordered: List[Function] = []
    main: Optional[Function] = None
    for f in functions:
        if f.name == ENTRY_POINT and main is None:
            main = f
        else:
            ordered.append(f)
    if main is None:
        raise MissingMain()
    return [main] + ordered


def parse_functions(source: str) -> List[Function]:
    functions = _run(source, Dialect.FUNCTION, lowered=True)
    ast = order_main_first(functions)
    logger.debug("parsed %d function(s): %s", len(ast), [f.name for f in ast])
    return ast


def parse_flat(source: str) -> List[Var]:
    ast = _run(source, Dialect.FLAT, lowered=True)
    logger.debug("parsed %d flat statement(s)", len(ast))
    return ast


def parse(source: str, dialect: Dialect = Dialect.FUNCTION) -> Union[List[Function], List[Var]]:
    if dialect is Dialect.FLAT:
        return parse_flat(source)
    return parse_functions(source)


def parse_tree(source: str, dialect: Dialect = Dialect.FUNCTION) -> Tree:
    """The grammar's raw match, before lowering."""
    return _run(source, dialect, lowered=False)


def parse_expr(source: str) -> Expr:
    """Parse a single expression, as written inside a flat ``main`` block."""
    (var,) = parse_flat(f"main {{ {source}; }}")
    return var.expr


def tokens(source: str, dialect: Dialect = Dialect.FUNCTION) -> List[Token]:
    """Tokens in the order the parser consumes them (contextual lexing)."""
    source = normalize_source(source)
    ip = grammar_parser(False).parse_interactive(source, start=dialect.value)
    out: List[Token] = []
    try:
        for tok in ip.iter_parse():
            out.append(tok)
    except UnexpectedInput as e:
        raise _convert_error(e, source) from None
    return out
