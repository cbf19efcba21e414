from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from .errors import InvalidOperator


class Operator(Enum):
    ADD = "+"     # binary | unary
    SUB = "-"     # binary | unary
    MUL = "*"     # binary
    DIV = "/"     # binary
    INCR = "++"   # crement
    DECR = "--"   # crement
    COMP = "!"    # complement

    @classmethod
    def from_symbol(cls, symbol: str) -> "Operator":
        try:
            return cls(symbol)
        except ValueError:
            raise InvalidOperator(symbol, "any") from None

    def __str__(self):
        return self.value


UNARY_OPS = (Operator.ADD, Operator.SUB)
POSTFIX_OPS = (Operator.INCR, Operator.DECR)


# Expressions
@dataclass(frozen=True)
class Expr:
    def __str__(self):
        return render(self)


@dataclass(frozen=True)
class Literal(Expr):
    value: int


@dataclass(frozen=True)
class Reference(Expr):
    name: str


@dataclass(frozen=True)
class Unary(Expr):
    op: Operator
    child: Expr

    def __post_init__(self):
        if self.op not in UNARY_OPS:
            raise InvalidOperator(self.op, "unary")


@dataclass(frozen=True)
class Binary(Expr):
    lhs: Expr
    op: Operator
    rhs: Expr


@dataclass(frozen=True)
class Var:
    name: str
    expr: Expr

    def __str__(self):
        return render_var(self)


@dataclass(frozen=True)
class Function:
    name: str
    args: Tuple[Tuple[str, Optional[str]], ...]  # (name, type)
    vars: Tuple[Var, ...]
    exprs: Tuple[Expr, ...]
    ret: int = 0

    def __str__(self):
        return render_function(self)


Program = Union[Tuple[Function, ...], Tuple[Var, ...]]


# --------- infix rendering ----------
def _operand(e: Expr) -> str:
    if isinstance(e, (Binary, Unary)):
        return f"({render(e)})"
    return render(e)


def _binary(e: Binary, lhs: str) -> str:
    if e.op in POSTFIX_OPS:
        return f"{lhs}{e.op}"
    if e.op is Operator.COMP:
        return f"!{lhs}"
    return f"{lhs} {e.op} {_operand(e.rhs)}"


def render(e: Expr) -> str:
    """Render an expression as infix source text.

    Nested operator nodes are parenthesised, so arithmetic expressions come
    back out of the parser unchanged. Left operand chains such as
    ``1 + 2 + 3`` are rendered in a loop, so long sums do not recurse.
    """
    if isinstance(e, Literal):
        return str(e.value)
    if isinstance(e, Reference):
        return e.name
    if isinstance(e, Unary):
        if isinstance(e.child, Literal):
            # "-5" would read back as a signed literal
            return f"{e.op} {e.child.value}"
        return f"{e.op}{_operand(e.child)}"
    if isinstance(e, Binary):
        spine = [e]
        while isinstance(spine[-1].lhs, Binary):
            spine.append(spine[-1].lhs)
        text = _binary(spine[-1], _operand(spine[-1].lhs))
        for node in reversed(spine[:-1]):
            text = _binary(node, f"({text})")
        return text
    raise TypeError(f"not an expression: {e!r}")


def render_var(v: Var) -> str:
    if not v.name:  # flat-dialect expression statement
        return render(v.expr)
    return f"let {v.name} = {render(v.expr)}"


def render_function(f: Function) -> str:
    params = ", ".join(name if t is None else f"{name}: {t}" for name, t in f.args)
    body = [render_var(v) + ";" for v in f.vars] + [render(e) + ";" for e in f.exprs]
    inner = " ".join(body)
    return f"fn {f.name}({params}) {{ {inner} }}" if inner else f"fn {f.name}({params}) {{}}"
