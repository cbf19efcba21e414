import logging
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence

from .astnodes import Binary, Expr, Literal, Operator, Reference, Unary, Var, render, render_var
from .config import TRAP, EvalConfig
from .errors import (AddSubOverflow, CyclicReference, DivisionByZero, DivisionOverflow,
                     EvalError, InvalidOperator, MultiplyOverflow, RecursionLimit,
                     UndefinedVariable)
from .memory import Memory, NotFound
from .parser import DISCARD, ENTRY_POINT, INT_MAX, INT_MIN, Dialect, order_main_first, parse

logger = logging.getLogger(__name__)

Trace = Callable[[Expr, int], None]


def wrap32(n: int) -> int:
    return (n - INT_MIN) % 2 ** 32 + INT_MIN


def fits32(n: int) -> bool:
    return INT_MIN <= n <= INT_MAX


class Evaluator:
    """Tree-walking evaluator over 32-bit signed integers.

    References are resolved through ``memory`` on every use. ``trace``, when
    given, is called with each operator or reference node and its value.
    """

    def __init__(self, memory: Memory, config: Optional[EvalConfig] = None,
                 trace: Optional[Trace] = None):
        self.memory = memory
        self.config = config or EvalConfig()
        self.trace = trace
        self._depth = 0
        self._resolving: List[str] = []

    def eval(self, e: Expr) -> int:
        self._depth += 1
        try:
            if self._depth > self.config.max_depth:
                raise RecursionLimit(self.config.max_depth)
            value = self._eval(e)
        except RecursionError:
            raise RecursionLimit(self.config.max_depth) from None
        finally:
            self._depth -= 1
        if self.trace is not None and not isinstance(e, Literal):
            self.trace(e, value)
        return value

    def _eval(self, e: Expr) -> int:
        if isinstance(e, Literal):
            return e.value
        if isinstance(e, Reference):
            return self._resolve(e.name)
        if isinstance(e, Unary):
            v = self.eval(e.child)
            if e.op is Operator.ADD:
                return v
            if e.op is Operator.SUB:
                return self.sub(0, v)
            raise InvalidOperator(e.op, "unary")
        if isinstance(e, Binary):
            return self._eval_binary(e)
        raise EvalError(f"Unknown expression {e!r}")

    def _eval_binary(self, e: Binary) -> int:
        # left operand chains (a + b + c ...) are walked in a loop; only
        # right operands and parenthesised groups count toward max_depth
        spine = [e]
        while isinstance(spine[-1].lhs, Binary):
            spine.append(spine[-1].lhs)
        value = self.eval(spine[-1].lhs)
        for node in reversed(spine):
            value = self.apply(node.op, value, self.eval(node.rhs))
            if node is not e and self.trace is not None:
                self.trace(node, value)
        return value

    def _resolve(self, name: str) -> int:
        if name in self._resolving:
            raise CyclicReference(self._resolving[self._resolving.index(name):] + [name])
        try:
            bound = self.memory.find(name)
        except NotFound:
            raise UndefinedVariable(name) from None
        self._resolving.append(name)
        try:
            return self.eval(bound)
        finally:
            self._resolving.pop()

    # --------- arithmetic ----------
    def _add_sub(self, lhs: int, op: Operator, rhs: int) -> int:
        n = lhs + rhs if op is Operator.ADD else lhs - rhs
        if fits32(n):
            return n
        if self.config.overflow == TRAP:
            raise AddSubOverflow(lhs, op.value, rhs)
        return wrap32(n)

    def add(self, lhs: int, rhs: int) -> int:
        return self._add_sub(lhs, Operator.ADD, rhs)

    def sub(self, lhs: int, rhs: int) -> int:
        return self._add_sub(lhs, Operator.SUB, rhs)

    @staticmethod
    def mul(lhs: int, rhs: int) -> int:
        n = lhs * rhs
        if not fits32(n):
            raise MultiplyOverflow(lhs, rhs)
        return n

    @staticmethod
    def div(lhs: int, rhs: int) -> int:
        if rhs == 0:
            raise DivisionByZero(lhs)
        # truncates toward zero
        q = abs(lhs) // abs(rhs)
        n = q if (lhs < 0) == (rhs < 0) else -q
        if not fits32(n):
            raise DivisionOverflow(lhs, rhs)
        return n

    def apply(self, op: Operator, lhs: int, rhs: int) -> int:
        if op in (Operator.INCR, Operator.DECR) and rhs != 1:
            raise InvalidOperator(op, f"crement with step {rhs}")
        ops = {
            Operator.ADD: lambda a, b: self.add(a, b),
            Operator.SUB: lambda a, b: self.sub(a, b),
            Operator.MUL: self.mul,
            Operator.DIV: self.div,
            Operator.INCR: lambda a, _: self.add(a, 1),
            Operator.DECR: lambda a, _: self.sub(a, 1),
            Operator.COMP: lambda a, _: ~a,
        }
        return ops[op](lhs, rhs)


@dataclass
class Step:
    function: str   # enclosing unit, "main" for the flat dialect
    kind: str       # "let" or "expr"
    text: str
    value: int


class Interpreter:
    def __init__(self, program: Sequence, config: Optional[EvalConfig] = None,
                 trace: Optional[Trace] = None, dialect: Optional[Dialect] = None):
        self.program = list(program)
        self.config = config or EvalConfig()
        self.trace = trace
        if dialect is None:
            flat = bool(self.program) and all(isinstance(s, Var) for s in self.program)
            dialect = Dialect.FLAT if flat else Dialect.FUNCTION
        self.dialect = dialect
        if dialect is Dialect.FUNCTION:
            self.program = order_main_first(self.program)
        self.memory = Memory()
        self.evaluator = Evaluator(self.memory, self.config, self.trace)

    def _bind(self, unit: str, var: Var) -> Step:
        self.memory.add(var)
        value = self.evaluator.eval(var.expr)
        logger.debug("%s: let %s = %s -> %d", unit, var.name, render(var.expr), value)
        return Step(unit, "let", render_var(var), value)

    def _expr(self, unit: str, expr: Expr) -> Step:
        value = self.evaluator.eval(expr)
        logger.debug("%s: %s -> %d", unit, render(expr), value)
        return Step(unit, "expr", render(expr), value)

    def run_steps(self) -> Iterator[Step]:
        """Evaluate the program one statement at a time, in declaration order.

        Each run starts from an empty Memory. In the function dialect every
        unit's bindings are registered and evaluated before its expression
        statements; all units share the one Memory. Flat-dialect expression
        statements are evaluated without being bound.
        """
        self.memory = Memory()
        self.evaluator = Evaluator(self.memory, self.config, self.trace)
        if self.dialect is Dialect.FLAT:
            for var in self.program:
                if var.name == DISCARD:
                    yield self._expr(ENTRY_POINT, var.expr)
                else:
                    yield self._bind(ENTRY_POINT, var)
            return
        for f in self.program:
            for var in f.vars:
                yield self._bind(f.name, var)
            for expr in f.exprs:
                yield self._expr(f.name, expr)

    def run(self) -> int:
        """Flat programs sum their bindings; function programs yield main's last value."""
        result = 0
        for step in self.run_steps():
            if self.dialect is Dialect.FLAT:
                result = self.evaluator.add(result, step.value)
            elif step.function == ENTRY_POINT:
                result = step.value
        return result


def compile_from_ast(ast: Sequence, config: Optional[EvalConfig] = None,
                     trace: Optional[Trace] = None, dialect: Optional[Dialect] = None) -> int:
    return Interpreter(ast, config, trace, dialect).run()


def compile_from_source(source: str, dialect: Dialect = Dialect.FUNCTION,
                        config: Optional[EvalConfig] = None,
                        trace: Optional[Trace] = None) -> int:
    logger.info("Compiling source (%s dialect, %d chars)", dialect.name.lower(), len(source))
    ast = parse(source, dialect)
    result = compile_from_ast(ast, config, trace, dialect)
    logger.info("Result: %d", result)
    return result
