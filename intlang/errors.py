"""Exceptions raised by the IntLang pipeline.

Parse-stage failures derive from :class:`ParseError`, evaluation-stage
failures from :class:`EvalError`. Both share :class:`IntLangError` so callers
can catch everything the interpreter raises in one place.
"""
from typing import Optional, Sequence


class IntLangError(Exception):
    pass


# --------- parse stage ----------
class ParseError(IntLangError):
    pass


class CannotParse(ParseError):
    def __init__(self):
        super().__init__("Cannot parse file")


class SourceSyntaxError(ParseError):
    def __init__(self, message: str, line: Optional[int] = None, col: Optional[int] = None,
                 context: str = ""):
        self.message = message
        self.line = line
        self.col = col
        self.context = context
        where = f" at {line}:{col}" if line is not None else ""
        super().__init__(f"{message}{where}")


class MissingMain(ParseError):
    def __init__(self):
        super().__init__("Main function not found")


class TrailingInput(ParseError):
    def __init__(self, text: str, line: Optional[int] = None, col: Optional[int] = None):
        self.text = text
        self.line = line
        self.col = col
        super().__init__(f"Unexpected input after end of program: {text!r} at {line}:{col}")


class NestingTooDeep(ParseError):
    def __init__(self):
        super().__init__("Expression nesting is too deep to inspect")


# --------- evaluation stage ----------
class EvalError(IntLangError):
    pass


class UndefinedVariable(EvalError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Couldn't find referenced variable '{name}'")


class CyclicReference(EvalError):
    def __init__(self, chain: Sequence[str]):
        self.chain = tuple(chain)
        super().__init__("Cyclic variable reference: " + " -> ".join(self.chain))


class DivisionByZero(EvalError):
    def __init__(self, lhs: int):
        self.lhs = lhs
        super().__init__(f"Attempt to divide {lhs} by zero")


class MultiplyOverflow(EvalError):
    def __init__(self, lhs: int, rhs: int):
        self.lhs, self.rhs = lhs, rhs
        super().__init__(f"Attempt to multiply with overflow: {lhs} * {rhs}")


class DivisionOverflow(EvalError):
    def __init__(self, lhs: int, rhs: int):
        self.lhs, self.rhs = lhs, rhs
        super().__init__(f"Attempt to divide with overflow: {lhs} / {rhs}")


class AddSubOverflow(EvalError):
    def __init__(self, lhs: int, op: str, rhs: int):
        self.lhs, self.op, self.rhs = lhs, op, rhs
        super().__init__(f"Attempt to compute {lhs} {op} {rhs} with overflow")


class InvalidOperator(EvalError):
    def __init__(self, op, position: str):
        self.op = op
        self.position = position
        super().__init__(f"Operator {op!s} is not valid in {position} position")


class RecursionLimit(EvalError):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Evaluation exceeded the maximum depth of {limit}")
