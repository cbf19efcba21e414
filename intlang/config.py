from dataclasses import dataclass

WRAP = "wrap"
TRAP = "trap"
OVERFLOW_POLICIES = (WRAP, TRAP)


@dataclass(frozen=True)
class EvalConfig:
    overflow: str = WRAP    # policy for + - ++ -- and unary minus
    max_depth: int = 200    # nested evaluations before RecursionLimit

    def __post_init__(self):
        if self.overflow not in OVERFLOW_POLICIES:
            raise ValueError(f"overflow must be one of {OVERFLOW_POLICIES}, got {self.overflow!r}")
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
