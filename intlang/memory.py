from typing import Dict, List

from .astnodes import Expr, Var


class NotFound(KeyError):
    pass


class Memory:
    """Flat variable store for one evaluation run.

    Bindings hold the unevaluated expression, never its value: every lookup
    hands back the thunk and the caller evaluates it again. A later ``add``
    for the same name replaces the earlier binding; there are no scopes.
    """

    def __init__(self):
        self.vars: Dict[str, Expr] = {}

    def add(self, var: Var):
        self.vars[var.name] = var.expr

    def find(self, name: str) -> Expr:
        if name in self.vars:
            return self.vars[name]
        raise NotFound(name)

    def names(self) -> List[str]:
        return list(self.vars)

    def __contains__(self, name):
        return name in self.vars

    def __len__(self):
        return len(self.vars)
