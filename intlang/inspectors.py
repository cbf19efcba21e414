from __future__ import annotations
from dataclasses import fields, is_dataclass
from enum import Enum
from functools import wraps
from typing import Any, Dict, List, Sequence, Tuple
from graphviz import Digraph
from .astnodes import Function, Var, render
from .errors import NestingTooDeep
from .parser import Dialect, tokens

# --------- TOKENS ----------
def tokenize(text: str, dialect: Dialect = Dialect.FUNCTION) -> List[Dict[str, Any]]:
    return [ { "kind": t.type, "lexeme": str(t), "line": t.line, "col": t.column }
             for t in tokens(text, dialect) ]

def depth_guarded(walk):
    """Report a tree too deep for a recursive walk as NestingTooDeep."""
    @wraps(walk)
    def guarded(*args, **kwargs):
        try:
            return walk(*args, **kwargs)
        except RecursionError:
            raise NestingTooDeep() from None
    return guarded

# --------- AST helpers ----------
def _label(node) -> str:
    name = node.__class__.__name__
    if isinstance(node, (Function, Var)) and node.name:
        return f"{name} {node.name}"
    return name

def _children(node) -> List[Tuple[str, Any]]:
    out: List[Tuple[str, Any]] = []
    for f in fields(node):
        v = getattr(node, f.name)
        if is_dataclass(v):
            out.append((f.name, v))
        elif isinstance(v, tuple):
            out.extend((f"{f.name}[{i}]", x) for i, x in enumerate(v) if is_dataclass(x))
    return out

def _to_dict(node) -> Any:
    if isinstance(node, (list, tuple)):
        return [_to_dict(n) for n in node]
    if isinstance(node, Enum):
        return node.value
    if not is_dataclass(node):
        return node
    d = {"_type": node.__class__.__name__}
    for f in fields(node):
        d[f.name] = _to_dict(getattr(node, f.name))
    return d

@depth_guarded
def ast_to_dict(node) -> Any:
    # dataclass AST -> plain dict for JSON display
    return _to_dict(node)

def _tree_lines(node, prefix: str = "", is_last: bool = True) -> List[str]:
    head = f"{prefix}{'└─' if is_last else '├─'}{_label(node)}"
    extra = []
    if hasattr(node, "op"):
        extra.append(f"op={node.op.value}")
    if hasattr(node, "value"):
        extra.append(f"value={node.value}")
    if node.__class__.__name__ == "Reference":
        extra.append(f"name={node.name}")
    lines = [head + (" " + " ".join(extra) if extra else "")]
    new_prefix = f"{prefix}{'  ' if is_last else '│ '}"
    children = _children(node)
    for i, (fname, child) in enumerate(children):
        sub = _tree_lines(child, new_prefix, i == len(children) - 1)
        sub[0] = sub[0] + f" ({fname})"
        lines.extend(sub)
    return lines

@depth_guarded
def ast_ascii_tree(program: Sequence) -> str:
    lines = ["Program"]
    for i, unit in enumerate(program):
        lines.extend(_tree_lines(unit, "", i == len(program) - 1))
    return "\n".join(lines)

@depth_guarded
def ast_graphviz(program: Sequence) -> Digraph:
    g = Digraph("AST", node_attr={"shape": "box", "fontname": "Inter"})
    counter = 0
    def add(n):
        nonlocal counter
        counter += 1
        nid = f"n{counter}"
        label = _label(n)
        if not isinstance(n, (Function, Var)):
            label = f"{label}\\n{render(n)}"
        g.node(nid, label)
        for fname, child in _children(n):
            cid = add(child)
            g.edge(nid, cid, label=fname)
        return nid
    g.node("root", "Program")
    for i, unit in enumerate(program):
        g.edge("root", add(unit), label=f"[{i}]")
    return g

