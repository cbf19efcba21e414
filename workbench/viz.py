# workbench/viz.py
from graphviz import Digraph
from lark import Token, Tree

from intlang.inspectors import depth_guarded

# ---------- Lark parse tree -> Graphviz ----------
@depth_guarded
def parse_tree_graphviz(tree: Tree) -> Digraph:
    g = Digraph("ParseTree", node_attr={"shape": "box", "fontname": "Inter"})
    counter = 0

    def add(n):
        nonlocal counter
        counter += 1
        nid = f"n{counter}"
        if isinstance(n, Token):
            g.node(nid, f"{n.type}\\n{n}", shape="ellipse")
            return nid
        g.node(nid, str(n.data))
        for child in n.children:
            if child is None:  # absent optional, e.g. fn main()
                continue
            cid = add(child)
            g.edge(nid, cid)
        return nid

    add(tree)
    return g
