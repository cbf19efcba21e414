# streamlit_app.py
import re, time, traceback
import streamlit as st
from streamlit_ace import st_ace

from intlang.config import EvalConfig, OVERFLOW_POLICIES
from intlang.errors import IntLangError
from intlang.inspectors import ast_ascii_tree, ast_to_dict, ast_graphviz
from workbench.backends import BACKENDS, format_step
from workbench.viz import parse_tree_graphviz

# ---------- Session state init (must be BEFORE UI renders) ----------
st.session_state.setdefault("ace_annotations", [])

# ---------- Tab indices ----------
TAB_TOKENS = 0
TAB_TREE   = 1
TAB_AST    = 2
TAB_RUN    = 3
TAB_DEBUG  = 4

# ---------- Helpers ----------
def timeit(fn):
    t0 = time.perf_counter()
    out = fn()
    return out, (time.perf_counter() - t0) * 1000.0  # ms


LINECOL_RE = re.compile(r'at\s+(\d+):(\d+)')

def extract_line_col(msg):
    line = getattr(msg, "line", None)
    if line is not None:
        return line, getattr(msg, "col", None) or 1
    m = LINECOL_RE.search(str(msg) or "")
    if not m:
        return None, None
    return int(m.group(1)), int(m.group(2))

def annotate(e):
    ln, col = extract_line_col(e)
    st.session_state["ace_annotations"] = [{
        "row": (ln - 1) if ln else 0,
        "column": max(0, (col or 1) - 1),
        "text": str(e),
        "type": "error",
    }]


perf = {}  # collected timings

def perf_badge(*pairs):
    if not pairs:
        return
    cols = st.columns(len(pairs))
    for c, (label, ms) in zip(cols, pairs):
        with c:
            st.metric(label, f"{ms:.1f} ms")

# ---------- Page ----------
st.set_page_config(page_title="IntLang Workbench", layout="wide")
st.title("🧮 IntLang Workbench")
st.caption("Tokens → Parse tree → AST → Run → Step")

# ---------- Sidebar (Ace editor) ----------
with st.sidebar:
    st.header("Controls")
    dialect_name = st.selectbox("Dialect", list(BACKENDS.keys()), index=0)
    b = BACKENDS[dialect_name]

    code = st_ace(
        value=b.sample,
        language="rust",
        theme="tomorrow_night_eighties",
        min_lines=16,
        max_lines=32,
        annotations=st.session_state["ace_annotations"],
        auto_update=True,
        key=f"ace_{dialect_name}",
    )

    overflow = st.selectbox("Add/Sub overflow", OVERFLOW_POLICIES, index=0)
    max_depth = st.number_input("Max evaluation depth", min_value=1, max_value=500, value=200)
    config = EvalConfig(overflow=overflow, max_depth=int(max_depth))

    autorun = st.checkbox("Auto-run", value=True)
    run_btn = st.button("Run")

if st.session_state["ace_annotations"]:
    last_err = st.session_state["ace_annotations"][-1]["text"]
    st.error(f"Last error: {last_err}")
do = autorun or run_btn
tabs = st.tabs(["Tokens", "Parse tree", "AST", "Run", "Debug"])

# ---------- TOKENS ----------
with tabs[TAB_TOKENS]:
    st.subheader("Tokens")
    st.session_state["ace_annotations"] = []  # clear previous errors
    try:
        toks, t_tok = timeit(lambda: b.tokens(code))
        perf["tokens_ms"] = t_tok
        st.dataframe(toks, hide_index=True, use_container_width=True)
        st.success("Tokenization OK.")
    except IntLangError as e:
        st.error(f"Tokenization error: {e}")
        annotate(e)
    with st.expander("Highlighter tokens (Pygments)"):
        st.dataframe(b.highlight(code), hide_index=True, use_container_width=True)
    perf_badge(("Tokens", perf.get("tokens_ms", 0.0)))

# ---------- PARSE TREE ----------
with tabs[TAB_TREE]:
    st.subheader("Grammar match")
    try:
        tree, t_tree = timeit(lambda: b.parse_tree(code))
        perf["tree_ms"] = t_tree
        st.graphviz_chart(parse_tree_graphviz(tree).source)
        with st.expander("Parse tree (text)"):
            st.code(tree.pretty(), language="text")
    except IntLangError as e:
        st.error(f"Parse error: {e}")
        if getattr(e, "context", ""):
            st.code(e.context, language="text")
        annotate(e)
    perf_badge(("Parse tree", perf.get("tree_ms", 0.0)))

# ---------- AST ----------
with tabs[TAB_AST]:
    st.subheader("Lowered AST")
    try:
        prog, t_parse = timeit(lambda: b.ast(code))
        perf["parse_ms"] = t_parse
        st.success("Parsed successfully.")

        c1, c2 = st.columns(2)
        with c1:
            st.markdown("**AST — ASCII**")
            st.code(ast_ascii_tree(prog), language="text")
        with c2:
            st.markdown("**AST — JSON**")
            st.json(ast_to_dict(prog))

        st.markdown("**AST — Graphviz**")
        st.graphviz_chart(ast_graphviz(prog).source)
    except IntLangError as e:
        st.error(f"AST error: {e}")
        annotate(e)
    perf_badge(("Parse", perf.get("parse_ms", 0.0)))

# ---------- RUN ----------
with tabs[TAB_RUN]:
    st.subheader("Run")
    if do:
        r, t_run = timeit(lambda: b.run(code, config))
        perf["run_ms"] = t_run
        if not r.ok:
            st.error(f"Run failed: {r.stage_error}")
        else:
            st.metric("Result", r.value)
        if r.trace:
            with st.expander("Evaluation trace"):
                st.code("\n".join(r.trace), language="text")
    perf_badge(("Run", perf.get("run_ms", 0.0)))

# ---------- DEBUG ----------
with tabs[TAB_DEBUG]:
    st.subheader("Step through statements")
    try:
        if st.session_state.get("dbg_code") != (dialect_name, code):
            st.session_state.dbg_code = (dialect_name, code)
            st.session_state.dbg_gen = b.steps(code, config)
            st.session_state.dbg_events = []
        cols = st.columns(2)
        if cols[0].button("Step"):
            try:
                st.session_state.dbg_events.append(format_step(next(st.session_state.dbg_gen)))
            except StopIteration:
                st.success("Program finished.")
            except IntLangError as e:
                st.error(f"{type(e).__name__}: {e}")
        if cols[1].button("Reset"):
            st.session_state.dbg_gen = b.steps(code, config)
            st.session_state.dbg_events = []
        st.markdown("**Events**")
        st.write(st.session_state.dbg_events)
    except IntLangError as e:
        st.error(f"Debug error: {e}")
    except Exception as e:
        st.error(f"Internal error: {e}")
        st.code(traceback.format_exc())
