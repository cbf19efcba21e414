# workbench/backends.py
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List
from .lexers import pygments_tokens

from intlang.config import EvalConfig
from intlang.errors import IntLangError
from intlang.inspectors import tokenize as il_tokens, ast_to_dict as il_ast_to_dict, ast_ascii_tree
from intlang.interpreter import Interpreter, Step
from intlang.parser import Dialect, parse, parse_tree

# ---------- Base ----------
@dataclass
class Result:
    tokens: Optional[List[Dict[str,Any]]] = None
    ast_repr: Optional[Any] = None
    ast_text: Optional[str] = None
    value: Optional[int] = None
    trace: List[str] = field(default_factory=list)
    ok: bool = True
    stage_error: Optional[str] = None

# ---------- IntLang, one backend per dialect ----------
class IntLangBackend:
    def __init__(self, name:str, dialect:Dialect, sample:str):
        self.name = name
        self.dialect = dialect
        self.sample = sample
    def tokens(self, code:str):
        return il_tokens(code, self.dialect)
    def highlight(self, code:str):
        return pygments_tokens(code)
    def parse_tree(self, code:str):
        return parse_tree(code, self.dialect)
    def ast(self, code:str):
        return parse(code, self.dialect)
    def steps(self, code:str, config:Optional[EvalConfig]=None):
        return Interpreter(self.ast(code), config, dialect=self.dialect).run_steps()
    def run(self, code:str, config:Optional[EvalConfig]=None)->Result:
        r = Result()
        try:
            r.tokens = self.tokens(code)
            prog = self.ast(code)
            r.ast_repr = il_ast_to_dict(prog)
            r.ast_text = ast_ascii_tree(prog)
            trace = lambda e, v: r.trace.append(f"{e} = {v}")
            r.value = Interpreter(prog, config, trace, self.dialect).run()
            r.ok = True
        except IntLangError as e:
            r.ok = False
            r.stage_error = f"{type(e).__name__}: {e}"
        return r

def format_step(step:Step)->str:
    return f"[{step.function}] {step.text} => {step.value}"

# registry
BACKENDS = {
    "Functions": IntLangBackend("Functions", Dialect.FUNCTION,
                                "fn main() {\n  let a = 2;\n  let b = a * (3 + 4);\n  b++;\n}\n"),
    "Flat": IntLangBackend("Flat", Dialect.FLAT,
                           "main {\n  let a = 2;\n  let b = a - 5;\n  a + b;\n}\n"),
}
