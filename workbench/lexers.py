from pygments import lex
from pygments.lexer import RegexLexer, words
from pygments.token import Keyword, Name, Number, Operator, Punctuation, Text

class IntLangLexer(RegexLexer):
    name = "IntLang"
    aliases = ["intlang"]
    filenames = ["*.il"]

    tokens = {
        "root": [
            (r"\s+", Text),
            (words(("fn", "let"), suffix=r"\b"), Keyword),
            (r"\bmain\b", Name.Function),
            (r"[A-Za-z_][A-Za-z0-9_]*(?=\s*\()", Name.Function),
            (r"[A-Za-z_][A-Za-z0-9_]*", Name.Variable),
            (r"-?[0-9]+", Number.Integer),
            (r"\+\+|--|[-+*/!=]", Operator),
            (r"[(){};:,]", Punctuation),
        ]
    }

def pygments_tokens(code:str):
    rows = []
    for ttype, value in lex(code, IntLangLexer()):
        if ttype is Text:
            continue
        rows.append({"kind": str(ttype), "lexeme": value})
    return rows
