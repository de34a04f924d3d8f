"""(MVP) 간단한 .g파일 로더"""

from __future__ import annotations
from pathlib    import Path

from .model  import Grammar
from .parser import parse_grammar_source


def load_grammar_text(path: str) -> str:
    """
    Load Grammar Text
    """
    text = Path(path).read_text(encoding="utf-8")
    return text.replace("\r\n", "\n").replace("\r", "\n")


def parse_grammar_text(text: str) -> Grammar:
    """
    문법 원문 → Grammar.
    `%start`가 없으면 첫 프로덕션의 좌변이 시작 비단말이 됩니다.
    """
    src = parse_grammar_source(text)
    g = Grammar()
    for pt in src.productions:
        g.add_parsed(pt)
    start = src.start or src.productions[0].left
    if start not in {s.name for s in g.nonterminals}:
        raise SyntaxError(f"Unknown start symbol {start!r} at {src.start_line}:1")
    g.set_start_symbol(start)
    return g


def load_grammar(path: str) -> Grammar:
    return parse_grammar_text(load_grammar_text(path))
