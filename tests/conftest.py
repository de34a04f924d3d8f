from __future__ import annotations
from pathlib import Path

import pytest

from lltutor.grammar.loader import load_grammar
from lltutor.grammar.model import Grammar

GRAMMAR_DIR = Path(__file__).parent / "grammar_test"


@pytest.fixture
def grammar_path():
    def _path(name: str) -> str:
        return str(GRAMMAR_DIR / name)
    return _path


@pytest.fixture
def scenario() -> Grammar:
    """S' -> A, A -> a, A -> ε"""
    return Grammar.from_productions(["A -> a", "A -> ε"])


@pytest.fixture
def expr() -> Grammar:
    g = load_grammar(str(GRAMMAR_DIR / "expr.g"))
    g.sort()
    return g


@pytest.fixture
def cycle() -> Grammar:
    return load_grammar(str(GRAMMAR_DIR / "cycle.g"))

