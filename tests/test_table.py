from lltutor.grammar.loader import load_grammar
from lltutor.tutor import Tutor


def test_scenario_table(scenario):
    tbl = Tutor(scenario).solve_all()
    names = tbl.as_names()
    assert tbl.rows == ["A", "S'"]
    assert tbl.columns == ["a", "$"]
    assert names["A"]["a"] == ["A->a"]
    assert names["A"]["$"] == ["A->ε"]
    assert names["S'"]["a"] == ["S'->A"]
    assert names["S'"]["$"] == ["S'->A"]
    assert tbl.is_ll1


def test_expr_table(expr):
    tbl = Tutor(expr).solve_all()
    names = tbl.as_names()
    assert names["E"]["("] == ["E->T R"] and names["E"]["n"] == ["E->T R"]
    assert names["R"]["+"] == ["R->+ T R"]
    assert names["R"]["$"] == ["R->ε"] and names["R"][")"] == ["R->ε"]
    assert names["Y"]["*"] == ["Y->* F Y"]
    for col in ("+", ")", "$"):
        assert names["Y"][col] == ["Y->ε"]
    assert names["F"]["n"] == ["F->n"]
    assert names["E"]["+"] == []
    assert tbl.is_ll1
    assert tbl.pretty_conflicts() == "(no conflicts)"


def test_conflicts(grammar_path):
    tbl = Tutor(load_grammar(grammar_path("not_ll1.g"))).solve_all()
    assert not tbl.is_ll1
    (row, col, prods), = tbl.conflicts()
    assert (row, col) == ("S", "a")
    assert sorted(p.name for p in prods) == ["S->a", "S->a S"]
    assert "row S, on a" in tbl.pretty_conflicts()


def test_pretty_has_one_line_per_row(expr):
    text = Tutor(expr).solve_all().pretty()
    lines = text.splitlines()
    assert len(lines) == 2 + len(expr.nonterminals)
    assert "R -> ε" in text
