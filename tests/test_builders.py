import pytest

from lltutor.analysis.builders import (
    build_first_graph, build_follow_graph, build_nullability_graph, first_seeds, follow_seeds,
)
from lltutor.analysis.graph import NodeKind
from lltutor.analysis.nullable import NullabilitySolver
from lltutor.errors import InvariantViolation


def _leaf_names(g):
    return [n.symbol_name for n in g.leaves()]


def _leaf_edges(g):
    return sorted(g.semantic_name(e) for e in g.edges if not e.is_group_edge)


def _super_edges(g):
    return sorted(g.semantic_name(e) for e in g.edges if e.is_group_edge)


def test_nullability_graph(scenario):
    g = build_nullability_graph(scenario)
    assert _leaf_names(g) == ["ε", "A", "S'", "a"]
    assert _leaf_edges(g) == ["A->S'", "a->A", "ε->A"]
    assert g.nodes[0].id == "EmptyNode0"


def test_first_graph_for_scenario(scenario):
    NullabilitySolver(scenario).solve()
    g = build_first_graph(scenario)
    assert set(_leaf_names(g)) == {"a", "A", "S'", "ε", "{a}"}
    assert _leaf_edges(g) == ["A->S'", "a->A", "{a}->a", "ε->A"]
    assert sorted(x.symbol_name for x in g.groups()) == [
        "SCC(A)", "SCC(S')", "SCC(a)", "SCC({a})", "SCC(ε)",
    ]
    assert _super_edges(g) == [
        "SCC(A)->SCC(S')", "SCC(a)->SCC(A)", "SCC({a})->SCC(a)", "SCC(ε)->SCC(A)",
    ]


def test_first_edges_stop_after_first_non_nullable(cycle):
    NullabilitySolver(cycle).solve()
    g = build_first_graph(cycle, condensed=False)
    edges = _leaf_edges(g)
    # S -> A B : A nullable, B not
    assert "A->S" in edges and "B->S" in edges
    # A -> B a : B not nullable, a is never reached
    assert "B->A" in edges and "a->A" not in edges
    # B -> A b
    assert "A->B" in edges and "b->B" in edges
    assert g.groups() == []


def test_first_graph_groups_cycle(cycle):
    NullabilitySolver(cycle).solve()
    g = build_first_graph(cycle)
    names = {x.symbol_name for x in g.groups()}
    assert "SCC(A, B)" in names
    assert "SCC(A, B)->SCC(S)" in _super_edges(g)


def test_builders_are_deterministic(expr):
    NullabilitySolver(expr).solve()
    a = build_first_graph(expr)
    b = build_first_graph(expr)
    assert [(n.id, n.symbol_name, n.group_id) for n in a.nodes] == \
           [(n.id, n.symbol_name, n.group_id) for n in b.nodes]
    assert a.edge_names() == b.edge_names()


def test_first_seeds(scenario):
    NullabilitySolver(scenario).solve()
    g = build_first_graph(scenario)
    seeds = {g.node(k).symbol_name: v for k, v in first_seeds(g).items()}
    assert seeds["SCC({a})"] == {"a"}
    assert seeds["SCC(A)"] == frozenset()


def test_follow_graph_for_scenario(scenario):
    NullabilitySolver(scenario).solve()
    first = build_first_graph(scenario)
    g = build_follow_graph(scenario, first)

    assert g.find_node("Fε(SCC({$}))", NodeKind.GROUP) is not None
    dollar = g.find_node("Fε({$})", NodeKind.FOLLOW)
    assert g.parent_name(dollar) == "Fε(SCC({$}))"
    assert g.parent_name(g.find_node("Fε(a)", NodeKind.FOLLOW)) == "Fε(SCC(a))"

    leaf = _leaf_edges(g)
    assert "Fε({$})->Follow(S')" in leaf
    assert "Follow(S')->Follow(A)" in leaf
    # First super-edge는 Fε 그룹 사이 일반 엣지로 옮겨진다
    assert "Fε(SCC(a))->Fε(SCC(A))" in leaf

    assert _super_edges(g) == [
        "Follow(SCC(S'))->Follow(SCC(A))",
        "Fε(SCC({$}))->Follow(SCC(S'))",
    ]


def test_follow_edge_families(expr):
    NullabilitySolver(expr).solve()
    g = build_follow_graph(expr, build_first_graph(expr))
    leaf = _leaf_edges(g)
    # E -> T R : R nullable, so Follow(E) flows into both
    assert "Fε(R)->Follow(T)" in leaf
    assert "Follow(E)->Follow(T)" in leaf
    assert "Follow(E)->Follow(R)" in leaf
    # F -> ( E ) : ')' is not nullable, so no Follow(F)->Follow(E)
    assert "Fε())->Follow(E)" in leaf
    assert "Follow(F)->Follow(E)" not in leaf
    # R -> + T R : self dependency stays as a leaf edge
    assert "Follow(R)->Follow(R)" in leaf
    assert "Follow(SCC(R))->Follow(SCC(R))" not in _super_edges(g)


def test_follow_graph_needs_condensed_first(scenario):
    NullabilitySolver(scenario).solve()
    first = build_first_graph(scenario, condensed=False)
    with pytest.raises(InvariantViolation):
        build_follow_graph(scenario, first)


def test_follow_seeds(scenario):
    NullabilitySolver(scenario).solve()
    first = build_first_graph(scenario)
    first_sets = {grp.id: frozenset({"x"}) for grp in first.groups()}
    g = build_follow_graph(scenario, first)
    seeds, active = follow_seeds(first, first_sets, g)
    by_name = {g.node(k).symbol_name: v for k, v in seeds.items()}
    assert by_name["Fε(SCC({$}))"] == {"$"}
    assert by_name["Fε(SCC(A))"] == {"x"}
    active_names = {g.node(k).symbol_name for k in active}
    assert "Fε(SCC({$}))" not in active_names
    assert "Fε(SCC(A))" in active_names
