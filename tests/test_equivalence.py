import copy

import pytest

from lltutor.analysis.builders import build_first_graph, build_follow_graph, build_nullability_graph
from lltutor.analysis.equivalence import (
    DiscrepancyKind, check_graph, graph_from_dict, graph_to_dict,
)
from lltutor.analysis.nullable import NullabilitySolver
from lltutor.errors import GraphFormatError


@pytest.fixture
def graphs(expr):
    NullabilitySolver(expr).solve()
    first = build_first_graph(expr)
    return {
        "empty": build_nullability_graph(expr),
        "first": first,
        "follow": build_follow_graph(expr, first),
    }


@pytest.mark.parametrize("phase", ["empty", "first", "follow"])
def test_canonical_graph_matches_itself(graphs, phase):
    g = graphs[phase]
    assert check_graph(g, g).ok
    assert check_graph(g, graph_to_dict(g)).ok
    assert check_graph(g, graph_from_dict(graph_to_dict(g))).ok


@pytest.mark.parametrize("phase", ["first", "follow"])
def test_each_single_edge_removal_is_reported(graphs, phase):
    g = graphs[phase]
    for e in g.edges:
        user = g.copy()
        user.remove_edge(e.id)
        res = check_graph(g, user)
        assert res.discrepancy.kind == DiscrepancyKind.MISSING_EDGE
        assert res.discrepancy.name == g.semantic_name(e)


def test_scenario_missing_edge(scenario):
    NullabilitySolver(scenario).solve()
    g = build_first_graph(scenario)
    user = g.copy()
    user.remove_edge(user.find_edge("a->A").id)
    res = check_graph(g, user)
    assert (res.discrepancy.kind, res.discrepancy.name) == ("missingEdge", "a->A")
    assert res.message == "You are missing an edge in your graph: a->A"


def test_missing_node_comes_before_edges(graphs):
    g = graphs["first"]
    user = g.copy()
    user.remove_node(user.find_node("n").id)
    res = check_graph(g, user)
    assert (res.discrepancy.kind, res.discrepancy.name) == ("missingNode", "n")


def test_wrong_parent_is_a_missing_node(graphs):
    g = graphs["first"]
    data = graph_to_dict(g)
    by_name = {n["symbolName"]: n for n in data["nodes"]}
    by_name["T"]["parentId"] = by_name["SCC(F)"]["id"]
    res = check_graph(g, data)
    assert (res.discrepancy.kind, res.discrepancy.name) == ("missingNode", "T")


def test_extra_edge(graphs):
    g = graphs["empty"]
    user = g.copy()
    user.add_edge(user.find_node("n").id, user.find_node("E").id)
    res = check_graph(g, user)
    assert (res.discrepancy.kind, res.discrepancy.name) == ("extraEdge", "n->E")
    assert res.message.startswith("You have an unnecessary edge")


def test_extra_node(graphs):
    g = graphs["empty"]
    data = graph_to_dict(g)
    data["nodes"].append({"id": "x1", "type": "empty", "symbolName": "Q"})
    res = check_graph(g, data)
    assert (res.discrepancy.kind, res.discrepancy.name) == ("extraNode", "Q")


def test_duplicate_edge_is_reported_as_extra(graphs):
    g = graphs["empty"]
    data = graph_to_dict(g)
    dup = dict(data["edges"][0], id="dup")
    data["edges"].append(dup)
    res = check_graph(g, data)
    assert (res.discrepancy.kind, res.discrepancy.name) == ("extraEdge", dup["semanticName"])


def test_user_dict_is_not_mutated(graphs):
    data = graph_to_dict(graphs["follow"])
    before = copy.deepcopy(data)
    check_graph(graphs["follow"], data)
    graph_from_dict(data)
    assert data == before


def test_dangling_edge_is_a_format_error(graphs):
    data = graph_to_dict(graphs["empty"])
    data["edges"].append({"id": "bad", "sourceId": "missing", "targetId": data["nodes"][0]["id"]})
    with pytest.raises(GraphFormatError, match="does not exist"):
        check_graph(graphs["empty"], data)
    with pytest.raises(GraphFormatError):
        graph_from_dict(data)


@pytest.mark.parametrize("breakage, match", [
    (lambda d: d["nodes"][0].pop("symbolName"), "has no 'symbolName'"),
    (lambda d: d["nodes"][0].pop("type"), "has no 'type'"),
    (lambda d: d["nodes"][0].update(type="bogus"), "unknown type"),
    (lambda d: d["nodes"].append(dict(d["nodes"][0])), "duplicate node id"),
    (lambda d: d["nodes"][0].update(parentId=d["nodes"][1]["id"]), "unknown group"),
    (lambda d: d["edges"][0].pop("targetId"), "has no 'targetId'"),
    (lambda d: d["edges"].append(dict(d["edges"][0])), "duplicate edge id"),
    (lambda d: d.update(nodes={}), "must be lists"),
])
def test_malformed_user_graph(graphs, breakage, match):
    data = graph_to_dict(graphs["empty"])
    breakage(data)
    with pytest.raises(GraphFormatError, match=match):
        check_graph(graphs["empty"], data)
    with pytest.raises(GraphFormatError, match=match):
        graph_from_dict(data)


def test_format_error_is_a_value_error():
    with pytest.raises(ValueError):
        graph_from_dict(["not", "a", "graph"])
