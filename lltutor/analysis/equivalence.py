# lltutor/analysis/equivalence.py
"""사용자 그래프 ↔ 정답 그래프 비교.

id는 양쪽에서 따로 발급되므로 비교는 전부 의미 이름으로 합니다.
- 노드 키: (종류, symbolName, 부모 그룹의 symbolName 또는 None)
- 엣지 키: semanticName (`src->dst`)

보고 순서: 빠진 노드 → 빠진 엣지 → 불필요한 노드 → 불필요한 엣지. 첫 번째 문제 하나만 알려 줍니다.
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..errors import GraphFormatError, InvariantViolation
from .graph import DependencyGraph, NodeKind


class DiscrepancyKind:
    MISSING_NODE      = "missingNode"
    MISSING_EDGE      = "missingEdge"
    EXTRA_NODE        = "extraNode"
    EXTRA_EDGE        = "extraEdge"
    WRONG_NULLABILITY = "wrongNullability"
    FIXPOINT_MISMATCH = "fixpointMismatch"
    INACTIVE_NODE     = "inactiveNode"
    STALE_SET         = "staleSet"


_MESSAGES = {
    DiscrepancyKind.MISSING_NODE: "You are missing a node in your graph: {}",
    DiscrepancyKind.MISSING_EDGE: "You are missing an edge in your graph: {}",
    DiscrepancyKind.EXTRA_NODE:   "You have an unnecessary node in your graph: {}",
    DiscrepancyKind.EXTRA_EDGE:   "You have an unnecessary edge in your graph: {}",
    DiscrepancyKind.WRONG_NULLABILITY:
        "There is something wrong with your step! Reconsider your assignment of {}!",
    DiscrepancyKind.INACTIVE_NODE: "There are still buttons to be clicked! ({})",
    DiscrepancyKind.STALE_SET:
        "The set of {} was computed before all of its predecessors were final!",
}


@dataclass(frozen=True)
class Discrepancy:
    kind: str
    name: str

    @property
    def message(self) -> str:
        if self.kind == DiscrepancyKind.FIXPOINT_MISMATCH:
            if self.name == "toggled":
                return "The fixpoint has not been reached yet! The fixpoint switch should not be toggled!"
            return "There should be no new changes in this step. Make sure you toggle the fixpoint switch!"
        return _MESSAGES[self.kind].format(self.name)


@dataclass(frozen=True)
class CheckResult:
    ok: bool
    discrepancy: Optional[Discrepancy] = None

    @property
    def message(self) -> str:
        return "Correct, well done!" if self.ok else self.discrepancy.message

    def __bool__(self) -> bool:
        return self.ok


NodeKey = Tuple[str, str, Optional[str]]
GraphLike = Union[DependencyGraph, Mapping[str, Any]]


# ---------- dict 입력 검사 ----------
_NODE_FIELDS = ("id", "type", "symbolName")
_EDGE_FIELDS = ("id", "sourceId", "targetId")


def _require_graph(data: Any) -> Tuple[List[Mapping[str, Any]], List[Mapping[str, Any]]]:
    """사용자 dict의 모양을 확인하고 (nodes, edges)를 돌려줍니다. 깨져 있으면 GraphFormatError."""
    if not isinstance(data, Mapping):
        raise GraphFormatError("graph must be an object with 'nodes' and 'edges'")
    nodes, edges = data.get("nodes", []), data.get("edges", [])
    if not isinstance(nodes, list) or not isinstance(edges, list):
        raise GraphFormatError("'nodes' and 'edges' must be lists")

    types: Dict[str, str] = {}
    for i, n in enumerate(nodes):
        if not isinstance(n, Mapping):
            raise GraphFormatError(f"node #{i} is not an object")
        for f in _NODE_FIELDS:
            if f not in n:
                raise GraphFormatError(f"node #{i} has no {f!r}")
        if n["type"] not in NodeKind.ALL:
            raise GraphFormatError(f"node {n['id']!r} has unknown type {n['type']!r}")
        if str(n["id"]) in types:
            raise GraphFormatError(f"duplicate node id {n['id']!r}")
        types[str(n["id"])] = n["type"]
    for n in nodes:
        parent = n.get("parentId")
        if parent is not None and types.get(str(parent)) != NodeKind.GROUP:
            raise GraphFormatError(f"node {n['id']!r} refers to unknown group {parent!r}")
    edge_ids = set()
    for i, e in enumerate(edges):
        if not isinstance(e, Mapping):
            raise GraphFormatError(f"edge #{i} is not an object")
        for f in _EDGE_FIELDS:
            if f not in e:
                raise GraphFormatError(f"edge #{i} has no {f!r}")
        if str(e["id"]) in edge_ids:
            raise GraphFormatError(f"duplicate edge id {e['id']!r}")
        edge_ids.add(str(e["id"]))
        if str(e["sourceId"]) not in types or str(e["targetId"]) not in types:
            raise GraphFormatError(f"edge {e['id']!r} refers to a node that does not exist")
    return nodes, edges


# ---------- dict <-> graph ----------
def graph_to_dict(graph: DependencyGraph) -> Dict[str, List[Dict[str, Any]]]:
    nodes = []
    for n in graph.nodes:
        d: Dict[str, Any] = {"id": n.id, "type": n.kind, "symbolName": n.symbol_name}
        if n.group_id is not None:
            d["parentId"] = n.group_id
        nodes.append(d)
    edges = [
        {
            "id": e.id,
            "sourceId": e.source_id,
            "targetId": e.target_id,
            "semanticName": graph.semantic_name(e),
            "isGroupEdge": e.is_group_edge,
        }
        for e in graph.edges
    ]
    return {"nodes": nodes, "edges": edges}


def graph_from_dict(data: Mapping[str, Any], phase: str = "User") -> DependencyGraph:
    """입력 dict는 읽기만 합니다. 필드 누락, 끊긴 id, 알 수 없는 type은 GraphFormatError."""
    raw_nodes, raw_edges = _require_graph(data)
    g = DependencyGraph(phase)
    # 그룹이 먼저 있어야 멤버의 부모를 걸 수 있음
    for n in sorted(raw_nodes, key=lambda n: n.get("type") != NodeKind.GROUP):
        g.add_node(n["type"], n["symbolName"], node_id=str(n["id"]))
    for n in raw_nodes:
        parent = n.get("parentId")
        if parent is not None:
            g.set_group(str(n["id"]), str(parent))
    for e in raw_edges:
        g.add_edge(
            str(e["sourceId"]), str(e["targetId"]),
            is_group_edge=bool(e.get("isGroupEdge", False)), edge_id=str(e["id"]),
        )
    return g


def _view(graph: GraphLike) -> Tuple[List[NodeKey], List[str]]:
    if isinstance(graph, DependencyGraph):
        nodes = [(n.kind, n.symbol_name, graph.parent_name(n)) for n in graph.nodes]
        return nodes, graph.edge_names()

    raw_nodes, raw_edges = _require_graph(graph)
    by_id: Dict[str, Mapping[str, Any]] = {str(n["id"]): n for n in raw_nodes}
    nodes: List[NodeKey] = []
    for n in raw_nodes:
        parent = n.get("parentId")
        parent_name = by_id[str(parent)]["symbolName"] if parent is not None else None
        nodes.append((n["type"], n["symbolName"], parent_name))
    edges: List[str] = []
    for e in raw_edges:
        src, dst = str(e["sourceId"]), str(e["targetId"])
        edges.append(e.get("semanticName") or f"{by_id[src]['symbolName']}->{by_id[dst]['symbolName']}")
    return nodes, edges


def _node_label(key: NodeKey) -> str:
    return key[1]


def _first_surplus(actual: List[Any], expected: List[Any]) -> Optional[Any]:
    budget = Counter(expected)
    for x in actual:
        if budget[x] == 0:
            return x
        budget[x] -= 1
    return None


def check_graph(canonical: GraphLike, user: GraphLike) -> CheckResult:
    """
    1) 정답 노드마다 같은 키의 사용자 노드가 있는지 → 없으면 missingNode
    2) 정답 엣지마다 같은 이름의 사용자 엣지가 있는지 → 없으면 missingEdge
    3) 개수가 다르면 반대 방향으로 찾아 extraNode / extraEdge
    """
    c_nodes, c_edges = _view(canonical)
    u_nodes, u_edges = _view(user)

    u_node_set = set(u_nodes)
    for key in c_nodes:
        if key not in u_node_set:
            return CheckResult(False, Discrepancy(DiscrepancyKind.MISSING_NODE, _node_label(key)))
    u_edge_set = set(u_edges)
    for name in c_edges:
        if name not in u_edge_set:
            return CheckResult(False, Discrepancy(DiscrepancyKind.MISSING_EDGE, name))

    if len(c_nodes) == len(u_nodes) and len(c_edges) == len(u_edges):
        # 개수가 같아도 중복 때문에 빠진 것이 있을 수 있음
        if Counter(c_nodes) == Counter(u_nodes) and Counter(c_edges) == Counter(u_edges):
            return CheckResult(True)

    extra_node = _first_surplus(u_nodes, c_nodes)
    if extra_node is not None:
        return CheckResult(False, Discrepancy(DiscrepancyKind.EXTRA_NODE, _node_label(extra_node)))
    extra_edge = _first_surplus(u_edges, c_edges)
    if extra_edge is not None:
        return CheckResult(False, Discrepancy(DiscrepancyKind.EXTRA_EDGE, extra_edge))
    # 정답 쪽 중복이 사용자 쪽보다 많은 경우
    short_node = _first_surplus(c_nodes, u_nodes)
    if short_node is not None:
        return CheckResult(False, Discrepancy(DiscrepancyKind.MISSING_NODE, _node_label(short_node)))
    short_edge = _first_surplus(c_edges, u_edges)
    if short_edge is not None:
        return CheckResult(False, Discrepancy(DiscrepancyKind.MISSING_EDGE, short_edge))
    raise InvariantViolation("graphs differ but no discrepancy was found")
