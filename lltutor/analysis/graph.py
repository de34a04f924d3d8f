# lltutor/analysis/graph.py
"""의존성 그래프 아레나.

노드와 엣지는 그래프가 발급한 id로만 서로를 가리킵니다. 엣지는 노드 객체를 들고 있지 않으며
semantic name(`source.symbol_name->target.symbol_name`)은 매번 조회로 만들어 냅니다.
"""

from __future__ import annotations
import copy
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from ..errors import InvariantViolation


class NodeKind:
    EMPTY  = "empty"
    FIRST  = "first"
    FOLLOW = "follow"
    GROUP  = "group"

    ALL = (EMPTY, FIRST, FOLLOW, GROUP)


@dataclass
class GraphNode:
    id: str
    kind: str
    symbol_name: str
    group_id: Optional[str] = None

    @property
    def is_group(self) -> bool:
        return self.kind == NodeKind.GROUP


@dataclass
class GraphEdge:
    id: str
    source_id: str
    target_id: str
    is_group_edge: bool = False


class DependencyGraph:
    """
    DependencyGraph
    ===============
    phase 이름("Empty" / "First" / "Follow")이 id 접두사가 됩니다. 예: FirstNode3, FollowEdge7.
    노드/엣지 순서는 추가 순서 그대로 유지되어 빌더가 결정적이면 그래프도 결정적입니다.
    """

    def __init__(self, phase: str):
        self.phase = phase
        self._nodes: Dict[str, GraphNode] = {}
        self._edges: Dict[str, GraphEdge] = {}
        self._next_node = 0
        self._next_edge = 0

    # ----- 구성 -----
    def add_node(self, kind: str, symbol_name: str, group_id: Optional[str] = None,
                 node_id: Optional[str] = None) -> GraphNode:
        if kind not in NodeKind.ALL:
            raise InvariantViolation(f"unknown node kind {kind!r}")
        if group_id is not None:
            parent = self.node(group_id)
            if not parent.is_group:
                raise InvariantViolation(f"parent {group_id!r} of {symbol_name!r} is not a group")
        if node_id is None:
            node_id = f"{self.phase}Node{self._next_node}"
            self._next_node += 1
        if node_id in self._nodes:
            raise InvariantViolation(f"duplicate node id {node_id!r}")
        n = GraphNode(node_id, kind, symbol_name, group_id)
        self._nodes[node_id] = n
        return n

    def add_edge(self, source_id: str, target_id: str, is_group_edge: bool = False,
                 edge_id: Optional[str] = None) -> GraphEdge:
        self.node(source_id)
        self.node(target_id)
        if edge_id is None:
            edge_id = f"{self.phase}Edge{self._next_edge}"
            self._next_edge += 1
        if edge_id in self._edges:
            raise InvariantViolation(f"duplicate edge id {edge_id!r}")
        e = GraphEdge(edge_id, source_id, target_id, is_group_edge)
        self._edges[edge_id] = e
        return e

    def remove_edge(self, edge_id: str) -> GraphEdge:
        if edge_id not in self._edges:
            raise InvariantViolation(f"unknown edge id {edge_id!r}")
        return self._edges.pop(edge_id)

    def remove_node(self, node_id: str) -> GraphNode:
        """노드와 그 노드에 닿는 엣지, 그룹이면 멤버의 소속까지 함께 정리합니다."""
        n = self.node(node_id)
        for e in [e for e in self._edges.values() if node_id in (e.source_id, e.target_id)]:
            del self._edges[e.id]
        for m in self._nodes.values():
            if m.group_id == node_id:
                m.group_id = None
        del self._nodes[node_id]
        return n

    def set_group(self, node_id: str, group_id: Optional[str]) -> None:
        n = self.node(node_id)
        if group_id is not None and not self.node(group_id).is_group:
            raise InvariantViolation(f"{group_id!r} is not a group")
        n.group_id = group_id

    def copy(self) -> "DependencyGraph":
        return copy.deepcopy(self)

    # ----- 조회 -----
    @property
    def nodes(self) -> List[GraphNode]:
        return list(self._nodes.values())

    @property
    def edges(self) -> List[GraphEdge]:
        return list(self._edges.values())

    def node(self, node_id: str) -> GraphNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise InvariantViolation(f"unknown node id {node_id!r}") from None

    def edge(self, edge_id: str) -> GraphEdge:
        try:
            return self._edges[edge_id]
        except KeyError:
            raise InvariantViolation(f"unknown edge id {edge_id!r}") from None

    def find_node(self, symbol_name: str, kind: Optional[str] = None) -> Optional[GraphNode]:
        for n in self._nodes.values():
            if n.symbol_name == symbol_name and (kind is None or n.kind == kind):
                return n
        return None

    def find_edge(self, semantic_name: str) -> Optional[GraphEdge]:
        for e in self._edges.values():
            if self.semantic_name(e) == semantic_name:
                return e
        return None

    def groups(self) -> List[GraphNode]:
        return [n for n in self._nodes.values() if n.is_group]

    def leaves(self) -> List[GraphNode]:
        return [n for n in self._nodes.values() if not n.is_group]

    def members(self, group_id: str) -> List[GraphNode]:
        return [n for n in self._nodes.values() if n.group_id == group_id]

    def parent_name(self, n: GraphNode) -> Optional[str]:
        return self.node(n.group_id).symbol_name if n.group_id is not None else None

    def semantic_name(self, e: GraphEdge) -> str:
        return f"{self.node(e.source_id).symbol_name}->{self.node(e.target_id).symbol_name}"

    def edge_names(self) -> List[str]:
        return [self.semantic_name(e) for e in self._edges.values()]

    def out_edges(self, node_id: str) -> Iterator[GraphEdge]:
        return (e for e in self._edges.values() if e.source_id == node_id)

    def __repr__(self) -> str:
        return f"DependencyGraph({self.phase}, nodes={len(self._nodes)}, edges={len(self._edges)})"
