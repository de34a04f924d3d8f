# lltutor/analysis/scc.py
"""강연결요소(SCC)와 응축 그래프.

- tarjan(): 명시적 스택을 쓰는 반복형 Tarjan. 재귀 깊이 제한이 없습니다.
- condense(): 아직 그룹이 없는 leaf 노드들을 SCC 그룹 노드로 묶고,
  서로 다른 그룹을 잇는 leaf 엣지마다 그룹 사이 super-edge를 하나씩 만듭니다.
"""

from __future__ import annotations
import regex as re
from typing import Callable, Dict, Hashable, Iterable, List, Set, Tuple, TypeVar

from ..errors import InvariantViolation
from .graph import DependencyGraph, GraphNode, NodeKind

T = TypeVar("T", bound=Hashable)

# "Follow(A)" / "Fε(A)" → "A". 괄호가 없으면 이름 그대로 사용
_INNER_RE = re.compile(r"\((.+)\)")


def tarjan(node_ids: Iterable[T], successors: Callable[[T], Iterable[T]]) -> List[List[T]]:
    """
    Tarjan low-link.
    반환: SCC 리스트(역위상 순서). 각 SCC의 멤버는 발견 순서입니다.
    """
    index: Dict[T, int] = {}
    lowlink: Dict[T, int] = {}
    on_stack: Set[T] = set()
    stack: List[T] = []
    out: List[List[T]] = []
    counter = 0

    for root in node_ids:
        if root in index:
            continue
        # (노드, 후속 노드 이터레이터) 프레임
        work: List[Tuple[T, Iterable[T]]] = []
        index[root] = lowlink[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)
        work.append((root, iter(successors(root))))

        while work:
            v, it = work[-1]
            advanced = False
            for w in it:
                if w not in index:
                    index[w] = lowlink[w] = counter
                    counter += 1
                    stack.append(w)
                    on_stack.add(w)
                    work.append((w, iter(successors(w))))
                    advanced = True
                    break
                if w in on_stack:
                    lowlink[v] = min(lowlink[v], index[w])
            if advanced:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[v])
            if lowlink[v] == index[v]:
                comp: List[T] = []
                while True:
                    w = stack.pop()
                    on_stack.discard(w)
                    comp.append(w)
                    if w == v:
                        break
                comp.reverse()
                out.append(comp)
    return out


def inner_name(symbol_name: str) -> str:
    m = _INNER_RE.search(symbol_name)
    return m.group(1) if m else symbol_name


def group_name(members: List[GraphNode], kind: str) -> str:
    """멤버 이름(괄호 안쪽)을 정렬해 `SCC(a, b)` 또는 `Follow(SCC(A, B))`를 만듭니다."""
    joined = ", ".join(sorted(inner_name(n.symbol_name) for n in members))
    return f"Follow(SCC({joined}))" if kind == NodeKind.FOLLOW else f"SCC({joined})"


def condense(graph: DependencyGraph, kind: str) -> List[GraphNode]:
    """
    graph 안의 `kind` leaf 중 그룹이 없는 것들을 SCC로 묶습니다(그래프를 제자리에서 수정).
    새 그룹 노드 리스트를 돌려줍니다.

    super-edge 규칙
    ---------------
    - 새로 묶인 노드에 닿는 leaf 엣지 중 양 끝의 그룹이 다른 것마다 (src 그룹, dst 그룹) 쌍 하나
    - 같은 쌍은 한 번만, 자기 자신으로 가는 super-edge는 만들지 않음
    - is_group_edge=True
    """
    pending = [n for n in graph.leaves() if n.kind == kind and n.group_id is None]
    if not pending:
        return []
    pending_ids = {n.id for n in pending}

    adjacency: Dict[str, List[str]] = {n.id: [] for n in pending}
    for e in graph.edges:
        if e.source_id in pending_ids and e.target_id in pending_ids:
            adjacency[e.source_id].append(e.target_id)

    new_groups: List[GraphNode] = []
    for comp in tarjan([n.id for n in pending], lambda v: adjacency[v]):
        members = [graph.node(i) for i in comp]
        g = graph.add_node(NodeKind.GROUP, group_name(members, kind))
        for m in members:
            graph.set_group(m.id, g.id)
        new_groups.append(g)

    existing: Set[Tuple[str, str]] = {
        (e.source_id, e.target_id) for e in graph.edges if e.is_group_edge
    }
    for e in graph.edges:
        if e.is_group_edge or not (e.source_id in pending_ids or e.target_id in pending_ids):
            continue
        src = graph.node(e.source_id)
        dst = graph.node(e.target_id)
        if src.is_group or dst.is_group:
            continue
        if src.group_id is None or dst.group_id is None:
            raise InvariantViolation(f"edge {graph.semantic_name(e)!r} touches an ungrouped node")
        pair = (src.group_id, dst.group_id)
        if pair[0] == pair[1] or pair in existing:
            continue
        existing.add(pair)
        graph.add_edge(pair[0], pair[1], is_group_edge=True)
    return new_groups


def same_component(sccs: List[List[T]]) -> Dict[T, int]:
    """노드 → SCC 번호"""
    return {v: i for i, comp in enumerate(sccs) for v in comp}
