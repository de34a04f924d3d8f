# lltutor/analysis/builders.py
"""단계별(Empty / First / Follow) 정답 그래프 생성기.

모든 빌더는 Grammar와 그 nullable 스냅샷만 읽습니다. 같은 입력이면 같은 이름, 같은 순서의
그래프가 나오며, 동등성 검사기는 이 성질에 기대어 사용자 그래프와 비교합니다.

이름 규칙
---------
- Empty : `A`, `a`, `ε`            엣지 `X->A`
- First : `A`, `a`, `ε`, `{a}`     엣지 `{a}->a`, `X->A`, 그룹 `SCC(..)`
- Follow: `Fε(..)`, `Fε({$})`, `Follow(A)`, 그룹 `Fε(SCC(..))`, `Follow(SCC(..))`
"""

from __future__ import annotations
import regex as re
from typing import Dict, FrozenSet, List, Set, Tuple

from ..errors import InvariantViolation
from ..grammar.model import Grammar
from ..grammar.symbols import END_OF_INPUT_NAME
from .graph import DependencyGraph, GraphNode, NodeKind
from .scc import condense

_TERMINAL_LEAF_RE = re.compile(r"^\{(.+)\}$")

DOLLAR_LEAF = "{" + END_OF_INPUT_NAME + "}"


def terminal_leaf_name(name: str) -> str:
    return "{" + name + "}"


def fe_name(name: str) -> str:
    return f"Fε({name})"


def follow_name(name: str) -> str:
    return f"Follow({name})"


class _EdgeAdder:
    """semantic name 기준으로 중복 없이 leaf 엣지를 추가"""

    def __init__(self, graph: DependencyGraph, kind: str):
        self.graph = graph
        self.kind = kind
        self.seen: Set[str] = set()

    def __call__(self, source: str, target: str) -> None:
        name = f"{source}->{target}"
        if name in self.seen:
            return
        src = self.graph.find_node(source, self.kind)
        dst = self.graph.find_node(target, self.kind)
        if src is None or dst is None:
            raise InvariantViolation(f"edge {name!r} refers to a node that was not built")
        self.seen.add(name)
        self.graph.add_edge(src.id, dst.id)


# ---------- Empty ----------
def build_nullability_graph(grammar: Grammar) -> DependencyGraph:
    g = DependencyGraph("Empty")
    for s in grammar.nullability_symbols():
        g.add_node(NodeKind.EMPTY, s.name)
    edge = _EdgeAdder(g, NodeKind.EMPTY)
    for p in grammar.productions:
        for s in p.right:
            edge(s.name, p.left.name)
    return g


# ---------- First ----------
def build_first_graph(grammar: Grammar, condensed: bool = True) -> DependencyGraph:
    """
    nullable 접두사를 따라 First_ε 기여 엣지를 만듭니다.
    A -> X1 X2 ... 에서 X1부터 처음으로 nullable이 아닌 심볼까지(포함) `Xi->A`.
    ε-프로덕션은 `ε->A` 하나를 만듭니다.
    """
    g = DependencyGraph("First")
    for t in grammar.terminals:
        g.add_node(NodeKind.FIRST, t.name)
    for n in grammar.nonterminals:
        g.add_node(NodeKind.FIRST, n.name)
    if grammar.epsilon.references > 0:
        g.add_node(NodeKind.FIRST, grammar.epsilon.name)
    for t in grammar.terminals:
        g.add_node(NodeKind.FIRST, terminal_leaf_name(t.name))

    edge = _EdgeAdder(g, NodeKind.FIRST)
    for t in grammar.terminals:
        edge(terminal_leaf_name(t.name), t.name)
    for p in grammar.productions:
        for s in p.right:
            edge(s.name, p.left.name)
            if not s.nullable or s.is_epsilon:
                break

    if condensed:
        condense(g, NodeKind.FIRST)
    return g


def first_seeds(graph: DependencyGraph) -> Dict[str, FrozenSet[str]]:
    """`{t}`를 멤버로 가진 그룹은 {t}에서 시작, 나머지는 빈 집합"""
    seeds: Dict[str, FrozenSet[str]] = {}
    for grp in graph.groups():
        names = set()
        for m in graph.members(grp.id):
            mt = _TERMINAL_LEAF_RE.match(m.symbol_name)
            if mt is not None:
                names.add(mt.group(1))
        seeds[grp.id] = frozenset(names)
    return seeds


# ---------- Follow ----------
def build_follow_graph(grammar: Grammar, first_graph: DependencyGraph,
                       condensed: bool = True) -> DependencyGraph:
    """
    First의 응축 그래프를 `Fε(..)` 이름으로 다시 심고, 그 위에 Follow 의존을 쌓습니다.

    A -> ... X β (X 비단말)
      1) β의 앞에서부터 처음으로 nullable이 아닌 심볼 Y까지(포함) `Fε(Y)->Follow(X)`
      2) β 전체가 nullable(또는 비어 있음)이면 `Follow(A)->Follow(X)`
    """
    g = DependencyGraph("Follow")

    # 1) First 그룹/leaf 복사(그룹 먼저 만들어야 leaf의 부모를 걸 수 있음)
    carried: Dict[str, str] = {}
    for grp in first_graph.groups():
        carried[grp.id] = g.add_node(NodeKind.GROUP, fe_name(grp.symbol_name)).id
    for leaf in first_graph.leaves():
        if leaf.group_id is None:
            raise InvariantViolation(f"First node {leaf.symbol_name!r} is not grouped")
        carried[leaf.id] = g.add_node(
            NodeKind.FOLLOW, fe_name(leaf.symbol_name), group_id=carried[leaf.group_id]
        ).id

    # 2) 입력 끝 {$}
    dollar_group = g.add_node(NodeKind.GROUP, fe_name(f"SCC({DOLLAR_LEAF})"))
    dollar = g.add_node(NodeKind.FOLLOW, fe_name(DOLLAR_LEAF), group_id=dollar_group.id)

    # 3) Follow(A)
    for n in grammar.nonterminals:
        g.add_node(NodeKind.FOLLOW, follow_name(n.name))

    start = g.find_node(follow_name(grammar.start_symbol.name), NodeKind.FOLLOW)
    if start is None:
        raise InvariantViolation("Follow graph requires the start production S' -> ...")
    g.add_edge(dollar.id, start.id)

    # 4) First super-edge는 그룹 사이 일반 엣지로 옮겨 온다
    for e in first_graph.edges:
        if e.is_group_edge:
            g.add_edge(carried[e.source_id], carried[e.target_id], is_group_edge=False)

    # 5) Follow 의존
    edge = _EdgeAdder(g, NodeKind.FOLLOW)
    for p in grammar.productions:
        if p.is_epsilon:
            continue
        for i, x in enumerate(p.right):
            if not x.is_nonterminal:
                continue
            rest_nullable = True
            for y in p.right[i + 1:]:
                edge(fe_name(y.name), follow_name(x.name))
                if not y.nullable:
                    rest_nullable = False
                    break
            if rest_nullable:
                edge(follow_name(p.left.name), follow_name(x.name))

    if condensed:
        condense(g, NodeKind.FOLLOW)
    return g


def follow_seeds(first_graph: DependencyGraph, first_sets: Dict[str, FrozenSet[str]],
                 follow_graph: DependencyGraph) -> Tuple[Dict[str, FrozenSet[str]], List[str]]:
    """
    Follow 단계의 시작 상태.
    - `Fε(SCC(..))` 그룹: First 단계에서 계산된 집합(first_sets는 First 그룹 id 기준)
    - `Fε(SCC({$}))`: {$}
    - Follow로 내보낼 super-edge가 없는 Fε 그룹은 처음부터 active

    반환: (seeds, initially_active)
    """
    by_name: Dict[str, GraphNode] = {grp.symbol_name: grp for grp in follow_graph.groups()}
    seeds: Dict[str, FrozenSet[str]] = {}
    for grp in first_graph.groups():
        target = by_name.get(fe_name(grp.symbol_name))
        if target is None:
            raise InvariantViolation(f"Follow graph lacks {fe_name(grp.symbol_name)!r}")
        seeds[target.id] = frozenset(first_sets.get(grp.id, frozenset()))
    dollar = by_name.get(fe_name(f"SCC({DOLLAR_LEAF})"))
    if dollar is None:
        raise InvariantViolation("Follow graph lacks the end-of-input group")
    seeds[dollar.id] = frozenset({END_OF_INPUT_NAME})

    initially_active = [
        gid for gid in seeds
        if gid != dollar.id and not any(e.is_group_edge for e in follow_graph.out_edges(gid))
    ]
    return seeds, initially_active
