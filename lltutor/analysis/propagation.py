# lltutor/analysis/propagation.py
"""응축 그래프 위의 집합 전파(First_ε / Follow_1 공용).

그룹 노드마다 PropagationState 하나를 두고, 사용자가 그룹을 "클릭(activate)"할 때마다
그 그룹의 computed 집합이 super-edge를 따라 후속 그룹의 incoming 칸으로 복사됩니다.

상태 전이
---------
    pending (incoming 미완) → ready (incoming 완료, 비활성) → active
    active --deactivate--> ready

computed는 항상 `seed ∪ (정의된 incoming 값들의 합집합)`으로 다시 계산합니다.
빼기로 되돌리지 않으므로 형제 선행자가 같은 원소를 보냈어도 안전합니다.
"""

from __future__ import annotations
import copy
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional

from ..errors import InvariantViolation, UserMistake
from .equivalence import CheckResult, Discrepancy, DiscrepancyKind
from .graph import DependencyGraph


class NodeStatus:
    PENDING = "pending"
    READY   = "ready"
    ACTIVE  = "active"


@dataclass
class PropagationState:
    active: bool = False
    incoming: Dict[str, Optional[FrozenSet[str]]] = field(default_factory=dict)
    computed: FrozenSet[str] = frozenset()
    seed: FrozenSet[str] = frozenset()

    @property
    def complete(self) -> bool:
        return all(v is not None for v in self.incoming.values())

    def recompute(self) -> None:
        out = set(self.seed)
        for v in self.incoming.values():
            if v is not None:
                out |= v
        self.computed = frozenset(out)


class PropagationEngine:
    """
    PropagationEngine
    =================
    - graph의 그룹 노드와 `is_group_edge=True` 엣지만 봅니다(자기 자신으로 가는 엣지는 무시).
    - seeds: 그룹 id → 초기 집합. 없으면 빈 집합.
    - initially_active: 시작부터 active인 그룹(Follow 단계의 Fε 그룹 등).

    activate/deactivate는 사용자 클릭 한 번에 해당하며, 허용되지 않는 클릭은
    상태를 바꾸지 않고 UserMistake를 던집니다.
    """

    def __init__(self, graph: DependencyGraph, seeds: Mapping[str, Iterable[str]],
                 initially_active: Iterable[str] = ()):
        self.graph = graph
        self.finished = False
        self._order: List[str] = [g.id for g in graph.groups()]
        self._succ: Dict[str, List[str]] = {gid: [] for gid in self._order}
        self._pred: Dict[str, List[str]] = {gid: [] for gid in self._order}
        for e in graph.edges:
            if not e.is_group_edge or e.source_id == e.target_id:
                continue
            if e.source_id not in self._succ or e.target_id not in self._succ:
                raise InvariantViolation(f"group edge {graph.semantic_name(e)!r} joins non-group nodes")
            if e.target_id not in self._succ[e.source_id]:
                self._succ[e.source_id].append(e.target_id)
                self._pred[e.target_id].append(e.source_id)

        for gid in seeds:
            if gid not in self._succ:
                raise InvariantViolation(f"seed for unknown group {gid!r}")
        self._initial_seeds = {gid: frozenset(seeds.get(gid, ())) for gid in self._order}
        self._initially_active = list(initially_active)
        self.states: Dict[str, PropagationState] = {}
        self.reset()

    # ----- 조회 -----
    def _state(self, gid: str) -> PropagationState:
        try:
            return self.states[gid]
        except KeyError:
            raise InvariantViolation(f"unknown group id {gid!r}") from None

    def _name(self, gid: str) -> str:
        return self.graph.node(gid).symbol_name

    def successors(self, gid: str) -> List[str]:
        self._state(gid)
        return list(self._succ[gid])

    def predecessors(self, gid: str) -> List[str]:
        self._state(gid)
        return list(self._pred[gid])

    def status(self, gid: str) -> str:
        st = self._state(gid)
        if st.active:
            return NodeStatus.ACTIVE
        return NodeStatus.READY if st.complete else NodeStatus.PENDING

    def computed(self, gid: str) -> FrozenSet[str]:
        return self._state(gid).computed

    def has_partial_incoming(self, gid: str) -> bool:
        """일부 선행자만 값을 보낸 상태(UI의 부분 완료 표시용)"""
        vals = self._state(gid).incoming.values()
        return any(v is not None for v in vals) and any(v is None for v in vals)

    def snapshot(self) -> Dict[str, PropagationState]:
        return copy.deepcopy(self.states)

    @property
    def all_active(self) -> bool:
        return all(st.active for st in self.states.values())

    # ----- 변경 -----
    def reset(self) -> None:
        self.finished = False
        self.states = {
            gid: PropagationState(
                incoming={p: None for p in self._pred[gid]},
                computed=self._initial_seeds[gid],
                seed=self._initial_seeds[gid],
            )
            for gid in self._order
        }
        for gid in self._initially_active:
            self._activate(gid)

    def _guard(self, gid: str) -> PropagationState:
        st = self._state(gid)
        if self.finished:
            raise UserMistake("This step is already finished!")
        for s in self._succ[gid]:
            if self.states[s].active:
                raise UserMistake(
                    f"{self._name(gid)} cannot be changed while {self._name(s)} is active!"
                )
        return st

    def activate(self, gid: str) -> None:
        st = self._guard(gid)
        if st.active:
            raise UserMistake(f"{self._name(gid)} is already active!")
        self._activate(gid)

    def deactivate(self, gid: str) -> None:
        st = self._guard(gid)
        if not st.active:
            raise UserMistake(f"{self._name(gid)} is not active!")
        st.active = False
        for s in self._succ[gid]:
            succ = self.states[s]
            succ.incoming[gid] = None
            succ.recompute()

    def _activate(self, gid: str) -> None:
        st = self._state(gid)
        st.active = True
        for s in self._succ[gid]:
            succ = self.states[s]
            succ.incoming[gid] = st.computed
            succ.recompute()

    def solve(self) -> List[str]:
        """
        모든 그룹에서 시작하는 워크리스트. incoming이 다 찬 노드는 active 여부와 상관없이
        현재 computed를 후속 노드에 다시 보내고, 값이 바뀐 후속 노드를 다시 넣습니다.
        너무 일찍 활성화된 그룹의 낡은 스냅샷도 이 과정에서 고쳐집니다.
        이미 모두 최신이면 아무것도 하지 않습니다.
        새로 활성화한 그룹 id를 순서대로 돌려줍니다.
        """
        if self.finished:
            return []
        work = deque(self._order)
        done: List[str] = []
        while work:
            gid = work.popleft()
            st = self.states[gid]
            if not st.complete:
                continue
            if st.active:
                if all(self.states[s].incoming[gid] == st.computed for s in self._succ[gid]):
                    continue
            else:
                done.append(gid)
            self._activate(gid)
            work.extend(self._succ[gid])
        return done

    # ----- 판정 -----
    def check(self) -> CheckResult:
        """모든 그룹이 active이고, 모든 incoming 스냅샷이 선행자의 최종 집합과 같아야 통과"""
        for gid in self._order:
            if not self.states[gid].active:
                return CheckResult(False, Discrepancy(DiscrepancyKind.INACTIVE_NODE, self._name(gid)))
        for gid in self._order:
            for p, v in self.states[gid].incoming.items():
                if v != self.states[p].computed:
                    return CheckResult(False, Discrepancy(DiscrepancyKind.STALE_SET, self._name(gid)))
        return CheckResult(True)

    def finish(self) -> None:
        res = self.check()
        if not res.ok:
            raise UserMistake(res.message, res.discrepancy)
        self.finished = True
