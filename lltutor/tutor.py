# lltutor/tutor.py
"""단계 컨트롤러.

Empty(nullable) → First → Follow → 룩어헤드 테이블 순으로만 진행할 수 있습니다.
각 start_* 호출은 해당 단계의 그래프와 전파 상태를 통째로 새로 만들고,
그 뒤 단계는 버립니다.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Union

from .analysis.builders import (
    build_first_graph, build_follow_graph, build_nullability_graph, first_seeds, follow_seeds,
)
from .analysis.equivalence import CheckResult, check_graph
from .analysis.graph import DependencyGraph, NodeKind
from .analysis.nullable import NullabilityRound, NullabilitySolver
from .analysis.propagation import PropagationEngine
from .analysis.scc import inner_name
from .analysis.table import LookaheadTable, build_lookahead_table
from .errors import InvariantViolation, UserMistake
from .grammar.model import Grammar

UserGraph = Union[DependencyGraph, Mapping[str, Any]]


class NullabilityPhase:
    def __init__(self, grammar: Grammar):
        self.grammar = grammar
        self.solver = NullabilitySolver(grammar)
        self.graph = build_nullability_graph(grammar)
        self.finished = False

    def check_graph(self, user: UserGraph) -> CheckResult:
        return check_graph(self.graph, user)

    def advance_round(self) -> NullabilityRound:
        """fixpoint가 확인된 뒤의 호출은 단계를 끝냅니다."""
        if self.finished:
            raise UserMistake("This step is already finished!")
        if self.solver.fixpoint:
            self.finished = True
            return NullabilityRound(number=self.solver.rounds, fixpoint=True)
        return self.solver.advance()

    def check_round(self, user_nullable: Mapping[str, bool], user_fixpoint: bool) -> CheckResult:
        return self.solver.check_round(user_nullable, user_fixpoint)

    def solve(self) -> List[NullabilityRound]:
        rounds = self.solver.solve()
        self.finished = True
        return rounds

    def reset(self) -> None:
        self.solver.reset()
        self.finished = False


class SetPhase:
    """
    First / Follow 공용 컨트롤러.
    check()가 통과하면 commit 콜백으로 결과 집합을 문법 심볼에 기록하고 단계를 끝냅니다.
    """

    def __init__(self, name: str, graph: DependencyGraph, engine: PropagationEngine,
                 commit: Callable[["SetPhase"], None]):
        self.name = name
        self.graph = graph
        self.engine = engine
        self._commit = commit

    @property
    def finished(self) -> bool:
        return self.engine.finished

    def check_graph(self, user: UserGraph) -> CheckResult:
        return check_graph(self.graph, user)

    def activate(self, group_id: str) -> None:
        self.engine.activate(group_id)

    def deactivate(self, group_id: str) -> None:
        self.engine.deactivate(group_id)

    def group_id(self, symbol_name: str) -> str:
        """그룹 이름(`SCC(A, B)` 등)으로 id를 찾습니다."""
        n = self.graph.find_node(symbol_name, NodeKind.GROUP)
        if n is None:
            raise UserMistake(f"There is no group named {symbol_name}!")
        return n.id

    def solve(self) -> List[str]:
        return self.engine.solve()

    def reset(self) -> None:
        self.engine.reset()

    def check(self) -> CheckResult:
        res = self.engine.check()
        if res.ok and not self.engine.finished:
            self._commit(self)
            self.engine.finish()
        return res

    def sets(self) -> Dict[str, FrozenSet[str]]:
        """그룹 이름 → 현재 computed 집합"""
        return {g.symbol_name: self.engine.computed(g.id) for g in self.graph.groups()}


class Tutor:
    """
    Tutor
    =====
    문법 하나에 대한 전체 진행 상태. 외부(UI/CLI)는 이 객체만 들고 다닙니다.
    """

    def __init__(self, grammar: Grammar):
        if grammar.start_production is None:
            raise UserMistake("Please select a start symbol!")
        grammar.validate()
        self.grammar = grammar
        self.nullability: Optional[NullabilityPhase] = None
        self.first: Optional[SetPhase] = None
        self.follow: Optional[SetPhase] = None

    # ----- 단계 시작 -----
    def start_nullability(self) -> NullabilityPhase:
        self.grammar.reset_analysis()
        self.nullability = NullabilityPhase(self.grammar)
        self.first = self.follow = None
        return self.nullability

    def start_first(self) -> SetPhase:
        if self.nullability is None or not self.nullability.finished:
            raise UserMistake("Please finish the previous step first!")
        for s in self.grammar.all_symbols():
            s.first = set()
            s.follow = set()
        graph = build_first_graph(self.grammar)
        engine = PropagationEngine(graph, first_seeds(graph))
        self.first = SetPhase("First", graph, engine, self._commit_first)
        self.follow = None
        return self.first

    def start_follow(self) -> SetPhase:
        if self.first is None or not self.first.finished:
            raise UserMistake("Please finish the previous step first!")
        for s in self.grammar.all_symbols():
            s.follow = set()
        graph = build_follow_graph(self.grammar, self.first.graph)
        first_sets = {g.id: self.first.engine.computed(g.id) for g in self.first.graph.groups()}
        seeds, initially_active = follow_seeds(self.first.graph, first_sets, graph)
        engine = PropagationEngine(graph, seeds, initially_active)
        self.follow = SetPhase("Follow", graph, engine, self._commit_follow)
        return self.follow

    # ----- 결과 기록 -----
    def _commit_first(self, phase: SetPhase) -> None:
        for grp in phase.graph.groups():
            value = set(phase.engine.computed(grp.id))
            for m in phase.graph.members(grp.id):
                try:
                    sym = self.grammar.symbol(m.symbol_name)
                except KeyError:
                    continue  # {t} leaf
                if sym.is_terminal or sym.is_nonterminal:
                    sym.first = set(value)

    def _commit_follow(self, phase: SetPhase) -> None:
        for grp in phase.graph.groups():
            if not grp.symbol_name.startswith("Follow("):
                continue
            value = set(phase.engine.computed(grp.id))
            for m in phase.graph.members(grp.id):
                name = inner_name(m.symbol_name)
                try:
                    sym = self.grammar.nonterminal(name)
                except KeyError:
                    raise InvariantViolation(f"{m.symbol_name!r} does not name a nonterminal") from None
                sym.follow = set(value)

    # ----- 자동 진행 -----
    def solve_all(self) -> LookaheadTable:
        self.start_nullability().solve()
        for start in (self.start_first, self.start_follow):
            phase = start()
            phase.solve()
            res = phase.check()
            if not res.ok:
                raise InvariantViolation(f"{phase.name} did not converge: {res.message}")
        return self.lookahead_table()

    def lookahead_table(self) -> LookaheadTable:
        if self.follow is None or not self.follow.finished:
            raise UserMistake("Please finish the previous step first!")
        return build_lookahead_table(self.grammar)

    def phase_graph(self, phase: str) -> DependencyGraph:
        """`empty` / `first` / `follow` 단계의 정답 그래프(필요하면 앞 단계를 자동으로 풂)"""
        phase = phase.lower()
        if phase == "empty":
            return (self.nullability or self.start_nullability()).graph
        if self.nullability is None or not self.nullability.finished:
            self.start_nullability().solve()
        if phase == "first":
            return (self.first or self.start_first()).graph
        if phase == "follow":
            if self.first is None or not self.first.finished:
                first = self.start_first()
                first.solve()
                first.check()
            return (self.follow or self.start_follow()).graph
        raise ValueError(f"unknown phase {phase!r}")
