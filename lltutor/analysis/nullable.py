# lltutor/analysis/nullable.py
"""NULLABLE(empty) 고정점 - 한 라운드씩 진행 가능한 버전.

lepta의 compute_nullable_first_follow가 `while changed:` 루프 한 번에 끝까지 돌았다면,
여기서는 같은 고정점을 라운드 단위로 쪼개 UI(또는 CLI)가 한 단계씩 확인할 수 있게 합니다.

라운드 규칙
-----------
1) 워크리스트에서 이미 nullable인 프로덕션을 제거
2) 우변 심볼이 (라운드 시작 시점 기준으로) 모두 nullable인 프로덕션을 모음
3) 모은 프로덕션을 nullable로 표시하고, 그 좌변도 nullable로 표시
4) 새로 nullable이 된 좌변이 하나도 없으면 fixpoint
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Mapping

from ..grammar.model import Grammar
from ..grammar.symbols import Production
from .equivalence import CheckResult, Discrepancy, DiscrepancyKind


@dataclass
class NullabilityRound:
    """한 라운드의 결과: 새로 nullable이 된 프로덕션/심볼 이름과 fixpoint 여부"""
    number: int
    productions: List[str] = field(default_factory=list)
    symbols: List[str] = field(default_factory=list)
    fixpoint: bool = False


class NullabilitySolver:
    """
    NullabilitySolver
    =================
    Grammar의 Symbol/Production 객체에 nullable 플래그를 직접 기록합니다.
    생성 시 reset()으로 ε만 nullable인 초기 상태에서 시작합니다.
    """

    def __init__(self, grammar: Grammar):
        self.grammar = grammar
        self.rounds = 0
        self.fixpoint = False
        self._worklist: List[Production] = []
        self.reset()

    def reset(self) -> None:
        for s in self.grammar.all_symbols():
            s.nullable = s.is_epsilon
        for p in self.grammar.productions:
            p.nullable = False
        self._worklist = self.grammar.productions
        self.rounds = 0
        self.fixpoint = False

    def advance(self) -> NullabilityRound:
        """정확히 한 라운드. fixpoint 이후 호출은 아무것도 바꾸지 않습니다."""
        if self.fixpoint:
            return NullabilityRound(number=self.rounds, fixpoint=True)

        self._worklist = [p for p in self._worklist if not p.nullable]
        ready = [p for p in self._worklist if all(s.nullable for s in p.right)]

        self.rounds += 1
        out = NullabilityRound(number=self.rounds)
        for p in ready:
            p.nullable = True
            out.productions.append(p.name)
        for p in ready:
            if not p.left.nullable:
                p.left.nullable = True
                out.symbols.append(p.left.name)

        out.fixpoint = not out.symbols
        self.fixpoint = out.fixpoint
        return out

    def solve(self) -> List[NullabilityRound]:
        """fixpoint까지 advance()를 반복합니다."""
        out: List[NullabilityRound] = []
        while not self.fixpoint:
            out.append(self.advance())
        return out

    def nullable_symbols(self) -> List[str]:
        return [s.name for s in self.grammar.nullability_symbols() if s.nullable]

    def check_round(self, user_nullable: Mapping[str, bool], user_fixpoint: bool) -> CheckResult:
        """
        사용자가 표시한 심볼별 nullable 값과 fixpoint 스위치를 현재 라운드 결과와 비교합니다.
        ε → 비단말 → 단말 순서로 보고 첫 번째 틀린 심볼만 알려 줍니다.
        표시하지 않은 심볼은 False로 간주합니다.
        """
        for s in self.grammar.nullability_symbols():
            if bool(user_nullable.get(s.name, False)) != s.nullable:
                return CheckResult(False, Discrepancy(DiscrepancyKind.WRONG_NULLABILITY, s.representation))
        if bool(user_fixpoint) != self.fixpoint:
            return CheckResult(False, Discrepancy(
                DiscrepancyKind.FIXPOINT_MISMATCH,
                "toggled" if user_fixpoint else "untoggled",
            ))
        return CheckResult(True)
