# lltutor/analysis/table.py
"""
LL(1) 룩어헤드 테이블.

각 프로덕션 A -> α에 대해
    LA(A -> α) = First_ε(α)  ∪  (α가 nullable이면 Follow_1(A))
를 계산하고, LA의 원소(단말 또는 $)마다 (A, x) 칸에 프로덕션을 기록합니다.
한 칸에 프로덕션이 둘 이상이면 그 문법은 LL(1)이 아닙니다.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Set, Tuple

from ..grammar.model import Grammar
from ..grammar.symbols import Production, Symbol


def first_of_sequence(seq: List[Symbol]) -> Tuple[Set[str], bool]:
    """
    심볼 시퀀스의 First_ε 집합과 시퀀스 전체의 nullable 여부.
    심볼의 first/nullable 속성은 이미 채워져 있어야 합니다.
    """
    out: Set[str] = set()
    for s in seq:
        if s.is_epsilon:
            continue
        if s.is_terminal:
            out.add(s.name)
            return out, False
        out |= s.first
        if not s.nullable:
            return out, False
    return out, True


@dataclass
class LookaheadTable:
    """
    LookaheadTable
    ==============
    - rows   : 비단말 이름(S' 포함)
    - columns: 단말 이름 + '$'
    - entries: rows × columns → 프로덕션 리스트(빈 칸은 빈 리스트)
    """
    rows: List[str]
    columns: List[str]
    entries: Dict[str, Dict[str, List[Production]]] = field(default_factory=dict)

    def cell(self, row: str, column: str) -> List[Production]:
        return self.entries[row][column]

    def conflicts(self) -> List[Tuple[str, str, List[Production]]]:
        return [
            (r, c, self.entries[r][c])
            for r in self.rows for c in self.columns
            if len(self.entries[r][c]) > 1
        ]

    @property
    def is_ll1(self) -> bool:
        return not self.conflicts()

    def as_names(self) -> Dict[str, Dict[str, List[str]]]:
        """칸마다 프로덕션 name 리스트(JSON 출력/테스트 비교용)"""
        return {r: {c: [p.name for p in cells] for c, cells in row.items()} for r, row in self.entries.items()}

    def pretty(self) -> str:
        """고정폭 텍스트 표. 한 칸에 여러 프로덕션이면 ' | '로 잇습니다."""
        cells = {
            (r, c): " | ".join(p.representation for p in self.entries[r][c])
            for r in self.rows for c in self.columns
        }
        head_w = max([len(r) for r in self.rows] + [1])
        widths = {
            c: max([len(c)] + [len(cells[(r, c)]) for r in self.rows])
            for c in self.columns
        }
        lines = [" " * head_w + " | " + " | ".join(c.ljust(widths[c]) for c in self.columns)]
        lines.append("-" * len(lines[0]))
        for r in self.rows:
            lines.append(r.ljust(head_w) + " | " + " | ".join(cells[(r, c)].ljust(widths[c]) for c in self.columns))
        return "\n".join(lines)

    def pretty_conflicts(self) -> str:
        if not self.conflicts():
            return "(no conflicts)"
        lines: List[str] = []
        for r, c, prods in self.conflicts():
            lines.append(f"row {r}, on {c}: " + " / ".join(p.representation for p in prods))
        return "\n".join(lines)


def build_lookahead_table(grammar: Grammar) -> LookaheadTable:
    columns = [s.name for s in grammar.follow_symbols]
    rows = [n.name for n in grammar.nonterminals]
    tbl = LookaheadTable(rows=rows, columns=columns)
    tbl.entries = {r: {c: [] for c in columns} for r in rows}

    for p in grammar.productions:
        la, nullable = first_of_sequence(p.right)
        if nullable:
            la |= p.left.follow
        for x in columns:
            if x in la:
                tbl.entries[p.left.name][x].append(p)
    return tbl
