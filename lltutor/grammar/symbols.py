# lltutor/grammar/symbols.py
"""문법 심볼과 프로덕션.

lepta의 SymbolTable이 이름↔ID를 고정했다면, 여기서는 튜터가 단계마다 속성을
채워 넣는 **가변 심볼 객체**를 정의합니다. 심볼 종류는 isinstance 분기가 아니라
`kind` 태그로 구분합니다.
"""

from __future__     import annotations
from dataclasses    import dataclass, field
from typing         import List, Set

EPSILON_NAME = "ε"
END_OF_INPUT_NAME = "$"
START_NAME = "S'"

_SUPERSCRIPT = str.maketrans("0123456789", "⁰¹²³⁴⁵⁶⁷⁸⁹")


class SymbolKind:
    TERMINAL     = "terminal"
    NONTERMINAL  = "nonterminal"
    EPSILON      = "epsilon"
    END_OF_INPUT = "end_of_input"


@dataclass(eq=False)
class Symbol:
    """
    Symbol
    ======
    단말/비단말/센티넬(ε, $) 하나.

    - name          : 알고리즘상 식별자(문법 안에서 유일)
    - representation: 화면 표시용 문자열(기본값은 name)
    - references    : 이 심볼을 쓰는 프로덕션 수. 0이 되면 문법에서 제거됩니다.
    - nullable/first/follow: 단계별 분석 결과(단말 이름의 집합)
    - is_start      : 사용자가 고른 시작 비단말 여부(비단말만 의미 있음)
    """
    name: str
    kind: str
    representation: str = ""
    references: int = 0
    nullable: bool = False
    first: Set[str] = field(default_factory=set)
    follow: Set[str] = field(default_factory=set)
    is_start: bool = False

    def __post_init__(self) -> None:
        if not self.representation:
            self.representation = self.name

    @property
    def is_terminal(self) -> bool:
        return self.kind == SymbolKind.TERMINAL

    @property
    def is_nonterminal(self) -> bool:
        return self.kind == SymbolKind.NONTERMINAL

    @property
    def is_epsilon(self) -> bool:
        return self.kind == SymbolKind.EPSILON

    def reset_analysis(self) -> None:
        self.nullable = self.kind == SymbolKind.EPSILON
        self.first = set()
        self.follow = set()

    def __repr__(self) -> str:
        return f"Symbol({self.name!r}, {self.kind})"


def terminal(name: str) -> Symbol:
    return Symbol(name, SymbolKind.TERMINAL)

def nonterminal(name: str) -> Symbol:
    return Symbol(name, SymbolKind.NONTERMINAL)

def epsilon() -> Symbol:
    return Symbol(EPSILON_NAME, SymbolKind.EPSILON, nullable=True)

def end_of_input() -> Symbol:
    return Symbol(END_OF_INPUT_NAME, SymbolKind.END_OF_INPUT)


@dataclass(eq=False)
class Production:
    """
    프로덕션 1개: left -> right.
    - right: 심볼 리스트. ε-프로덕션은 빈 리스트가 아니라 [ε] 한 개로 표현합니다.
    - number: 같은 좌변 안에서의 표시용 순번(정렬 전에는 -1)
    - nullable: 우변 전체가 nullable이면 True (ε-프로덕션 포함)
    """
    left: Symbol
    right: List[Symbol]
    number: int = -1
    nullable: bool = False

    @property
    def name(self) -> str:
        """구조적 식별자. 우변 순서에 민감합니다."""
        return f"{self.left.name}->{' '.join(s.name for s in self.right)}"

    @property
    def is_epsilon(self) -> bool:
        return len(self.right) == 1 and self.right[0].is_epsilon

    @property
    def representation(self) -> str:
        rhs = " ".join(s.representation for s in self.right)
        return f"{self.left.representation} -> {rhs}"

    def numbered_representation(self) -> str:
        if self.number < 0:
            return self.representation
        return self.representation + str(self.number).translate(_SUPERSCRIPT)

    def symbols(self) -> List[Symbol]:
        return [self.left, *self.right]

    def __repr__(self) -> str:
        return f"Production({self.name!r})"
