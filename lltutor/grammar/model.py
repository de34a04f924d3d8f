# lltutor/grammar/model.py
"""참조 카운트 기반 문법 모델.

- 프로덕션 추가/삭제 때마다 관련 심볼의 references를 증감하고,
  0이 된 심볼은 즉시 컬렉션에서 빠집니다(고아 심볼 없음).
- ε / $ 센티넬은 항상 존재하지만 참조될 때만 그래프에 참여합니다.
- 모든 변경 직후 validate()로 불변식을 다시 확인하고, 실패하면 변경 전 상태로 되돌린 뒤 다시 던집니다.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Set

from ..errors import InvariantViolation, UserMistake
from .parser import ProductionText, is_nonterminal_name, parse_production
from .symbols import (
    EPSILON_NAME, START_NAME, Production, Symbol, SymbolKind,
    end_of_input, epsilon, nonterminal, terminal,
)


def _production_name(left: str, right: List[str]) -> str:
    return f"{left}->{' '.join(right) if right else EPSILON_NAME}"


class Grammar:
    """
    Grammar
    =======
    프로덕션, 비단말, 단말 컬렉션과 두 센티넬(ε, $)을 관리합니다.

    불변식
    ------
    - 모든 프로덕션의 좌변/우변 심볼은 해당 컬렉션에 존재한다.
    - 각 심볼의 references == 그 심볼을 사용하는 (프로덕션, 위치) 수.
    - 남아 있는 심볼은 모두 references > 0.
    - 프로덕션 이름은 중복되지 않는다.

    컬렉션은 이름 → 객체 dict(삽입 순서 유지)로 보관하며, 리스트는 읽기 전용 사본입니다.
    """

    def __init__(self) -> None:
        self.epsilon: Symbol = epsilon()
        self.end_of_input: Symbol = end_of_input()
        self.start_symbol: Symbol = nonterminal(START_NAME)
        self._productions: Dict[str, Production] = {}
        self._nonterminals: Dict[str, Symbol] = {}
        self._terminals: Dict[str, Symbol] = {}

    # ----- 생성 -----
    @classmethod
    def from_productions(cls, lines: Iterable[str], start: Optional[str] = None) -> "Grammar":
        """`A -> α` 문자열들로 문법을 만들고 시작 비단말을 정합니다(기본: 첫 좌변)."""
        g = cls()
        first_left: Optional[str] = None
        for i, line in enumerate(lines, start=1):
            p = g.add_parsed(parse_production(line, i))
            if first_left is None:
                first_left = p.left.name
        chosen = start or first_left
        if chosen is not None:
            g.set_start_symbol(chosen)
        return g

    # ----- 조회 -----
    @property
    def productions(self) -> List[Production]:
        return list(self._productions.values())

    @property
    def nonterminals(self) -> List[Symbol]:
        return list(self._nonterminals.values())

    @property
    def terminals(self) -> List[Symbol]:
        return list(self._terminals.values())

    @property
    def follow_symbols(self) -> List[Symbol]:
        """룩어헤드 테이블의 열: 단말 + $"""
        return [*self._terminals.values(), self.end_of_input]

    @property
    def start_production(self) -> Optional[Production]:
        for p in self._productions.values():
            if p.left is self.start_symbol:
                return p
        return None

    @property
    def user_start(self) -> Optional[Symbol]:
        p = self.start_production
        return p.right[0] if p is not None else None

    def symbol(self, name: str) -> Symbol:
        """이름으로 심볼을 찾습니다. 없으면 KeyError."""
        if name in self._nonterminals:
            return self._nonterminals[name]
        if name in self._terminals:
            return self._terminals[name]
        if name == self.epsilon.name:
            return self.epsilon
        if name == self.end_of_input.name:
            return self.end_of_input
        raise KeyError(name)

    def nonterminal(self, name: str) -> Symbol:
        return self._nonterminals[name]

    def production(self, name: str) -> Production:
        return self._productions[name]

    def nullability_symbols(self) -> List[Symbol]:
        """ε(참조될 때만) → 비단말 → 단말 순서. 그래프/단계 검사에서 같은 순서를 씁니다."""
        head = [self.epsilon] if self.epsilon.references > 0 else []
        return [*head, *self._nonterminals.values(), *self._terminals.values()]

    def all_symbols(self) -> List[Symbol]:
        return [self.epsilon, self.end_of_input, *self._nonterminals.values(), *self._terminals.values()]

    # ----- 변경 -----
    def add_production(self, text: str) -> Production:
        """
        `A -> α` 텍스트를 검증해 프로덕션을 추가합니다.
        잘못된 텍스트는 SyntaxError. 이미 있는 프로덕션이면 기존 객체를 그대로 돌려주고
        참조 카운트는 바꾸지 않습니다.
        """
        return self.add_parsed(parse_production(text))

    def add_parsed(self, pt: ProductionText) -> Production:
        name = _production_name(pt.left, pt.right)
        existing = self._productions.get(name)
        if existing is not None:
            return existing

        # 아직 등록되지 않은 이름이 한 프로덕션에 여러 번 나와도 같은 객체를 쓰도록
        fresh: Dict[str, Symbol] = {}
        left = self._intern(pt.left, SymbolKind.NONTERMINAL, fresh)
        if pt.right:
            right = [
                self._intern(s, SymbolKind.NONTERMINAL if is_nonterminal_name(s) else SymbolKind.TERMINAL, fresh)
                for s in pt.right
            ]
        else:
            right = [self.epsilon]
        return self._attach(Production(left, right))

    def remove_production(self, p: Production) -> None:
        """참조 카운트를 줄이고 0이 된 심볼을 제거합니다."""
        if self._productions.get(p.name) is not p:
            raise InvariantViolation(f"production {p.name!r} is not part of this grammar")
        saved = self._save()
        try:
            del self._productions[p.name]
            if p.left is self.start_symbol:
                for s in p.right:
                    s.is_start = False
            for s in p.symbols():
                s.references -= 1
                if s.references == 0:
                    self._forget(s)
            self.validate()
        except InvariantViolation:
            self._restore(saved)
            raise

    def set_start_symbol(self, name: str) -> Production:
        """
        사용자 시작 비단말을 지정합니다. 기존 `S' -> m`은 퇴역시키고 `S' -> name`을 추가합니다.
        """
        target = self._nonterminals.get(name)
        if target is None or target is self.start_symbol:
            raise UserMistake(f"{name!r} is not a nonterminal of the grammar")
        old = self.start_production
        if old is not None and old.right[0] is target:
            return old
        saved = self._save()
        try:
            if old is not None:
                self.remove_production(old)
            # 퇴역 과정에서 target이 사라졌을 수 있음(S'만 참조하던 경우)
            target = self._intern(name, SymbolKind.NONTERMINAL)
            target.is_start = True
            return self._attach(Production(self.start_symbol, [target]))
        except InvariantViolation:
            self._restore(saved)
            raise

    def _intern(self, name: str, kind: str, fresh: Optional[Dict[str, Symbol]] = None) -> Symbol:
        if name == START_NAME:
            return self.start_symbol
        table = self._nonterminals if kind == SymbolKind.NONTERMINAL else self._terminals
        sym = table.get(name)
        if sym is None and fresh is not None:
            sym = fresh.get(name)
        if sym is None:
            sym = nonterminal(name) if kind == SymbolKind.NONTERMINAL else terminal(name)
            if fresh is not None:
                fresh[name] = sym
        return sym

    def _attach(self, p: Production) -> Production:
        saved = self._save()
        try:
            for s in p.symbols():
                if s.references == 0:
                    if s.is_nonterminal:
                        self._nonterminals[s.name] = s
                    elif s.is_terminal:
                        self._terminals[s.name] = s
                s.references += 1
            self._productions[p.name] = p
            self.validate()
        except InvariantViolation:
            self._restore(saved)
            raise
        return p

    def _forget(self, s: Symbol) -> None:
        if s.is_nonterminal:
            self._nonterminals.pop(s.name, None)
        elif s.is_terminal:
            self._terminals.pop(s.name, None)

    def _save(self):
        """컬렉션 사본과 (심볼, references, is_start) 목록. 새로 만든 심볼은 되돌릴 때 그냥 버려집니다."""
        marks = [
            (s, s.references, s.is_start)
            for s in [self.epsilon, self.start_symbol, *self._nonterminals.values(), *self._terminals.values()]
        ]
        return dict(self._productions), dict(self._nonterminals), dict(self._terminals), marks

    def _restore(self, saved) -> None:
        self._productions, self._nonterminals, self._terminals, marks = saved
        for s, references, is_start in marks:
            s.references = references
            s.is_start = is_start

    # ----- 정리(축약/정렬) -----
    def reduce(self) -> List[Production]:
        """
        비생산적(unproductive) → 도달 불가(unreachable) 프로덕션 순으로 제거합니다.
        S'가 비생산적이면 문법을 건드리지 않고 UserMistake를 던집니다.
        제거된 프로덕션 리스트를 돌려줍니다.
        """
        start = self.start_production
        if start is None:
            raise UserMistake("Please select a start symbol!")

        # 1) productive 고정점
        productive: Set[str] = set()
        worklist = self.productions
        changed = True
        while changed:
            changed = False
            rest: List[Production] = []
            for p in worklist:
                if all(not s.is_nonterminal or s.name in productive for s in p.right):
                    if p.left.name not in productive:
                        productive.add(p.left.name)
                        changed = True
                else:
                    rest.append(p)
            worklist = rest
        unproductive = set(id(p) for p in worklist)
        if self.start_symbol.name not in productive:
            raise UserMistake("Grammar does not contain productive and reachable productions!")

        # 2) reachable (productive 프로덕션만 대상으로)
        kept = [p for p in self._productions.values() if id(p) not in unproductive]
        reachable: Set[str] = {self.start_symbol.name}
        frontier = [self.start_symbol.name]
        while frontier:
            current = frontier.pop()
            for p in kept:
                if p.left.name != current:
                    continue
                for s in p.right:
                    if s.is_nonterminal and s.name not in reachable:
                        reachable.add(s.name)
                        frontier.append(s.name)

        removed = [
            p for p in self._productions.values()
            if id(p) in unproductive or p.left.name not in reachable
        ]
        saved = self._save()
        try:
            for p in removed:
                self.remove_production(p)
        except InvariantViolation:
            self._restore(saved)
            raise
        return removed

    def _rule_key(self, p: Production):
        return (
            0 if p.left is self.start_symbol else 1,
            p.left.name,
            "".join(s.name for s in p.right),
        )

    def sort(self) -> None:
        """프로덕션(S' 우선, 좌변, 우변 순)과 심볼을 정렬하고 좌변별 순번을 매깁니다."""
        ordered = sorted(self._productions.values(), key=self._rule_key)
        self._productions = {p.name: p for p in ordered}
        self._nonterminals = {
            k: self._nonterminals[k]
            for k in sorted(self._nonterminals, key=lambda n: (n != START_NAME, n))
        }
        self._terminals = {k: self._terminals[k] for k in sorted(self._terminals)}
        counter = 0
        last_left = None
        for p in ordered:
            if p.left.name != last_left:
                counter = 0
            last_left = p.left.name
            p.number = counter
            counter += 1

    def reset_analysis(self) -> None:
        for s in self.all_symbols():
            s.reset_analysis()
        for p in self._productions.values():
            p.nullable = False

    # ----- 불변식 -----
    def validate(self) -> None:
        counts: Dict[int, int] = {}
        for name, p in self._productions.items():
            if name != p.name:
                raise InvariantViolation(f"production indexed as {name!r} is named {p.name!r}")
            if not p.right:
                raise InvariantViolation(f"production {p.name!r} has an empty right side")
            if p.left is not self.start_symbol and self._nonterminals.get(p.left.name) is not p.left:
                raise InvariantViolation(f"left side {p.left.name!r} is not a known nonterminal")
            if p.left is self.start_symbol and self._nonterminals.get(START_NAME) is not p.left:
                raise InvariantViolation("start symbol S' is referenced but not registered")
            for s in p.right:
                if s.is_epsilon:
                    if s is not self.epsilon or len(p.right) != 1:
                        raise InvariantViolation(f"misplaced epsilon in {p.name!r}")
                elif s.is_nonterminal:
                    if self._nonterminals.get(s.name) is not s:
                        raise InvariantViolation(f"nonterminal {s.name!r} of {p.name!r} is not registered")
                elif s.is_terminal:
                    if self._terminals.get(s.name) is not s:
                        raise InvariantViolation(f"terminal {s.name!r} of {p.name!r} is not registered")
                else:
                    raise InvariantViolation(f"unexpected {s.kind} symbol in {p.name!r}")
            for s in p.symbols():
                counts[id(s)] = counts.get(id(s), 0) + 1
        for s in [self.epsilon, *self._nonterminals.values(), *self._terminals.values()]:
            expected = counts.get(id(s), 0)
            if s.references != expected:
                raise InvariantViolation(
                    f"symbol {s.name!r} has {s.references} references, expected {expected}"
                )
            if s is not self.epsilon and expected == 0:
                raise InvariantViolation(f"orphaned symbol {s.name!r}")

    def __repr__(self) -> str:
        return (
            f"Grammar(nonterms={list(self._nonterminals)}, terms={list(self._terminals)}, "
            f"prods={len(self._productions)})"
        )
