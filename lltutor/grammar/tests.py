from __future__ import annotations
from pathlib import Path
from .loader import load_grammar
from ..tutor import Tutor
from ..analysis.equivalence import check_graph, graph_to_dict

EXPR = Path("tests/grammar_test/expr.g")

def _print_grammar(g) -> None:
    print(f"\n[Grammar]")
    print(f"Start: {g.user_start.name if g.user_start else '(none)'}")
    for p in g.productions:
        print(p.numbered_representation())
    print("\n[Terminals]")
    print(", ".join(t.name for t in g.terminals))
    print("\n[Nonterminals]")
    print(", ".join(n.name for n in g.nonterminals))

def _print_nullable_rounds(tutor):
    """nullable 고정점을 한 라운드씩 진행하며 출력합니다."""
    phase = tutor.start_nullability()
    print("\n[NULLABLE rounds]")
    while not phase.solver.fixpoint:
        r = phase.advance_round()
        print(f"  round {r.number}: +{r.symbols or '-'} fixpoint={r.fixpoint}")
    phase.advance_round()
    print("NULLABLE: " + (", ".join(phase.solver.nullable_symbols()) or "(none)"))

def _print_set_phase(phase, label):
    """그룹을 하나씩 클릭하는 대신 solve()로 풀고 그룹별 집합을 출력합니다."""
    order = phase.solve()
    print(f"\n[{label}] activated {len(order)} groups")
    for name, value in phase.sets().items():
        print(f"{name:>24} : {{{', '.join(sorted(value))}}}")
    res = phase.check()
    print(f"check: {res.message}")

def _print_graph_roundtrip(graph):
    """정답 그래프를 dict로 내보낸 뒤 자기 자신과 비교(항상 통과해야 함)"""
    res = check_graph(graph, graph_to_dict(graph))
    print(f"  {graph!r} self-check: {res.message}")

def main() -> None:
    try:
        g = load_grammar(str(EXPR))
        g.sort()
        _print_grammar(g)
        tutor = Tutor(g)
        _print_nullable_rounds(tutor)
        _print_graph_roundtrip(tutor.nullability.graph)
        first = tutor.start_first()
        _print_graph_roundtrip(first.graph)
        _print_set_phase(first, "FIRST")
        follow = tutor.start_follow()
        _print_graph_roundtrip(follow.graph)
        _print_set_phase(follow, "FOLLOW")
        tbl = tutor.lookahead_table()
        print("\n[TABLE]")
        print(tbl.pretty())
        print(f"\nLL(1): {tbl.is_ll1}")
        if not tbl.is_ll1:
            print(tbl.pretty_conflicts())
    except SyntaxError as e:
        # 친절한 메시지만 출력(Traceback 숨김)
        print(str(e))


if __name__ == "__main__":
    main()
