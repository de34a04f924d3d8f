# lltutor/lltc.py
"""lltc – lltutor CLI

사용 예)
    $ python -m lltutor.lltc check tests/grammar_test/expr.g -D
    $ python -m lltutor.lltc table tests/grammar_test/expr.g --strict
    $ python -m lltutor.lltc graph tests/grammar_test/expr.g --phase follow -o tests/tmp/follow.json
    $ python -m lltutor.lltc verify tests/grammar_test/expr.g tests/tmp/follow.json --phase follow

기능
----
- check : 문법을 읽어 파이프라인(nullable→First→Follow→테이블)을 자동으로 풀고 요약 출력
- table : 룩어헤드 테이블을 텍스트(또는 --json) 로 출력
- graph : 단계별 정답 그래프를 JSON으로 내보냄
- verify: 사용자가 만든 JSON 그래프를 정답 그래프와 비교

종료 코드: 0 성공, 1 사용자 실수(그래프 불일치, --strict에서 LL(1) 아님), 2 문법/입출력/그래프 형식 오류, 3 내부 오류.
디버그 모드(-D/--debug)를 켜면 nullable/First/Follow 요약을 stderr로 출력합니다.
"""

from __future__ import annotations
import argparse
import json
import pathlib
import sys
from typing import Optional

from .errors import GraphFormatError, InvariantViolation, UserMistake

EXIT_OK = 0
EXIT_MISTAKE = 1
EXIT_INPUT = 2
EXIT_INTERNAL = 3

PHASES = ("empty", "first", "follow")

# ------------------------------
# 헬퍼
# ------------------------------

def _eprint(*args, **kw) -> None:
    print(*args, file=sys.stderr, **kw)


def _fmt_set(items) -> str:
    return "{" + ", ".join(sorted(items)) + "}"

# ------------------------------
# 파이프라인 로딩
# ------------------------------

def _load_tutor(grammar_path: str, debug: bool, reduce: bool = False):
    """
    .g 파일을 읽어 Grammar → (reduce) → sort → Tutor 까지 만든다.
    """
    from .grammar.loader import load_grammar
    from .tutor import Tutor

    g = load_grammar(grammar_path)
    if debug: _eprint("[DEBUG] Grammar ready | terms=%d nonterms=%d rules=%d" %
                      (len(g.terminals), len(g.nonterminals), len(g.productions)))

    if reduce:
        removed = g.reduce()
        if debug: _eprint("[DEBUG] Grammar reduced | removed=%d" % len(removed))
        for p in removed:
            if debug: _eprint("  - " + p.representation)

    g.sort()
    return Tutor(g)


def _solve(tutor, debug: bool):
    tbl = tutor.solve_all()
    if debug: _eprint("[DEBUG] Phases solved | nullable rounds=%d conflicts=%d" %
                      (tutor.nullability.solver.rounds, len(tbl.conflicts())))
    return tbl

# ------------------------------
# 디버그 출력 헬퍼
# ------------------------------

def _print_grammar(g) -> None:
    _eprint("\n[Grammar]")
    for p in g.productions:
        _eprint("  " + p.numbered_representation())
    _eprint("Terminals:")
    _eprint("  " + ", ".join(t.name for t in g.terminals))
    _eprint("Nonterminals:")
    _eprint("  " + ", ".join(n.name for n in g.nonterminals))


def _print_sets(g) -> None:
    _eprint("\n[NULLABLE]")
    names = [n.name for n in g.nonterminals if n.nullable]
    _eprint("  " + (", ".join(names) if names else "(none)"))
    _eprint("\n[FIRST(nonterminals)]")
    for n in g.nonterminals:
        _eprint(f"{n.name:>10} : {_fmt_set(n.first)}")
    _eprint("\n[FOLLOW(nonterminals)]")
    for n in g.nonterminals:
        _eprint(f"{n.name:>10} : {_fmt_set(n.follow)}")

# ------------------------------
# 공통 오류 처리
# ------------------------------

def _guarded(fn):
    def run(args) -> int:
        try:
            return fn(args)
        except SyntaxError as e:
            _eprint("[SYNTAX ERROR]")
            _eprint(str(e))
            return EXIT_INPUT
        except (OSError, json.JSONDecodeError) as e:
            _eprint("[ERROR]", type(e).__name__, str(e))
            return EXIT_INPUT
        except GraphFormatError as e:
            _eprint("[GRAPH ERROR]", str(e))
            return EXIT_INPUT
        except InvariantViolation as e:
            _eprint("[INTERNAL ERROR]", str(e))
            return EXIT_INTERNAL
        except UserMistake as e:
            print(f"[MISTAKE] {e}")
            return EXIT_MISTAKE
    return run

# ------------------------------
# 커맨드 구현
# ------------------------------

@_guarded
def cmd_check(args) -> int:
    tutor = _load_tutor(args.file, debug=args.debug, reduce=args.reduce)
    tbl = _solve(tutor, args.debug)
    g = tutor.grammar

    if args.debug:
        _print_grammar(g)
        _print_sets(g)
        if not tbl.is_ll1:
            _eprint("\n[Conflicts Detail]")
            _eprint(tbl.pretty_conflicts())

    print(f"[CHECK OK] nonterms={len(g.nonterminals)} terms={len(g.terminals)} "
          f"prods={len(g.productions)} conflicts={len(tbl.conflicts())}")
    if args.strict and not tbl.is_ll1:
        print("[MISTAKE] Grammar is not LL(1)")
        return EXIT_MISTAKE
    return EXIT_OK


@_guarded
def cmd_table(args) -> int:
    tutor = _load_tutor(args.file, debug=args.debug, reduce=args.reduce)
    tbl = _solve(tutor, args.debug)

    if args.json:
        print(json.dumps(tbl.as_names(), ensure_ascii=False, indent=2))
    else:
        print("[TABLE]")
        print(tbl.pretty())
        if not tbl.is_ll1:
            _eprint("[WARN] Grammar is not LL(1):")
            _eprint(tbl.pretty_conflicts())
    if args.strict and not tbl.is_ll1:
        return EXIT_MISTAKE
    return EXIT_OK


@_guarded
def cmd_graph(args) -> int:
    from .analysis.equivalence import graph_to_dict

    tutor = _load_tutor(args.file, debug=args.debug, reduce=args.reduce)
    graph = tutor.phase_graph(args.phase)
    if args.debug: _eprint(f"[DEBUG] {graph!r}")
    text = json.dumps(graph_to_dict(graph), ensure_ascii=False, indent=2)

    if args.output:
        out_path = pathlib.Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text + "\n", encoding="utf-8")
        print(f"[GRAPH] phase={args.phase} -> {out_path}")
    else:
        print(text)
    return EXIT_OK


@_guarded
def cmd_verify(args) -> int:
    from .analysis.equivalence import check_graph

    tutor = _load_tutor(args.file, debug=args.debug, reduce=args.reduce)
    canonical = tutor.phase_graph(args.phase)
    user = json.loads(pathlib.Path(args.user_graph).read_text(encoding="utf-8"))

    res = check_graph(canonical, user)
    if args.debug: _eprint(f"[DEBUG] canonical {canonical!r} | user nodes={len(user.get('nodes', []))} edges={len(user.get('edges', []))}")
    if res.ok:
        print(f"[CHECK OK] phase={args.phase} {res.message}")
        return EXIT_OK
    print(f"[MISTAKE] {res.message}")
    return EXIT_MISTAKE

# ------------------------------
# 엔트리포인트
# ------------------------------

def _common(p: argparse.ArgumentParser) -> None:
    p.add_argument("file", help=".g 문법 파일")
    p.add_argument("--reduce", action="store_true", help="비생산적/도달 불가 프로덕션을 먼저 제거")
    p.add_argument("-D", "--debug", action="store_true", help="디버그 정보를 상세 출력")


def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="lltc", description="LL(1) lookahead tutor CLI")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_check = sub.add_parser("check", help="문법을 자동으로 풀어 nullable/First/Follow와 충돌 수를 확인합니다")
    _common(p_check)
    p_check.add_argument("--strict", action="store_true", help="LL(1)이 아니면 종료 코드 1")
    p_check.set_defaults(func=cmd_check)

    p_table = sub.add_parser("table", help="룩어헤드 테이블을 출력합니다")
    _common(p_table)
    p_table.add_argument("--json", action="store_true", help="JSON으로 출력")
    p_table.add_argument("--strict", action="store_true", help="LL(1)이 아니면 종료 코드 1")
    p_table.set_defaults(func=cmd_table)

    p_graph = sub.add_parser("graph", help="단계별 정답 그래프를 JSON으로 내보냅니다")
    _common(p_graph)
    p_graph.add_argument("--phase", choices=PHASES, required=True, help="그래프 단계")
    p_graph.add_argument("-o", "--output", help="출력 파일 경로(미지정시 stdout)")
    p_graph.set_defaults(func=cmd_graph)

    p_verify = sub.add_parser("verify", help="사용자 JSON 그래프를 정답 그래프와 비교합니다")
    _common(p_verify)
    p_verify.add_argument("user_graph", help="사용자 그래프 JSON 파일")
    p_verify.add_argument("--phase", choices=PHASES, required=True, help="그래프 단계")
    p_verify.set_defaults(func=cmd_verify)

    args = ap.parse_args(argv)
    return int(args.func(args))

if __name__ == "__main__":
    sys.exit(main())
