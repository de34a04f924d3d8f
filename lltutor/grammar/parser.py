"""프로덕션 텍스트 파서 (MVP)
- 한 줄에 프로덕션 하나: `A -> α`
- 좌변: 대문자 한 글자(비단말)
- 우변: 공백이 아닌 문자 하나가 심볼 하나
    * 대문자 → 비단말, 그 외 허용 문자 → 단말
    * 비어 있거나 `ε` 하나뿐이면 ε-프로덕션
- 문법 파일에서는 추가로
    * 빈 줄 / `//` 주석 줄 무시
    * `%start X` 지시어로 시작 비단말 지정
"""

from __future__ import annotations
import regex as re
from dataclasses import dataclass, field
from typing import List, Optional

from .symbols import EPSILON_NAME

# 원래 튜터가 허용하던 인쇄 가능 ASCII 문자 집합
ALLOWED_SYMBOLS = (
    "!\"#%&'()*+,-./0123456789:;<=>?@ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "[\\]^_`abcdefghijklmnopqrstuvwxyz{}~"
)

_ARROW_RE     = re.compile(r"->")
_SYMBOL_RE    = re.compile(r"\S")
_NONTERM_RE   = re.compile(r"[A-Z]")
_START_DIR_RE = re.compile(r"^[ \t\f]*%start\b[ \t\f]*(?P<name>\S*)[ \t\f]*$")
_COMMENT_RE   = re.compile(r"^[ \t\f]*//")


@dataclass
class ProductionText:
    """
    파싱된 프로덕션 1개(이름 기반).
    - left : 좌변 비단말 이름
    - right: 우변 심볼 이름 리스트 (ε-프로덕션은 빈 리스트)
    - line : 원문 줄 번호(오류 메시지용)
    """
    left: str
    right: List[str]
    line: int = 1


@dataclass
class GrammarSource:
    productions: List[ProductionText] = field(default_factory=list)
    start: Optional[str] = None
    start_line: int = 0


def is_nonterminal_name(name: str) -> bool:
    return _NONTERM_RE.fullmatch(name) is not None


# ---------- error handling utils ----------
def _caret_at(text: str, col: int) -> str:
    """줄 원문과 col(1-based) 위치의 캐럿"""
    caret = " " * (col - 1) + "^"
    return f"{text}\n{caret}"


def parse_production(text: str, line: int = 1) -> ProductionText:
    """
    `A -> α` 형태의 한 줄을 파싱합니다. 잘못되면 캐럿이 달린 SyntaxError.
    """
    if not text.strip():
        raise SyntaxError(f"Please enter a production! (line {line})")
    m = _ARROW_RE.search(text)
    if m is None:
        raise SyntaxError(
            f"Please enter a production of form A->... at {line}:1\n"
            + _caret_at(text, len(text.rstrip()) + 1)
        )

    left = text[:m.start()].strip()
    if len(left) != 1:
        raise SyntaxError(
            f"The left side of the production must be a single nonterminal! at {line}:1\n"
            + _caret_at(text, 1)
        )
    if not is_nonterminal_name(left):
        col = text.index(left) + 1
        raise SyntaxError(
            f"The left side of the production must be a nonterminal! at {line}:{col}\n"
            + _caret_at(text, col)
        )

    right_src = text[m.end():]
    if right_src.strip() == EPSILON_NAME:
        return ProductionText(left=left, right=[], line=line)

    right: List[str] = []
    base = m.end()
    for sm in _SYMBOL_RE.finditer(right_src):
        ch = sm.group(0)
        if ch not in ALLOWED_SYMBOLS:
            col = base + sm.start() + 1
            raise SyntaxError(
                "The right side of the production must only contain allowed symbols!"
                f' ("{ch}" is not allowed) at {line}:{col}\n' + _caret_at(text, col)
            )
        right.append(ch)
    return ProductionText(left=left, right=right, line=line)


def _parse_start_directive(text: str, line: int) -> str:
    m = _START_DIR_RE.match(text)
    if m is None or not m.group("name"):
        raise SyntaxError(
            f"Expected '%start X' at {line}:1\n" + _caret_at(text, len(text.rstrip()) + 1)
        )
    name = m.group("name")
    if not is_nonterminal_name(name):
        col = text.index(name) + 1
        raise SyntaxError(
            f"The start symbol must be a nonterminal! at {line}:{col}\n" + _caret_at(text, col)
        )
    return name


def parse_grammar_source(src: str) -> GrammarSource:
    """
    문법 파일 원문 → GrammarSource.
    개행은 loader에서 '\\n'으로 정규화되어 있다고 가정합니다.
    """
    out = GrammarSource()
    for lineno, raw in enumerate(src.split("\n"), start=1):
        if not raw.strip() or _COMMENT_RE.match(raw):
            continue
        if raw.lstrip().startswith("%start"):
            if out.start is not None:
                raise SyntaxError(
                    f"Duplicate %start directive at {lineno}:1 (first at line {out.start_line})\n"
                    + _caret_at(raw, 1)
                )
            out.start = _parse_start_directive(raw, lineno)
            out.start_line = lineno
            continue
        out.productions.append(parse_production(raw, lineno))
    if not out.productions:
        raise SyntaxError("Grammar contains no productions")
    return out
