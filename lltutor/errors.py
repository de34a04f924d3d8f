# lltutor/errors.py
"""튜터 엔진의 예외 계층.

- UserMistake       : 사용자의 실수(잘못된 그래프, 잘못된 클릭 순서 등). 복구 가능하며
                      UI는 학습 피드백으로 보여줍니다.
- InvariantViolation: 엔진 내부의 불변식 위반(버그). 현재 연산만 중단되고 이전 상태는
                      그대로 남습니다. UI는 '내부 오류'로 따로 취급합니다.
- GraphFormatError  : 사용자 그래프 데이터 자체가 깨진 경우(필드 누락, 없는 id 참조). 입력 오류로 취급합니다.

문법 텍스트 오류는 lepta와 마찬가지로 내장 `SyntaxError`를 사용합니다.
"""

from __future__ import annotations
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .analysis.equivalence import Discrepancy


class TutorError(Exception):
    """lltutor 예외의 공통 부모."""


class UserMistake(TutorError):
    """사용자 행동이 현재 단계에서 허용되지 않을 때 발생합니다.

    discrepancy가 있으면 첫 번째 문제 지점(노드/엣지/심볼)을 가리킵니다.
    """

    def __init__(self, message: str, discrepancy: Optional["Discrepancy"] = None):
        super().__init__(message)
        self.discrepancy = discrepancy


class InvariantViolation(TutorError):
    """내부 일관성이 깨졌을 때(버그) 발생합니다."""

    def __init__(self, message: str):
        super().__init__(f"internal error: {message}")


class GraphFormatError(TutorError, ValueError):
    """사용자가 넘긴 그래프 데이터(JSON/dict)의 모양이 잘못됐을 때 발생합니다."""
