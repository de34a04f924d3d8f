"""lltutor – LL(1) 룩어헤드 테이블 튜터 엔진"""

from .errors import GraphFormatError, InvariantViolation, TutorError, UserMistake
from .grammar.loader import load_grammar, parse_grammar_text
from .grammar.model import Grammar
from .tutor import NullabilityPhase, SetPhase, Tutor

__all__ = [
    "Grammar", "Tutor", "NullabilityPhase", "SetPhase",
    "load_grammar", "parse_grammar_text",
    "TutorError", "UserMistake", "InvariantViolation", "GraphFormatError",
]
