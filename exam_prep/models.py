"""
Domain types for exam practice: answers, questions, history and results.
Rows coming back from Supabase are plain dicts; convert them here.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

from engine import (
    FULLY_CORRECT_POINTS,
    PARTIALLY_CORRECT_POINTS,
    PARTIALLY_INCORRECT_POINTS,
    FULLY_INCORRECT_POINTS,
    SIMPLE_SCORING_SOURCES,
)

logger = logging.getLogger(__name__)

QuestionId = Union[str, int]


class AnswerWeight(Enum):
    """Ordered answer weights. UNKNOWN covers anything outside ++ + - --."""

    FULLY_CORRECT = "++"
    PARTIALLY_CORRECT = "+"
    PARTIALLY_INCORRECT = "-"
    FULLY_INCORRECT = "--"
    UNKNOWN = "?"

    @classmethod
    def parse(cls, value) -> "AnswerWeight":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for weight in cls:
                if weight is not cls.UNKNOWN and weight.value == value.strip():
                    return weight
        return cls.UNKNOWN

    @property
    def points(self) -> Decimal:
        return _WEIGHT_POINTS[self]

    @property
    def is_correct(self) -> bool:
        return self is AnswerWeight.FULLY_CORRECT


_WEIGHT_POINTS = {
    AnswerWeight.FULLY_CORRECT: Decimal(FULLY_CORRECT_POINTS),
    AnswerWeight.PARTIALLY_CORRECT: Decimal(PARTIALLY_CORRECT_POINTS),
    AnswerWeight.PARTIALLY_INCORRECT: Decimal(PARTIALLY_INCORRECT_POINTS),
    AnswerWeight.FULLY_INCORRECT: Decimal(FULLY_INCORRECT_POINTS),
    AnswerWeight.UNKNOWN: Decimal("0"),
}


class Source(Enum):
    PREVIOUS = "previous"
    AI = "ai"
    KAHOOTS = "kahoots"


class StudyMode(Enum):
    ALL = "all"
    UNSEEN = "unseen"
    WRONG = "wrong"
    THEME = "theme"


class ScoringVariant(Enum):
    WEIGHTED = "weighted"
    SIMPLE = "simple"


def variant_for_source(source: Union[Source, str]) -> ScoringVariant:
    """Kahoots use simple scoring; previous exams and AI questions are weighted."""
    value = source.value if isinstance(source, Source) else str(source)
    if value in SIMPLE_SCORING_SOURCES:
        return ScoringVariant.SIMPLE
    return ScoringVariant.WEIGHTED


@dataclass(frozen=True)
class Answer:
    text: str
    weight: AnswerWeight = AnswerWeight.UNKNOWN

    @classmethod
    def from_row(cls, row: Dict) -> "Answer":
        row = row if isinstance(row, dict) else {}
        raw = row.get("value")
        weight = AnswerWeight.parse(raw)
        if weight is AnswerWeight.UNKNOWN:
            logger.warning("Unknown answer weight %r, scoring as zero", raw)
        return cls(text=str(row.get("text") or ""), weight=weight)

    def to_row(self) -> Dict:
        return {"text": self.text, "value": self.weight.value}


@dataclass(frozen=True)
class Question:
    """Multiple-choice question. Answers are kept as a tuple; reorder with dataclasses.replace."""

    id: QuestionId
    text: str
    answers: Tuple[Answer, ...]
    source: Optional[Source] = None
    course: Optional[str] = None
    theme: Optional[str] = None
    explanation: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict) -> "Question":
        source = row.get("source")
        try:
            source = Source(source) if source else None
        except ValueError:
            logger.warning("Question %s has unknown source %r", row.get("id"), source)
            source = None
        return cls(
            id=str(row["id"]),
            text=row.get("text") or "",
            answers=tuple(Answer.from_row(a) for a in (row.get("answers") or [])),
            source=source,
            course=row.get("course_id") or row.get("course"),
            theme=row.get("theme") or None,
            explanation=row.get("explanation") or None,
        )

    def correct_answers(self) -> List[Answer]:
        return [a for a in self.answers if a.weight.is_correct]


@dataclass(frozen=True)
class History:
    """Question ids the user has been shown (seen) and answered with -- (wrong)."""

    seen: FrozenSet[QuestionId] = frozenset()
    wrong: FrozenSet[QuestionId] = frozenset()


@dataclass(frozen=True)
class ScoreResult:
    grade: float
    correct_count: int


@dataclass(frozen=True)
class Course:
    id: str
    title: str
    description: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict) -> "Course":
        return cls(id=row["id"], title=row.get("title") or "", description=row.get("description"))


@dataclass
class ExamResult:
    """Summary row of a finished exam as stored in exam_results."""

    id: str
    user_id: str
    course_id: str
    source: str
    score: float
    total_questions: int
    correct_answers: int
    created_at: Optional[str] = None
    user_name: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict) -> "ExamResult":
        profile = row.get("profiles") or {}
        return cls(
            id=row["id"],
            user_id=row.get("user_id") or "",
            course_id=row.get("course_id") or "",
            source=row.get("source") or "",
            score=float(row.get("score") or 0),
            total_questions=int(row.get("total_questions") or 0),
            correct_answers=int(row.get("correct_answers") or 0),
            created_at=row.get("created_at"),
            user_name=profile.get("name") if isinstance(profile, dict) else None,
        )
