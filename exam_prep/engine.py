"""
Exam engine: policy-driven question selection, weighted scoring and session bookkeeping.
Selection prefers unseen or previously-wrong questions and falls back to random fill.
"""
import logging
from dataclasses import replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Tuple, Union

from engine import GRADE_SCALE, PASS_GRADE, UNANSWERED_TEXT
from exam_prep.models import (
    Answer,
    AnswerWeight,
    History,
    Question,
    QuestionId,
    ScoreResult,
    ScoringVariant,
    Source,
    StudyMode,
    variant_for_source,
)
from exam_prep.sampling import Shuffler, make_shuffler, take_shuffled

logger = logging.getLogger(__name__)

ONE_DECIMAL = Decimal("0.1")


def _dedupe(pool: Iterable[Question]) -> List[Question]:
    seen_ids = set()
    unique = []
    for q in pool:
        if q.id in seen_ids:
            continue
        seen_ids.add(q.id)
        unique.append(q)
    return unique


def _partition(pool: List[Question], mode: StudyMode, history: History) -> Tuple[List[Question], List[Question]]:
    """Split into (priority, fallback) for the given study mode."""
    if mode is StudyMode.UNSEEN:
        priority = [q for q in pool if q.id not in history.seen]
        fallback = [q for q in pool if q.id in history.seen]
    elif mode is StudyMode.WRONG:
        priority = [q for q in pool if q.id in history.wrong]
        fallback = [q for q in pool if q.id not in history.wrong]
    else:
        priority, fallback = list(pool), []
    return priority, fallback


def select_questions(
    pool: Iterable[Question],
    count: int,
    mode: Union[StudyMode, str] = StudyMode.ALL,
    history: Optional[History] = None,
    theme: Optional[str] = None,
    shuffler: Optional[Shuffler] = None,
) -> List[Question]:
    """
    Pick up to `count` questions from the pool for one exam.

    Args:
        pool: Every question of a course+source (already fetched)
        count: Requested exam length; <= 0 yields []
        mode: all / theme (pure random), unseen or wrong (priority + random fill)
        history: Seen and wrong question ids; ignored for all / theme
        theme: Optional exact, case-sensitive theme pre-filter for any mode
        shuffler: Shuffle strategy (defaults to Fisher-Yates over `random`)

    Returns:
        min(count, available) questions, priority items first, each with its
        answers reordered. The pool itself is not modified.
    """
    mode = StudyMode(mode)
    history = history or History()
    shuffler = shuffler or make_shuffler()

    if count <= 0:
        return []

    candidates = _dedupe(pool)
    if theme is not None:
        candidates = [q for q in candidates if q.theme == theme]
    elif mode is StudyMode.THEME:
        logger.warning("Theme mode requested without a theme; selecting from the whole pool")
    if not candidates:
        logger.info("No questions available (mode=%s, theme=%r)", mode.value, theme)
        return []

    priority, fallback = _partition(candidates, mode, history)
    selected = take_shuffled(priority, count, shuffler)
    if len(selected) < count and fallback:
        selected += take_shuffled(fallback, count - len(selected), shuffler)

    logger.info(
        "Selected %d/%d questions (mode=%s, priority=%d, fallback=%d)",
        len(selected), count, mode.value, len(priority), len(fallback),
    )
    return [replace(q, answers=tuple(shuffler(q.answers))) for q in selected]


def _round_grade(value: Decimal) -> float:
    return float(value.quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP))


def compute_score(
    answers: Iterable[Tuple[Question, Optional[Answer]]],
    total_questions: int,
    variant: Union[ScoringVariant, str] = ScoringVariant.WEIGHTED,
) -> ScoreResult:
    """
    Grade an exam on the 0-20 scale.

    Weighted: ++ +1, + +0.33, - -0.33, -- -1, other 0; floor at 0.
    Simple: correct / total * 20.
    Rounding is half-up to one decimal, after scaling. total_questions is
    the denominator even when some questions were left unanswered.
    """
    variant = ScoringVariant(variant)
    if total_questions < 0:
        raise ValueError(f"total_questions must be >= 0, got {total_questions}")

    points = Decimal("0")
    correct_count = 0
    for _question, answer in answers:
        weight = AnswerWeight.parse(answer.weight) if answer is not None else AnswerWeight.UNKNOWN
        points += weight.points
        if weight.is_correct:
            correct_count += 1

    if total_questions == 0:
        return ScoreResult(grade=0.0, correct_count=correct_count)

    if variant is ScoringVariant.SIMPLE:
        raw = Decimal(correct_count) / Decimal(total_questions) * GRADE_SCALE
    else:
        raw = points / Decimal(total_questions) * GRADE_SCALE
    return ScoreResult(grade=max(0.0, _round_grade(raw)), correct_count=correct_count)


def is_passing(grade: float) -> bool:
    return grade >= PASS_GRADE


class ExamSession:
    """Caller-owned exam in progress: selected questions plus the chosen answers."""

    def __init__(self, questions: List[Question], source: Union[Source, str], course_id: Optional[str] = None):
        self.questions = list(questions)
        self.source = Source(source)
        self.course_id = course_id
        self.answers: Dict[QuestionId, Answer] = {}
        self._by_id = {q.id: q for q in self.questions}

    @property
    def variant(self) -> ScoringVariant:
        return variant_for_source(self.source)

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def answered_count(self) -> int:
        return len(self.answers)

    def is_complete(self) -> bool:
        return self.answered_count == self.total_questions

    def answer(self, question_id: QuestionId, answer: Answer) -> None:
        """Record (or replace) the answer for a question in this exam."""
        if question_id not in self._by_id:
            raise KeyError(f"Question {question_id} is not part of this exam")
        self.answers[question_id] = answer

    def answer_for(self, question_id: QuestionId) -> Optional[Answer]:
        return self.answers.get(question_id)

    def score(self) -> ScoreResult:
        pairs = [(self._by_id[qid], a) for qid, a in self.answers.items()]
        return compute_score(pairs, self.total_questions, self.variant)

    def all_correct(self) -> bool:
        """Every question answered and every answer ++."""
        return (
            self.total_questions > 0
            and self.is_complete()
            and all(a.weight is AnswerWeight.FULLY_CORRECT for a in self.answers.values())
        )

    def answer_rows(self) -> List[Tuple[QuestionId, Answer]]:
        """
        One (question id, answer) per question in exam order, for persistence.
        Unanswered questions are stored as -- so they show up as wrong later.
        """
        placeholder = Answer(text=UNANSWERED_TEXT, weight=AnswerWeight.FULLY_INCORRECT)
        return [(q.id, self.answers.get(q.id, placeholder)) for q in self.questions]
