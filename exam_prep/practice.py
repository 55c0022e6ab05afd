"""Glue between the store and the engine: build an exam, then grade and save it."""
import logging
from typing import Optional, Tuple, Union

from engine import EXAM_QUESTION_COUNT
from exam_prep.engine import ExamSession, select_questions
from exam_prep.models import History, ScoreResult, Source, StudyMode
from exam_prep.sampling import Shuffler

logger = logging.getLogger(__name__)


def start_exam(
    store,
    course_id: str,
    source: Union[Source, str],
    mode: Union[StudyMode, str] = StudyMode.ALL,
    theme: Optional[str] = None,
    user_id: Optional[str] = None,
    count: int = EXAM_QUESTION_COUNT,
    shuffler: Optional[Shuffler] = None,
) -> ExamSession:
    """
    Fetch the pool (and history when the mode needs it) and select an exam.
    Store failures propagate as StoreError; an empty session means no questions matched.
    """
    mode = StudyMode(mode)
    source = Source(source)
    pool = store.fetch_questions(course_id, source)

    history = History()
    if mode is StudyMode.UNSEEN:
        history = History(seen=frozenset(store.fetch_seen_question_ids(course_id, user_id)))
    elif mode is StudyMode.WRONG:
        history = History(wrong=frozenset(store.fetch_wrong_question_ids(course_id, user_id, source)))

    questions = select_questions(
        pool,
        count,
        mode,
        history=history,
        theme=theme,
        shuffler=shuffler,
    )
    return ExamSession(questions, source, course_id=course_id)


def finish_exam(store, session: ExamSession, user_id: Optional[str] = None) -> Tuple[ScoreResult, Optional[str]]:
    """
    Grade the session and, for a signed-in user, persist it.

    Returns:
        (score, exam_results id or None when nothing was saved)
    """
    result = session.score()
    if not user_id:
        return result, None
    result_id = store.persist_exam_result(
        user_id,
        session.course_id,
        session.source,
        result.grade,
        session.total_questions,
        result.correct_count,
        session.answer_rows(),
    )
    return result, result_id
