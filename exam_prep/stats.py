"""
Performance analytics over stored exam results.
Results are expected newest-first, the order the store returns them in.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List

from engine import LEADERBOARD_LIMIT, SCORE_EVOLUTION_LENGTH
from exam_prep.engine import is_passing
from exam_prep.models import ExamResult


def _half_up(value: float, places: str = "0.1") -> float:
    return float(Decimal(str(value)).quantize(Decimal(places), rounding=ROUND_HALF_UP))


@dataclass
class UserStats:
    total_exams: int = 0
    passed_exams: int = 0
    failed_exams: int = 0
    average_score: float = 0.0
    total_questions_answered: int = 0
    total_correct_answers: int = 0
    unique_questions_seen: int = 0
    total_questions_in_pool: int = 0
    pass_rate: int = 0
    score_evolution: List[Dict] = field(default_factory=list)


@dataclass
class LeaderboardEntry:
    user_id: str
    user_name: str
    average_score: float
    total_exams: int
    pass_rate: int


def compute_user_stats(results: List[ExamResult], unique_seen: int = 0, pool_size: int = 0) -> UserStats:
    """
    Summarise a user's exams.

    Args:
        results: ExamResult list, newest first
        unique_seen: Distinct questions the user has been shown
        pool_size: Questions available for the course+source

    Returns:
        UserStats with pass/fail split, averages and the score evolution
        (last 10 exams, oldest to newest)
    """
    if not results:
        return UserStats(unique_questions_seen=unique_seen, total_questions_in_pool=pool_size)

    total = len(results)
    passed = sum(1 for r in results if is_passing(r.score))
    evolution = [
        {"date": r.created_at, "score": r.score, "source": r.source}
        for r in reversed(results[:SCORE_EVOLUTION_LENGTH])
    ]
    return UserStats(
        total_exams=total,
        passed_exams=passed,
        failed_exams=total - passed,
        average_score=_half_up(sum(r.score for r in results) / total),
        total_questions_answered=sum(r.total_questions for r in results),
        total_correct_answers=sum(r.correct_answers for r in results),
        unique_questions_seen=unique_seen,
        total_questions_in_pool=pool_size,
        pass_rate=int(_half_up(passed / total * 100, "1")),
        score_evolution=evolution,
    )


def build_leaderboard(results: List[ExamResult], limit: int = LEADERBOARD_LIMIT) -> List[LeaderboardEntry]:
    """Rank users by average score, then by number of exams taken."""
    by_user: Dict[str, List[ExamResult]] = defaultdict(list)
    for r in results:
        by_user[r.user_id].append(r)

    board = []
    for user_id, user_results in by_user.items():
        total = len(user_results)
        passed = sum(1 for r in user_results if is_passing(r.score))
        name = next((r.user_name for r in user_results if r.user_name), None) or "Anonymous"
        board.append(
            LeaderboardEntry(
                user_id=user_id,
                user_name=name,
                average_score=_half_up(sum(r.score for r in user_results) / total),
                total_exams=total,
                pass_rate=int(_half_up(passed / total * 100, "1")),
            )
        )

    board.sort(key=lambda e: (-e.average_score, -e.total_exams))
    return board[:limit]
