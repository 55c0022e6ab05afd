"""Pure exam constants: scoring weights, grade scale, sources. No UI."""
# Weighted scoring: ++ +1.0, + +0.33, - -0.33, -- -1.0, anything else 0
# Simple scoring (kahoots): correct / total * 20
import os


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


DEFAULT_EXAM_QUESTION_COUNT = 15
EXAM_QUESTION_COUNT = _env_int("EXAM_QUESTION_COUNT", DEFAULT_EXAM_QUESTION_COUNT)

GRADE_SCALE = 20
PASS_GRADE = 10

FULLY_CORRECT_POINTS = "1.0"
PARTIALLY_CORRECT_POINTS = "0.33"
PARTIALLY_INCORRECT_POINTS = "-0.33"
FULLY_INCORRECT_POINTS = "-1.0"

VALID_WEIGHTS = ("++", "+", "-", "--")
SOURCES = ("previous", "ai", "kahoots")
SIMPLE_SCORING_SOURCES = ("kahoots",)

UNANSWERED_TEXT = "(not answered)"
SCORE_EVOLUTION_LENGTH = 10
LEADERBOARD_LIMIT = 20
