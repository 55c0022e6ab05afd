"""Validate a JSON question file and create its questions for a course + source."""
import json
import argparse
import logging
from dataclasses import dataclass, field
from pathlib import Path

from db import QuizStore
from engine import SOURCES, VALID_WEIGHTS

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    valid: bool
    questions: list[dict] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    detected_theme: str | None = None


def _non_empty_str(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def validate_question(q, q_num: int) -> list[str]:
    """Errors for one question (1-based numbering in messages)."""
    if not isinstance(q, dict):
        return [f"Question {q_num}: must be an object."]
    errors = []
    if not _non_empty_str(q.get("text")):
        errors.append(f'Question {q_num}: "text" is missing or empty.')
    answers = q.get("answers")
    if not isinstance(answers, list):
        errors.append(f'Question {q_num}: "answers" must be an array.')
        return errors
    if len(answers) < 2:
        errors.append(f"Question {q_num}: needs at least 2 answers.")
        return errors
    has_correct = False
    for a_num, a in enumerate(answers, 1):
        a = a if isinstance(a, dict) else {}
        if not _non_empty_str(a.get("text")):
            errors.append(f'Question {q_num}, answer {a_num}: "text" is missing or empty.')
        if a.get("value") not in VALID_WEIGHTS:
            errors.append(f'Question {q_num}, answer {a_num}: "value" must be one of {", ".join(VALID_WEIGHTS)}.')
        if a.get("value") == "++":
            has_correct = True
    if not has_correct:
        errors.append(f"Question {q_num}: no answer marked as correct (++).")
    return errors


def validate_payload(data) -> ValidationResult:
    """
    Check a parsed payload: either a list of questions or {"questions": [...]}.
    A kahoot_info.theme, when present, is reported as the detected theme.
    Nothing is importable unless every question passes.
    """
    detected_theme = None
    if isinstance(data, dict):
        info = data.get("kahoot_info")
        if isinstance(info, dict) and _non_empty_str(info.get("theme")):
            detected_theme = info["theme"].strip()
    questions = data if isinstance(data, list) else (data.get("questions") if isinstance(data, dict) else None)

    if not isinstance(questions, list):
        return ValidationResult(False, errors=['File must contain a "questions" array or be an array of questions.'], detected_theme=detected_theme)
    if not questions:
        return ValidationResult(False, errors=["The questions array is empty."], detected_theme=detected_theme)

    errors = []
    for q_num, q in enumerate(questions, 1):
        errors.extend(validate_question(q, q_num))
    if errors:
        return ValidationResult(False, errors=errors, detected_theme=detected_theme)

    cleaned = []
    for q in questions:
        row = {
            "text": q["text"].strip(),
            "answers": [{"text": a["text"].strip(), "value": a["value"]} for a in q["answers"]],
        }
        if _non_empty_str(q.get("explanation")):
            row["explanation"] = q["explanation"].strip()
        if detected_theme:
            row["theme"] = detected_theme
        elif _non_empty_str(q.get("theme")):
            row["theme"] = q["theme"].strip()
        cleaned.append(row)
    return ValidationResult(True, questions=cleaned, detected_theme=detected_theme)


def validate_content(content: str) -> ValidationResult:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        return ValidationResult(False, errors=[f"Could not read JSON: {e}"])
    return validate_payload(data)


def run_import(path: Path, course_id: str, source: str, theme: str | None = None, dry_run: bool = False, store=None):
    if not path.exists():
        raise FileNotFoundError(f"JSON not found: {path}")
    result = validate_content(path.read_text(encoding="utf-8"))
    if not result.valid:
        for err in result.errors:
            logger.error(err)
        raise ValueError(f"{path} has {len(result.errors)} validation error(s)")
    theme = theme or result.detected_theme
    if dry_run:
        print(f"Dry run: would create {len(result.questions)} questions from {path}")
        if result.questions:
            print("Sample question:", result.questions[0])
        return 0, []
    if store is None:
        store = QuizStore.from_env()
    created, errors = store.create_questions(course_id, source, result.questions, theme=theme)
    print(f"Created {created} questions from {path}")
    for err in errors:
        print(f"  {err}")
    return created, errors


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    parser = argparse.ArgumentParser(description="Import a JSON question file into Supabase questions.")
    parser.add_argument("json_file", help="Path to .json (array of questions or {\"questions\": [...]})")
    parser.add_argument("--course", required=True, help="Course id the questions belong to")
    parser.add_argument("--source", required=True, choices=SOURCES, help="Question source")
    parser.add_argument("--theme", default=None, help="Theme tag (defaults to kahoot_info.theme when present)")
    parser.add_argument("--dry-run", action="store_true", help="Validate only, do not create")
    args = parser.parse_args()
    run_import(Path(args.json_file), args.course, args.source, theme=args.theme, dry_run=args.dry_run)
