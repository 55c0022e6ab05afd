"""Admin question-file validation and import."""
import json
from unittest.mock import MagicMock

import pytest

from importer import run_import, validate_content, validate_payload

GOOD = {"text": "2 + 2?", "answers": [{"text": "4", "value": "++"}, {"text": "5", "value": "--"}]}


def test_accepts_array_and_questions_object():
    assert validate_payload([GOOD]).valid
    result = validate_payload({"questions": [GOOD, GOOD]})
    assert result.valid
    assert len(result.questions) == 2


def test_detects_kahoot_theme_and_applies_it():
    result = validate_payload({"kahoot_info": {"theme": "Cardiology"}, "questions": [GOOD]})
    assert result.valid
    assert result.detected_theme == "Cardiology"
    assert result.questions[0]["theme"] == "Cardiology"


def test_rejects_non_question_payloads():
    assert validate_payload({"foo": 1}).errors == ['File must contain a "questions" array or be an array of questions.']
    assert validate_payload([]).errors == ["The questions array is empty."]


def test_collects_every_error_with_numbering():
    bad = [
        GOOD,
        {"text": "", "answers": [{"text": "a", "value": "++"}]},
        {"text": "No correct", "answers": [{"text": "a", "value": "+"}, {"text": "", "value": "x"}]},
    ]
    result = validate_payload(bad)
    assert not result.valid
    assert result.questions == []
    assert result.errors == [
        'Question 2: "text" is missing or empty.',
        "Question 2: needs at least 2 answers.",
        'Question 3, answer 2: "text" is missing or empty.',
        'Question 3, answer 2: "value" must be one of ++, +, -, --.',
        "Question 3: no answer marked as correct (++).",
    ]


def test_answers_must_be_a_list():
    result = validate_payload([{"text": "Q", "answers": "nope"}])
    assert result.errors == ['Question 1: "answers" must be an array.']


def test_invalid_json_is_reported():
    result = validate_content("{not json")
    assert not result.valid
    assert result.errors[0].startswith("Could not read JSON")


def test_run_import_creates_questions_with_theme(tmp_path):
    path = tmp_path / "kahoot.json"
    path.write_text(json.dumps({"kahoot_info": {"theme": "Renal"}, "questions": [GOOD]}), encoding="utf-8")
    store = MagicMock()
    store.create_questions.return_value = (1, [])
    assert run_import(path, "c1", "kahoots", store=store) == (1, [])
    args, kwargs = store.create_questions.call_args
    assert args[:2] == ("c1", "kahoots")
    assert kwargs["theme"] == "Renal"


def test_run_import_refuses_invalid_file(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("[]", encoding="utf-8")
    store = MagicMock()
    with pytest.raises(ValueError):
        run_import(path, "c1", "ai", store=store)
    store.create_questions.assert_not_called()


def test_run_import_dry_run_does_not_touch_store(tmp_path):
    path = tmp_path / "ok.json"
    path.write_text(json.dumps([GOOD]), encoding="utf-8")
    store = MagicMock()
    run_import(path, "c1", "previous", dry_run=True, store=store)
    store.create_questions.assert_not_called()
