"""QuizStore against an in-memory Supabase stand-in."""
from types import SimpleNamespace

import pytest

import db
from conftest import FakeClient
from db import QuizStore, StoreError
from exam_prep.models import Answer, AnswerWeight, Source


def _question_row(i, course="c1", source="previous", theme=None, answers=None):
    return {
        "id": f"q{i}",
        "course_id": course,
        "source": source,
        "theme": theme,
        "text": f"Question {i}",
        "answers": answers or [{"text": "yes", "value": "++"}, {"text": "no", "value": "--"}],
        "created_at": f"2026-01-{i + 1:02d}",
    }


@pytest.fixture
def client():
    return FakeClient(
        {
            "courses": [{"id": "c2", "title": "Surgery"}, {"id": "c1", "title": "Anatomy"}],
            "questions": [
                _question_row(0, theme="bones"),
                _question_row(1, theme="muscles"),
                _question_row(2, theme="bones"),
                _question_row(3, source="kahoots", theme="nerves"),
                _question_row(4, course="c2"),
            ],
            "exam_results": [
                {"id": "r1", "user_id": "u1", "course_id": "c1", "source": "previous", "score": 12.0,
                 "total_questions": 2, "correct_answers": 1, "created_at": "2026-02-01"},
                {"id": "r2", "user_id": "u1", "course_id": "c1", "source": "kahoots", "score": 20.0,
                 "total_questions": 1, "correct_answers": 1, "created_at": "2026-02-02"},
                {"id": "r3", "user_id": "u2", "course_id": "c1", "source": "previous", "score": 4.0,
                 "total_questions": 1, "correct_answers": 0, "created_at": "2026-02-03"},
            ],
            "exam_answers": [
                {"exam_result_id": "r1", "question_id": "q0", "answer_value": "++"},
                {"exam_result_id": "r1", "question_id": "q1", "answer_value": "--"},
                {"exam_result_id": "r2", "question_id": "q3", "answer_value": "--"},
                {"exam_result_id": "r3", "question_id": "q2", "answer_value": "--"},
            ],
            "profiles": [{"id": "u1", "name": "Rita", "role": "admin"}],
        }
    )


@pytest.fixture
def store(client):
    return QuizStore(client)


def test_env_client_requires_credentials(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_KEY", raising=False)
    with pytest.raises(ValueError):
        QuizStore.from_env()


def test_fetch_courses_sorted_by_title(store):
    assert [c.title for c in store.fetch_courses()] == ["Anatomy", "Surgery"]


def test_fetch_questions_by_course_and_source(store):
    questions = store.fetch_questions("c1", Source.PREVIOUS)
    assert [q.id for q in questions] == ["q0", "q1", "q2"]
    assert questions[0].answers[0] == Answer("yes", AnswerWeight.FULLY_CORRECT)
    assert len(store.fetch_questions("c1")) == 4


def test_fetch_questions_pages_through_results(monkeypatch, client, store):
    monkeypatch.setattr(db, "PAGE_SIZE", 2)
    assert len(store.fetch_questions("c1")) == 4
    assert client.calls.count(("questions", "select")) == 3


def test_unknown_weight_in_row_becomes_unknown(client, store):
    client.tables["questions"].append(
        _question_row(9, answers=[{"text": "a", "value": "+++"}, {"text": "b", "value": "++"}])
    )
    question = [q for q in store.fetch_questions("c1") if q.id == "q9"][0]
    assert question.answers[0].weight is AnswerWeight.UNKNOWN


def test_count_questions(store):
    assert store.count_questions("c1", "previous") == 3
    assert store.count_questions("c1", "ai") == 0


def test_fetch_themes_distinct_and_sorted(store):
    assert store.fetch_themes("c1", "previous") == ["bones", "muscles"]


def test_seen_and_wrong_question_ids(store):
    assert store.fetch_seen_question_ids("c1", "u1") == {"q0", "q1", "q3"}
    assert store.fetch_wrong_question_ids("c1", "u1") == {"q1", "q3"}
    assert store.fetch_wrong_question_ids("c1", "u1", Source.PREVIOUS) == {"q1"}
    assert store.fetch_seen_question_ids("c1", None) == set()


def test_fetch_history(store):
    history = store.fetch_history("c1", "u2", "previous")
    assert history.seen == {"q2"}
    assert history.wrong == {"q2"}


def test_read_failure_raises_store_error(client, store):
    client.failing.add("questions")
    with pytest.raises(StoreError):
        store.fetch_questions("c1", "previous")


def test_persist_exam_result_writes_summary_and_answers(client, store):
    answers = [("q0", Answer("yes", AnswerWeight.FULLY_CORRECT)), ("q1", Answer("(not answered)", AnswerWeight.FULLY_INCORRECT))]
    result_id = store.persist_exam_result("u1", "c1", Source.PREVIOUS, 0.0, 2, 1, answers)
    summary = [r for r in client.tables["exam_results"] if r["id"] == result_id][0]
    assert summary["source"] == "previous"
    assert summary["total_questions"] == 2
    saved = [r for r in client.tables["exam_answers"] if r["exam_result_id"] == result_id]
    assert [r["answer_value"] for r in saved] == ["++", "--"]
    assert saved[1]["selected_answer"] == {"text": "(not answered)", "value": "--"}


def test_persist_sanitises_numbers(client, store):
    result_id = store.persist_exam_result("u1", "c1", "ai", "n/a", 0, None, [])
    summary = [r for r in client.tables["exam_results"] if r["id"] == result_id][0]
    assert (summary["score"], summary["total_questions"], summary["correct_answers"]) == (0.0, 1, 0)


def test_answer_row_failure_does_not_fail_the_save(client, store):
    client.failing.add("exam_answers")
    result_id = store.persist_exam_result("u1", "c1", "ai", 10.0, 1, 1, [("q0", Answer("yes", AnswerWeight.FULLY_CORRECT))])
    assert result_id


def test_summary_failure_raises(client, store):
    client.failing.add("exam_results")
    with pytest.raises(StoreError):
        store.persist_exam_result("u1", "c1", "ai", 10.0, 1, 1, [])


def test_persist_requires_user(store):
    with pytest.raises(StoreError):
        store.persist_exam_result(None, "c1", "ai", 10.0, 1, 1, [])


def test_fetch_exam_results_newest_first(store):
    results = store.fetch_exam_results("u1", "c1")
    assert [r.id for r in results] == ["r2", "r1"]
    assert [r.id for r in store.fetch_exam_results("u1", "c1", "previous")] == ["r1"]


def test_create_questions_counts_successes_and_errors(client, store):
    created, errors = store.create_questions(
        "c1", Source.KAHOOTS, [{"text": "New", "answers": [{"text": "a", "value": "++"}]}], theme="nerves"
    )
    assert (created, errors) == (1, [])
    assert client.tables["questions"][-1]["theme"] == "nerves"

    client.failing.add("questions")
    created, errors = store.create_questions("c1", "ai", [{"text": "X", "answers": []}])
    assert created == 0
    assert errors[0].startswith("Question 1:")


def test_sign_in_returns_profile(client, store):
    client.auth.sign_in_with_password.return_value = SimpleNamespace(user=SimpleNamespace(id="u1", email="rita@example.com"))
    user = store.sign_in("rita@example.com", "secret")
    assert user == {"id": "u1", "email": "rita@example.com", "name": "Rita", "role": "admin"}


def test_sign_in_failure_raises_store_error(client, store):
    client.auth.sign_in_with_password.side_effect = RuntimeError("bad credentials")
    with pytest.raises(StoreError):
        store.sign_in("x@example.com", "nope")


def test_sign_up_creates_student_profile(client, store):
    client.auth.sign_up.return_value = SimpleNamespace(user=SimpleNamespace(id="u9", email="new@example.com"))
    client.auth.sign_in_with_password.return_value = SimpleNamespace(user=SimpleNamespace(id="u9", email="new@example.com"))
    user = store.sign_up("new@example.com", "secret")
    assert user["name"] == "new"
    assert user["role"] == "student"


def test_seen_ids_can_be_limited_to_one_source(client, store):
    client.tables["exam_results"].append(
        {"id": "r4", "user_id": "u3", "course_id": "c1", "source": "kahoots", "score": 16.0,
         "total_questions": 1, "correct_answers": 1, "created_at": "2026-02-04"}
    )
    client.tables["exam_answers"].append({"exam_result_id": "r4", "question_id": "q3", "answer_value": "++"})
    assert store.fetch_seen_question_ids("c1", "u3", Source.PREVIOUS) == set()
    assert store.fetch_seen_question_ids("c1", "u3", "kahoots") == {"q3"}
    assert store.fetch_seen_question_ids("c1", "u3") == {"q3"}


def test_paged_history_and_leaderboard_queries_are_ordered(monkeypatch, client, store):
    monkeypatch.setattr(db, "PAGE_SIZE", 1)
    assert store.fetch_seen_question_ids("c1", "u1") == {"q0", "q1", "q3"}
    store.fetch_leaderboard_results("c1")
    assert ("exam_results", "id") in client.orders
    assert ("exam_answers", "id") in client.orders
    assert client.orders.count(("exam_results", "id")) >= 2


def test_numeric_question_ids_match_saved_history(client, store):
    client.tables["questions"].append(dict(_question_row(8), id=42))
    question = [q for q in store.fetch_questions("c1") if q.text == "Question 8"][0]
    assert question.id == "42"
    store.persist_exam_result("u2", "c1", "previous", 0.0, 1, 0, [(question.id, question.answers[1])])
    assert question.id in store.fetch_seen_question_ids("c1", "u2")
    assert question.id in store.fetch_wrong_question_ids("c1", "u2")
