"""Supabase storage for courses, questions, exam results and auth. The client is injected."""
import logging
import os
from typing import Dict, Iterable, List, Optional, Set, Tuple

from dotenv import load_dotenv
from supabase import create_client, Client

from exam_prep.models import Answer, Course, ExamResult, History, Question, QuestionId, Source

load_dotenv()

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000
ID_BATCH_SIZE = 100
ANSWER_CHUNK_SIZE = 200


class StoreError(Exception):
    """Supabase could not be reached or rejected a read / summary write."""


def _env_client() -> Client:
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_KEY")
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")
    return create_client(url, key)


def _source_value(source) -> str:
    return source.value if isinstance(source, Source) else str(source)


class QuizStore:
    """Exam-practice operations on top of a Supabase client."""

    def __init__(self, client: Client):
        self.client = client

    @classmethod
    def from_env(cls) -> "QuizStore":
        """For CLI/scripts (no Streamlit context)."""
        return cls(_env_client())

    # ============= Helpers =============

    def _fetch_all(self, build_query, what: str) -> List[Dict]:
        """Page through a query (Supabase caps a single response, often at 1000 rows)."""
        rows: List[Dict] = []
        offset = 0
        try:
            while True:
                r = build_query().range(offset, offset + PAGE_SIZE - 1).execute()
                data = r.data or []
                rows.extend(data)
                if len(data) < PAGE_SIZE:
                    break
                offset += PAGE_SIZE
        except Exception as e:
            logger.error("Error fetching %s: %s", what, e)
            raise StoreError(f"Could not load {what}") from e
        return rows

    def _exam_result_ids(self, user_id: str, course_id: str, source=None) -> List[str]:
        def query():
            q = (
                self.client.table("exam_results")
                .select("id")
                .eq("user_id", user_id)
                .eq("course_id", course_id)
            )
            if source:
                q = q.eq("source", _source_value(source))
            return q.order("id")

        return [row["id"] for row in self._fetch_all(query, "exam results")]

    def _answered_question_ids(self, result_ids: List[str], answer_value: Optional[str] = None) -> Set[str]:
        ids: Set[str] = set()
        for i in range(0, len(result_ids), ID_BATCH_SIZE):
            batch = result_ids[i : i + ID_BATCH_SIZE]

            def query(batch=batch):
                q = self.client.table("exam_answers").select("question_id").in_("exam_result_id", batch)
                if answer_value:
                    q = q.eq("answer_value", answer_value)
                return q.order("id")

            ids.update(row["question_id"] for row in self._fetch_all(query, "exam answers"))
        return ids

    # ============= Courses =============

    def fetch_courses(self) -> List[Course]:
        rows = self._fetch_all(lambda: self.client.table("courses").select("*").order("title"), "courses")
        return [Course.from_row(r) for r in rows]

    # ============= Questions =============

    def fetch_questions(self, course_id: str, source=None) -> List[Question]:
        """All questions for a course (optionally one source), oldest first."""

        def query():
            q = self.client.table("questions").select("*").eq("course_id", course_id)
            if source:
                q = q.eq("source", _source_value(source))
            return q.order("created_at")

        rows = self._fetch_all(query, "questions")
        return [Question.from_row(r) for r in rows]

    def count_questions(self, course_id: str, source) -> int:
        try:
            r = (
                self.client.table("questions")
                .select("id", count="exact")
                .eq("course_id", course_id)
                .eq("source", _source_value(source))
                .limit(0)
                .execute()
            )
        except Exception as e:
            logger.error("Error counting questions: %s", e)
            raise StoreError("Could not count questions") from e
        return getattr(r, "count", None) or 0

    def fetch_themes(self, course_id: str, source) -> List[str]:
        """Distinct non-empty theme tags in the pool, sorted."""

        def query():
            return (
                self.client.table("questions")
                .select("theme")
                .eq("course_id", course_id)
                .eq("source", _source_value(source))
            )

        rows = self._fetch_all(query, "themes")
        return sorted({row["theme"] for row in rows if row.get("theme")})

    def create_questions(self, course_id: str, source, questions: Iterable[Dict], theme: Optional[str] = None) -> Tuple[int, List[str]]:
        """
        Insert validated questions one by one.

        Returns:
            (created count, per-question error messages)
        """
        created = 0
        errors: List[str] = []
        for i, q in enumerate(questions, 1):
            row = {
                "course_id": course_id,
                "source": _source_value(source),
                "text": q["text"],
                "answers": q["answers"],
            }
            if theme or q.get("theme"):
                row["theme"] = q.get("theme") or theme
            if q.get("explanation"):
                row["explanation"] = q["explanation"]
            try:
                self.client.table("questions").insert(row).execute()
                created += 1
            except Exception as e:
                logger.error("Error creating question %d: %s", i, e)
                errors.append(f"Question {i}: {e or 'unknown error'}")
        logger.info("Created %d questions (%d errors)", created, len(errors))
        return created, errors

    # ============= History =============

    def fetch_seen_question_ids(self, course_id: str, user_id: Optional[str], source=None) -> Set[str]:
        """Questions the user has been shown in exams of this course (optionally one source)."""
        if not user_id:
            return set()
        return self._answered_question_ids(self._exam_result_ids(user_id, course_id, source))

    def fetch_wrong_question_ids(self, course_id: str, user_id: Optional[str], source=None) -> Set[str]:
        """Questions the user answered with a -- weight at least once."""
        if not user_id:
            return set()
        return self._answered_question_ids(self._exam_result_ids(user_id, course_id, source), answer_value="--")

    def fetch_history(self, course_id: str, user_id: Optional[str], source=None) -> History:
        return History(
            seen=frozenset(self.fetch_seen_question_ids(course_id, user_id)),
            wrong=frozenset(self.fetch_wrong_question_ids(course_id, user_id, source)),
        )

    # ============= Exam results =============

    def persist_exam_result(
        self,
        user_id: str,
        course_id: str,
        source,
        grade,
        total_questions,
        correct_count,
        answers: List[Tuple[QuestionId, Answer]],
    ) -> str:
        """
        Write the exam summary, then its per-answer rows.
        The summary must succeed (StoreError otherwise); answer rows are best effort.

        Returns:
            id of the exam_results row
        """
        if not user_id:
            raise StoreError("User not logged in")
        try:
            score = float(grade)
        except (TypeError, ValueError):
            score = 0.0
        try:
            total = max(1, int(total_questions))
        except (TypeError, ValueError):
            total = 1
        try:
            correct = max(0, int(correct_count))
        except (TypeError, ValueError):
            correct = 0

        row = {
            "user_id": user_id,
            "course_id": course_id,
            "source": _source_value(source),
            "score": score,
            "total_questions": total,
            "correct_answers": correct,
        }
        try:
            r = self.client.table("exam_results").insert(row).execute()
            result_id = r.data[0]["id"]
        except Exception as e:
            logger.error("Error saving exam result: %s", e)
            raise StoreError("Could not save exam result") from e

        answer_rows = [
            {
                "exam_result_id": result_id,
                "question_id": str(question_id),
                "selected_answer": answer.to_row(),
                "answer_value": answer.weight.value,
            }
            for question_id, answer in answers
        ]
        failed = 0
        for i in range(0, len(answer_rows), ANSWER_CHUNK_SIZE):
            chunk = answer_rows[i : i + ANSWER_CHUNK_SIZE]
            try:
                self.client.table("exam_answers").insert(chunk).execute()
            except Exception as e:
                failed += len(chunk)
                logger.error("Error saving %d exam answers for %s: %s", len(chunk), result_id, e)
        logger.info("Exam result %s saved: score=%s, %d answers (%d failed)", result_id, score, len(answer_rows), failed)
        return result_id

    def fetch_exam_results(self, user_id: str, course_id: str, source=None) -> List[ExamResult]:
        """User's exam results, newest first."""

        def query():
            q = (
                self.client.table("exam_results")
                .select("*")
                .eq("user_id", user_id)
                .eq("course_id", course_id)
            )
            if source:
                q = q.eq("source", _source_value(source))
            return q.order("created_at", desc=True)

        return [ExamResult.from_row(r) for r in self._fetch_all(query, "exam results")]

    def fetch_leaderboard_results(self, course_id: Optional[str] = None, source=None) -> List[ExamResult]:
        """All users' results with the profile name joined in."""

        def query():
            q = self.client.table("exam_results").select("*, profiles(name)")
            if course_id:
                q = q.eq("course_id", course_id)
            if source:
                q = q.eq("source", _source_value(source))
            return q.order("id")

        return [ExamResult.from_row(r) for r in self._fetch_all(query, "leaderboard")]

    # ============= Auth =============

    def sign_in(self, email: str, password: str) -> Dict:
        """Password sign-in. Returns {id, email, name, role}."""
        try:
            auth = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.error("Sign-in failed for %s: %s", email, e)
            raise StoreError("Invalid email or password") from e
        user = auth.user
        profile = self.fetch_profile(user.id)
        return {
            "id": user.id,
            "email": user.email,
            "name": profile.get("name") or (user.email or "").split("@")[0],
            "role": profile.get("role") or "student",
        }

    def sign_up(self, email: str, password: str, name: Optional[str] = None) -> Dict:
        """Register a student account with a profile row, then sign in."""
        display_name = name or email.split("@")[0]
        try:
            auth = self.client.auth.sign_up(
                {"email": email, "password": password, "options": {"data": {"name": display_name}}}
            )
            self.client.table("profiles").upsert(
                {"id": auth.user.id, "name": display_name, "role": "student"}, on_conflict="id"
            ).execute()
        except Exception as e:
            logger.error("Sign-up failed for %s: %s", email, e)
            raise StoreError("Could not create account") from e
        return self.sign_in(email, password)

    def sign_out(self) -> None:
        try:
            self.client.auth.sign_out()
        except Exception as e:
            logger.warning("Sign-out failed: %s", e)

    def fetch_profile(self, user_id: str) -> Dict:
        try:
            r = self.client.table("profiles").select("name, role").eq("id", user_id).limit(1).execute()
        except Exception as e:
            logger.error("Error fetching profile %s: %s", user_id, e)
            raise StoreError("Could not load profile") from e
        return (r.data or [{}])[0]
