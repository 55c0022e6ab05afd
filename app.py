"""Exam practice: multi-page Streamlit client over Supabase."""
import logging
import sys
from pathlib import Path

# Ensure project root is in path
project_root = Path(__file__).resolve().parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import streamlit as st

from db import QuizStore, StoreError
from engine import EXAM_QUESTION_COUNT, GRADE_SCALE, PASS_GRADE
from exam_prep.engine import ExamSession, is_passing
from exam_prep.models import Source, StudyMode
from exam_prep.practice import finish_exam, start_exam
from exam_prep.stats import build_leaderboard, compute_user_stats
from importer import validate_content

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")

SOURCE_LABELS = {
    Source.PREVIOUS: "Previous exams",
    Source.AI: "AI-generated exams",
    Source.KAHOOTS: "Kahoots",
}
SOURCE_WARNINGS = {Source.AI: "AI-generated content may contain inaccuracies."}
MODE_LABELS = {
    StudyMode.ALL: "All questions (random)",
    StudyMode.UNSEEN: "Unseen first",
    StudyMode.WRONG: "Previously wrong first",
    StudyMode.THEME: "By theme",
}


@st.cache_resource
def get_store() -> QuizStore:
    return QuizStore.from_env()


st.set_page_config(page_title="Exam Practice", layout="wide")
st.sidebar.title("Exam Practice")

for key, default in (("user", None), ("exam", None), ("exam_idx", 0), ("exam_result", None)):
    if key not in st.session_state:
        st.session_state[key] = default

try:
    store = get_store()
except ValueError as e:
    st.error(f"Supabase is not configured. Check .env (SUPABASE_URL, SUPABASE_KEY). {e}")
    st.stop()

# ----- Account -----
user = st.session_state["user"]
with st.sidebar.expander("Account", expanded=user is None):
    if user:
        st.write(f"Signed in as **{user['name']}**")
        if st.button("Sign out"):
            store.sign_out()
            st.session_state["user"] = None
            st.rerun()
    else:
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        name = st.text_input("Name (sign-up only)")
        col1, col2 = st.columns(2)
        try:
            if col1.button("Sign in"):
                st.session_state["user"] = store.sign_in(email, password)
                st.rerun()
            if col2.button("Sign up"):
                st.session_state["user"] = store.sign_up(email, password, name or None)
                st.rerun()
        except StoreError as e:
            st.error(str(e))

user = st.session_state["user"]
user_id = user["id"] if user else None
is_admin = bool(user and user.get("role") == "admin")

pages = ["Practice", "Statistics", "Leaderboard"] + (["Admin"] if is_admin else [])
page = st.sidebar.radio("Navigate", pages, label_visibility="collapsed")

# ----- Course / source -----
try:
    courses = store.fetch_courses()
except StoreError:
    st.error("Could not load courses. Check the connection.")
    if st.button("Retry"):
        st.rerun()
    st.stop()

if not courses:
    st.info("No courses yet.")
    st.stop()

course = st.sidebar.selectbox("Course", courses, format_func=lambda c: c.title)
source = st.sidebar.radio("Source", list(Source), format_func=lambda s: SOURCE_LABELS[s])
if source in SOURCE_WARNINGS:
    st.sidebar.warning(SOURCE_WARNINGS[source])


def _reset_exam():
    st.session_state["exam"] = None
    st.session_state["exam_idx"] = 0
    st.session_state["exam_result"] = None


# ----- Practice -----
if page == "Practice":
    st.header(f"{course.title} · {SOURCE_LABELS[source]}")
    exam: ExamSession | None = st.session_state["exam"]

    if exam is not None and (exam.course_id != course.id or exam.source is not source):
        _reset_exam()
        exam = None

    if exam is None:
        try:
            pool_size = store.count_questions(course.id, source)
            themes = store.fetch_themes(course.id, source)
        except StoreError:
            st.error("Could not load data.")
            if st.button("Retry"):
                st.rerun()
            st.stop()
        st.metric("Questions in pool", pool_size)

        modes = [StudyMode.ALL]
        if user_id:
            modes += [StudyMode.UNSEEN, StudyMode.WRONG]
        if themes:
            modes.append(StudyMode.THEME)
        mode = st.radio("Study mode", modes, format_func=lambda m: MODE_LABELS[m], horizontal=True)
        theme = st.selectbox("Theme", themes) if mode is StudyMode.THEME else None

        scoring = "correct answers only" if source is Source.KAHOOTS else "++ +1, + +0.33, - -0.33, -- -1"
        st.caption(f"{EXAM_QUESTION_COUNT} questions · graded 0-{GRADE_SCALE} ({scoring}) · pass at {PASS_GRADE}")
        if st.button("Start exam", type="primary"):
            try:
                exam = start_exam(store, course.id, source, mode, theme=theme, user_id=user_id, count=EXAM_QUESTION_COUNT)
            except StoreError:
                st.error("Could not load questions.")
                st.stop()
            if not exam.questions:
                st.warning("No questions available for the selected filter.")
                st.stop()
            st.session_state["exam"] = exam
            st.session_state["exam_idx"] = 0
            st.rerun()
        st.stop()

    # Results
    if st.session_state["exam_result"] is not None:
        score = st.session_state["exam_result"]
        if exam.all_correct():
            st.balloons()
        passed = is_passing(score.grade)
        col1, col2 = st.columns(2)
        col1.metric("Grade", f"{score.grade:.1f} / {GRADE_SCALE}")
        col2.metric("Correct", f"{score.correct_count} / {exam.total_questions}")
        (st.success if passed else st.error)("Passed" if passed else "Not passed")
        for i, q in enumerate(exam.questions, 1):
            chosen = exam.answer_for(q.id)
            with st.expander(f"{i}. {q.text[:100]}"):
                for a in q.answers:
                    mark = "✓" if a.weight.is_correct else "○"
                    line = f"{mark} {a.text} ({a.weight.value})"
                    if chosen is not None and a == chosen:
                        (st.success if a.weight.is_correct else st.error)(line)
                    else:
                        st.write(line)
                if chosen is None:
                    st.warning("Not answered")
                if q.explanation:
                    st.info(q.explanation)
        if st.button("New exam"):
            _reset_exam()
            st.rerun()
        st.stop()

    # Exam in progress
    idx = st.session_state["exam_idx"]
    q = exam.questions[idx]
    st.progress(exam.answered_count / exam.total_questions)
    st.caption(f"Question {idx + 1} of {exam.total_questions} · {exam.answered_count} answered")
    st.subheader(q.text)

    current = exam.answer_for(q.id)
    choice = st.radio(
        "Choose one:",
        range(len(q.answers)),
        format_func=lambda i: q.answers[i].text,
        index=q.answers.index(current) if current in q.answers else None,
        key=f"exam_q_{q.id}",
    )
    if choice is not None:
        exam.answer(q.id, q.answers[choice])

    col1, col2, col3 = st.columns([1, 1, 2])
    with col1:
        if st.button("← Previous", disabled=idx == 0):
            st.session_state["exam_idx"] = idx - 1
            st.rerun()
    with col2:
        if st.button("Next →", disabled=idx >= exam.total_questions - 1):
            st.session_state["exam_idx"] = idx + 1
            st.rerun()
    with col3:
        if st.button("Submit exam", type="primary"):
            try:
                score, _ = finish_exam(store, exam, user_id)
            except StoreError:
                score = exam.score()
                st.warning("Your result could not be saved.")
            st.session_state["exam_result"] = score
            st.rerun()

# ----- Statistics -----
elif page == "Statistics":
    st.header("Statistics")
    if not user_id:
        st.info("Sign in to track your progress.")
        st.stop()
    try:
        results = store.fetch_exam_results(user_id, course.id, source)
        seen = store.fetch_seen_question_ids(course.id, user_id, source)
        pool_size = store.count_questions(course.id, source)
    except StoreError:
        st.error("Could not load statistics.")
        if st.button("Retry"):
            st.rerun()
        st.stop()
    stats = compute_user_stats(results, unique_seen=len(seen), pool_size=pool_size)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Exams", stats.total_exams)
    col2.metric("Average", f"{stats.average_score:.1f}")
    col3.metric("Pass rate", f"{stats.pass_rate}%")
    col4.metric("Questions seen", f"{stats.unique_questions_seen} / {stats.total_questions_in_pool}")
    st.caption(
        f"{stats.passed_exams} passed · {stats.failed_exams} failed · "
        f"{stats.total_correct_answers}/{stats.total_questions_answered} correct answers"
    )
    if stats.score_evolution:
        st.subheader("Score evolution")
        st.line_chart({"score": [p["score"] for p in stats.score_evolution]})

# ----- Leaderboard -----
elif page == "Leaderboard":
    st.header("Leaderboard")
    try:
        board = build_leaderboard(store.fetch_leaderboard_results(course.id, source))
    except StoreError:
        st.error("Could not load the leaderboard.")
        st.stop()
    if not board:
        st.info("No exams taken yet.")
    for rank, entry in enumerate(board, 1):
        st.write(f"**{rank}. {entry.user_name}** · avg {entry.average_score:.1f} · {entry.total_exams} exams · {entry.pass_rate}% passed")

# ----- Admin -----
elif page == "Admin":
    st.header("Import questions")
    st.caption(f"Target: {course.title} · {SOURCE_LABELS[source]}")
    uploaded = st.file_uploader("Question file (.json)", type=["json"])
    if uploaded is not None:
        result = validate_content(uploaded.getvalue().decode("utf-8"))
        if not result.valid:
            st.error(f"{len(result.errors)} validation error(s)")
            for err in result.errors:
                st.write(f"- {err}")
            st.stop()
        st.success(f"{len(result.questions)} valid questions")
        if result.detected_theme:
            st.info(f"Detected theme: {result.detected_theme}")
        with st.expander("Preview"):
            for q in result.questions[:5]:
                st.write(q["text"])
        if st.button("Upload", type="primary"):
            created, errors = store.create_questions(course.id, source, result.questions, theme=result.detected_theme)
            st.success(f"Created {created} questions")
            for err in errors:
                st.error(err)
