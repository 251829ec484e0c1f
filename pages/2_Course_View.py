import logging
from datetime import datetime

import streamlit as st

from lms.app_state import init_app, require_role
from lms.ui import apply_global_styles, render_hero, render_sidebar, show_error
from lms.completion import completed_items, mark_complete
from lms.courses import get_course_tree, get_courses_for_student
from lms.enrollments import get_enrollment
from lms.grading import get_attempt, get_quiz_questions, submit_quiz
from lms.progress import compute_progress, is_course_completed
from lms.questions import (
    IDENTIFICATION,
    MULTIPLE_CHOICE,
    TRUE_OR_FALSE,
    BooleanAnswer,
    ChoiceAnswer,
    TextAnswer,
)
from lms.quiz import get_attempt_detail

logger = logging.getLogger(__name__)

st.set_page_config(page_title="My courses", page_icon="🎓", layout="wide")

init_app()
apply_global_styles()
render_sidebar()

user = require_role("student")


def format_compact_time(value):
    if not value:
        return ""
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value))
        except ValueError:
            return str(value)
    if dt.tzinfo:
        dt = dt.astimezone()
    return dt.strftime("%d %b %H:%M")


def render_answer_widget(question, key):
    """One input per question kind; returns a tagged answer or None when left blank."""
    if question.kind == MULTIPLE_CHOICE:
        choice = st.radio(question.text, list(question.options), index=None, key=key)
        return ChoiceAnswer(list(question.options).index(choice)) if choice is not None else None
    if question.kind == IDENTIFICATION:
        text = st.text_input(question.text, key=key)
        return TextAnswer(text) if text.strip() else None
    if question.kind == TRUE_OR_FALSE:
        choice = st.radio(question.text, ["True", "False"], index=None, key=key, horizontal=True)
        return BooleanAnswer(choice == "True") if choice is not None else None
    st.warning(f"Unsupported question type: {question.kind}")
    return None


def render_attempt(attempt):
    detail = get_attempt_detail(attempt.id)
    st.success(f"Score: {attempt.score}/{attempt.total_questions}")
    st.caption(f"Submitted {format_compact_time(attempt.submitted_at)}")
    if detail:
        for i, row in enumerate(detail["per_question"], 1):
            mark = "✅" if row["correct"] else "❌"
            given = row["answer"]["value"] if row["answer"] else "no answer"
            st.write(f"{mark} **Q{i}.** {row['question_text']} (your answer: {given})")


def render_quiz(lesson):
    quiz = lesson.quiz
    st.markdown(f"#### {quiz.title}")
    if quiz.due_date:
        st.caption(f"Due {format_compact_time(quiz.due_date)}")

    attempt = get_attempt(quiz.id, user["id"])
    if attempt:
        render_attempt(attempt)
        return

    try:
        questions = get_quiz_questions(quiz.id)
    except Exception as e:
        show_error(e, f"Loading quiz {quiz.id} failed")
        return

    with st.form(key=f"quiz_form_{quiz.id}"):
        answers = {}
        for q in questions:
            answers[q.id] = render_answer_widget(q, key=f"q_{quiz.id}_{q.id}")
        submitted = st.form_submit_button("Submit quiz")

    if submitted:
        if any(a is None for a in answers.values()):
            st.warning("Answer every question before submitting.")
            return
        try:
            attempt = submit_quiz(quiz.id, user["id"], answers)
            st.session_state.last_attempt_result = {
                "quiz_id": quiz.id,
                "score": attempt.score,
                "total": attempt.total_questions,
            }
            st.rerun()
        except Exception as e:
            show_error(e, f"Submitting quiz {quiz.id} failed")


courses = get_courses_for_student(user["id"])
if not courses:
    st.info("You are not enrolled in any course yet.")
    st.stop()

course_ids = [c.id for c in courses]
default_index = 0
if st.session_state.selected_course_id in course_ids:
    default_index = course_ids.index(st.session_state.selected_course_id)
selected = st.selectbox(
    "Course",
    courses,
    index=default_index,
    format_func=lambda c: c.title,
)
st.session_state.selected_course_id = selected.id

try:
    tree = get_course_tree(selected.id)
    enrollment = get_enrollment(selected.id, user["id"])
    done = completed_items(enrollment.id) if enrollment else set()
except Exception as e:
    show_error(e, f"Loading course {selected.id} failed")
    st.stop()

render_hero(tree.title, tree.description or "")

pct = compute_progress(tree, done)
st.progress(min(int(pct), 100), text=f"{pct:.2f}% complete")
if is_course_completed(pct):
    st.balloons()
    st.success("You have completed this course.")

last = st.session_state.last_attempt_result
if last:
    st.info(f"Quiz submitted: {last['score']}/{last['total']} correct.")
    st.session_state.last_attempt_result = None

lessons = list(tree.lessons)
if not lessons:
    st.caption("This course has no lessons yet.")
    st.stop()

col_nav, col_body = st.columns([1, 3])

with col_nav:
    for module in tree.modules:
        st.markdown(f"**{module.title}**")
        for lesson in module.lessons:
            icon = "✅" if lesson.id in done else "○"
            if st.button(f"{icon} {lesson.title}", key=f"nav_{lesson.id}"):
                st.session_state.selected_lesson_id = lesson.id
                st.rerun()

lesson_by_id = {lesson.id: lesson for lesson in lessons}
active = lesson_by_id.get(st.session_state.selected_lesson_id) or lessons[0]

with col_body:
    st.subheader(active.title)
    if active.content:
        st.markdown(active.content)
    if active.video_url:
        st.video(active.video_url)
    if active.lab_url:
        st.link_button("Open lab", active.lab_url)

    st.divider()

    if active.quiz:
        render_quiz(active)
    elif active.id in done:
        st.success("Lesson completed")
    elif st.button("Mark as complete", key=f"complete_{active.id}"):
        try:
            mark_complete(tree.id, user["id"], active.id)
            st.rerun()
        except Exception as e:
            show_error(e, f"Completing lesson {active.id} failed")
