import logging
from datetime import datetime, time

import streamlit as st

from lms.app_state import init_app, require_role
from lms.ui import apply_global_styles, render_hero, render_sidebar, show_error
from lms.auth import get_user_by_email
from lms.courses import (
    add_instructor,
    add_lesson,
    add_module,
    create_course,
    get_course_tree,
    get_courses_for_instructor,
    update_course,
)
from lms.questions import IDENTIFICATION, MULTIPLE_CHOICE, QUESTION_KINDS, TRUE_OR_FALSE
from lms.quiz import create_quiz, delete_quiz, get_attempt_count

logger = logging.getLogger(__name__)

st.set_page_config(page_title="Manage courses", page_icon="🛠", layout="wide")

init_app()
apply_global_styles()
render_sidebar()

user = require_role("educator", "admin")

if "draft_questions" not in st.session_state:
    st.session_state.draft_questions = []


def parse_tags(raw):
    return [t.strip() for t in (raw or "").split(",") if t.strip()]


render_hero("Manage courses", "Create courses, lay out modules and lessons, and publish quizzes.")

with st.expander("Create a new course", expanded=False):
    with st.form("create_course_form", clear_on_submit=True):
        title = st.text_input("Title")
        description = st.text_area("Description")
        tags = st.text_input("Tags (comma separated)")
        if st.form_submit_button("Create", type="primary"):
            try:
                course = create_course(title, description.strip(), user["id"], tags=parse_tags(tags))
                st.session_state.selected_course_id = course.id
                st.success(f"Course created: {course.title}")
            except Exception as e:
                show_error(e, "Creating course failed")

courses = get_courses_for_instructor(user["id"])
if not courses:
    st.info("Create your first course to get started.")
    st.stop()

course_ids = [c.id for c in courses]
default_index = 0
if st.session_state.selected_course_id in course_ids:
    default_index = course_ids.index(st.session_state.selected_course_id)
selected = st.selectbox("Course", courses, index=default_index, format_func=lambda c: c.title)
st.session_state.selected_course_id = selected.id

try:
    tree = get_course_tree(selected.id)
except Exception as e:
    show_error(e, f"Loading course {selected.id} failed")
    st.stop()

tab_outline, tab_quiz, tab_settings = st.tabs(["Outline", "Quizzes", "Settings"])

with tab_outline:
    for module in tree.modules:
        with st.container(border=True):
            st.markdown(f"**{module.title}**")
            for lesson in module.lessons:
                quiz_note = f" · quiz: {lesson.quiz.title}" if lesson.quiz else ""
                st.write(f"- {lesson.title}{quiz_note}")

            with st.form(f"add_lesson_{module.id}", clear_on_submit=True):
                lesson_title = st.text_input("Lesson title", key=f"lt_{module.id}")
                lesson_content = st.text_area("Content (markdown)", key=f"lc_{module.id}")
                video_url = st.text_input("Video URL", key=f"lv_{module.id}")
                lab_url = st.text_input("Lab URL", key=f"ll_{module.id}")
                if st.form_submit_button("Add lesson"):
                    try:
                        add_lesson(
                            module.id,
                            lesson_title,
                            lesson_content,
                            user["id"],
                            video_url=video_url.strip(),
                            lab_url=lab_url.strip(),
                        )
                        st.rerun()
                    except Exception as e:
                        show_error(e, f"Adding lesson to module {module.id} failed")

    with st.form("add_module_form", clear_on_submit=True):
        module_title = st.text_input("New module title")
        if st.form_submit_button("Add module"):
            try:
                add_module(tree.id, module_title, user["id"])
                st.rerun()
            except Exception as e:
                show_error(e, "Adding module failed")

with tab_quiz:
    lessons = list(tree.lessons)
    with_quiz = [lesson for lesson in lessons if lesson.quiz]
    without_quiz = [lesson for lesson in lessons if not lesson.quiz]

    st.subheader("Published quizzes")
    if not with_quiz:
        st.caption("No quizzes yet.")
    for lesson in with_quiz:
        quiz = lesson.quiz
        attempts = get_attempt_count(quiz.id)
        col1, col2 = st.columns([4, 1])
        col1.write(f"**{quiz.title}** on {lesson.title}: {quiz.question_count} questions, {attempts} attempts")
        if attempts == 0 and col2.button("Delete", key=f"del_quiz_{quiz.id}"):
            try:
                delete_quiz(quiz.id, user["id"])
                st.rerun()
            except Exception as e:
                show_error(e, f"Deleting quiz {quiz.id} failed")

    st.subheader("New quiz")
    if not without_quiz:
        st.caption("Every lesson already has a quiz. Add a lesson first.")
    else:
        target = st.selectbox("Lesson", without_quiz, format_func=lambda lesson: lesson.title)
        quiz_title = st.text_input("Quiz title", value=f"{target.title} Quiz")
        has_due = st.checkbox("Set a due date")
        due_date = None
        if has_due:
            due_day = st.date_input("Due date")
            due_date = datetime.combine(due_day, time(23, 59))

        st.markdown("**Questions**")
        q_type = st.selectbox("Question type", QUESTION_KINDS)
        q_text = st.text_input("Question text")
        draft = {"type": q_type, "text": q_text}
        if q_type == MULTIPLE_CHOICE:
            raw_options = st.text_area("Options (one per line)")
            options = [o.strip() for o in raw_options.splitlines() if o.strip()]
            correct = st.selectbox("Correct option", options) if options else None
            draft["choices"] = options
            draft["correct_answer"] = options.index(correct) if correct is not None else None
        elif q_type == IDENTIFICATION:
            draft["correct_answer"] = st.text_input("Correct answer")
        elif q_type == TRUE_OR_FALSE:
            draft["correct_answer"] = st.radio("Correct answer", ["True", "False"], horizontal=True) == "True"

        if st.button("Add question"):
            st.session_state.draft_questions.append(draft)
            st.rerun()

        for i, q in enumerate(st.session_state.draft_questions, 1):
            st.write(f"{i}. [{q['type']}] {q['text']}")
        if st.session_state.draft_questions and st.button("Clear questions"):
            st.session_state.draft_questions = []
            st.rerun()

        if st.button("Publish quiz", type="primary"):
            try:
                create_quiz(
                    target.id,
                    quiz_title,
                    st.session_state.draft_questions,
                    user["id"],
                    due_date=due_date,
                )
                st.session_state.draft_questions = []
                st.success("Quiz published")
                st.rerun()
            except Exception as e:
                show_error(e, f"Publishing quiz on lesson {target.id} failed")

with tab_settings:
    with st.form("course_settings_form"):
        new_title = st.text_input("Title", value=tree.title)
        new_desc = st.text_area("Description", value=tree.description or "")
        new_tags = st.text_input("Tags (comma separated)", value=", ".join(tree.tags))
        if st.form_submit_button("Save"):
            try:
                update_course(
                    tree.id,
                    user["id"],
                    title=new_title,
                    description=new_desc,
                    tags=parse_tags(new_tags),
                )
                st.success("Saved")
            except Exception as e:
                show_error(e, "Updating course failed")

    with st.form("add_instructor_form", clear_on_submit=True):
        email = st.text_input("Co-instructor email")
        if st.form_submit_button("Add instructor"):
            other = get_user_by_email(email.strip())
            if other is None:
                st.error("No user found with this email")
            else:
                try:
                    add_instructor(tree.id, other.id, user["id"])
                    st.success(f"{other.email} can now manage this course")
                except Exception as e:
                    show_error(e, "Adding instructor failed")
