import logging

import streamlit as st

from lms.app_state import init_app
from lms.ui import apply_global_styles, render_hero, render_sidebar, show_error
from lms.courses import get_courses_for_instructor
from lms.progress import get_progress_report

logger = logging.getLogger(__name__)

st.set_page_config(
    page_title="Course Progress",
    page_icon="📚",
    layout="wide",
    initial_sidebar_state="expanded",
)

init_app()
apply_global_styles()
render_sidebar()

render_hero(
    "Course Progress & Assessment",
    "Follow lessons, take quizzes and keep an eye on your grades.",
)

user = st.session_state.user
if user is None:
    st.info("Log in or sign up from the sidebar to get started.")
    st.stop()

role = user.get("role", "student")

if role in ("educator", "admin"):
    st.subheader("Courses you teach")
    courses = get_courses_for_instructor(user["id"])
    if not courses:
        st.caption("You are not teaching any course yet. Create one from Manage courses.")
    for course in courses:
        with st.container(border=True):
            st.markdown(f"**{course.title}**")
            st.caption(course.description or "")
            if st.button("Open analytics", key=f"home_analytics_{course.id}"):
                st.session_state.selected_course_id = course.id
                st.switch_page("pages/4_Analytics.py")
else:
    st.subheader("Your courses")
    try:
        report = get_progress_report(user["id"])
    except Exception as e:
        show_error(e, "Loading course progress failed")
        st.stop()
    if not report:
        st.caption("You are not enrolled in any course yet. Browse the catalogue from Courses.")
    else:
        done = sum(1 for row in report if row.completed)
        st.caption(f"{done} of {len(report)} courses completed")
    for row in report:
        with st.container(border=True):
            st.markdown(f"**{row.course_title}**")
            st.progress(min(int(row.progress), 100), text=f"{row.progress:.2f}% complete")
            if row.completed:
                st.success("Course completed")
            if st.button("Continue", key=f"home_continue_{row.course_id}"):
                st.session_state.selected_course_id = row.course_id
                st.switch_page("pages/2_Course_View.py")
