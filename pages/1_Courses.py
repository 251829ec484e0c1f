import logging

import streamlit as st

from lms.app_state import init_app
from lms.ui import apply_global_styles, render_hero, render_sidebar, show_error
from lms.courses import course_tags, list_courses
from lms.enrollments import get_enrollment, request_enrollment

logger = logging.getLogger(__name__)

st.set_page_config(page_title="Courses", page_icon="📚", layout="wide")

init_app()
apply_global_styles()
render_sidebar()

render_hero("Course catalogue", "Browse courses and ask to join the ones you like.")

user = st.session_state.user
role = user.get("role") if user else None

all_courses = list_courses()
all_tags = sorted({t for c in all_courses for t in course_tags(c)})
tag = st.selectbox("Filter by tag", ["All"] + all_tags)
courses = list_courses(tag=None if tag == "All" else tag)

if not courses:
    st.info("No courses found.")

STATUS_LABELS = {
    "pending": "Request pending",
    "enrolled": "Enrolled",
    "rejected": "Request rejected",
}

for course in courses:
    with st.container(border=True):
        st.markdown(f"### {course.title}")
        st.write(course.description or "")
        tags = course_tags(course)
        if tags:
            st.caption(" · ".join(f"#{t}" for t in tags))

        if user is None or role != "student":
            continue

        enrollment = get_enrollment(course.id, user["id"])
        if enrollment:
            st.caption(STATUS_LABELS.get(enrollment.status, enrollment.status))
            if enrollment.status == "enrolled" and st.button("Open course", key=f"open_{course.id}"):
                st.session_state.selected_course_id = course.id
                st.switch_page("pages/2_Course_View.py")
        elif st.button("Request enrollment", key=f"enroll_{course.id}"):
            try:
                request_enrollment(course.id, user["id"])
                st.success("Request sent to the course instructors.")
                st.rerun()
            except Exception as e:
                show_error(e, f"Enrollment request for course {course.id} failed")
