import logging

import streamlit as st

from lms.app_state import init_app, require_role
from lms.ui import apply_global_styles, render_hero, render_sidebar, show_error
from lms.courses import get_courses_for_instructor
from lms.db import get_session
from lms.content import load_enrollment_records
from lms.enrollments import add_student_by_email, remove_student, respond_to_request

logger = logging.getLogger(__name__)

st.set_page_config(page_title="Enrollments", page_icon="🧾", layout="wide")

init_app()
apply_global_styles()
render_sidebar()

user = require_role("educator", "admin")

render_hero("Enrollments", "Review requests and manage who is in your courses.")

courses = get_courses_for_instructor(user["id"])
if not courses:
    st.info("You are not teaching any course yet.")
    st.stop()

selected = st.selectbox("Course", courses, format_func=lambda c: c.title)

with get_session() as session:
    records = load_enrollment_records(session, selected.id)

pending = [r for r in records if r.status == "pending"]
enrolled = [r for r in records if r.status == "enrolled"]

st.subheader(f"Pending requests ({len(pending)})")
if not pending:
    st.caption("No pending requests.")
for r in pending:
    col1, col2, col3 = st.columns([3, 1, 1])
    col1.write(r.label)
    if col2.button("Approve", key=f"approve_{r.student_id}"):
        try:
            respond_to_request(selected.id, r.student_id, "enrolled", user["id"])
            st.rerun()
        except Exception as e:
            show_error(e, "Approving enrollment failed")
    if col3.button("Reject", key=f"reject_{r.student_id}"):
        try:
            respond_to_request(selected.id, r.student_id, "rejected", user["id"])
            st.rerun()
        except Exception as e:
            show_error(e, "Rejecting enrollment failed")

st.subheader("Add a student")
with st.form("add_student_form", clear_on_submit=True):
    email = st.text_input("Student email")
    if st.form_submit_button("Add"):
        try:
            add_student_by_email(selected.id, email, user["id"])
            st.success(f"{email} added to {selected.title}")
        except Exception as e:
            show_error(e, "Adding student failed")

st.subheader(f"Enrolled students ({len(enrolled)})")
if not enrolled:
    st.caption("Nobody is enrolled yet.")
for r in enrolled:
    col1, col2 = st.columns([4, 1])
    col1.write(f"{r.label} ({len(r.completed_items)} lessons completed)")
    if col2.button("Remove", key=f"remove_{r.student_id}"):
        try:
            remove_student(selected.id, r.student_id, user["id"])
            st.rerun()
        except Exception as e:
            show_error(e, "Removing student failed")
