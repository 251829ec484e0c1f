import logging

import streamlit as st

from lms.app_state import init_app, require_role
from lms.ui import apply_global_styles, render_hero, render_sidebar, show_error
from lms.quiz import get_upcoming_deadlines

logger = logging.getLogger(__name__)

st.set_page_config(page_title="Calendar", page_icon="🗓", layout="wide")

init_app()
apply_global_styles()
render_sidebar()

user = require_role("student")

render_hero("Calendar", "Quizzes you still have to take, soonest due date first.")

show_overdue = st.toggle("Show overdue quizzes", value=True)

try:
    deadlines = get_upcoming_deadlines(user["id"], include_overdue=show_overdue)
except Exception as e:
    show_error(e, "Loading deadlines failed")
    st.stop()

if not deadlines:
    st.info("Nothing due. Quizzes with a due date show up here until you take them.")
    st.stop()

for d in deadlines:
    with st.container(border=True):
        col1, col2 = st.columns([3, 1])
        with col1:
            st.markdown(f"**{d.quiz_title}**")
            st.caption(f"{d.course_title} · {d.lesson_title}")
        with col2:
            st.write(d.due_date.strftime("%Y-%m-%d %H:%M UTC"))
            if d.overdue:
                st.error("Overdue")
        if st.button("Open course", key=f"cal_open_{d.quiz_id}"):
            st.session_state.selected_course_id = d.course_id
            st.switch_page("pages/2_Course_View.py")
