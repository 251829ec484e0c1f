import logging

import streamlit as st

from lms.app_state import init_app, require_role
from lms.ui import apply_global_styles, render_hero, render_sidebar, show_error
from lms.charts import grade_frame
from lms.grades import get_grade_report

logger = logging.getLogger(__name__)

st.set_page_config(page_title="Grades", page_icon="🏅", layout="wide")

init_app()
apply_global_styles()
render_sidebar()

user = require_role("student")

render_hero("Grades", "Your quiz results across every course you are enrolled in.")

try:
    report = get_grade_report(user["id"])
except Exception as e:
    show_error(e, "Loading grade report failed")
    st.stop()

if not report:
    st.info("No grades yet. Enroll in a course and take a quiz to see them here.")
    st.stop()

for summary in report:
    with st.container(border=True):
        col1, col2 = st.columns([3, 1])
        with col1:
            st.markdown(f"### {summary.course_title}")
        with col2:
            overall = "N/A" if summary.overall_grade is None else f"{summary.overall_grade}%"
            st.metric("Overall", overall, summary.letter_grade, delta_color="off")

        if summary.graded_quizzes:
            for q in summary.graded_quizzes:
                st.write(f"**{q.title}**: {q.score}/{q.total}")
        else:
            st.caption("No graded quizzes yet.")

        if summary.ungraded_quizzes:
            st.caption("Not taken yet: " + ", ".join(q.title for q in summary.ungraded_quizzes))

df = grade_frame(report)
if not df.empty:
    st.subheader("All graded quizzes")
    st.dataframe(df, use_container_width=True, hide_index=True)
    st.download_button(
        "Download CSV",
        df.to_csv(index=False).encode("utf-8"),
        file_name="grades.csv",
        mime="text/csv",
    )
