import logging

import streamlit as st

from lms.app_state import init_app, require_role
from lms.ui import apply_global_styles, render_hero, render_sidebar, show_error
from lms.analytics import TREND_STUDENT_LIMIT, get_course_analytics
from lms.charts import (
    activity_chart,
    engagement_chart,
    student_frame,
    trend_chart,
)
from lms.courses import get_courses_for_instructor

logger = logging.getLogger(__name__)

st.set_page_config(page_title="Analytics", page_icon="📈", layout="wide")

init_app()
apply_global_styles()
render_sidebar()

user = require_role("educator", "admin")

render_hero("Course analytics", "Scores, trends and engagement for the courses you teach.")

courses = get_courses_for_instructor(user["id"])
if not courses:
    st.info("You are not teaching any course yet.")
    st.stop()

course_ids = [c.id for c in courses]
default_index = 0
if st.session_state.selected_course_id in course_ids:
    default_index = course_ids.index(st.session_state.selected_course_id)
selected = st.selectbox("Course", courses, index=default_index, format_func=lambda c: c.title)
st.session_state.selected_course_id = selected.id

try:
    analytics = get_course_analytics(selected.id, user["id"])
except Exception as e:
    show_error(e, f"Loading analytics for course {selected.id} failed")
    st.stop()

summary = analytics.summary
m1, m2, m3 = st.columns(3)
m1.metric("Students", summary.total_students)
m2.metric("Completed", summary.completed_count)
m3.metric("Average progress", f"{summary.average_progress}%")

st.subheader("Average score per activity")
if analytics.activity_averages:
    st.altair_chart(activity_chart(analytics), use_container_width=True)
else:
    st.caption("No quiz attempts yet.")

col_trend, col_share = st.columns(2)
with col_trend:
    st.subheader("Score trends")
    st.caption(f"First {TREND_STUDENT_LIMIT} enrolled students, oldest attempt first.")
    if any(t.scores for t in analytics.trends):
        st.altair_chart(trend_chart(analytics), use_container_width=True)
    else:
        st.caption("No attempts to chart.")

with col_share:
    st.subheader("Engagement")
    if any(e.attempts for e in analytics.engagement):
        st.altair_chart(engagement_chart(analytics), use_container_width=True)
    else:
        st.caption("No submissions yet.")

st.subheader("Students")
df = student_frame(analytics)
if df.empty:
    st.caption("No enrolled students.")
else:
    st.dataframe(df, use_container_width=True, hide_index=True)
    st.download_button(
        "Download CSV",
        df.to_csv(index=False).encode("utf-8"),
        file_name=f"course_{analytics.course_id}_students.csv",
        mime="text/csv",
    )
