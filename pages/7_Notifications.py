import logging

import streamlit as st

from lms.app_state import init_app, require_login
from lms.ui import apply_global_styles, render_hero, render_sidebar, show_error
from lms.notifications import get_notifications, mark_read

logger = logging.getLogger(__name__)

st.set_page_config(page_title="Notifications", page_icon="🔔", layout="wide")

init_app()
apply_global_styles()
render_sidebar()

user = require_login()

render_hero("Notifications", "Enrollment requests and decisions.")

unread_only = st.toggle("Unread only", value=False)
notifications = get_notifications(user["id"], unread_only=unread_only)

if not notifications:
    st.caption("Nothing here.")

for n in notifications:
    with st.container(border=True):
        col1, col2 = st.columns([5, 1])
        marker = "" if n.is_read else "🔵 "
        col1.markdown(f"{marker}{n.message}")
        col1.caption(n.created_at.strftime("%d %b %Y %H:%M") if n.created_at else "")
        if not n.is_read and col2.button("Mark read", key=f"read_{n.id}"):
            try:
                mark_read(n.id, user["id"])
                st.rerun()
            except Exception as e:
                show_error(e, f"Marking notification {n.id} read failed")
