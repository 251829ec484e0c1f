import streamlit as st

from lms.logging_config import setup_logging

from lms.db import init_db


def init_app():
    setup_logging()
    init_db()

    if "user" not in st.session_state:
        st.session_state.user = None

    if "selected_course_id" not in st.session_state:
        st.session_state.selected_course_id = None

    if "selected_lesson_id" not in st.session_state:
        st.session_state.selected_lesson_id = None

    if "last_attempt_result" not in st.session_state:
        st.session_state.last_attempt_result = None


def current_user():
    return st.session_state.get("user")


def current_role():
    user = current_user()
    return user.get("role") if user else None


def require_login():
    """Stop the page unless someone is logged in; returns the session user dict."""
    user = current_user()
    if user is None:
        st.info("Please log in first.")
        st.stop()
    return user


def require_role(*roles):
    user = require_login()
    if user.get("role") not in roles:
        st.info("This page is not available for your account.")
        st.stop()
    return user
