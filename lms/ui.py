import logging
import streamlit as st

from lms.auth import create_user, authenticate_user
from lms.errors import LMSError
from lms.notifications import unread_count

logger = logging.getLogger(__name__)


def apply_global_styles():
    st.markdown(
        """
        <style>
        :root {
            --page-bg: #10151c;
            --text: #e6edf3;
            --muted: #9aa7b4;
        }

        .stApp {
            background: var(--page-bg);
            color: var(--text);
        }

        .hero {
            padding: 1.25rem 1.5rem;
            border-left: 4px solid #3fb950;
            border-radius: 8px;
            background: #161d26;
            margin-bottom: 1.25rem;
        }

        .hero p {
            color: var(--muted);
            margin: 0;
        }

        [data-testid="stSidebarNav"] {
            display: none;
        }
        </style>
        """,
        unsafe_allow_html=True,
    )


def render_hero(title, subtitle):
    st.markdown(
        f"""
        <div class="hero">
            <h2>{title}</h2>
            <p>{subtitle}</p>
        </div>
        """,
        unsafe_allow_html=True,
    )


def render_sidebar():
    with st.sidebar:
        st.header("Account")
        render_auth()

        st.divider()

        render_nav()


def render_auth():
    if st.session_state.user is None:
        auth_options = ["Log in", "Sign up"]
        if st.session_state.get("pending_auth_tab"):
            st.session_state["auth_tab"] = auth_options[0]
            st.session_state.reg_success = True
            st.session_state.pending_auth_tab = False
        auth_tab = st.selectbox("Account", auth_options, key="auth_tab")
        if auth_tab == auth_options[0]:
            if st.session_state.get("reg_success"):
                st.success("Registration complete. You can log in now.")
                st.session_state.reg_success = False
            email = st.text_input("Email", key="login_email")
            password = st.text_input("Password", type="password", key="login_password")
            if st.button("Log in", key="login_btn"):
                try:
                    user = authenticate_user(email, password)
                    if user:
                        st.session_state.user = {
                            "id": user.id,
                            "email": user.email,
                            "role": user.role,
                            "full_name": user.full_name,
                        }
                        st.success("Logged in")
                        st.rerun()
                    else:
                        st.error("Wrong email or password")
                except Exception:
                    logger.exception("Login failed")
                    st.error("Could not log in. Please try again.")
        else:
            reg_email = st.text_input("Email", key="reg_email")
            reg_name = st.text_input("Full name", key="reg_name")
            reg_password = st.text_input("Password", type="password", key="reg_password")
            role_choice = st.selectbox("Role", ["student", "educator"], key="reg_role")
            if st.button("Sign up", key="reg_btn"):
                try:
                    create_user(
                        reg_email,
                        reg_password,
                        full_name=reg_name,
                        role=role_choice,
                    )
                    st.session_state.pending_auth_tab = True
                    st.rerun()
                except LMSError as e:
                    st.error(str(e))
                except Exception:
                    logger.exception("Registration failed")
                    st.error("Could not complete registration. Please try again.")
    else:
        name = st.session_state.user.get("full_name") or st.session_state.user.get("email")
        st.markdown(f"**Logged in as:** {name}")
        if st.button("Log out", key="logout_btn"):
            st.session_state.user = None
            st.session_state.selected_course_id = None
            st.rerun()


def render_nav():
    user = st.session_state.get("user")
    role = user.get("role") if user else "student"

    st.header("Menu")
    st.page_link("app.py", label="Home", icon="🏠")
    st.page_link("pages/1_Courses.py", label="Courses", icon="📚")

    if role in ("educator", "admin"):
        st.page_link("pages/6_Manage_Course.py", label="Manage courses", icon="🛠")
        st.page_link("pages/5_Enrollments.py", label="Enrollments", icon="🧾")
        st.page_link("pages/4_Analytics.py", label="Analytics", icon="📈")
    else:
        st.page_link("pages/2_Course_View.py", label="My courses", icon="🎓")
        st.page_link("pages/3_Grades.py", label="Grades", icon="🏅")
        st.page_link("pages/8_Calendar.py", label="Calendar", icon="🗓")

    label = "Notifications"
    if user:
        unread = unread_count(user["id"])
        if unread:
            label = f"Notifications ({unread})"
    st.page_link("pages/7_Notifications.py", label=label, icon="🔔")


def show_error(exc, context):
    """Log the active exception and show it; call from inside an except block."""
    logger.exception(context)
    if isinstance(exc, LMSError):
        st.error(str(exc))
    else:
        st.error("Something went wrong. Please try again.")
