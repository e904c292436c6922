#!/usr/bin/env python3
# ============================================================================
# ui/app.py
# ============================================================================
"""
MediBill - Streamlit UI

Main application entry point: login and registration.

Usage:
    streamlit run ui/app.py
"""

import streamlit as st
from pathlib import Path
import sys

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from ui.services.client_service import ClientService


def render_login(service: ClientService):
    with st.form("login"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Log in", type="primary")

    if submitted:
        with st.spinner("Signing in..."):
            outcome = service.login(username, password)
        if outcome.ok:
            st.switch_page("pages/1_dashboard.py")
        else:
            st.error(outcome.message)


def render_register(service: ClientService):
    with st.form("register"):
        username = st.text_input("Username", key="reg_username")
        email = st.text_input("Email", key="reg_email")
        password = st.text_input("Password", type="password", key="reg_password")
        submitted = st.form_submit_button("Create account")

    if submitted:
        outcome = service.register(username, email, password)
        if outcome.ok:
            st.success(f"Account created for {outcome.body.username}. You can log in now.")
        else:
            st.error(outcome.message or "Registration failed.")


def main():
    """Main application entry point."""
    st.set_page_config(
        page_title="MediBill",
        page_icon="🏥",
        layout="wide",
    )

    service = ClientService()
    with st.spinner("Restoring session..."):
        service.ensure_restored()

    st.title("🏥 MediBill")

    if service.session.is_authenticated:
        st.success(f"Logged in as **{service.session.user.username}**")
        col1, col2 = st.columns([1, 5])
        with col1:
            if st.button("Log out"):
                service.logout()
                st.rerun()
        with col2:
            st.page_link("pages/1_dashboard.py", label="Go to dashboard")
        return

    login_tab, register_tab = st.tabs(["Log in", "Register"])
    with login_tab:
        render_login(service)
    with register_tab:
        render_register(service)


if __name__ == "__main__":
    main()
