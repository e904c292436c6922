# ============================================================================
# ui/pages/1_dashboard.py
# ============================================================================
"""
Dashboard Page

Locally accumulated statistics of past analyses.
"""

import streamlit as st
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from ui.services.client_service import ClientService, require_login


service = ClientService()


def main():
    require_login(service)

    st.title("📊 Dashboard")
    st.caption("Counted on this device only.")

    summary = service.summary()
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Documents Analyzed", summary.total_analyzed)
    with col2:
        st.metric("High Compliance", summary.high_compliance)
    with col3:
        st.metric("Flagged Issues", summary.flagged_issues)

    st.page_link("pages/2_upload.py", label="Analyze a new document")


main()
