# ============================================================================
# ui/pages/3_results.py
# ============================================================================
"""
Results Page
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

    st.title("📋 Analysis Results")

    result = st.session_state.get("last_result")
    if result is None:
        st.info("No analysis yet.")
        st.page_link("pages/2_upload.py", label="Upload a document")
        return

    report = result.report
    summary = report.validation.summary

    st.metric("Compliance Score", f"{summary.compliance_score * 100:.0f}%")

    if report.validation.flags:
        st.subheader(f"Flags ({len(report.validation.flags)})")
        for flag in report.validation.flags:
            text = f"**{flag.rule}**: {flag.description}"
            if flag.severity == "error":
                st.error(text)
            elif flag.severity == "warning":
                st.warning(text)
            else:
                st.info(text)

    if report.line_items:
        st.subheader("Line Items")
        st.dataframe(report.line_items, use_container_width=True)

    if summary.recommendations:
        st.subheader("Recommendations")
        for recommendation in summary.recommendations:
            st.write(f"- {recommendation}")

    with st.expander("View Raw JSON"):
        st.json(report.model_dump())


main()
