# ============================================================================
# ui/pages/2_upload.py
# ============================================================================
"""
Upload Page

Submits a bill or receipt to the analysis endpoint.
"""

import streamlit as st
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.medibill_client.core import ErrorKind
from ui.services.client_service import ClientService, require_login


service = ClientService()


def main():
    require_login(service)

    st.title("📤 Upload Document")
    st.markdown("Upload a medical bill or receipt (PDF, PNG or JPG).")

    uploaded_file = st.file_uploader("Choose a file", type=['pdf', 'png', 'jpg', 'jpeg'])
    force_ocr = st.checkbox("Force OCR", help="Run OCR even if the PDF has a text layer")

    if st.button("🚀 Run Analysis", type="primary", disabled=uploaded_file is None):
        with st.spinner("Analyzing document..."):
            outcome = service.analyze(uploaded_file.getvalue(), uploaded_file.name, force_ocr)

        if outcome.ok:
            st.session_state.last_result = outcome.body
            st.switch_page("pages/3_results.py")
        elif outcome.kind == ErrorKind.AUTH_REJECTED:
            st.warning("Your session expired. Please log in again.")
            st.switch_page("app.py")
        else:
            st.error(outcome.message)


main()
