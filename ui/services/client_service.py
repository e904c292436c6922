# ============================================================================
# ui/services/client_service.py
# ============================================================================
"""
Client Service

Interfaces between the Streamlit UI and the async MediBill client core.

The shell is a single-user local app. ClientService is one instance per
process and LocalStorage is one file per machine, standing in for a single
browser's localStorage. Every browser tab connected to the same
`streamlit run` process therefore shares one login. Do not expose the shell
to several users from one server; each user runs their own process.
"""

import asyncio
from typing import Any, Awaitable
import logging

import streamlit as st

from src.medibill_client.core import (
    ApiTransport,
    DashboardSummary,
    DocumentAnalysisService,
    GuardDecision,
    LocalStorage,
    OutcomeAccumulator,
    RequestOutcome,
    RouteGuard,
    SessionManager,
    SessionState,
)
from src.utils.logging import setup_logging_from_settings

logger = logging.getLogger(__name__)


class ClientService:
    """
    Service layer for the Streamlit pages.

    One instance per process: local storage belongs to this machine, like a
    browser's localStorage.
    """

    _instance = None
    _session = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._session is None:
            self._init_core()

    def _init_core(self):
        """Wire transport, storage, session and accumulator together."""
        setup_logging_from_settings()

        self.transport = ApiTransport()
        self.storage = LocalStorage()
        self._session = SessionManager(self.transport, self.storage)
        self.accumulator = OutcomeAccumulator(self.storage)
        self.analysis = DocumentAnalysisService(self._session, self.accumulator)
        self.guard = RouteGuard(self._session)
        logger.info(f"Client initialized for {self.transport.base_url}")

    @property
    def session(self) -> SessionManager:
        return self._session

    def run(self, coro: Awaitable[Any]) -> Any:
        """Run a core coroutine to completion from Streamlit's sync code."""
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            return loop.run_until_complete(coro)
        finally:
            loop.run_until_complete(self.transport.close())
            loop.close()

    def ensure_restored(self) -> SessionState:
        if not self._session.is_resolved:
            self.run(self._session.restore())
        return self._session.state

    def login(self, username: str, password: str) -> RequestOutcome:
        return self.run(self._session.login_with_credentials(username, password))

    def register(self, username: str, email: str, password: str) -> RequestOutcome:
        return self.run(self._session.register(username, email, password))

    def analyze(self, content: bytes, filename: str, force_ocr: bool) -> RequestOutcome:
        return self.run(self.analysis.analyze(content, filename, force_ocr=force_ocr))

    def summary(self) -> DashboardSummary:
        return self.accumulator.summary()

    def logout(self) -> None:
        self._session.logout()
        st.session_state.pop("last_result", None)


def require_login(service: ClientService) -> None:
    """Stop rendering the page unless a user is logged in."""
    service.ensure_restored()
    decision = service.guard.check()

    if decision == GuardDecision.PENDING:
        st.info("Loading...")
        st.stop()
    if decision == GuardDecision.REDIRECT_LOGIN:
        st.warning("Please log in to continue.")
        st.switch_page("app.py")
        st.stop()
