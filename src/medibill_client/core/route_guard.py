# ============================================================================
# src/medibill_client/core/route_guard.py
# ============================================================================
"""
Route guard for authenticated views.
"""

from enum import Enum

from .session import SessionManager, SessionState


class GuardDecision(str, Enum):
    PENDING = "pending"                # restore in progress, render a placeholder
    REDIRECT_LOGIN = "redirect_login"
    ALLOW = "allow"


class RouteGuard:

    def __init__(self, session: SessionManager):
        self.session = session

    def check(self) -> GuardDecision:
        state = self.session.state
        if state == SessionState.UNKNOWN:
            return GuardDecision.PENDING
        if state == SessionState.AUTHENTICATED:
            return GuardDecision.ALLOW
        return GuardDecision.REDIRECT_LOGIN
