# ============================================================================
# src/medibill_client/core/__init__.py
# ============================================================================
"""
Core client layer: transport normalization, session state, local statistics.
"""

from .outcome import ErrorKind, Failure, RequestOutcome, Success
from .classifiers import RawResponse, ResponseNormalizer
from .transport import ApiTransport
from .models import (
    AnalysisOutcome,
    AnalysisReport,
    DashboardSummary,
    LoginResponse,
    RegisterResponse,
    User,
)
from .storage import LocalStorage
from .session import Session, SessionManager, SessionState
from .accumulator import OutcomeAccumulator
from .analysis import AnalysisResult, DocumentAnalysisService
from .route_guard import GuardDecision, RouteGuard

__all__ = [
    "ErrorKind",
    "Failure",
    "RequestOutcome",
    "Success",
    "RawResponse",
    "ResponseNormalizer",
    "ApiTransport",
    "AnalysisOutcome",
    "AnalysisReport",
    "DashboardSummary",
    "LoginResponse",
    "RegisterResponse",
    "User",
    "LocalStorage",
    "Session",
    "SessionManager",
    "SessionState",
    "OutcomeAccumulator",
    "AnalysisResult",
    "DocumentAnalysisService",
    "GuardDecision",
    "RouteGuard",
]
