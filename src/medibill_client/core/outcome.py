# ============================================================================
# src/medibill_client/core/outcome.py
# ============================================================================
"""
Request Outcomes
- ErrorKind taxonomy
- Success / Failure result values returned by every transport call
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from src.utils.exceptions import TransportError


class ErrorKind(str, Enum):
    AUTH_REQUIRED = "auth_required"            # no token, never sent
    AUTH_REJECTED = "auth_rejected"            # token invalid / expired
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"              # 5xx, status attached
    REQUEST_REJECTED = "request_rejected"      # other 4xx, status attached
    MALFORMED_RESPONSE = "malformed_response"  # success status, unusable body
    TUNNEL_BLOCKED = "tunnel_blocked"          # tunnel interstitial page
    NETWORK_UNREACHABLE = "network_unreachable"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Success:
    body: Any = field(default_factory=dict)
    status: Optional[int] = None

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> Any:
        return self.body


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    status: Optional[int] = None

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        """Raise this failure as a TransportError."""
        raise TransportError(self.kind, self.message, self.status)

    def __str__(self) -> str:
        return self.message


RequestOutcome = Union[Success, Failure]


def kind_for_status(status: int, auth_rejected_statuses=(401,)) -> ErrorKind:
    """Map a failure HTTP status to its ErrorKind."""
    if status in auth_rejected_statuses:
        return ErrorKind.AUTH_REJECTED
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status >= 500:
        return ErrorKind.SERVER_ERROR
    if 400 <= status < 500:
        return ErrorKind.REQUEST_REJECTED
    return ErrorKind.UNKNOWN
