# ============================================================================
# src/medibill_client/core/classifiers.py
# ============================================================================
"""
Response Classifiers

Turns a raw HTTP exchange into a RequestOutcome. The backend may answer with
JSON, plain text, HTML injected by a tunnel or reverse proxy, or nothing at
all, so bodies are sniffed by an ordered chain of classifiers. Each
classifier returns an outcome when it recognises the response, or None to
hand over to the next one. Earlier classifiers pre-empt later, more generic
ones, so chain order matters:

    failure status:  JSON error message -> short plain text
                     -> tunnel interstitial -> "Error <status>: <reason>"

    success status:  empty body -> declared JSON -> lenient JSON
                     -> tunnel interstitial -> HTML page -> invalid format
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple
import json
import logging

from .outcome import ErrorKind, Failure, RequestOutcome, Success, kind_for_status


logger = logging.getLogger(__name__)


# Error-field names checked in order; the first non-empty one wins
ERROR_MESSAGE_FIELDS: Tuple[str, ...] = ("msg", "error", "message", "detail")

HTML_SIGNATURES: Tuple[str, ...] = ("<!doctype html", "<html")

# Markers of the warning pages ngrok and localtunnel serve in place of the
# forwarded response
TUNNEL_SIGNATURES: Tuple[str, ...] = (
    "ngrok-skip-browser-warning",
    "err_ngrok_",
    "bypass-tunnel-reminder",
)

TUNNEL_BLOCKED_MESSAGE = (
    "Tunnel Connection Error: a tunnel warning page (ngrok/localtunnel) was "
    "returned instead of the backend response. Open the API URL in a browser "
    "once to accept the warning, or restart the tunnel."
)
HTML_INSTEAD_OF_JSON_MESSAGE = (
    "Received HTML instead of JSON. The server URL might be incorrect or "
    "returning a dashboard page."
)
INVALID_FORMAT_MESSAGE = "Server returned invalid response format"

_NOT_JSON = object()


@dataclass(frozen=True)
class RawResponse:
    """What the transport read off the wire before classification."""
    status: int
    reason: str = ""
    content_type: str = ""
    text: str = ""

    @property
    def ok(self) -> bool:
        return self.status < 400

    @property
    def declares_json(self) -> bool:
        content_type = (self.content_type or "").lower()
        return "application/json" in content_type or content_type.endswith("+json")

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


def parse_json(text: str) -> Any:
    """Decode JSON text, returning the _NOT_JSON sentinel on failure."""
    if not text or not text.strip():
        return _NOT_JSON
    try:
        return json.loads(text)
    except ValueError:
        return _NOT_JSON


def looks_like_html(text: str) -> bool:
    lowered = text.lower()
    return any(signature in lowered for signature in HTML_SIGNATURES)


def is_tunnel_interstitial(text: str) -> bool:
    lowered = text.lower()
    return any(signature in lowered for signature in TUNNEL_SIGNATURES)


def extract_error_message(payload: Any) -> Optional[str]:
    """Pull a human-readable message out of a decoded JSON error body."""
    if not isinstance(payload, dict):
        return None

    for field_name in ERROR_MESSAGE_FIELDS:
        value = payload.get(field_name)
        if value in (None, "", [], {}):
            continue
        if isinstance(value, str):
            return value
        # FastAPI validation errors put a list under "detail"
        return json.dumps(value)

    return None


def generic_status_message(raw: RawResponse) -> str:
    return f"Error {raw.status}: {raw.reason}".rstrip(": ").rstrip()


class ResponseClassifier(ABC):
    """One link of a classifier chain."""

    name = "classifier"

    @abstractmethod
    def classify(self, raw: RawResponse) -> Optional[RequestOutcome]:
        """Return an outcome if this classifier recognises the response."""
        pass


# ----------------------------------------------------------------------------
# Failure-status classifiers
# ----------------------------------------------------------------------------

class _FailureClassifier(ResponseClassifier):

    def __init__(self, auth_rejected_statuses: Iterable[int] = (401,)):
        self.auth_rejected_statuses = tuple(auth_rejected_statuses)

    def _failure(self, raw: RawResponse, message: str) -> Failure:
        return Failure(
            kind=kind_for_status(raw.status, self.auth_rejected_statuses),
            message=message,
            status=raw.status,
        )


class JsonErrorClassifier(_FailureClassifier):
    """Failure body is JSON: use the first recognised message field."""

    name = "json_error"

    def classify(self, raw: RawResponse) -> Optional[RequestOutcome]:
        payload = parse_json(raw.text)
        if payload is _NOT_JSON:
            return None

        message = extract_error_message(payload)
        return self._failure(raw, message or generic_status_message(raw))


class PlainTextErrorClassifier(_FailureClassifier):
    """Failure body is short plain text that can be shown as-is."""

    name = "plain_text_error"

    def __init__(self, auth_rejected_statuses: Iterable[int] = (401,), max_length: int = 200):
        super().__init__(auth_rejected_statuses)
        self.max_length = max_length

    def classify(self, raw: RawResponse) -> Optional[RequestOutcome]:
        text = raw.text.strip()
        if not text or len(text) >= self.max_length:
            return None
        if looks_like_html(text) or is_tunnel_interstitial(text):
            return None
        return self._failure(raw, text)


class GenericStatusClassifier(_FailureClassifier):
    """Last resort: status code and reason phrase."""

    name = "generic_status"

    def classify(self, raw: RawResponse) -> Optional[RequestOutcome]:
        return self._failure(raw, generic_status_message(raw))


# ----------------------------------------------------------------------------
# Classifiers shared by both chains
# ----------------------------------------------------------------------------

class TunnelInterstitialClassifier(ResponseClassifier):
    """Tunnel warning page in place of the real response, whatever the status."""

    name = "tunnel_interstitial"

    def classify(self, raw: RawResponse) -> Optional[RequestOutcome]:
        if raw.is_empty or not is_tunnel_interstitial(raw.text):
            return None
        return Failure(ErrorKind.TUNNEL_BLOCKED, TUNNEL_BLOCKED_MESSAGE, raw.status)


# ----------------------------------------------------------------------------
# Success-status classifiers
# ----------------------------------------------------------------------------

class EmptyBodyClassifier(ResponseClassifier):
    """204 No Content, or any success with nothing in the body."""

    name = "empty_body"

    def classify(self, raw: RawResponse) -> Optional[RequestOutcome]:
        if raw.is_empty:
            return Success({}, raw.status)
        return None


class DeclaredJsonClassifier(ResponseClassifier):
    name = "declared_json"

    def classify(self, raw: RawResponse) -> Optional[RequestOutcome]:
        if not raw.declares_json:
            return None
        payload = parse_json(raw.text)
        if payload is _NOT_JSON:
            logger.warning(f"Response declared {raw.content_type!r} but is not valid JSON")
            return None
        return Success(payload, raw.status)


class LenientJsonClassifier(ResponseClassifier):
    """Accept JSON bodies from backends that forget the Content-Type header."""

    name = "lenient_json"

    def classify(self, raw: RawResponse) -> Optional[RequestOutcome]:
        if raw.declares_json:
            return None
        payload = parse_json(raw.text)
        if payload is _NOT_JSON:
            return None
        logger.debug(f"Accepting undeclared JSON body (content type {raw.content_type!r})")
        return Success(payload, raw.status)


class HtmlDocumentClassifier(ResponseClassifier):
    """HTML where JSON was expected, typically a misconfigured reverse proxy."""

    name = "html_document"

    def classify(self, raw: RawResponse) -> Optional[RequestOutcome]:
        if not looks_like_html(raw.text):
            return None
        return Failure(ErrorKind.MALFORMED_RESPONSE, HTML_INSTEAD_OF_JSON_MESSAGE, raw.status)


class InvalidFormatClassifier(ResponseClassifier):
    name = "invalid_format"

    def classify(self, raw: RawResponse) -> Optional[RequestOutcome]:
        logger.warning(f"Response was not JSON: {raw.text[:200]!r}")
        return Failure(ErrorKind.MALFORMED_RESPONSE, INVALID_FORMAT_MESSAGE, raw.status)


# ----------------------------------------------------------------------------
# Chains
# ----------------------------------------------------------------------------

def build_failure_chain(
    auth_rejected_statuses: Iterable[int] = (401,),
    error_text_max_length: int = 200,
) -> List[ResponseClassifier]:
    statuses = tuple(auth_rejected_statuses)
    return [
        JsonErrorClassifier(statuses),
        PlainTextErrorClassifier(statuses, max_length=error_text_max_length),
        TunnelInterstitialClassifier(),
        GenericStatusClassifier(statuses),
    ]


def build_success_chain() -> List[ResponseClassifier]:
    return [
        EmptyBodyClassifier(),
        DeclaredJsonClassifier(),
        LenientJsonClassifier(),
        TunnelInterstitialClassifier(),
        HtmlDocumentClassifier(),
        InvalidFormatClassifier(),
    ]


class ResponseNormalizer:
    """Runs a RawResponse through the chain matching its status."""

    def __init__(
        self,
        failure_chain: Optional[Sequence[ResponseClassifier]] = None,
        success_chain: Optional[Sequence[ResponseClassifier]] = None,
    ):
        self.failure_chain = list(failure_chain) if failure_chain is not None else build_failure_chain()
        self.success_chain = list(success_chain) if success_chain is not None else build_success_chain()

    def normalize(self, raw: RawResponse) -> RequestOutcome:
        chain = self.success_chain if raw.ok else self.failure_chain

        for classifier in chain:
            outcome = classifier.classify(raw)
            if outcome is not None:
                logger.debug(f"Status {raw.status} classified by {classifier.name}")
                return outcome

        # Both default chains end in a classifier that always matches
        return Failure(ErrorKind.UNKNOWN, generic_status_message(raw), raw.status)
