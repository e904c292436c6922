# ============================================================================
# src/medibill_client/core/transport.py
# ============================================================================
"""
API Transport

Wraps every outbound request to the MediBill backend and normalizes the
exchange into a RequestOutcome (Success or a typed Failure). Nothing raised
by aiohttp escapes request(): connection problems become
NETWORK_UNREACHABLE, body sniffing is delegated to ResponseNormalizer.

The backend is often reached through a temporary public tunnel (ngrok,
localtunnel). Those inject an HTML warning page unless asked not to, so every
request carries the bypass headers in TUNNEL_BYPASS_HEADERS.
"""

import aiohttp
import asyncio
import codecs
from typing import Any, Dict, Iterable, Mapping, Optional
import logging

from src.medibill_client.config import client_settings
from .classifiers import RawResponse, ResponseNormalizer, build_failure_chain, build_success_chain
from .outcome import ErrorKind, Failure, RequestOutcome


TUNNEL_BYPASS_HEADERS: Dict[str, str] = {
    "ngrok-skip-browser-warning": "true",
    "Bypass-Tunnel-Reminder": "true",
}

NETWORK_ERROR_MESSAGE = (
    "Network Error: Unable to reach server. Verify the backend is running "
    "and the URL is correct."
)
TIMEOUT_MESSAGE = "Network Error: The server did not respond in time."
AUTH_REQUIRED_MESSAGE = "Authentication required. Please login again."


def build_url(base_url: str, endpoint: str) -> str:
    """Join base URL and endpoint path with exactly one slash."""
    clean_base = base_url.strip().rstrip("/")
    clean_endpoint = endpoint if endpoint.startswith("/") else f"/{endpoint}"
    return f"{clean_base}{clean_endpoint}"


def decode_body(body: bytes, charset: Optional[str]) -> str:
    """Decode a response body, falling back to UTF-8 for missing or unknown charsets."""
    encoding = "utf-8"
    if charset:
        try:
            encoding = codecs.lookup(charset).name
        except LookupError:
            logging.getLogger(__name__).debug(f"Unknown response charset {charset!r}; decoding as utf-8")
    return body.decode(encoding, errors="replace")


class ApiTransport:
    """
    HTTP transport for the MediBill backend.

    Stateless per call apart from the pooled aiohttp session, so concurrent
    requests need no locking.

    Config options (defaults from ClientSettings):
        base_url: Backend base URL
        timeout: Total request timeout in seconds (None = aiohttp default)
        send_tunnel_headers: Attach TUNNEL_BYPASS_HEADERS
        auth_rejected_statuses: Statuses mapped to AUTH_REJECTED
        error_text_max_length: Max length of plain-text error bodies shown verbatim
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        send_tunnel_headers: Optional[bool] = None,
        auth_rejected_statuses: Optional[Iterable[int]] = None,
        error_text_max_length: Optional[int] = None,
        normalizer: Optional[ResponseNormalizer] = None,
    ):
        self.base_url = (base_url if base_url is not None else client_settings.API_BASE_URL).strip().rstrip("/")
        self.timeout = timeout if timeout is not None else client_settings.REQUEST_TIMEOUT
        self.send_tunnel_headers = (
            send_tunnel_headers if send_tunnel_headers is not None
            else client_settings.SEND_TUNNEL_BYPASS_HEADERS
        )

        if normalizer is None:
            statuses = (
                auth_rejected_statuses if auth_rejected_statuses is not None
                else client_settings.AUTH_REJECTED_STATUSES
            )
            max_length = (
                error_text_max_length if error_text_max_length is not None
                else client_settings.ERROR_TEXT_MAX_LENGTH
            )
            normalizer = ResponseNormalizer(
                failure_chain=build_failure_chain(statuses, max_length),
                success_chain=build_success_chain(),
            )
        self.normalizer = normalizer

        # HTTP session (created lazily, tied to event loop)
        self._session: Optional[aiohttp.ClientSession] = None
        self._session_loop: Optional[asyncio.AbstractEventLoop] = None

        self.logger = logging.getLogger(self.__class__.__name__)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session for current event loop."""
        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None

        needs_new_session = (
            self._session is None
            or self._session.closed
            or self._session_loop is None
            or self._session_loop != current_loop
            or self._session_loop.is_closed()
        )

        if needs_new_session:
            if self._session is not None and not self._session.closed:
                try:
                    await self._session.close()
                except Exception as e:
                    self.logger.debug(f"Ignoring error closing stale session: {e}")

            if self.timeout is not None:
                self._session = aiohttp.ClientSession(
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                )
            else:
                self._session = aiohttp.ClientSession()
            self._session_loop = current_loop

        return self._session

    async def close(self):
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
        self._session_loop = None

    def build_headers(
        self,
        token: Optional[str] = None,
        extra_headers: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.send_tunnel_headers:
            headers.update(TUNNEL_BYPASS_HEADERS)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if extra_headers:
            headers.update(extra_headers)
        return headers

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        token: Optional[str] = None,
        json: Any = None,
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        require_auth: bool = False,
    ) -> RequestOutcome:
        """
        Issue one request and normalize the result.

        Args:
            endpoint: Path relative to the base URL (leading slash optional)
            method: HTTP method
            token: Bearer token, sent as Authorization header
            json: JSON-serializable body
            data: Form body (aiohttp.FormData for multipart uploads)
            headers: Extra headers, override the defaults
            require_auth: Fail with AUTH_REQUIRED instead of sending without a token

        Returns:
            Success(body) or Failure(kind, message, status)
        """
        if require_auth and not token:
            self.logger.warning(f"Blocked {method} {endpoint}: no token available")
            return Failure(ErrorKind.AUTH_REQUIRED, AUTH_REQUIRED_MESSAGE)

        url = build_url(self.base_url, endpoint)
        self.logger.debug(f"[API] {method} {url}")

        try:
            session = await self._get_session()
            async with session.request(
                method,
                url,
                json=json,
                data=data,
                headers=self.build_headers(token, headers),
            ) as response:
                body = await response.read()
                raw = RawResponse(
                    status=response.status,
                    reason=response.reason or "",
                    content_type=response.headers.get("Content-Type", ""),
                    text=decode_body(body, response.charset),
                )

        except asyncio.TimeoutError:
            self.logger.error(f"[API] Timed out waiting for {url}")
            return Failure(ErrorKind.NETWORK_UNREACHABLE, TIMEOUT_MESSAGE)
        except aiohttp.ClientConnectionError as e:
            self.logger.error(f"[API] Cannot reach {url}: {e}")
            return Failure(ErrorKind.NETWORK_UNREACHABLE, NETWORK_ERROR_MESSAGE)
        except Exception as e:
            self.logger.error(f"[API] Request to {url} failed: {e}")
            return Failure(ErrorKind.UNKNOWN, str(e) or e.__class__.__name__)

        outcome = self.normalizer.normalize(raw)
        if not outcome.ok:
            self.logger.warning(
                f"[API] {method} {url} -> {raw.status} {outcome.kind.value}: {outcome.message}"
            )
        return outcome

    async def get(self, endpoint: str, **kwargs) -> RequestOutcome:
        return await self.request(endpoint, method="GET", **kwargs)

    async def post(self, endpoint: str, **kwargs) -> RequestOutcome:
        return await self.request(endpoint, method="POST", **kwargs)
