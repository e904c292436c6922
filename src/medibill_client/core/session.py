# ============================================================================
# src/medibill_client/core/session.py
# ============================================================================
"""
Session Manager

Single source of truth for "is there a logged-in user", reconciled against
the backend on startup.

    UNKNOWN --restore ok--------------> AUTHENTICATED
    UNKNOWN --no token / restore fail-> ANONYMOUS     (stored token discarded)
    *       --login-------------------> AUTHENTICATED
    AUTHENTICATED --logout / AUTH_REJECTED--> ANONYMOUS

Every transition bumps `generation`. Async operations capture the generation
before going to the network and drop their result if it changed meanwhile,
so a logout issued while a restore is pending is never undone by the
restore's response.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union
import logging

from pydantic import ValidationError

from src.medibill_client.config import storage_settings
from src.utils.exceptions import StorageError
from src.utils.logging import mask_token
from .models import PLACEHOLDER_USER_ID, LoginResponse, ProfileResponse, RegisterResponse, User
from .outcome import ErrorKind, Failure, RequestOutcome, Success
from .storage import LocalStorage
from .transport import ApiTransport


PROFILE_ENDPOINT = "/profile"
LOGIN_ENDPOINT = "/login"
REGISTER_ENDPOINT = "/register"

SUPERSEDED_MESSAGE = "Session changed while the request was in flight; result discarded."


class SessionState(str, Enum):
    UNKNOWN = "unknown"              # restore not finished yet
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


@dataclass(frozen=True)
class Session:
    token: Optional[str] = None
    user: Optional[User] = None


class SessionManager:
    """
    Owns the bearer token and current user.

    Injected into whatever needs it (views, DocumentAnalysisService,
    RouteGuard); the rest of the system only uses the read accessors and
    restore() / login() / logout().
    """

    def __init__(
        self,
        transport: ApiTransport,
        storage: LocalStorage,
        token_key: Optional[str] = None,
    ):
        self.transport = transport
        self.storage = storage
        self.token_key = token_key or storage_settings.TOKEN_KEY

        self._state = SessionState.UNKNOWN
        self._token: Optional[str] = None
        self._user: Optional[User] = None
        self._generation = 0

        self.logger = logging.getLogger(self.__class__.__name__)

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def session(self) -> Session:
        return Session(token=self._token, user=self._user)

    @property
    def is_authenticated(self) -> bool:
        return self._state == SessionState.AUTHENTICATED

    @property
    def is_resolved(self) -> bool:
        return self._state != SessionState.UNKNOWN

    @property
    def has_placeholder_identity(self) -> bool:
        """True between login() and the first successful profile fetch."""
        return self._user is not None and self._user.user_id == PLACEHOLDER_USER_ID

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def restore(self) -> SessionState:
        """
        Restore the session from the stored token.

        Any failure (expired token, unreachable backend, malformed profile)
        downgrades to ANONYMOUS and discards the stored token. Never raises.
        """
        generation = self._generation
        token = self.storage.get_item(self.token_key)

        if not token or not isinstance(token, str):
            self.logger.info("No stored token, starting anonymous")
            self._become_anonymous(discard_stored_token=token is not None)
            return self._state

        self.logger.info(f"Restoring session with stored token {mask_token(token)}")
        outcome = await self.transport.get(PROFILE_ENDPOINT, token=token, require_auth=True)

        if generation != self._generation:
            self.logger.info("Session changed during restore; discarding profile response")
            return self._state

        user = self._profile_user(outcome)
        if user is None:
            reason = outcome.message if isinstance(outcome, Failure) else "malformed profile"
            self.logger.warning(f"Session restore failed, discarding stored token: {reason}")
            self._become_anonymous(discard_stored_token=True)
            return self._state

        self._become_authenticated(token, user)
        self.logger.info(f"Session restored for {user.username}")
        return self._state

    def login(self, data: Union[LoginResponse, Dict[str, Any]]) -> User:
        """
        Start a session from a login response.

        The login response carries only a username, so the user id is
        PLACEHOLDER_USER_ID until refresh_profile() (or the next restore)
        replaces it.
        """
        response = data if isinstance(data, LoginResponse) else LoginResponse.model_validate(data)

        try:
            self.storage.set_item(self.token_key, response.access_token)
        except StorageError:
            self.logger.exception("Could not persist token; session will not survive a restart")

        user = User(user_id=PLACEHOLDER_USER_ID, username=response.username)
        self._become_authenticated(response.access_token, user)
        self.logger.info(f"Logged in as {user.username}")
        return user

    def logout(self) -> None:
        """Drop the session. The stored token is removed before this returns."""
        was = self._state
        self._become_anonymous(discard_stored_token=True)
        if was == SessionState.AUTHENTICATED:
            self.logger.info("Logged out")

    # ------------------------------------------------------------------
    # Backend operations
    # ------------------------------------------------------------------

    async def login_with_credentials(self, username: str, password: str) -> RequestOutcome:
        """POST /login and start a session from the response."""
        generation = self._generation
        outcome = await self.transport.post(
            LOGIN_ENDPOINT, json={"username": username, "password": password}
        )
        if not outcome.ok:
            return outcome

        if generation != self._generation:
            self.logger.info("Session changed during login; discarding login response")
            return Failure(ErrorKind.UNKNOWN, SUPERSEDED_MESSAGE)

        try:
            response = LoginResponse.model_validate(outcome.body)
        except ValidationError as e:
            self.logger.warning(f"Login response rejected: {e}")
            return Failure(
                ErrorKind.MALFORMED_RESPONSE,
                "Login response did not include an access token.",
                outcome.status,
            )

        return Success(self.login(response), outcome.status)

    async def register(self, username: str, email: str, password: str) -> RequestOutcome:
        """POST /register. Does not establish a session."""
        outcome = await self.transport.post(
            REGISTER_ENDPOINT,
            json={"username": username, "email": email, "password": password},
        )
        if not outcome.ok:
            return outcome

        try:
            return Success(RegisterResponse.model_validate(outcome.body), outcome.status)
        except ValidationError as e:
            self.logger.warning(f"Register response rejected: {e}")
            return Failure(
                ErrorKind.MALFORMED_RESPONSE,
                "Registration response was missing user details.",
                outcome.status,
            )

    async def refresh_profile(self) -> RequestOutcome:
        """Re-fetch the profile and replace the (possibly placeholder) user."""
        generation = self._generation
        token = self._token
        outcome = await self.request(PROFILE_ENDPOINT)
        if not outcome.ok:
            return outcome

        if generation != self._generation or token != self._token:
            return Failure(ErrorKind.UNKNOWN, SUPERSEDED_MESSAGE)

        user = self._profile_user(outcome)
        if user is None:
            return Failure(
                ErrorKind.MALFORMED_RESPONSE,
                "Profile response did not contain a user.",
                outcome.status,
            )

        self._user = user
        self.logger.debug(f"Profile reconciled for {user.username} (id={user.user_id})")
        return Success(user, outcome.status)

    async def request(self, endpoint: str, **kwargs) -> RequestOutcome:
        """
        Authenticated request through the transport.

        Sends the current token, refuses to go out without one, and logs the
        session out if the backend rejects that token.
        """
        token = self._token
        outcome = await self.transport.request(endpoint, token=token, require_auth=True, **kwargs)
        self.handle_outcome(outcome, token)
        return outcome

    def handle_outcome(self, outcome: RequestOutcome, token: Optional[str]) -> None:
        """Log out on AUTH_REJECTED, unless the rejected token is no longer current."""
        if outcome.ok or outcome.kind != ErrorKind.AUTH_REJECTED:
            return
        if token is None or token != self._token:
            self.logger.debug("Ignoring AUTH_REJECTED for a token that is no longer current")
            return

        self.logger.warning(f"Token rejected by backend: {outcome.message}")
        self.logout()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _profile_user(self, outcome: RequestOutcome) -> Optional[User]:
        if not outcome.ok:
            return None
        try:
            return ProfileResponse.model_validate(outcome.body).profile
        except ValidationError as e:
            self.logger.warning(f"Malformed profile response: {e}")
            return None

    def _become_authenticated(self, token: str, user: User) -> None:
        self._token = token
        self._user = user
        self._state = SessionState.AUTHENTICATED
        self._generation += 1

    def _become_anonymous(self, discard_stored_token: bool) -> None:
        if discard_stored_token:
            try:
                self.storage.remove_item(self.token_key)
            except StorageError:
                self.logger.exception("Could not remove stored token")

        self._token = None
        self._user = None
        self._state = SessionState.ANONYMOUS
        self._generation += 1
