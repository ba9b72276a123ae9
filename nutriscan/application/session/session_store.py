"""
Session Store.

Owns the bearer token and the cached user record, persists them
in the key-value store and tears the session down when the
backend rejects the token.

Design Pattern: Service Layer + Dependency Injection
"""

import json
from typing import Any, Awaitable, Callable, Optional, TypeVar

import pydantic
import structlog

from nutriscan.domain.session.events import SessionEnded, SessionEndReason, SessionStarted
from nutriscan.domain.session.models import Credentials, Session, User
from nutriscan.domain.session.ports import (
    TOKEN_KEY,
    USER_KEY,
    IAuthGateway,
    IKeyValueStore,
)
from nutriscan.domain.shared.errors import (
    AuthRejectedError,
    MalformedResponseError,
    NotAuthenticatedError,
    StorageError,
)
from nutriscan.infrastructure.events.in_memory_bus import InMemoryEventBus

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class SessionStore:
    """
    Holds at most one live session.

    Responsibilities:
    - Login / registration with local credential checks
    - Persist token and user under `authToken` / `user`
    - Single enforcement point for authenticated calls: no token
      short-circuits, a 401 forces logout exactly once
    - Publish SessionStarted / SessionEnded on the event bus

    Dependencies (injected via Ports/Interfaces):
    - auth_gateway: IAuthGateway - /auth/login and /auth/register
    - storage: IKeyValueStore - Persistent key-value store
    - event_bus: InMemoryEventBus - Session events for the UI

    Example:
        >>> store = SessionStore(client, InMemoryKeyValueStore(), InMemoryEventBus())
        >>> session = await store.login("ada@example.com", "secret1")
        >>> profile = await store.call_authenticated(client.get_profile)
    """

    def __init__(
        self,
        auth_gateway: IAuthGateway,
        storage: IKeyValueStore,
        event_bus: InMemoryEventBus,
    ):
        self.auth_gateway = auth_gateway
        self.storage = storage
        self.event_bus = event_bus
        self._session = Session.empty()
        self._user: Optional[User] = None

    # ═══════════════════════════════════════════════════════════
    # STATE
    # ═══════════════════════════════════════════════════════════

    @property
    def session(self) -> Session:
        return self._session

    @property
    def user(self) -> Optional[User]:
        return self._user

    def current_token(self) -> Optional[str]:
        """Cached token, no validation and no I/O."""
        return self._session.token

    # ═══════════════════════════════════════════════════════════
    # LOGIN / REGISTER / LOGOUT
    # ═══════════════════════════════════════════════════════════

    async def login(self, email: str, password: str) -> Session:
        """
        Authenticate with email and password.

        Raises:
            InvalidCredentialsError: Checked before any network call
            AuthRejectedError: Backend refused the credentials
            NetworkError: Backend unreachable
        """
        credentials = Credentials(email=email, password=password)
        credentials.validate_local()

        payload = await self.auth_gateway.login(**credentials.to_payload())
        return await self._establish(payload)

    async def register(self, email: str, password: str) -> Session:
        """
        Create an account and start a session.

        Raises:
            InvalidCredentialsError: Checked before any network call
            EmailInUseError: Email already registered
            BackendError: Any other backend refusal
        """
        credentials = Credentials(email=email, password=password)
        credentials.validate_local()

        payload = await self.auth_gateway.register(**credentials.to_payload())
        return await self._establish(payload)

    async def logout(self) -> None:
        """Clear the session. Never fails; storage errors are logged."""
        self._clear()
        await self._forget_persisted()
        logger.info("User logged out")
        await self.event_bus.publish(SessionEnded(reason=SessionEndReason.USER_LOGOUT))

    async def force_logout(self, rejected_token: Optional[str] = None) -> bool:
        """
        Tear down the session after an authentication rejection.

        Only the session that owned `rejected_token` is cleared, so a
        stale 401 never ends a newer session.

        Returns:
            True if a live session was ended (SessionEnded published)
        """
        token = self._session.token
        if token is None:
            return False
        if rejected_token is not None and rejected_token != token:
            return False

        self._clear()
        logger.warning("Session rejected by backend, forcing logout")
        await self._forget_persisted()
        await self.event_bus.publish(SessionEnded(reason=SessionEndReason.AUTH_REJECTED))
        return True

    async def call_authenticated(self, operation: Callable[[str], Awaitable[T]]) -> T:
        """
        Run an operation with the current bearer token.

        Args:
            operation: Coroutine function receiving the token

        Raises:
            NotAuthenticatedError: No token; operation is not called
            AuthRejectedError: Re-raised after forced logout
        """
        token = self.current_token()
        if token is None:
            raise NotAuthenticatedError("Please login first")

        try:
            return await operation(token)
        except AuthRejectedError:
            await self.force_logout(rejected_token=token)
            raise

    # ═══════════════════════════════════════════════════════════
    # RESTORE / CACHE
    # ═══════════════════════════════════════════════════════════

    async def restore(self) -> Session:
        """Reload a persisted session. Storage failures leave it empty."""
        try:
            token = await self.storage.get(TOKEN_KEY)
            raw_user = await self.storage.get(USER_KEY)
        except StorageError as e:
            logger.warning("Session restore failed", error=str(e))
            return self._session

        if not token:
            return self._session

        user = None
        if raw_user:
            try:
                user = User.model_validate(json.loads(raw_user))
            except (ValueError, pydantic.ValidationError) as e:
                logger.warning("Ignoring unreadable cached user", error=str(e))

        self._user = user
        self._session = Session(token=token, user_email=user.email if user else None)
        logger.info("Session restored", has_user=user is not None)
        return self._session

    async def cache_user(self, user: User) -> None:
        """Replace the cached user record (best-effort persistence)."""
        self._user = user
        if self._session.is_authenticated:
            self._session = Session(token=self._session.token, user_email=user.email)
        await self._persist(USER_KEY, user.model_dump_json(exclude_none=True))

    # ═══════════════════════════════════════════════════════════
    # INTERNALS
    # ═══════════════════════════════════════════════════════════

    async def _establish(self, payload: dict[str, Any]) -> Session:
        try:
            token = payload["token"]
            user = User.model_validate(payload["user"])
        except (KeyError, TypeError, pydantic.ValidationError) as e:
            raise MalformedResponseError(f"Invalid auth response: {e}") from e
        if not isinstance(token, str) or not token:
            raise MalformedResponseError("Invalid auth response: empty token")

        self._session = Session(token=token, user_email=user.email)
        self._user = user

        await self._persist(TOKEN_KEY, token)
        await self._persist(USER_KEY, user.model_dump_json(exclude_none=True))

        logger.info("Session started", user_id=user.id)
        await self.event_bus.publish(SessionStarted(user_email=user.email))
        return self._session

    def _clear(self) -> None:
        self._session = Session.empty()
        self._user = None

    async def _persist(self, key: str, value: str) -> None:
        try:
            await self.storage.set(key, value)
        except StorageError as e:
            logger.warning("Failed to persist session data", key=key, error=str(e))

    async def _forget_persisted(self) -> None:
        for key in (TOKEN_KEY, USER_KEY):
            try:
                await self.storage.remove(key)
            except StorageError as e:
                logger.warning("Failed to clear session data", key=key, error=str(e))
