"""Session Manager: the single owner of the shared Session.

Responsibilities:
    - Login, two-factor completion, registration and logout
    - Single-flight credential refresh (concurrent callers share one call)
    - authenticated_request(): cache-aware, retries once after a successful
      refresh on 401
    - Bootstrap status check guarded against duplicate invocations
    - Background renewal while a Session is installed
    - Forced logout (live or queued offline) and email-verified completion

Flow (authenticated_request, GET):
1. Cached response younger than the TTL -> returned without network
2. Identical GET already in flight -> awaited, not repeated
3. Request; on 401 -> refresh() once -> retry once only if refresh succeeded
4. 2xx response stored in the cache

Invariants:
    - Only a verified identity is ever installed
    - Installing a different identity drops every cached and in-flight read
    - Local state is cleared in a finally block on logout, whatever the
      network outcome
    - Consumers read the `session` property (or subscribe via add_listener);
      nothing holds a private copy
"""

import asyncio
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any

import httpx

from authsync.application.dtos import (
    LoginOutcome,
    RegistrationAccepted,
    SessionEstablished,
    TwoFactorRequired,
    VerificationRequired,
)
from authsync.application.services.server_messages import error_from_response
from authsync.core.config import Settings
from authsync.core.constants import (
    ADMIN_HOME_PATH,
    AUTH_PAGE_PATHS,
    CURRENT_USER_PATH,
    DEFAULT_HOME_PATH,
    LOGIN_PATH,
    LOGOUT_PATH,
    OFFLINE_MESSAGES_PATH,
    OFFLINE_MESSAGES_PROCESSED_PATH,
    PREFERENCES_PATH,
    REFRESH_PATH,
    REGISTER_PATH,
    TWO_FACTOR_LOGIN_PATH,
)
from authsync.core.enums import ErrorCode
from authsync.core.errors import AuthenticationError, DomainError
from authsync.core.result import Failure, Result, Success
from authsync.domain.entities import Session
from authsync.domain.errors import ApiError, ApiInvalidResponseError
from authsync.domain.events.connection_events import ForcedLogoutReceived
from authsync.domain.events.realtime_messages import (
    CredentialPair,
    EmailVerifiedPayload,
    RealtimeEventType,
)
from authsync.domain.events.session_events import SessionCleared, SessionInstalled
from authsync.domain.protocols.cache_protocol import ResponseCacheProtocol
from authsync.domain.protocols.event_bus_protocol import EventBusProtocol
from authsync.domain.protocols.logger_protocol import LoggerProtocol
from authsync.domain.protocols.navigator_protocol import NavigatorProtocol
from authsync.domain.protocols.preference_store_protocol import PreferenceStoreProtocol
from authsync.domain.value_objects import Email
from authsync.infrastructure.cache.cache_keys import CacheKeys
from authsync.infrastructure.http.api_client import AuthApiClient
from authsync.infrastructure.storage.preference_store import LOCALE_KEY, THEME_KEY

if TYPE_CHECKING:
    from authsync.application.services.room_subscriptions import RoomSubscriptionClient

SessionListener = Callable[[Session | None], None]
"""Synchronous callback receiving the new Session (None when cleared)."""

REGISTRATION_DEFAULT_MESSAGE = (
    "Registration successful. Please check your email to verify your account."
)


class SessionManager:
    """Holds the current identity and performs every session operation.

    Attributes:
        _api: Cookie-carrying REST client.
        _cache: Response cache for idempotent reads.
        _session: Current identity, None when signed out.
        _refresh_task: In-flight refresh shared by concurrent callers.
        _status_task: Bootstrap status check (runs once).
        _inflight: Request key -> in-flight GET task.
        _epoch: Incremented whenever the Session is cleared or another identity
            is installed; in-flight reads started under an older epoch are
            not cached.
    """

    def __init__(
        self,
        *,
        api_client: AuthApiClient,
        cache: ResponseCacheProtocol,
        event_bus: EventBusProtocol,
        logger: LoggerProtocol,
        settings: Settings,
        navigator: NavigatorProtocol,
        preference_store: PreferenceStoreProtocol,
        rooms: "RoomSubscriptionClient | None" = None,
        cache_keys: CacheKeys | None = None,
    ) -> None:
        """Initialize the manager (no I/O, no tasks).

        Args:
            api_client: REST client (owns the credential cookies).
            cache: Response cache.
            event_bus: Bus for session events and forced-logout signals.
            logger: Structured logger.
            settings: Timing configuration.
            navigator: Host router used for redirects.
            preference_store: Durable storage for locale/theme.
            rooms: Room subscription client, when realtime is enabled.
            cache_keys: Key builder (default CacheKeys()).
        """
        self._api = api_client
        self._cache = cache
        self._event_bus = event_bus
        self._logger = logger.bind(component="session_manager")
        self._settings = settings
        self._navigator = navigator
        self._preferences = preference_store
        self._rooms = rooms
        self._cache_keys = cache_keys or CacheKeys()

        self._initialized = False
        self._session: Session | None = None
        self._listeners: list[SessionListener] = []
        self._epoch = 0

        self._refresh_task: asyncio.Task[bool] | None = None
        self._status_task: asyncio.Task[Session | None] | None = None
        self._renewal_task: asyncio.Task[None] | None = None
        self._redirect_task: asyncio.Task[None] | None = None
        self._inflight: dict[str, asyncio.Task[Result[httpx.Response, ApiError]]] = {}
        self._background: set[asyncio.Task[Any]] = set()

    # =========================================================================
    # State
    # =========================================================================

    @property
    def session(self) -> Session | None:
        """Current identity (always the shared value)."""
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def add_listener(self, listener: SessionListener) -> None:
        """Call listener with the new Session on every install or clear."""
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> bool:
        if listener not in self._listeners:
            return False
        self._listeners.remove(listener)
        return True

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(self) -> None:
        """Subscribe to forced-logout signals and verification events. Idempotent."""
        if self._initialized:
            return
        self._event_bus.subscribe(ForcedLogoutReceived, self.handle_forced_logout)
        if self._rooms is not None:
            self._rooms.add_email_verified_handler(self.handle_email_verified)
        self._initialized = True
        self._logger.info("session_manager_initialized")

    async def destroy(self) -> None:
        """Remove every subscription and stop background work.

        The Session itself is left untouched; call logout() to end it.
        """
        if self._initialized:
            self._event_bus.unsubscribe(ForcedLogoutReceived, self.handle_forced_logout)
            if self._rooms is not None:
                self._rooms.remove_email_verified_handler(self.handle_email_verified)
        self._initialized = False

        tasks = [
            self._renewal_task,
            self._redirect_task,
            self._refresh_task,
            self._status_task,
            *self._inflight.values(),
            *self._background,
        ]
        pending = [t for t in tasks if t is not None and not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        self._renewal_task = None
        self._redirect_task = None
        self._refresh_task = None
        self._status_task = None
        self._inflight.clear()
        self._background.clear()
        self._listeners.clear()
        self._logger.info("session_manager_destroyed")

    # =========================================================================
    # Authentication
    # =========================================================================

    async def login(self, email: str, password: str) -> Result[LoginOutcome, DomainError]:
        """Sign in with email and password.

        Args:
            email: Account email.
            password: Account password (never logged).

        Returns:
            Success(SessionEstablished): Verified identity installed.
            Success(TwoFactorRequired): Code needed; nothing installed.
            Success(VerificationRequired): Email unverified; nothing installed.
            Failure(DomainError): Rejected credentials, throttling or a
                transport/server failure.
        """
        result = await self._api.request(
            "POST",
            LOGIN_PATH,
            json_data={"email": email, "password": password},
            operation="login",
        )
        if isinstance(result, Failure):
            return Failure(error=result.error)

        response = result.value
        if not response.is_success:
            error = error_from_response(response, fallback_message="Login failed")
            self._logger.info(
                "login_rejected",
                status_code=response.status_code,
                code=error.code.value,
            )
            return Failure(error=error)

        parsed = self._api.parse_json_object(response, "login")
        if isinstance(parsed, Failure):
            return Failure(error=parsed.error)
        body = parsed.value
        user = body.get("user") if isinstance(body.get("user"), dict) else None

        if body.get("requiresVerification"):
            return Success(
                value=VerificationRequired(
                    email=str((user or {}).get("email") or email),
                    message=body.get("message"),
                )
            )

        if body.get("requiresTwoFactor"):
            user_id = body.get("userId") or (user or {}).get("id") or (user or {}).get("_id")
            if not user_id:
                return Failure(error=self._invalid_response("login", response))
            self._logger.info("login_two_factor_required", user_id=str(user_id))
            return Success(
                value=TwoFactorRequired(
                    user_id=str(user_id),
                    email=(user or {}).get("email") or email,
                )
            )

        session = self._session_from(user)
        if session is None:
            session = await self.fetch_identity()
            if session is None:
                return Failure(
                    error=AuthenticationError(
                        code=ErrorCode.NOT_AUTHENTICATED,
                        message="Unable to load your account",
                    )
                )
        if not session.is_verified:
            return Success(value=VerificationRequired(email=session.email or email))

        await self._install(session, source="login")
        self._schedule_offline_check()
        return Success(value=SessionEstablished(session=session))

    async def complete_two_factor(
        self, user_id: str, code: str
    ) -> Result[SessionEstablished, DomainError]:
        """Exchange a pending identifier and one-time code for a Session.

        Same installation rules as login(): the identity is fetched after the
        server accepts the code and only installed if verified.
        """
        result = await self._api.request(
            "POST",
            TWO_FACTOR_LOGIN_PATH,
            json_data={"userId": user_id, "code": code},
            operation="complete_two_factor",
        )
        if isinstance(result, Failure):
            return Failure(error=result.error)

        response = result.value
        if not response.is_success:
            return Failure(
                error=error_from_response(
                    response, fallback_message="Two-factor verification failed"
                )
            )

        session = await self.fetch_identity()
        if session is None:
            return Failure(
                error=AuthenticationError(
                    code=ErrorCode.NOT_AUTHENTICATED,
                    message="Unable to load your account",
                )
            )

        await self._install(session, source="two_factor")
        self._schedule_offline_check()
        return Success(value=SessionEstablished(session=session))

    async def register(
        self, name: str, email: str, password: str
    ) -> Result[RegistrationAccepted, DomainError]:
        """Create an account and start listening for its verification.

        On acceptance the pending-verification room for the email is joined in
        the background; the eventual emailVerified event installs the Session.
        """
        result = await self._api.request(
            "POST",
            REGISTER_PATH,
            json_data={"name": name, "email": email, "password": password},
            operation="register",
        )
        if isinstance(result, Failure):
            return Failure(error=result.error)

        response = result.value
        if not response.is_success:
            return Failure(
                error=error_from_response(response, fallback_message="Registration failed")
            )

        parsed = self._api.parse_json_object(response, "register")
        body = parsed.value if isinstance(parsed, Success) else {}
        try:
            normalized = Email(email).value
        except ValueError:
            normalized = email.strip().lower()

        if self._rooms is not None:
            self._spawn(
                self._rooms.join_pending_verification_room(normalized),
                name="authsync-join-pending-verification",
            )

        self._logger.info("registration_accepted")
        return Success(
            value=RegistrationAccepted(
                email=normalized,
                message=str(body.get("message") or REGISTRATION_DEFAULT_MESSAGE),
            )
        )

    async def logout(self, *, reason: str = "logout") -> None:
        """Notify the server (best effort), then clear all local state.

        Never raises for network failures; the local clear always runs.
        """
        try:
            result = await self._api.request("POST", LOGOUT_PATH, operation="logout")
            match result:
                case Failure(error=error):
                    self._logger.warning("logout_request_failed", code=error.code.value)
                case Success(value=response) if not response.is_success:
                    self._logger.warning("logout_rejected", status_code=response.status_code)
        finally:
            await self._clear_local_state(reason)

    async def handle_forced_logout(self, event: ForcedLogoutReceived) -> None:
        """Treat a forced-logout signal as logout() plus a redirect."""
        self._logger.info(
            "forced_logout_processing",
            reason=event.reason,
            source=event.source,
        )
        try:
            await self.logout(reason="forced_logout")
        finally:
            self._navigator.navigate(self._settings.unauthenticated_path)

    # =========================================================================
    # Refresh and identity
    # =========================================================================

    async def refresh(self) -> bool:
        """Extend the server-side session using the refresh cookie.

        Serialized: while a refresh is running, every caller awaits the same
        outcome. Never installs or clears the Session.

        Returns:
            True if the server accepted the refresh.
        """
        task = self._refresh_task
        if task is None or task.done():
            task = asyncio.create_task(self._perform_refresh(), name="authsync-refresh")
            self._refresh_task = task
        return await asyncio.shield(task)

    async def _perform_refresh(self) -> bool:
        result = await self._api.request("POST", REFRESH_PATH, operation="refresh")
        if isinstance(result, Failure):
            self._logger.warning("session_refresh_failed", code=result.error.code.value)
            return False

        response = result.value
        if not response.is_success:
            self._logger.info("session_refresh_rejected", status_code=response.status_code)
            return False

        parsed = self._api.parse_json_object(response, "refresh")
        accepted = not (isinstance(parsed, Success) and parsed.value.get("success") is False)
        self._logger.debug("session_refreshed", accepted=accepted)
        return accepted

    async def check_status(self) -> Session | None:
        """Bootstrap the Session from the server.

        Only the first call fetches; concurrent calls await that fetch and
        later calls return the current Session.
        """
        if self._status_task is None:
            self._status_task = asyncio.create_task(
                self._bootstrap(), name="authsync-check-status"
            )
        if not self._status_task.done():
            return await asyncio.shield(self._status_task)
        return self._session

    async def _bootstrap(self) -> Session | None:
        session = await self.fetch_identity()
        if session is None:
            if self._session is not None:
                await self._clear_session("not_authenticated")
            self._logger.info("status_check_unauthenticated")
            return None
        await self._install(session, source="status_check")
        self._schedule_offline_check()
        return session

    async def fetch_identity(self) -> Session | None:
        """GET the current user.

        Returns:
            The verified identity, or None when unauthenticated, unverified or
            unreachable. Never installs anything.
        """
        result = await self._send_with_refresh(
            "GET", CURRENT_USER_PATH, operation="fetch_identity"
        )
        if isinstance(result, Failure):
            return None

        response = result.value
        if not response.is_success:
            self._logger.debug("identity_unavailable", status_code=response.status_code)
            return None

        parsed = self._api.parse_json_object(response, "fetch_identity")
        if isinstance(parsed, Failure):
            return None
        body = parsed.value
        user = body.get("user")
        if not body.get("authenticated") or not isinstance(user, dict):
            return None

        session = self._session_from(user)
        if session is None:
            return None
        if not session.is_verified:
            self._logger.info("identity_unverified", user_id=session.id)
            return None
        return session

    # =========================================================================
    # Requests
    # =========================================================================

    async def authenticated_request(
        self,
        method: str,
        path: str,
        *,
        json_data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        use_cache: bool = True,
    ) -> Result[httpx.Response, ApiError]:
        """Issue a request with the session credentials.

        Args:
            method: HTTP method.
            path: Path relative to the API base URL.
            json_data: Optional JSON body.
            params: Optional query parameters.
            use_cache: Serve and store GET responses through the cache.

        Returns:
            Success(httpx.Response): Any HTTP response. A 401 that survived
                the refresh-and-retry is returned as-is.
            Failure(ApiError): Transport failure.
        """
        method = method.upper()
        if method != "GET":
            try:
                return await self._send_with_refresh(
                    method, path, json_data=json_data, params=params
                )
            finally:
                pattern = self._cache_keys.invalidation_pattern(path)
                removed = self._cache.invalidate(pattern)
                self._logger.debug("cache_invalidated", pattern=pattern, removed=removed)

        key = self._cache_keys.request(method, path, params)
        if use_cache:
            cached = self._cache.get(key)
            if cached is not None:
                self._logger.debug("cache_hit", key=key)
                return Success(value=cached)

        task = self._inflight.get(key)
        if task is None or task.done():
            task = asyncio.create_task(
                self._fetch_into_cache(key, path, params, use_cache),
                name=f"authsync-get {key}",
            )
            self._inflight[key] = task
        else:
            self._logger.debug("request_deduplicated", key=key)
        return await asyncio.shield(task)

    def invalidate_cached(self, path: str) -> int:
        """Drop cached reads of path (and anything keyed under it)."""
        removed = self._cache.invalidate(path)
        self._logger.debug("cache_invalidated", pattern=path, removed=removed)
        return removed

    async def _fetch_into_cache(
        self,
        key: str,
        path: str,
        params: dict[str, Any] | None,
        use_cache: bool,
    ) -> Result[httpx.Response, ApiError]:
        epoch = self._epoch
        try:
            result = await self._send_with_refresh("GET", path, params=params)
            if (
                use_cache
                and epoch == self._epoch
                and isinstance(result, Success)
                and result.value.is_success
            ):
                self._cache.set(key, result.value)
            return result
        finally:
            if self._inflight.get(key) is asyncio.current_task():
                del self._inflight[key]

    async def _send_with_refresh(
        self,
        method: str,
        path: str,
        *,
        json_data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        operation: str | None = None,
    ) -> Result[httpx.Response, ApiError]:
        operation = operation or f"{method} {path}"
        result = await self._api.request(
            method, path, json_data=json_data, params=params, operation=operation
        )
        if isinstance(result, Failure) or result.value.status_code != 401:
            return result

        self._logger.debug("access_expired_refreshing", operation=operation)
        if not await self.refresh():
            return result
        return await self._api.request(
            method,
            path,
            json_data=json_data,
            params=params,
            operation=f"{operation}_retry",
        )

    # =========================================================================
    # Identity updates
    # =========================================================================

    async def replace_identity(self, session: Session) -> bool:
        """Explicitly replace the Session (e.g. after a profile update).

        Returns:
            False if the identity is unverified and was not installed.
        """
        return await self._install(session, source="replace_identity")

    async def update_preferences(
        self,
        *,
        locale: str | None = None,
        theme: str | None = None,
    ) -> Result[Session, DomainError]:
        """Save preferences on the server, locally, and in the Session."""
        if self._session is None:
            return Failure(error=self._not_authenticated())

        payload: dict[str, Any] = {}
        if locale is not None:
            payload["language"] = locale
        if theme is not None:
            payload["theme"] = theme

        result = await self.authenticated_request("PUT", PREFERENCES_PATH, json_data=payload)
        if isinstance(result, Failure):
            return Failure(error=result.error)
        response = result.value
        if not response.is_success:
            return Failure(
                error=error_from_response(
                    response, fallback_message="Unable to update preferences"
                )
            )

        if locale is not None:
            self._preferences.set(LOCALE_KEY, locale)
        if theme is not None:
            self._preferences.set(THEME_KEY, theme)

        current = self._session
        if current is None:
            return Failure(error=self._not_authenticated())
        updated = current.with_preferences(locale=locale, theme=theme)
        await self._install(updated, source="preferences")
        return Success(value=updated)

    async def adopt_credentials(
        self, tokens: CredentialPair, *, source: str = "credentials"
    ) -> Session | None:
        """Install a credential pair as cookies, then fetch and install identity.

        Returns:
            The installed Session, or None if the identity could not be
            loaded or is unverified.
        """
        self._api.adopt_credentials(tokens)
        session = await self.fetch_identity()
        if session is None:
            self._logger.warning("credential_adoption_failed", source=source)
            return None
        await self._install(session, source=source)
        return session

    async def handle_email_verified(self, payload: EmailVerifiedPayload) -> None:
        """Install the identity carried by an emailVerified event.

        Renewed credentials are adopted when present, otherwise the user
        object is installed if verified. When the host is on an auth page,
        a role-based redirect follows after a short delay.
        """
        if not payload.success:
            self._logger.info("email_verification_unsuccessful", message=payload.message)
            return

        session: Session | None = None
        if payload.tokens is not None:
            session = await self.adopt_credentials(payload.tokens, source="email_verified")
        else:
            candidate = self._session_from(payload.user)
            if candidate is not None and await self._install(
                candidate, source="email_verified"
            ):
                session = candidate

        if session is None:
            self._logger.info(
                "email_verified_ignored",
                event=RealtimeEventType.EMAIL_VERIFIED.value,
            )
            return

        self._schedule_offline_check()
        if self._on_auth_page():
            self._schedule_redirect(session)

    async def check_offline_messages(self) -> int:
        """Process messages queued by the server while this client was offline.

        Messages are marked processed before any forced logout runs, since
        the logout drops the credentials the acknowledgment needs.

        Returns:
            Number of forced-logout messages processed. Failures are logged
            and reported as 0.
        """
        if self._session is None:
            return 0

        result = await self._send_with_refresh(
            "POST", OFFLINE_MESSAGES_PATH, operation="check_offline_messages"
        )
        if isinstance(result, Failure) or not result.value.is_success:
            self._logger.debug("offline_messages_unavailable")
            return 0

        parsed = self._api.parse_json_object(result.value, "check_offline_messages")
        if isinstance(parsed, Failure):
            return 0
        messages = [m for m in parsed.value.get("messages") or [] if isinstance(m, dict)]
        if not messages:
            return 0

        message_ids = [m["id"] for m in messages if "id" in m]
        ack = await self._send_with_refresh(
            "POST",
            OFFLINE_MESSAGES_PROCESSED_PATH,
            json_data={"messageIds": message_ids},
            operation="mark_offline_messages_processed",
        )
        if isinstance(ack, Failure) or not ack.value.is_success:
            self._logger.warning("offline_messages_ack_failed", count=len(message_ids))

        forced = [
            m for m in messages if m.get("event") == RealtimeEventType.FORCE_LOGOUT.value
        ]
        self._logger.info(
            "offline_messages_received",
            count=len(messages),
            forced_logouts=len(forced),
        )
        for message in forced:
            data = message.get("data") if isinstance(message.get("data"), dict) else {}
            await self._event_bus.publish(
                ForcedLogoutReceived(
                    reason=str(data.get("reason", "offline_message")),
                    message=str(data.get("message", "")),
                    server_timestamp=data.get("timestamp"),
                    source="offline",
                )
            )
        return len(forced)

    # =========================================================================
    # Internals
    # =========================================================================

    async def _install(self, session: Session, *, source: str) -> bool:
        if not session.is_verified:
            self._logger.warning(
                "unverified_identity_rejected", user_id=session.id, source=source
            )
            return False

        previous = self._session
        if previous is None or previous.id != session.id:
            self._discard_cached_reads()
        self._session = session
        if session.locale:
            self._preferences.set(LOCALE_KEY, session.locale)
        self._start_renewal()
        self._notify(session)
        await self._event_bus.publish(
            SessionInstalled(user_id=session.id, email=session.email, source=source)
        )
        return True

    async def _clear_session(self, reason: str) -> None:
        previous, self._session = self._session, None
        self._epoch += 1
        self._cancel(self._renewal_task)
        self._renewal_task = None
        self._cancel(self._redirect_task)
        self._redirect_task = None
        if previous is not None:
            self._notify(None)
        await self._event_bus.publish(
            SessionCleared(user_id=previous.id if previous else None, reason=reason)
        )

    def _discard_cached_reads(self) -> int:
        """Forget every cached or in-flight read made under the previous identity."""
        self._epoch += 1
        self._inflight.clear()
        return self._cache.invalidate()

    async def _clear_local_state(self, reason: str) -> None:
        await self._clear_session(reason)
        removed = self._discard_cached_reads()
        self._preferences.remove(LOCALE_KEY)
        self._preferences.remove(THEME_KEY)
        self._api.clear_credentials()
        self._logger.info("session_cleared", reason=reason, cache_entries_removed=removed)

    def _notify(self, session: Session | None) -> None:
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception as e:
                self._logger.warning(
                    "session_listener_failed",
                    listener=getattr(listener, "__name__", repr(listener)),
                    error_type=type(e).__name__,
                    error_message=str(e),
                )

    def _start_renewal(self) -> None:
        if self._renewal_task is not None and not self._renewal_task.done():
            return
        self._renewal_task = asyncio.create_task(
            self._renewal_loop(), name="authsync-session-renewal"
        )

    async def _renewal_loop(self) -> None:
        interval = self._settings.session_refresh_interval_seconds
        while self._session is not None:
            await asyncio.sleep(interval)
            if self._session is None:
                return
            if await self.refresh():
                continue

            self._logger.warning("session_renewal_failed")
            session = await self.fetch_identity()
            if session is None:
                await self._clear_session("renewal_failed")
                return

    def _schedule_offline_check(self) -> None:
        if not self._settings.offline_messages_enabled:
            return
        self._spawn(self.check_offline_messages(), name="authsync-offline-messages")

    def _on_auth_page(self) -> bool:
        path = self._navigator.current_path
        return any(path == page or path.startswith(f"{page}/") for page in AUTH_PAGE_PATHS)

    def _schedule_redirect(self, session: Session) -> None:
        self._cancel(self._redirect_task)
        self._redirect_task = asyncio.create_task(
            self._redirect_after_verification(session),
            name="authsync-verification-redirect",
        )

    async def _redirect_after_verification(self, session: Session) -> None:
        await asyncio.sleep(self._settings.verification_redirect_delay_seconds)
        current = self._session
        if current is None or current.id != session.id:
            return
        self._navigator.navigate(ADMIN_HOME_PATH if current.is_admin else DEFAULT_HOME_PATH)

    def _spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _session_from(self, user: Any) -> Session | None:
        if not isinstance(user, dict):
            return None
        try:
            return Session.from_payload(user)
        except ValueError as e:
            self._logger.warning("identity_payload_invalid", error=str(e))
            return None

    def _invalid_response(
        self, operation: str, response: httpx.Response
    ) -> ApiInvalidResponseError:
        self._logger.warning("api_unexpected_format", operation=operation)
        return ApiInvalidResponseError(
            code=ErrorCode.INVALID_RESPONSE,
            message="Unexpected response from server",
            status_code=response.status_code,
        )

    @staticmethod
    def _not_authenticated() -> AuthenticationError:
        return AuthenticationError(
            code=ErrorCode.NOT_AUTHENTICATED,
            message="You are not signed in",
        )

    @staticmethod
    def _cancel(task: asyncio.Task[Any] | None) -> None:
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
