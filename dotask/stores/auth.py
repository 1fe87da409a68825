"""Auth store — session state plus login/register/logout/check operations.

States:
  anonymous       → no session
  authenticating  → login/register in flight
  authenticated   → user set, token persisted in client storage
  error           → last login/register failed (message in ``error``)

The bearer token lives only in client storage, never in the state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Literal

import httpx
from pydantic import BaseModel, ValidationError

from dotask.graphql.client import GraphQLClient, root_field
from dotask.graphql.errors import (
    AUTH_REQUIRED_MESSAGE,
    ClientError,
    error_message,
    validation_message,
)
from dotask.graphql.operations import (
    CHANGE_PASSWORD_MUTATION,
    LOGIN_MUTATION,
    ME_QUERY,
    REGISTER_MUTATION,
    UPDATE_PROFILE_MUTATION,
    Operation,
)
from dotask.models.user import (
    ChangePasswordInput,
    LoginInput,
    RegisterInput,
    UpdateProfileInput,
    User,
    auth_payload_from_wire,
    user_from_wire,
)
from dotask.navigation import Navigator
from dotask.storage import ACCESS_TOKEN_KEY, SESSION_KEYS
from dotask.stores.observable import Observable, Unsubscribe

logger = logging.getLogger(__name__)

AuthStatus = Literal["anonymous", "authenticating", "authenticated", "error"]

CHECK_FAILED_MESSAGE = "Failed to check authentication"


class AuthState(BaseModel):
    """Snapshot of the client's belief about the session."""

    user: User | None = None
    status: AuthStatus = "anonymous"
    is_authenticated: bool = False
    is_loading: bool = True
    error: str | None = None

    model_config = {"frozen": True}


class AuthStore:
    """Session store for one client.

    Usage:
        auth = AuthStore(client, navigator)
        await auth.check_auth()
        if not auth.state.is_authenticated:
            await auth.login("ada@example.com", "secret")
    """

    def __init__(
        self,
        client: GraphQLClient,
        navigator: Navigator | None = None,
        logout_url: str | None = None,
        home_route: str | None = None,
        login_route: str | None = None,
    ) -> None:
        from dotask.config import settings

        self.client = client
        self.storage = client.storage
        self.navigator = navigator or Navigator()
        self.logout_url = logout_url or settings.logout_url
        self.home_route = home_route or settings.home_route
        self.login_route = login_route or settings.login_route
        self._timeout = settings.request_timeout
        self._state: Observable[AuthState] = Observable(AuthState())
        self._logout_hooks: list[Callable[[], None]] = []

    @property
    def state(self) -> AuthState:
        return self._state.get()

    @property
    def user(self) -> User | None:
        return self.state.user

    @property
    def is_authenticated(self) -> bool:
        return self.state.is_authenticated

    def subscribe(self, callback: Callable[[AuthState], None]) -> Unsubscribe:
        return self._state.subscribe(callback)

    def on_logout(self, hook: Callable[[], None]) -> Unsubscribe:
        """Run ``hook`` after every logout; returns a callable that removes it."""
        self._logout_hooks.append(hook)

        def remove() -> None:
            if hook in self._logout_hooks:
                self._logout_hooks.remove(hook)

        return remove

    def _update(self, **changes) -> None:
        self._state.update(lambda s: s.model_copy(update=changes))

    # === Login / register ===

    async def login(self, email: str, password: str) -> User:
        """Log in and persist the returned token. Raises on failure."""
        return await self._authenticate(
            LOGIN_MUTATION,
            lambda: LoginInput(email=email, password=password),
            failure="Login failed",
        )

    async def register(self, name: str, email: str, password: str) -> User:
        """Create an account, then behave like a successful login."""
        return await self._authenticate(
            REGISTER_MUTATION,
            lambda: RegisterInput(name=name, email=email, password=password),
            failure="Registration failed",
        )

    async def _authenticate(
        self,
        operation: Operation,
        build_input: Callable[[], BaseModel],
        failure: str,
    ) -> User:
        self._update(status="authenticating", is_loading=True, error=None)

        try:
            try:
                payload = build_input()
            except ValidationError as e:
                raise ClientError(validation_message(e), kind="validation") from e

            data = await self.client.mutate(operation, {"input": payload.model_dump()})
            try:
                auth = auth_payload_from_wire(root_field(data, operation))
            except ClientError as e:
                raise ClientError(f"{failure} - no data returned", kind="malformed") from e
        except Exception as e:
            logger.error("%s: %s", failure, e)
            self._update(
                status="error",
                is_loading=False,
                error=error_message(e) or failure,
            )
            raise

        self._update(
            user=auth.user,
            status="authenticated",
            is_authenticated=True,
            is_loading=False,
            error=None,
        )
        if auth.token:
            self.storage.set_item(ACCESS_TOKEN_KEY, auth.token)
        logger.info("Authenticated as %s", auth.user.email or auth.user.id)

        self.navigator.goto(self.home_route)
        return auth.user

    # === Logout ===

    async def logout(self) -> None:
        """End the session. Never raises.

        The server-side cookie clear is best effort; local storage, the
        response cache, the cookie jar and the state are always reset afterwards.
        """
        try:
            async with httpx.AsyncClient(timeout=self._timeout, cookies=self.client.cookies) as http:
                resp = await http.post(self.logout_url)
            if resp.status_code >= 400:
                logger.warning("Logout endpoint answered HTTP %s", resp.status_code)
        except Exception as e:
            # Continue with client-side cleanup even if server logout fails
            logger.error("Logout API error: %s", e)

        try:
            for key in SESSION_KEYS:
                self.storage.remove_item(key)
        except OSError as e:
            logger.error("Error clearing client storage: %s", e)

        self.client.reset_store()
        self.client.clear_cookies()
        self._state.set(AuthState(is_loading=False))
        for hook in list(self._logout_hooks):
            try:
                hook()
            except Exception:
                logger.exception("Logout hook %r failed", hook)
        logger.info("Logged out")

        self.navigator.goto(self.login_route)

    # === Session check ===

    async def check_auth(self) -> bool:
        """Ask the server who we are. Never raises.

        Returns True when the session is valid.
        """
        try:
            data = await self.client.query(ME_QUERY, fetch_policy="network-only")
        except Exception as e:
            logger.warning("Session check failed: %s", e)
            self._update(
                user=None,
                status="anonymous",
                is_authenticated=False,
                is_loading=False,
                error=CHECK_FAILED_MESSAGE,
            )
            return False

        me = data.get("me")
        if isinstance(me, dict):
            self._update(
                user=user_from_wire(me),
                status="authenticated",
                is_authenticated=True,
                is_loading=False,
                error=None,
            )
            return True

        self._update(user=None, status="anonymous", is_authenticated=False, is_loading=False)
        return False

    # === Profile ===

    def _require_session(self, action: str) -> None:
        if not self.is_authenticated:
            err = ClientError(AUTH_REQUIRED_MESSAGE, kind="auth")
            logger.error("Cannot %s: %s", action, err.message)
            self._update(error=err.message)
            raise err

    async def update_profile(self, updates: UpdateProfileInput) -> User:
        """Change name and/or email of the current user."""
        self._require_session("update profile")
        try:
            data = await self.client.mutate(
                UPDATE_PROFILE_MUTATION, {"input": updates.to_wire()}
            )
            user = user_from_wire(root_field(data, UPDATE_PROFILE_MUTATION))
        except Exception as e:
            logger.error("Error updating profile: %s", e)
            self._update(error=error_message(e))
            raise

        self._update(user=user, error=None)
        return user

    async def change_password(self, change: ChangePasswordInput) -> bool:
        self._require_session("change password")
        try:
            data = await self.client.mutate(
                CHANGE_PASSWORD_MUTATION, {"input": change.to_wire()}
            )
            changed = bool(root_field(data, CHANGE_PASSWORD_MUTATION))
        except Exception as e:
            logger.error("Error changing password: %s", e)
            self._update(error=error_message(e))
            raise

        self._update(error=None)
        return changed
