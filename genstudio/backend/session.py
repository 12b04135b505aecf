# genstudio/backend/session.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable

from genstudio.backend.client import BackendClient, BackendError
from genstudio.core.security import token_expiry, token_subject

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"
    DISPOSED = "disposed"


class SessionEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


@dataclass
class Session:
    access_token: str
    user_id: str
    email: str | None = None
    full_name: str | None = None
    refresh_token: str | None = None
    expires_at: datetime | None = None

    @classmethod
    def from_auth(cls, access_token: str, user: dict, refresh_token: str | None = None) -> "Session":
        meta = user.get("user_metadata") or {}
        return cls(
            access_token=access_token,
            user_id=str(user.get("id") or token_subject(access_token) or ""),
            email=user.get("email"),
            full_name=meta.get("full_name"),
            refresh_token=refresh_token,
            expires_at=token_expiry(access_token),
        )


SessionHandler = Callable[[SessionEvent, "Session | None"], None]


class SessionProvider:
    """
    Owns the auth session of one caller.

    Lifecycle: uninitialized -> authenticated | anonymous -> disposed (sign-out).
    Handlers registered with ``on_session_change`` get every later sign-in and
    sign-out until they unsubscribe.
    """

    def __init__(self, backend: BackendClient):
        self._backend = backend
        self._session: Session | None = None
        self._handlers: list[SessionHandler] = []
        self.state = SessionState.UNINITIALIZED

    def current_session(self) -> Session | None:
        return self._session

    def on_session_change(self, handler: SessionHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def unsubscribe():
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def _emit(self, event: SessionEvent, session: Session | None):
        for handler in list(self._handlers):
            handler(event, session)

    def _set(self, session: Session | None):
        self._session = session
        self.state = SessionState.AUTHENTICATED if session else SessionState.ANONYMOUS

    async def restore(self, access_token: str | None) -> Session | None:
        """Validate a bearer token against the auth API. Any failure -> logged-out."""
        if self.state == SessionState.DISPOSED:
            return None

        token = (access_token or "").strip()
        if not token:
            self._set(None)
            return None

        try:
            user = await self._backend.get_user(token)
        except BackendError as e:
            logger.warning("session restore failed: %s", e.message)
            user = None

        self._set(Session.from_auth(token, user) if user else None)
        return self._session

    async def sign_up(
        self,
        email: str,
        password: str,
        full_name: str | None = None,
        redirect_to: str | None = None,
    ) -> dict:
        # the backend mails a verification link; no session until confirmed
        return await self._backend.sign_up(email, password, full_name, redirect_to)

    async def sign_in(self, email: str, password: str) -> Session:
        data = await self._backend.sign_in_with_password(email, password)
        session = Session.from_auth(
            data["access_token"],
            data.get("user") or {},
            refresh_token=data.get("refresh_token"),
        )
        self._set(session)
        self._emit(SessionEvent.SIGNED_IN, session)
        return session

    async def sign_out(self):
        session = self._session
        try:
            if session:
                await self._backend.sign_out(session.access_token)
        finally:
            self._session = None
            self.state = SessionState.DISPOSED
            # handlers get the departing session
            self._emit(SessionEvent.SIGNED_OUT, session)
