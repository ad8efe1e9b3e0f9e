"""
Session context.

An explicit, owned object holding the reactive auth state of one consumer
(current user, admin flag, loading flag). It is created by whoever needs it
(a request dependency, a script), started once, and torn down with
``close()``, which drops the auth-change subscription. State is recomputed on
every auth change notification through ``update()``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import jwt

from doctavende.db.gateway import GatewayError, RemoteGateway
from doctavende.schemas.auth import SessionInfo
from doctavende.schemas.profile import Profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    id: str
    email: Optional[str] = None


def _token_expiry(token: str) -> Optional[datetime]:
    # Solo lectura de claims: la firma ya la validó Supabase en get_user
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None
    exp = claims.get("exp")
    return datetime.fromtimestamp(exp, tz=timezone.utc) if isinstance(exp, (int, float)) else None


class SessionContext:
    def __init__(self, gateway: RemoteGateway) -> None:
        self._gateway = gateway
        self._subscription: Any = None
        self.user: Optional[SessionUser] = None
        self.access_token: Optional[str] = None
        self.expires_at: Optional[datetime] = None
        self.is_admin: bool = False
        self.loading: bool = True

    # --------------------------------------------------------------------- #
    # Lifecycle
    # --------------------------------------------------------------------- #
    def start(self, access_token: Optional[str] = None) -> "SessionContext":
        """
        Subscribe to auth changes and load the initial state.

        With ``access_token`` (a bearer token from a request) the user is
        resolved through Supabase; otherwise the client's own stored session
        is used.
        """
        if self._subscription is None:
            self._subscription = self._gateway.on_auth_state_change(self._on_auth_change)

        if access_token:
            user = self._gateway.get_user(access_token)
            self._apply(user, access_token, _token_expiry(access_token))
        else:
            self.update(self._gateway.get_session())
        return self

    def close(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is None:
            return
        unsubscribe = getattr(subscription, "unsubscribe", None)
        if callable(unsubscribe):
            unsubscribe()

    def __enter__(self) -> "SessionContext":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    # --------------------------------------------------------------------- #
    # State
    # --------------------------------------------------------------------- #
    def update(self, session: Any) -> None:
        """Recompute user / admin / loading from a Supabase session (or None)."""
        if session is None:
            self._apply(None, None, None)
            return
        expires_at = getattr(session, "expires_at", None)
        self._apply(
            getattr(session, "user", None),
            getattr(session, "access_token", None),
            datetime.fromtimestamp(expires_at, tz=timezone.utc) if expires_at else None,
        )

    def _on_auth_change(self, event: str, session: Any) -> None:
        logger.debug("[session] Auth event %s", event)
        self.update(session)

    def _apply(self, user: Any, access_token: Optional[str], expires_at: Optional[datetime]) -> None:
        if user is None or not getattr(user, "id", None):
            self.user = None
            self.access_token = None
            self.expires_at = None
            self.is_admin = False
        else:
            self.user = SessionUser(id=str(user.id), email=getattr(user, "email", None))
            self.access_token = access_token
            self.expires_at = expires_at
            self.is_admin = self._check_admin(self.user.id)
        self.loading = False

    def _check_admin(self, user_id: str) -> bool:
        try:
            row = self._gateway.select_one("profiles", {"id": user_id}, columns="id, email, is_admin")
        except GatewayError as exc:
            # Igual que en el frontend: se loguea y el usuario queda como no-admin
            logger.error("[session] Error fetching admin status for %s: %s", user_id, exc.message)
            return False
        return bool(Profile(**row).is_admin) if row else False

    @property
    def authenticated(self) -> bool:
        return self.user is not None

    # --------------------------------------------------------------------- #
    # Actions
    # --------------------------------------------------------------------- #
    def sign_in(self, email: str, password: str) -> Any:
        response = self._gateway.sign_in_with_password(email, password)
        self.update(getattr(response, "session", None))
        return response

    def sign_out(self) -> None:
        self._gateway.sign_out(self.access_token)
        self.update(None)

    def snapshot(self) -> SessionInfo:
        return SessionInfo(
            authenticated=self.authenticated,
            user_id=self.user.id if self.user else None,
            email=self.user.email if self.user else None,
            is_admin=self.is_admin,
            expires_at=self.expires_at,
        )
