"""
Remote data gateway.

Thin owned wrapper around a ``supabase.Client``. Every operation is a direct
passthrough to the hosted service: no batching, no retries, no offline queue.
Any failure reported by Supabase (PostgREST, Storage or Auth) is re-raised as
``GatewayError`` carrying the collaborator's message text unchanged, so the
endpoints can surface it verbatim.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any, NamedTuple, Optional

from supabase.client import Client

from doctavende.db.supabase_client import (
    get_supabase_anon_client,
    get_supabase_client,
    get_supabase_user_client,
)

logger = logging.getLogger(__name__)

Row = dict[str, Any]
AuthCallback = Callable[[str, Any], None]


class GatewayError(Exception):
    """A remote call to Supabase failed."""

    def __init__(self, message: str, *, operation: str, target: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.target = target


class Order(NamedTuple):
    column: str
    desc: bool = True


NEWEST_FIRST = Order("created_at", desc=True)


def _error_message(exc: Exception) -> str:
    # postgrest.APIError / storage3 StorageException / AuthApiError exponen .message
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    if isinstance(message, Mapping):
        return str(message.get("message") or message)
    return str(exc)


class RemoteGateway:
    def __init__(self, client: Client) -> None:
        self._client = client

    @classmethod
    def public(cls) -> "RemoteGateway":
        return cls(get_supabase_client())

    @classmethod
    def anonymous(cls) -> "RemoteGateway":
        return cls(get_supabase_anon_client())

    @classmethod
    def for_token(cls, token: str) -> "RemoteGateway":
        return cls(get_supabase_user_client(token))

    # --------------------------------------------------------------------- #
    # Internal helpers
    # --------------------------------------------------------------------- #
    def _fail(self, exc: Exception, operation: str, target: Optional[str]) -> GatewayError:
        message = _error_message(exc)
        logger.warning("[gateway] %s %s failed: %s", operation, target or "", message)
        return GatewayError(message, operation=operation, target=target)

    @staticmethod
    def _require_filters(filters: Mapping[str, object], operation: str, table: str) -> None:
        if not filters:
            raise ValueError(f"{operation} on '{table}' requires at least one filter")

    # --------------------------------------------------------------------- #
    # Tables
    # --------------------------------------------------------------------- #
    def select(
        self,
        table: str,
        filters: Optional[Mapping[str, object]] = None,
        order: Optional[Order] = None,
        columns: str = "*",
    ) -> list[Row]:
        try:
            query = self._client.table(table).select(columns)
            for column, value in (filters or {}).items():
                query = query.eq(column, value)
            if order is not None:
                query = query.order(order.column, desc=order.desc)
            response = query.execute()
        except Exception as exc:
            raise self._fail(exc, "select", table) from exc
        return list(response.data or [])

    def select_one(
        self,
        table: str,
        filters: Mapping[str, object],
        columns: str = "*",
    ) -> Optional[Row]:
        rows = self.select(table, filters, columns=columns)
        return rows[0] if rows else None

    def insert(self, table: str, rows: Row | Sequence[Row]) -> list[Row]:
        payload = [dict(rows)] if isinstance(rows, Mapping) else [dict(r) for r in rows]
        try:
            response = self._client.table(table).insert(payload).execute()
        except Exception as exc:
            raise self._fail(exc, "insert", table) from exc
        return list(response.data or [])

    def update(self, table: str, patch: Mapping[str, object], filters: Mapping[str, object]) -> list[Row]:
        self._require_filters(filters, "update", table)
        try:
            query = self._client.table(table).update(dict(patch))
            for column, value in filters.items():
                query = query.eq(column, value)
            response = query.execute()
        except Exception as exc:
            raise self._fail(exc, "update", table) from exc
        return list(response.data or [])

    def delete(self, table: str, filters: Mapping[str, object]) -> list[Row]:
        self._require_filters(filters, "delete", table)
        try:
            query = self._client.table(table).delete()
            for column, value in filters.items():
                query = query.eq(column, value)
            response = query.execute()
        except Exception as exc:
            raise self._fail(exc, "delete", table) from exc
        return list(response.data or [])

    # --------------------------------------------------------------------- #
    # Storage
    # --------------------------------------------------------------------- #
    def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        try:
            self._client.storage.from_(bucket).upload(
                path=path,
                file=data,
                file_options={"content-type": content_type},
            )
        except Exception as exc:
            raise self._fail(exc, "upload", f"{bucket}/{path}") from exc
        logger.info("[gateway] Uploaded %s bytes to %s/%s", len(data), bucket, path)
        return path

    def get_public_url(self, bucket: str, path: str) -> str:
        url = self._client.storage.from_(bucket).get_public_url(path)
        # Algunas versiones de storage3 agregan un '?' vacío al final
        return url.rstrip("?")

    # --------------------------------------------------------------------- #
    # Auth
    # --------------------------------------------------------------------- #
    def sign_up(self, email: str, password: str) -> Any:
        try:
            return self._client.auth.sign_up({"email": email, "password": password})
        except Exception as exc:
            raise self._fail(exc, "sign_up", email) from exc

    def sign_in_with_password(self, email: str, password: str) -> Any:
        try:
            return self._client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as exc:
            raise self._fail(exc, "sign_in", email) from exc

    def sign_out(self, access_token: Optional[str] = None) -> None:
        try:
            if access_token:
                # Revoca la sesión del token recibido por header (el cliente no la tiene guardada)
                self._client.auth.admin.sign_out(access_token)
            else:
                self._client.auth.sign_out()
        except Exception as exc:
            raise self._fail(exc, "sign_out", None) from exc

    def get_session(self) -> Any:
        try:
            return self._client.auth.get_session()
        except Exception as exc:
            raise self._fail(exc, "get_session", None) from exc

    def get_user(self, token: str) -> Any:
        try:
            response = self._client.auth.get_user(token)
        except Exception as exc:
            raise self._fail(exc, "get_user", None) from exc
        return getattr(response, "user", None) if response else None

    def on_auth_state_change(self, callback: AuthCallback) -> Any:
        """Register ``callback(event, session)``; returns an object with ``unsubscribe()``."""
        return self._client.auth.on_auth_state_change(callback)
