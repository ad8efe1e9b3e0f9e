from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Union

from pydantic import TypeAdapter

from doctavende.core.config import settings
from doctavende.schemas.business import AdminBusiness, Business

Timestamp = Union[datetime, str, None]

# PostgREST recorta los ceros finales de la fracción (".12345"), que
# datetime.fromisoformat no acepta antes de 3.11
_TIMESTAMP = TypeAdapter(datetime)


def _parse_timestamp(value: Timestamp) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        if not value.strip():
            return None
        value = _TIMESTAMP.validate_python(value.strip())
    if value.tzinfo is None:
        # Postgres timestamptz siempre llega con zona; asumimos UTC si no
        value = value.replace(tzinfo=timezone.utc)
    return value


def is_expired(business: Union[Business, AdminBusiness, Mapping[str, Any]], now: Optional[datetime] = None) -> bool:
    """
    Presentation-only flag for the moderation table.

    Expired when there is no expiry timestamp or it is strictly before ``now``.
    Nothing is written back: `active` is only changed by an administrator.
    """
    if isinstance(business, Mapping):
        raw = business.get("subscription_expires_at")
    else:
        raw = business.subscription_expires_at
    expires_at = _parse_timestamp(raw)
    if expires_at is None:
        return True
    current = _parse_timestamp(now) or datetime.now(timezone.utc)
    return expires_at < current


def expiry_from(now: Optional[datetime] = None, days: Optional[int] = None) -> datetime:
    start = _parse_timestamp(now) or datetime.now(timezone.utc)
    return start + timedelta(days=days if days is not None else settings.SUBSCRIPTION_DAYS)


def activation_fields(now: Optional[datetime] = None) -> dict[str, Any]:
    """Data effect of the simulated checkout: visible now, for the configured window."""
    return {
        "active": True,
        "subscription_expires_at": expiry_from(now).isoformat(),
    }
