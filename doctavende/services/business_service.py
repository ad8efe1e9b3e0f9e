from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from doctavende.db.gateway import NEWEST_FIRST, GatewayError, RemoteGateway
from doctavende.schemas.business import AdminBusiness, Business, BusinessCreate, BusinessUpdate
from doctavende.services.subscription import activation_fields, is_expired

logger = logging.getLogger(__name__)


class BusinessService:
    """
    CRUD glue over the `businesses` table.

    Owners create listings only through the simulated checkout, edit their
    profile fields and delete them. Administrators flip `active`. Nothing
    here enforces the subscription expiry.
    """

    TABLE = "businesses"
    _ADMIN_COLUMNS = "id, name, category, active, subscription_expires_at"

    def __init__(self, gateway: RemoteGateway) -> None:
        self._gateway = gateway

    # --------------------------------------------------------------------- #
    # Internal helpers
    # --------------------------------------------------------------------- #
    @staticmethod
    def _hydrate(rows: List[Dict[str, Any]]) -> List[Business]:
        return [Business(**row) for row in rows]

    def _single(self, rows: List[Dict[str, Any]], operation: str) -> Business:
        if not rows:
            raise GatewayError(
                f"Supabase did not return {operation} business data.",
                operation=operation,
                target=self.TABLE,
            )
        return Business(**rows[0])

    # --------------------------------------------------------------------- #
    # Reads
    # --------------------------------------------------------------------- #
    def list_public(self) -> List[Business]:
        return self._hydrate(self._gateway.select(self.TABLE, {"active": True}, NEWEST_FIRST))

    def list_for_owner(self, owner_id: str) -> List[Business]:
        return self._hydrate(self._gateway.select(self.TABLE, {"owner_id": owner_id}, NEWEST_FIRST))

    def get(self, business_id: str) -> Optional[Business]:
        row = self._gateway.select_one(self.TABLE, {"id": business_id})
        return Business(**row) if row else None

    def list_for_moderation(self, now: Optional[datetime] = None) -> List[AdminBusiness]:
        now = now or datetime.now(timezone.utc)
        rows = self._gateway.select(self.TABLE, order=NEWEST_FIRST, columns=self._ADMIN_COLUMNS)
        moderation: List[AdminBusiness] = []
        for row in rows:
            business = AdminBusiness(**row, is_expired=False)
            moderation.append(business.model_copy(update={"is_expired": is_expired(business, now)}))
        return moderation

    # --------------------------------------------------------------------- #
    # Writes
    # --------------------------------------------------------------------- #
    def checkout(self, owner_id: str, data: BusinessCreate, now: Optional[datetime] = None) -> Business:
        """Simulated payment: the listing is inserted already active for the paid window."""
        payload: Dict[str, Any] = data.model_dump(mode="json")
        payload["owner_id"] = owner_id
        payload.update(activation_fields(now))

        logger.info("[business] Checkout for owner=%s name=%s", owner_id, data.name)
        return self._single(self._gateway.insert(self.TABLE, payload), "created")

    def update_profile(self, business: Business, patch: BusinessUpdate) -> Business:
        if not patch.has_updates():
            return business

        update_data: Dict[str, Any] = patch.model_dump(mode="json", exclude_unset=True)
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

        rows = self._gateway.update(self.TABLE, update_data, {"id": business.id})
        return self._single(rows, "updated")

    def delete(self, business_id: str) -> None:
        self._gateway.delete(self.TABLE, {"id": business_id})
        logger.info("[business] Deleted business=%s", business_id)

    def set_active(self, business_id: str, active: bool) -> Business:
        rows = self._gateway.update(self.TABLE, {"active": active}, {"id": business_id})
        logger.info("[business] Admin set active=%s business=%s", active, business_id)
        return self._single(rows, "updated")
