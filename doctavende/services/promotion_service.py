from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from doctavende.db.gateway import NEWEST_FIRST, GatewayError, RemoteGateway
from doctavende.schemas.promotion import Promotion, PromotionCreate, PromotionUpdate

logger = logging.getLogger(__name__)

NO_DAYS_MESSAGE = "Por favor, selecciona al menos un día de la semana."


class PromotionValidationError(ValueError):
    pass


class PromotionService:
    """CRUD over `promotions`. Visibility is inherited from the parent business."""

    TABLE = "promotions"

    def __init__(self, gateway: RemoteGateway) -> None:
        self._gateway = gateway

    @staticmethod
    def validate(data: PromotionCreate | PromotionUpdate) -> None:
        """Checks that must pass before any upload or row write."""
        days = data.days_of_week
        if isinstance(data, PromotionCreate) and not days:
            raise PromotionValidationError(NO_DAYS_MESSAGE)
        if isinstance(data, PromotionUpdate) and "days_of_week" in data.model_fields_set and not days:
            raise PromotionValidationError(NO_DAYS_MESSAGE)

    def list_all(self) -> List[Promotion]:
        rows = self._gateway.select(self.TABLE, order=NEWEST_FIRST)
        return [Promotion(**row) for row in rows]

    def list_for_business(self, business_id: str) -> List[Promotion]:
        rows = self._gateway.select(self.TABLE, {"business_id": business_id}, NEWEST_FIRST)
        return [Promotion(**row) for row in rows]

    def get(self, promotion_id: str, business_id: str) -> Optional[Promotion]:
        row = self._gateway.select_one(self.TABLE, {"id": promotion_id, "business_id": business_id})
        return Promotion(**row) if row else None

    def create(self, business_id: str, data: PromotionCreate) -> Promotion:
        self.validate(data)
        payload: Dict[str, Any] = data.model_dump(mode="json")
        payload["business_id"] = business_id

        rows = self._gateway.insert(self.TABLE, payload)
        if not rows:
            raise GatewayError("Supabase did not return created promotion data.", operation="insert", target=self.TABLE)
        logger.info("[promotion] Created promotion for business=%s days=%s", business_id, data.days_of_week)
        return Promotion(**rows[0])

    def update(self, promotion: Promotion, patch: PromotionUpdate) -> Promotion:
        self.validate(patch)
        update_data: Dict[str, Any] = patch.model_dump(mode="json", exclude_unset=True)
        if not update_data:
            return promotion
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

        rows = self._gateway.update(
            self.TABLE, update_data, {"id": promotion.id, "business_id": promotion.business_id}
        )
        if not rows:
            raise GatewayError("Supabase did not return updated promotion data.", operation="update", target=self.TABLE)
        return Promotion(**rows[0])

    def delete(self, promotion_id: str, business_id: str) -> None:
        self._gateway.delete(self.TABLE, {"id": promotion_id, "business_id": business_id})
