from __future__ import annotations

import logging

from doctavende.core.config import settings
from doctavende.db.gateway import RemoteGateway
from doctavende.schemas.pricing import SUBSCRIPTION_PRICE_KEY, SubscriptionPrice

logger = logging.getLogger(__name__)


class ConfigService:
    """Key/value rows of the `config` table."""

    TABLE = "config"

    def __init__(self, gateway: RemoteGateway) -> None:
        self._gateway = gateway

    def get_subscription_price(self) -> SubscriptionPrice:
        row = self._gateway.select_one(self.TABLE, {"key": SUBSCRIPTION_PRICE_KEY}, columns="value")
        value = row.get("value") if row else None
        try:
            price = float(value) if value is not None else 0.0
        except (TypeError, ValueError):
            logger.warning("[config] Non numeric subscription_price %r, using 0", value)
            price = 0.0
        return SubscriptionPrice(price=price, days=settings.SUBSCRIPTION_DAYS)

    def set_subscription_price(self, price: float) -> SubscriptionPrice:
        rows = self._gateway.update(self.TABLE, {"value": price}, {"key": SUBSCRIPTION_PRICE_KEY})
        if not rows:
            # Primera vez: la fila todavía no existe
            self._gateway.insert(self.TABLE, {"key": SUBSCRIPTION_PRICE_KEY, "value": price})
        logger.info("[config] subscription_price set to %s", price)
        return SubscriptionPrice(price=price, days=settings.SUBSCRIPTION_DAYS)
