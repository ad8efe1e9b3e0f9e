from pydantic import BaseModel, Field

SUBSCRIPTION_PRICE_KEY = "subscription_price"


class SubscriptionPrice(BaseModel):
    price: float = Field(..., ge=0, description="Precio mensual de la suscripción")
    days: int = Field(..., gt=0, description="Días de visibilidad que otorga el pago")


class SubscriptionPriceUpdate(BaseModel):
    price: float = Field(..., ge=0)
