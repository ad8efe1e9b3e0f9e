from typing import Any, List
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from doctavende.api.deps import get_admin_user, get_business_service, get_config_service, http_error_from_gateway
from doctavende.db.gateway import GatewayError
from doctavende.schemas.business import ActiveToggle, AdminBusiness, Business
from doctavende.schemas.pricing import SubscriptionPrice, SubscriptionPriceUpdate
from doctavende.services.business_service import BusinessService
from doctavende.services.config_service import ConfigService
from doctavende.services.session import SessionContext

logger = logging.getLogger(__name__)

# Todas las rutas exigen profiles.is_admin
router = APIRouter(dependencies=[Depends(get_admin_user)])


@router.get("/businesses", response_model=List[AdminBusiness])
async def read_all_businesses(service: BusinessService = Depends(get_business_service)) -> Any:
    """
    Every listing, active or not, with the derived `is_expired` flag.
    Expiry is informational: deactivating is a manual decision.
    """
    try:
        return service.list_for_moderation()
    except GatewayError as exc:
        raise http_error_from_gateway(exc)


@router.patch("/businesses/{business_id}/active", response_model=Business)
async def set_business_active(
    business_id: str,
    toggle: ActiveToggle,
    context: SessionContext = Depends(get_admin_user),
    service: BusinessService = Depends(get_business_service),
) -> Any:
    try:
        business = service.get(business_id)
        if business is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Negocio no encontrado")
        updated = service.set_active(business_id, toggle.active)
    except GatewayError as exc:
        raise http_error_from_gateway(exc)

    logger.info("[admin] user=%s set active=%s on business=%s", context.user.id, toggle.active, business_id)
    return updated


@router.get("/price", response_model=SubscriptionPrice)
async def read_price(config: ConfigService = Depends(get_config_service)) -> Any:
    try:
        return config.get_subscription_price()
    except GatewayError as exc:
        raise http_error_from_gateway(exc)


@router.put("/price", response_model=SubscriptionPrice)
async def update_price(
    payload: SubscriptionPriceUpdate,
    config: ConfigService = Depends(get_config_service),
) -> Any:
    try:
        return config.set_subscription_price(payload.price)
    except GatewayError as exc:
        raise http_error_from_gateway(exc)
