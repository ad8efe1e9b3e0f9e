from typing import Any, List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from doctavende.api.deps import get_business_service, get_promotion_service, http_error_from_gateway
from doctavende.db.gateway import GatewayError
from doctavende.schemas.business import CATEGORIES, BusinessDetail, Business, CategoriaNegocio
from doctavende.schemas.promotion import WEEKDAY_LABELS, BusinessSummary, PublicPromotion, Weekday
from doctavende.services.business_service import BusinessService
from doctavende.services.filters import filter_businesses, filter_promotions, pair_with_active_businesses
from doctavende.services.promotion_service import PromotionService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/categories", response_model=List[str])
async def read_categories() -> Any:
    return CATEGORIES


@router.get("/weekdays", response_model=List[Weekday])
async def read_weekdays() -> Any:
    return [Weekday(id=day, label=label) for day, label in WEEKDAY_LABELS.items()]


@router.get("/businesses", response_model=List[Business])
async def read_businesses(
    q: Optional[str] = Query(None, description="Texto a buscar en nombre o descripción"),
    category: Optional[CategoriaNegocio] = Query(None, description="Rubro exacto"),
    service: BusinessService = Depends(get_business_service),
) -> Any:
    """
    Active listings, newest first, filtered by free text and category.
    """
    try:
        businesses = service.list_public()
    except GatewayError as exc:
        raise http_error_from_gateway(exc)

    return filter_businesses(businesses, q, category)


@router.get("/businesses/{business_id}", response_model=BusinessDetail)
async def read_business(
    business_id: str,
    service: BusinessService = Depends(get_business_service),
) -> Any:
    try:
        business = service.get(business_id)
    except GatewayError as exc:
        raise http_error_from_gateway(exc)

    if business is None or not business.active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Negocio no encontrado")
    return BusinessDetail.from_business(business)


@router.get("/promotions", response_model=List[PublicPromotion])
async def read_promotions(
    q: Optional[str] = Query(None, description="Texto a buscar en título, descripción o negocio"),
    category: Optional[CategoriaNegocio] = Query(None, description="Rubro del negocio"),
    day: Optional[int] = Query(None, ge=0, le=6, description="Día de la semana (0 = Domingo)"),
    businesses: BusinessService = Depends(get_business_service),
    promotions: PromotionService = Depends(get_promotion_service),
) -> Any:
    """
    Promotions of active businesses only, filtered by text, category and weekday.
    """
    try:
        active = businesses.list_public()
        all_promotions = promotions.list_all()
    except GatewayError as exc:
        raise http_error_from_gateway(exc)

    listings = filter_promotions(pair_with_active_businesses(all_promotions, active), q, category, day)
    return [
        PublicPromotion(
            **listing.promotion.model_dump(),
            business=BusinessSummary(**listing.business.model_dump()),
        )
        for listing in listings
    ]
