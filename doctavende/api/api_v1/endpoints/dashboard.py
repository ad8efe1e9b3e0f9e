from typing import Any, List, Optional
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, Response, UploadFile, status
from pydantic import ValidationError

from doctavende.api.deps import (
    crop_from_fields,
    get_business_service,
    get_config_service,
    get_current_user,
    get_flyer_storage,
    get_owned_business,
    get_promotion_service,
    http_error_from_gateway,
    read_upload,
)
from doctavende.db.gateway import GatewayError
from doctavende.schemas.business import Business, BusinessCreate, BusinessUpdate, CategoriaNegocio
from doctavende.schemas.pricing import SubscriptionPrice
from doctavende.schemas.promotion import Promotion, PromotionCreate, PromotionUpdate
from doctavende.services.business_service import BusinessService
from doctavende.services.config_service import ConfigService
from doctavende.services.promotion_service import PromotionService, PromotionValidationError
from doctavende.services.session import SessionContext
from doctavende.services.storage import FlyerStorage, business_flyer_prefix, promotion_flyer_prefix

logger = logging.getLogger(__name__)

router = APIRouter()

PAYMENT_REQUIRED_MESSAGE = "Por favor, realiza el pago para activar tu negocio."


def _validation_error(exc: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=exc.errors(include_url=False, include_context=False),
    )


# --------------------------------------------------------------------------- #
# Precio
# --------------------------------------------------------------------------- #
@router.get("/price", response_model=SubscriptionPrice)
async def read_price(
    context: SessionContext = Depends(get_current_user),
    config: ConfigService = Depends(get_config_service),
) -> Any:
    """Monthly price shown while composing a new listing."""
    try:
        return config.get_subscription_price()
    except GatewayError as exc:
        raise http_error_from_gateway(exc)


# --------------------------------------------------------------------------- #
# Negocios
# --------------------------------------------------------------------------- #
@router.get("/businesses", response_model=List[Business])
async def read_my_businesses(
    context: SessionContext = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service),
) -> Any:
    try:
        return service.list_for_owner(context.user.id)
    except GatewayError as exc:
        raise http_error_from_gateway(exc)


@router.post("/businesses", status_code=status.HTTP_402_PAYMENT_REQUIRED)
async def create_business_without_payment(context: SessionContext = Depends(get_current_user)) -> Any:
    """New listings only exist once paid: see `/businesses/checkout`."""
    raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=PAYMENT_REQUIRED_MESSAGE)


@router.post("/businesses/checkout", response_model=Business, status_code=status.HTTP_201_CREATED)
async def checkout_business(
    name: str = Form(...),
    category: CategoriaNegocio = Form(CategoriaNegocio.GASTRONOMIA),
    description: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    location_lat: Optional[float] = Form(None),
    location_lng: Optional[float] = Form(None),
    image: Optional[UploadFile] = File(None),
    crop_x: Optional[float] = Form(None),
    crop_y: Optional[float] = Form(None),
    crop_width: Optional[float] = Form(None),
    crop_height: Optional[float] = Form(None),
    context: SessionContext = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service),
    storage: FlyerStorage = Depends(get_flyer_storage),
) -> Any:
    """
    Simulated payment. On "success" the listing is created active with a
    thirty-day subscription. There is no real payment gateway behind this.
    """
    try:
        data = BusinessCreate(
            name=name,
            category=category,
            description=description,
            phone=phone,
            location_lat=location_lat,
            location_lng=location_lng,
        )
    except ValidationError as exc:
        raise _validation_error(exc)

    candidate = await read_upload(image, crop_from_fields(crop_x, crop_y, crop_width, crop_height))

    try:
        if candidate is not None:
            data.image_url = storage.store(candidate, business_flyer_prefix(context.user.id))
        business = service.checkout(context.user.id, data)
    except GatewayError as exc:
        logger.error("[checkout] Error en el pago user=%s: %s", context.user.id, exc.message)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Error en el pago: {exc.message}")

    return business


@router.put("/businesses/{business_id}", response_model=Business)
async def update_business(
    request: Request,
    name: Optional[str] = Form(None),
    category: Optional[CategoriaNegocio] = Form(None),
    description: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    location_lat: Optional[float] = Form(None),
    location_lng: Optional[float] = Form(None),
    image: Optional[UploadFile] = File(None),
    crop_x: Optional[float] = Form(None),
    crop_y: Optional[float] = Form(None),
    crop_width: Optional[float] = Form(None),
    crop_height: Optional[float] = Form(None),
    business: Business = Depends(get_owned_business),
    service: BusinessService = Depends(get_business_service),
    storage: FlyerStorage = Depends(get_flyer_storage),
) -> Any:
    """
    Edit the profile fields of an owned listing. `active` is not writable here.

    Only the fields present in the form are written; a field sent empty
    clears its column (FastAPI hands it over as None).
    """
    sent = await request.form()
    fields = {
        "name": name,
        "category": category,
        "description": description,
        "phone": phone,
        "location_lat": location_lat,
        "location_lng": location_lng,
    }
    try:
        patch = BusinessUpdate(**{k: v for k, v in fields.items() if k in sent})
    except ValidationError as exc:
        raise _validation_error(exc)

    candidate = await read_upload(image, crop_from_fields(crop_x, crop_y, crop_width, crop_height))

    try:
        if candidate is not None:
            patch.image_url = storage.store(candidate, business_flyer_prefix(business.owner_id))
        return service.update_profile(business, patch)
    except GatewayError as exc:
        raise http_error_from_gateway(exc)


@router.delete("/businesses/{business_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_business(
    business: Business = Depends(get_owned_business),
    service: BusinessService = Depends(get_business_service),
) -> Response:
    try:
        service.delete(business.id)
    except GatewayError as exc:
        raise http_error_from_gateway(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --------------------------------------------------------------------------- #
# Promociones
# --------------------------------------------------------------------------- #
@router.get("/businesses/{business_id}/promotions", response_model=List[Promotion])
async def read_business_promotions(
    business: Business = Depends(get_owned_business),
    promotions: PromotionService = Depends(get_promotion_service),
) -> Any:
    try:
        return promotions.list_for_business(business.id)
    except GatewayError as exc:
        raise http_error_from_gateway(exc)


@router.post("/businesses/{business_id}/promotions", response_model=Promotion, status_code=status.HTTP_201_CREATED)
async def create_promotion(
    title: str = Form(...),
    description: Optional[str] = Form(None),
    days_of_week: List[int] = Form([]),
    image: Optional[UploadFile] = File(None),
    crop_x: Optional[float] = Form(None),
    crop_y: Optional[float] = Form(None),
    crop_width: Optional[float] = Form(None),
    crop_height: Optional[float] = Form(None),
    business: Business = Depends(get_owned_business),
    promotions: PromotionService = Depends(get_promotion_service),
    storage: FlyerStorage = Depends(get_flyer_storage),
) -> Any:
    try:
        data = PromotionCreate(title=title, description=description, days_of_week=days_of_week)
    except ValidationError as exc:
        raise _validation_error(exc)

    # Validar antes de subir nada
    try:
        promotions.validate(data)
    except PromotionValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    candidate = await read_upload(image, crop_from_fields(crop_x, crop_y, crop_width, crop_height))

    try:
        if candidate is not None:
            data.image_url = storage.store(candidate, promotion_flyer_prefix(business.id))
        return promotions.create(business.id, data)
    except GatewayError as exc:
        raise http_error_from_gateway(exc)


@router.put("/businesses/{business_id}/promotions/{promotion_id}", response_model=Promotion)
async def update_promotion(
    promotion_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    days_of_week: Optional[List[int]] = Form(None),
    image: Optional[UploadFile] = File(None),
    crop_x: Optional[float] = Form(None),
    crop_y: Optional[float] = Form(None),
    crop_width: Optional[float] = Form(None),
    crop_height: Optional[float] = Form(None),
    business: Business = Depends(get_owned_business),
    promotions: PromotionService = Depends(get_promotion_service),
    storage: FlyerStorage = Depends(get_flyer_storage),
) -> Any:
    fields = {"title": title, "description": description, "days_of_week": days_of_week}
    try:
        patch = PromotionUpdate(**{k: v for k, v in fields.items() if v is not None})
    except ValidationError as exc:
        raise _validation_error(exc)

    try:
        promotions.validate(patch)
    except PromotionValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    try:
        promotion = promotions.get(promotion_id, business.id)
    except GatewayError as exc:
        raise http_error_from_gateway(exc)
    if promotion is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Promoción no encontrada")

    candidate = await read_upload(image, crop_from_fields(crop_x, crop_y, crop_width, crop_height))

    try:
        if candidate is not None:
            patch.image_url = storage.store(candidate, promotion_flyer_prefix(business.id))
        return promotions.update(promotion, patch)
    except GatewayError as exc:
        raise http_error_from_gateway(exc)


@router.delete("/businesses/{business_id}/promotions/{promotion_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_promotion(
    promotion_id: str,
    business: Business = Depends(get_owned_business),
    promotions: PromotionService = Depends(get_promotion_service),
) -> Response:
    try:
        promotions.delete(promotion_id, business.id)
    except GatewayError as exc:
        raise http_error_from_gateway(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
