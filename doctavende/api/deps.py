from typing import Iterator, Optional
import logging

from fastapi import Depends, HTTPException, status, UploadFile
from fastapi.security import OAuth2PasswordBearer

from doctavende.core.config import settings
from doctavende.db.gateway import GatewayError, RemoteGateway
from doctavende.schemas.business import Business
from doctavende.schemas.common import CropArea
from doctavende.services.business_service import BusinessService
from doctavende.services.config_service import ConfigService
from doctavende.services.imaging import (
    ImageDecodeError,
    ImageEncodeError,
    ImageTooLargeError,
    UploadCandidate,
    prepare_upload,
)
from doctavende.services.promotion_service import PromotionService
from doctavende.services.session import SessionContext
from doctavende.services.storage import FlyerStorage

logger = logging.getLogger(__name__)

# Esquema OAuth2: el token es el access_token de Supabase
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)


def http_error_from_gateway(exc: GatewayError) -> HTTPException:
    """Remote failures are shown to the user with Supabase's own message."""
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)


# --------------------------------------------------------------------------- #
# Gateway / session
# --------------------------------------------------------------------------- #
def get_request_gateway(token: Optional[str] = Depends(oauth2_scheme)) -> RemoteGateway:
    """User-scoped gateway when a bearer token is present, shared public one otherwise."""
    if token:
        return RemoteGateway.for_token(token)
    return RemoteGateway.public()


def get_session_context(
    token: Optional[str] = Depends(oauth2_scheme),
    gateway: RemoteGateway = Depends(get_request_gateway),
) -> Iterator[SessionContext]:
    context = SessionContext(gateway)
    try:
        context.start(access_token=token)
    except GatewayError as exc:
        context.close()
        logger.warning("[auth] Token rejected: %s", exc.message)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        yield context
    finally:
        context.close()


async def get_current_user(context: SessionContext = Depends(get_session_context)) -> SessionContext:
    if not context.authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Debes iniciar sesión para ver tu panel.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return context


async def get_admin_user(context: SessionContext = Depends(get_current_user)) -> SessionContext:
    if not context.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Acceso Denegado")
    return context


# --------------------------------------------------------------------------- #
# Services
# --------------------------------------------------------------------------- #
def get_business_service(gateway: RemoteGateway = Depends(get_request_gateway)) -> BusinessService:
    return BusinessService(gateway)


def get_promotion_service(gateway: RemoteGateway = Depends(get_request_gateway)) -> PromotionService:
    return PromotionService(gateway)


def get_config_service(gateway: RemoteGateway = Depends(get_request_gateway)) -> ConfigService:
    return ConfigService(gateway)


def get_flyer_storage(gateway: RemoteGateway = Depends(get_request_gateway)) -> FlyerStorage:
    return FlyerStorage(gateway)


async def get_owned_business(
    business_id: str,
    context: SessionContext = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service),
) -> Business:
    try:
        business = service.get(business_id)
    except GatewayError as exc:
        raise http_error_from_gateway(exc)

    if business is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Negocio no encontrado")
    if context.user is None or business.owner_id != context.user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Sin acceso al negocio")
    return business


# --------------------------------------------------------------------------- #
# Uploads
# --------------------------------------------------------------------------- #
def crop_from_fields(
    x: Optional[float],
    y: Optional[float],
    width: Optional[float],
    height: Optional[float],
) -> Optional[CropArea]:
    """A crop counts as confirmed only when both dimensions were sent."""
    if width is None or height is None:
        return None
    try:
        return CropArea(x=x or 0, y=y or 0, width=width, height=height)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))


async def read_upload(image: Optional[UploadFile], crop: Optional[CropArea]) -> Optional[UploadCandidate]:
    if image is None or not image.filename:
        return None

    data = await image.read()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="El archivo está vacío")
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="La imagen supera el tamaño máximo permitido",
        )

    try:
        return prepare_upload(data, image.filename, crop)
    except ImageDecodeError as exc:
        logger.error("[crop] %s (%s)", exc, image.filename)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Error al procesar la imagen: {exc}")
    except ImageEncodeError as exc:
        logger.error("[crop] %s (%s)", exc, image.filename)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Error al recortar la imagen: {exc}")
    except ImageTooLargeError as exc:
        logger.error("[crop] %s (%s)", exc, image.filename)
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"El recorte supera el tamaño máximo permitido: {exc}",
        )
