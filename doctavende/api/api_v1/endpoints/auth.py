from typing import Any
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from doctavende.api.deps import get_session_context
from doctavende.db.gateway import GatewayError, RemoteGateway
from doctavende.schemas.auth import SessionInfo, SignUpResponse, Token, UserCredentials, UserLogin
from doctavende.schemas.common import MessageResponse
from doctavende.services.session import SessionContext

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
async def signup(credentials: UserCredentials) -> Any:
    """
    Register a business owner. Supabase sends the confirmation email; the
    `profiles` row is created by a database trigger.
    """
    gateway = RemoteGateway.anonymous()
    try:
        response = gateway.sign_up(credentials.email, credentials.password)
    except GatewayError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)

    user = getattr(response, "user", None)
    if user is None or not getattr(user, "id", None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No se obtuvo ID de usuario al registrar en Supabase",
        )

    logger.info("[auth] Usuario registrado id=%s", user.id)
    return SignUpResponse(
        message="¡Registro exitoso! Revisa tu correo para confirmar tu cuenta.",
        email=credentials.email,
        requires_confirmation=getattr(response, "session", None) is None,
    )


@router.post("/login", response_model=Token)
async def login(credentials: UserLogin) -> Any:
    if not credentials.email or not credentials.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Por favor ingresa tu email y contraseña.",
        )

    # Cliente propio para no guardar la sesión en el cliente compartido
    with SessionContext(RemoteGateway.anonymous()) as context:
        try:
            response = context.sign_in(credentials.email, credentials.password)
        except GatewayError as exc:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=exc.message,
                headers={"WWW-Authenticate": "Bearer"},
            )

        session = getattr(response, "session", None)
        if session is None or not context.authenticated:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Credenciales inválidas.",
                headers={"WWW-Authenticate": "Bearer"},
            )

        logger.info("[auth] Login user=%s admin=%s", context.user.id, context.is_admin)
        return Token(
            access_token=session.access_token,
            refresh_token=getattr(session, "refresh_token", None),
            expires_at=getattr(session, "expires_at", None),
        )


@router.post("/logout", response_model=MessageResponse)
async def logout(context: SessionContext = Depends(get_session_context)) -> Any:
    if not context.authenticated:
        return MessageResponse(message="Sin sesión activa")
    try:
        context.sign_out()
    except GatewayError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    return MessageResponse(message="Sesión cerrada")


@router.get("/session", response_model=SessionInfo)
async def read_session(context: SessionContext = Depends(get_session_context)) -> Any:
    """Current user and admin flag, used to decide which menu entries to show."""
    return context.snapshot()
