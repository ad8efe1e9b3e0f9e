from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import logging
import re

logger = logging.getLogger(__name__)


class JSONErrorMiddleware(BaseHTTPMiddleware):
    """
    Middleware que garantiza que todos los errores de las rutas API
    sean devueltos como JSON en lugar de HTML.
    """

    def __init__(self, app: ASGIApp, api_prefix: str = "/api/"):
        super().__init__(app)
        self.api_prefix = api_prefix
        # Patrón para detectar HTML
        self.html_pattern = re.compile(r'<!DOCTYPE|<html|<body', re.IGNORECASE)

    async def dispatch(self, request: Request, call_next):
        if self.api_prefix not in request.url.path:
            return await call_next(request)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception("Error no manejado en ruta %s", request.url.path)
            return JSONResponse(
                status_code=500,
                content={
                    "detail": "Error interno del servidor",
                    "message": str(e),
                },
            )

        content_type = response.headers.get("content-type", "")
        if "text/html" not in content_type.lower():
            return response

        body = getattr(response, "body", None)
        if body and self.html_pattern.search(body.decode("utf-8", errors="ignore")):
            logger.error("Respuesta HTML detectada en ruta API: %s", request.url.path)
            return JSONResponse(
                status_code=500,
                content={
                    "detail": "Error de respuesta",
                    "message": "La API devolvió HTML en lugar de JSON",
                    "original_status": response.status_code,
                },
            )
        return response
