from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from doctavende.api.api_v1.api import api_router
from doctavende.core.config import settings
from doctavende.core.logging_config import configure_logging
from doctavende.db.gateway import GatewayError, RemoteGateway
from doctavende.middleware.error_handlers import JSONErrorMiddleware

# CONFIGURACIÓN DE LOGS
configure_logging()
logger = logging.getLogger(__name__)


def check_supabase_connection() -> bool:
    """Verifica que el cliente base se pueda crear y consultar `config`."""
    try:
        RemoteGateway.public().select("config", {"key": "subscription_price"}, columns="key")
        return True
    except (GatewayError, ValueError) as e:
        logger.error("[supabase] Error de conexion con Supabase: %s", e)
        return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Checking Supabase connectivity on startup")
    if not check_supabase_connection():
        # No salimos: la app arranca y cada request devuelve su propio error
        logger.error("Unable to reach Supabase on startup")

    yield

    logger.info("Shutting down %s API", settings.PROJECT_NAME)


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(JSONErrorMiddleware, api_prefix=settings.API_V1_STR)
# CORS se agrega último: Starlette lo deja como el middleware más externo,
# así los headers salen incluso en respuestas de error
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/")
async def root() -> dict:
    return {
        "message": f"{settings.PROJECT_NAME} API",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "label": settings.environment_label,
        "status": "OK",
    }


@app.get("/health")
async def health_check() -> dict:
    return {"status": "OK"}
