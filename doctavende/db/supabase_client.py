from supabase.client import create_client, Client
from supabase.lib.client_options import ClientOptions
from functools import lru_cache
import logging

from doctavende.core.config import settings
from typing import Protocol, cast

logger = logging.getLogger(__name__)


def _mask(key: str) -> str:
    return "*" * (len(key) // 4) if key else "No configurada"


@lru_cache()
def get_supabase_client() -> Client:
    """
    Create and return a Supabase client using the configuration from settings.
    Uses lru_cache so every request shares one base client. Used for public
    reads and for the auth operations themselves.
    """
    url = settings.SUPABASE_URL
    key = settings.SUPABASE_KEY or settings.SUPABASE_ANON_KEY

    logger.info("[supabase] Creando cliente base url=%s key=%s", url, _mask(key))

    if not url:
        raise ValueError("SUPABASE_URL no está configurado en variables de entorno o .env")
    if not key:
        raise ValueError("SUPABASE_KEY no está configurado en variables de entorno o .env")

    return create_client(url, key)


class HasAuth(Protocol):
    def auth(self, token: str) -> object: ...


def get_supabase_anon_client() -> Client:
    """
    Create a fresh Supabase client with the anon key.
    Sign-up / sign-in need their own client so the session they produce
    does not leak into the shared base client.
    """
    url = settings.SUPABASE_URL
    anon_key = settings.SUPABASE_ANON_KEY or settings.SUPABASE_KEY

    if not url or not anon_key:
        raise ValueError("SUPABASE_URL o SUPABASE_ANON_KEY no están configurados")

    logger.debug("[supabase] Creando cliente anónimo key=%s", _mask(anon_key))
    return create_client(url, anon_key)


def get_supabase_user_client(user_token: str) -> Client:
    """
    Create a Supabase client that sends the user's JWT to PostgREST,
    so row-level security sees `auth.uid()` as that user.
    """
    url = settings.SUPABASE_URL
    anon_key = settings.SUPABASE_ANON_KEY or settings.SUPABASE_KEY

    if not url or not anon_key:
        raise ValueError("SUPABASE_URL o SUPABASE_ANON_KEY no están configurados")

    # Asegurar que el token esté limpio (sin 'Bearer ' al inicio)
    clean_token = user_token
    if clean_token and clean_token.startswith("Bearer "):
        clean_token = clean_token[7:]

    # El header viaja tanto a PostgREST como a Storage
    options = ClientOptions(headers={"Authorization": f"Bearer {clean_token}"})
    client = create_client(url, anon_key, options=options)

    postgrest_obj = cast(object, getattr(client, "postgrest", None))
    if postgrest_obj is not None:
        _ = cast(HasAuth, postgrest_obj).auth(clean_token)
        logger.debug("[supabase] Token establecido en cliente postgrest")

    return client
