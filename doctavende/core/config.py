import os
import json
from typing import ClassVar, cast
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "La Docta Vende"
    VERSION: str = os.getenv("APP_VERSION", "0.0.1")
    # Solo se muestra (p.ej. "TEST v0.0.1"), no cambia comportamiento
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")

    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # CORS configuration
    BACKEND_CORS_ORIGINS: list[str] = [
        "http://localhost:5173",  # Frontend Vite
        "http://localhost:3000",
    ]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: object) -> list[str]:
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return []
            if s.startswith("[") and s.endswith("]"):
                try:
                    parsed_obj: object = cast(object, json.loads(s))
                    if isinstance(parsed_obj, list):
                        data_list: list[object] = cast(list[object], parsed_obj)
                        return [str(i).strip() for i in data_list]
                except ValueError:
                    # Fallback to comma-separated parsing
                    return [i.strip() for i in s.strip("[]").split(",") if i.strip()]
            return [i.strip() for i in s.split(",") if i.strip()]
        elif isinstance(v, list):
            v_list: list[object] = cast(list[object], v)
            return [str(i).strip() for i in v_list]
        raise ValueError(str(v))

    # Supabase settings
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")
    SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")

    # Storage de flyers (bucket público)
    STORAGE_BUCKET: str = os.getenv("STORAGE_BUCKET", "flyers")
    MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
    JPEG_QUALITY: int = int(os.getenv("JPEG_QUALITY", "90"))
    # Tope de la superficie de recorte; mismo valor por defecto que Image.MAX_IMAGE_PIXELS
    MAX_CROP_PIXELS: int = int(os.getenv("MAX_CROP_PIXELS", str(89_478_485)))

    # Ventana de visibilidad que otorga el pago simulado
    SUBSCRIPTION_DAYS: int = int(os.getenv("SUBSCRIPTION_DAYS", "30"))

    @property
    def environment_label(self) -> str:
        """Etiqueta de versión que muestra el frontend en el navbar/footer."""
        if self.ENVIRONMENT == "test":
            return f"TEST v{self.VERSION}"
        return f"v{self.VERSION}"

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )


# Instancia singleton de configuración
settings = Settings()
