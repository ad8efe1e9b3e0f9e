from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from enum import Enum
import re


class CategoriaNegocio(str, Enum):
    GASTRONOMIA = "Gastronomía"
    MODA = "Moda"
    SALUD = "Salud"
    PARA_EL_HOGAR = "Para el hogar"
    VEHICULO = "Vehículo"
    SERVICIOS = "Servicios"
    OTROS = "Otros"


CATEGORIES: list[str] = [c.value for c in CategoriaNegocio]


class BusinessBase(BaseModel):
    """Campos de perfil que el dueño puede editar."""
    name: str = Field(..., min_length=1, max_length=120, description="Nombre del negocio")
    category: CategoriaNegocio = Field(default=CategoriaNegocio.GASTRONOMIA, description="Rubro")
    description: Optional[str] = Field(None, max_length=2000)
    phone: Optional[str] = Field(None, max_length=40, description="Teléfono / WhatsApp")
    image_url: Optional[str] = None
    location_lat: Optional[float] = Field(None, ge=-90, le=90)
    location_lng: Optional[float] = Field(None, ge=-180, le=180)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("El nombre es obligatorio")
        return v.strip()

    @field_validator("description", "phone", "image_url")
    @classmethod
    def empty_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class BusinessCreate(BusinessBase):
    pass


class BusinessUpdate(BaseModel):
    """Owner patch. `active`, `owner_id` and the expiry are never writable here."""
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    category: Optional[CategoriaNegocio] = None
    description: Optional[str] = Field(None, max_length=2000)
    phone: Optional[str] = Field(None, max_length=40)
    image_url: Optional[str] = None
    location_lat: Optional[float] = Field(None, ge=-90, le=90)
    location_lng: Optional[float] = Field(None, ge=-180, le=180)

    # Validan solo valores enviados: un None explícito pretende borrar la columna
    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> str:
        if v is None or not v.strip():
            raise ValueError("El nombre es obligatorio")
        return v.strip()

    @field_validator("category")
    @classmethod
    def category_required(cls, v: Optional[CategoriaNegocio]) -> CategoriaNegocio:
        if v is None:
            raise ValueError("La categoría es obligatoria")
        return v

    @field_validator("description", "phone", "image_url")
    @classmethod
    def empty_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    def has_updates(self) -> bool:
        return bool(self.model_dump(exclude_unset=True))


class Business(BaseModel):
    """
    Fila leída de `businesses`. Sin límites de largo ni de rango: las filas
    existentes pueden no cumplir las reglas de escritura actuales.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    name: str
    # Las filas viejas pueden traer categorías fuera del enum
    category: str
    description: Optional[str] = None
    phone: Optional[str] = None
    image_url: Optional[str] = None
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    active: bool = False
    subscription_expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BusinessDetail(Business):
    maps_url: Optional[str] = None
    whatsapp_url: Optional[str] = None

    @classmethod
    def from_business(cls, business: Business) -> "BusinessDetail":
        maps_url = None
        if business.location_lat and business.location_lng:
            maps_url = f"https://www.google.com/maps?q={business.location_lat},{business.location_lng}"
        whatsapp_url = None
        if business.phone:
            digits = re.sub(r"\D", "", business.phone)
            if digits:
                whatsapp_url = f"https://wa.me/{digits}"
        return cls(**business.model_dump(), maps_url=maps_url, whatsapp_url=whatsapp_url)


class AdminBusiness(BaseModel):
    """Fila de la tabla de moderación."""
    id: str
    name: str
    category: str
    active: bool
    subscription_expires_at: Optional[datetime] = None
    is_expired: bool


class ActiveToggle(BaseModel):
    active: bool
