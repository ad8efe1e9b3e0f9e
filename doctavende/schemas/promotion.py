from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime

# 0 = Domingo, igual que Date.getDay()
WEEKDAY_LABELS: dict[int, str] = {
    0: "Dom",
    1: "Lun",
    2: "Mar",
    3: "Mié",
    4: "Jue",
    5: "Vie",
    6: "Sáb",
}


def normalize_days(days: list[int]) -> list[int]:
    """Deduplicate and sort weekday numbers, rejecting anything outside 0-6."""
    for day in days:
        if day not in WEEKDAY_LABELS:
            raise ValueError(f"Día de la semana inválido: {day}")
    return sorted(set(days))


class PromotionBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=120, description="Título de la promo")
    description: Optional[str] = Field(None, max_length=2000)
    image_url: Optional[str] = None
    # La validación de "al menos un día" la hace el servicio antes de tocar la red
    days_of_week: list[int] = Field(default_factory=list, description="Días 0-6 (0 = Domingo)")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("El título es obligatorio")
        return v.strip()

    @field_validator("days_of_week")
    @classmethod
    def dedupe_days(cls, v: list[int]) -> list[int]:
        return normalize_days(v)


class PromotionCreate(PromotionBase):
    pass


class PromotionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=120)
    description: Optional[str] = Field(None, max_length=2000)
    image_url: Optional[str] = None
    days_of_week: Optional[list[int]] = None

    @field_validator("days_of_week")
    @classmethod
    def dedupe_days(cls, v: Optional[list[int]]) -> Optional[list[int]]:
        return normalize_days(v) if v is not None else None


class Promotion(BaseModel):
    """Fila leída de `promotions`, sin las reglas de escritura."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    business_id: str
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    days_of_week: list[int] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("days_of_week", mode="before")
    @classmethod
    def coerce_null_days(cls, v: object) -> object:
        return [] if v is None else v


class BusinessSummary(BaseModel):
    id: str
    name: str
    category: str
    phone: Optional[str] = None
    image_url: Optional[str] = None


class PublicPromotion(Promotion):
    business: BusinessSummary


class Weekday(BaseModel):
    id: int
    label: str
