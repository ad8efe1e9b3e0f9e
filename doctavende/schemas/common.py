from pydantic import BaseModel, Field


class MessageResponse(BaseModel): # A generic message response schema
    message: str


class CropArea(BaseModel):
    """Rectángulo de recorte en pixeles de la imagen original."""
    x: float = Field(0, ge=0)
    y: float = Field(0, ge=0)
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)
