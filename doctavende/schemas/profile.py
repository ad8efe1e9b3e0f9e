from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class Profile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: Optional[str] = None
    # Columna nullable en la base
    is_admin: Optional[bool] = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
