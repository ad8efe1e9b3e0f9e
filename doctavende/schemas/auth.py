from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None


class UserCredentials(BaseModel):
    email: EmailStr
    # Supabase exige al menos 6 caracteres por defecto
    password: str = Field(..., min_length=6)


class UserLogin(BaseModel):
    # str y no EmailStr: el mensaje de error lo decide Supabase
    email: str
    password: str


class SignUpResponse(BaseModel):
    message: str
    email: str
    requires_confirmation: bool = True


class SessionInfo(BaseModel):
    """Lo que el frontend necesita para decidir qué menú mostrar."""
    authenticated: bool
    user_id: Optional[str] = None
    email: Optional[str] = None
    is_admin: bool = False
    expires_at: Optional[datetime] = None
