"""
Authentication schemas.
"""
import uuid
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr


class RegisterRequest(BaseModel):
    """User registration request."""
    email: EmailStr
    password: str
    display_name: Optional[str] = None
    company_name: Optional[str] = None
    invitation_token: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "email": "aaron@company.com",
                "password": "securepassword123",
                "display_name": "Aaron",
                "company_name": "Acme Realty"
            }
        }


class RegisterResponse(BaseModel):
    message: str
    user_id: uuid.UUID
    account_id: Optional[uuid.UUID] = None


class TokenResponse(BaseModel):
    """Token response after login."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class UserResponse(BaseModel):
    """Current user with resolved account context."""
    id: uuid.UUID
    email: str
    display_name: Optional[str] = None
    account_id: Optional[uuid.UUID] = None
    platform_role: Optional[str] = None
    created_at: datetime
    last_login_at: Optional[datetime] = None
