"""
Authentication Schemas

Request/response models for authentication endpoints.
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class Token(BaseModel):
    """JWT token response. refresh_token is only issued at login."""
    access_token: str
    token_type: str = "bearer"
    refresh_token: Optional[str] = None


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    """Login with either login name or email."""
    login: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8)


class RegisterRequest(BaseModel):
    """User registration request."""
    login: str = Field(..., min_length=3, max_length=100, pattern="^[A-Za-z0-9_.-]+$")
    user_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)

    class Config:
        json_schema_extra = {
            "example": {
                "login": "jdoe",
                "user_name": "John Doe",
                "email": "user@example.com",
                "password": "securepassword123"
            }
        }
