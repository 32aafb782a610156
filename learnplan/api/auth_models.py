"""Request/response models for authentication endpoints."""

from pydantic import BaseModel, Field


class GoogleOAuthCallbackRequest(BaseModel):
    """Request model for Google sign-in."""
    id_token: str = Field(..., description="Google ID token from the client sign-in flow")


class AuthResponse(BaseModel):
    """Response model for authentication."""
    access_token: str
    token_type: str = "bearer"
    user: dict
    created: bool = Field(False, description="True when this sign-in created the account")
