"""Pydantic schemas for authentication endpoints."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LoginRequest(BaseModel):
    """Credentials for password login. Either username or email identifies the user."""

    username: str | None = Field(None, max_length=255)
    email: str | None = Field(None, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    @model_validator(mode="after")
    def require_identifier(self) -> "LoginRequest":
        if not self.username and not self.email:
            raise ValueError("username or email is required")
        return self


class LoginResponse(BaseModel):
    """Issued access token."""

    token: str
    token_type: str = "Bearer"


class OAuthUrlResponse(BaseModel):
    """Google authorization URL the browser should visit."""

    url: str


class GoogleCallbackRequest(BaseModel):
    """Authorization code and state returned by Google."""

    code: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1, max_length=128)


class MeResponse(BaseModel):
    """The authenticated user."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
