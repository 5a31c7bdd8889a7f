from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from constants.permissions import Role
from utils.validations import normalize_whitespace, validate_password


class TokenPayload(BaseModel):
    """Claims carried by a storefront auth token."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    email: str
    role: str
    iat: Optional[int] = None
    exp: Optional[int] = None


class Principal(BaseModel):
    """The authenticated caller, attached to ``request.state.user`` by the guards."""

    user_id: str
    email: str
    role: str
    source: Literal["session", "token"]


class LoginRequest(BaseModel):
    email: EmailStr = Field(..., title="Email", description="Account email address.")
    password: str = Field(..., title="Password", description="Account password.")

    @field_validator("email", "password", mode="before")
    @classmethod
    def required(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("Email and password are required")
        return value

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class RegisterRequest(BaseModel):
    name: str = Field(..., title="Name", description="Display name of the customer.")
    email: EmailStr = Field(..., title="Email", description="Account email address.")
    password: str = Field(..., title="Password", description="Account password.")
    # Accepted for compatibility with older clients; public sign-up is always USER.
    role: Optional[str] = Field(None, title="Role", description="Ignored.")

    @field_validator("name", "email", "password", mode="before")
    @classmethod
    def required(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("Email, password, and name are required")
        return value

    @field_validator("name")
    @classmethod
    def clean_name(cls, value: str) -> str:
        return normalize_whitespace(value)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        error = validate_password(value)
        if error:
            raise ValueError(error)
        return value


class UserDetails(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: Optional[str] = None
    email: str
    role: Role
    image: Optional[str] = None
