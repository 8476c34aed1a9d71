"""
Request DTOs for the User entity.

Validation and normalization happen here, before data reaches the service
layer; the service passes these through to storage unchanged.
"""
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    external_auth_id: str | None = Field(default=None, max_length=255)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)

    @field_validator("email", mode="after")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return normalize_email(v)


class UserUpdate(BaseModel):
    """All fields optional; only fields explicitly set are written."""
    model_config = ConfigDict(extra="forbid")

    email: EmailStr | None = None
    external_auth_id: str | None = Field(default=None, max_length=255)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)

    # Runs only for values passed explicitly; the unset default is not validated.
    @field_validator("email", mode="after")
    @classmethod
    def lowercase_email(cls, v: str | None) -> str:
        if v is None:
            raise ValueError("email cannot be set to null")
        return normalize_email(v)
