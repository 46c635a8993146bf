from pydantic import BaseModel, Field, field_validator

from coursedesk.core.config import MIN_PASSWORD_LENGTH
from coursedesk.core.exceptions import ValidationError


class LoginRequest(BaseModel):
    password: str = Field(..., min_length=1, max_length=128)


class LoginResponse(BaseModel):
    success: bool = True
    message: str
    access_token: str
    token_type: str = "bearer"
    role: str
    expires_in: int = Field(..., description="Token lifetime in seconds")


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., max_length=128)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v):
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"New password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )
        return v


class ChangePasswordResponse(BaseModel):
    success: bool = True
    message: str
