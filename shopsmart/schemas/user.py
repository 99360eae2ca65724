from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator
from email_validator import EmailNotValidError, validate_email
from typing import Optional
from datetime import date
import re

PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


def _normalize_email(value: str) -> str:
    try:
        return validate_email(value, check_deliverability=False).normalized
    except EmailNotValidError as exc:
        raise ValueError("Invalid email format") from exc


def _require(value, info: ValidationInfo):
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"Field '{info.field_name}' is required")
    return value


class UserRegister(BaseModel):
    full_name: str
    email: str
    password: str
    confirm_password: str
    phone: Optional[str] = Field(default=None, max_length=20)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(default=None, max_length=20)

    @field_validator("full_name", "email", "password", "confirm_password", mode="before")
    @classmethod
    def required(cls, v, info: ValidationInfo):
        return _require(v, info)

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, v):
        return v.strip()

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v):
        return _normalize_email(v.strip())

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters long")
        if not PASSWORD_PATTERN.match(v):
            raise ValueError(
                "Password must contain at least one uppercase letter, one lowercase letter, and one number"
            )
        return v

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserLogin(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

    @model_validator(mode="after")
    def validate_credentials(self):
        if not (self.email or "").strip() or not self.password:
            raise ValueError("Email and password are required")
        self.email = _normalize_email(self.email.strip())
        return self
