from pydantic import BaseModel, Field, field_validator
from typing import Optional


def _strip_name(value):
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("name may not be blank")
    return value


class LoginRequest(BaseModel):
    email: str
    password: str


class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    password: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value):
        return _strip_name(value)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = Field(None, min_length=3, max_length=255)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value):
        return _strip_name(value)
