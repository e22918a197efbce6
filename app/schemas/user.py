# app/schemas/user.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.core.config import settings


class UserCreate(BaseModel):
    name: str = Field(max_length=100)
    email: EmailStr = Field(max_length=255)
    # 僅用於建立帳號的輸入，不會在輸出 schema 中出現
    password: str = Field(min_length=settings.PASSWORD_MIN_LENGTH, max_length=255)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.strip().lower()


class UserRead(BaseModel):
    # Pydantic v2：允許從 ORM 物件轉模型
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: EmailStr
    is_admin: bool
    created_at: datetime
