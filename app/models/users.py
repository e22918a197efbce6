# app/models/users.py
from typing import List, TYPE_CHECKING
from sqlalchemy import String, Integer, Boolean, false
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from app.models.personal_access_tokens import PersonalAccessToken
    from app.models.reservations import Reservation


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    # 只有 admin / 一般使用者兩層；切換屬於後台管理動作
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())

    # 刪除使用者時由 DB 的 ON DELETE CASCADE 一併清掉（不先載入子資料）
    tokens: Mapped[List["PersonalAccessToken"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True,
    )
    reservations: Mapped[List["Reservation"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True,
    )
