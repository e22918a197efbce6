# app/models/personal_access_tokens.py
from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.core.security import utcnow
from app.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from app.models.users import User


class PersonalAccessToken(TimestampMixin, Base):
    __tablename__ = "personal_access_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False,
    )
    # 裝置名稱（例如 "iphone"），方便辨識多裝置登入
    name: Mapped[str] = mapped_column(String(100), nullable=False, default="api")
    # HMAC-SHA256(hex)；明文只在簽發時回傳一次
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    last_used_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    # 覆寫 mixin：只更新 last_used_at 時不動 updated_at
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    user: Mapped["User"] = relationship(back_populates="tokens")
