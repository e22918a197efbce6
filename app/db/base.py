# app/db/base.py
# 匯入所有模型，讓 Base.metadata 完整（Alembic / 測試 create_all 使用）
from app.models.base import Base  # noqa: F401
from app.models.users import User  # noqa: F401
from app.models.personal_access_tokens import PersonalAccessToken  # noqa: F401
from app.models.reservations import Reservation  # noqa: F401
