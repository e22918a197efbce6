# app/core/deps.py
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.access import Identity
from app.core.errors import Unauthenticated
from app.db.session import get_db
from app.models.users import User
from app.services import accounts, tokens


# auto_error=False：缺少或格式錯誤的 Authorization 由我們統一回 401（而非 403）
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    從 Bearer Token 解析目前使用者：
      1️⃣ 必須帶 Authorization: Bearer <token>
      2️⃣ 以 HMAC 雜湊比對 DB 中的 token（含過期檢查）
      3️⃣ 依 user_id 查 DB 取得 User
    """
    if credentials is None:
        raise Unauthenticated()

    user_id = await tokens.validate(db, credentials.credentials)

    user = await accounts.get_user(db, user_id)
    if user is None:
        raise Unauthenticated()
    return user


async def get_identity(current_user: User = Depends(get_current_user)) -> Identity:
    return Identity.of(current_user)
