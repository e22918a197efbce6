# app/services/tokens.py
"""
不透明 Bearer Token 的簽發 / 驗證 / 撤銷。

- 明文只在 issue() 回傳一次，DB 僅保存 HMAC 雜湊。
- 同一使用者可同時持有多把 token（多裝置）。
- revoke_all() 刪除使用者所有 token，即「登出全部裝置」。
"""
from datetime import datetime, timedelta
from typing import Optional, Tuple

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import Unauthenticated
from app.core.security import generate_token_secret, hash_token, utcnow
from app.models.personal_access_tokens import PersonalAccessToken
from app.models.users import User

DEFAULT_TOKEN_NAME = "api"


def expiry_cutoff(now: Optional[datetime] = None) -> Optional[datetime]:
    """早於此時間建立的 token 視為過期；未設定 TOKEN_EXPIRE_MINUTES 時回傳 None。"""
    minutes = settings.TOKEN_EXPIRE_MINUTES
    if not minutes:
        return None
    return (now or utcnow()) - timedelta(minutes=minutes)


async def issue(
    db: AsyncSession, user: User, name: Optional[str] = None,
) -> Tuple[str, PersonalAccessToken]:
    plain = generate_token_secret()
    record = PersonalAccessToken(
        user_id=user.id,
        name=(name or "").strip() or DEFAULT_TOKEN_NAME,
        token_hash=hash_token(plain),
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)
    logger.info("Issued token id={} for user_id={}", record.id, user.id)
    return plain, record


async def validate(db: AsyncSession, presented: Optional[str]) -> int:
    """回傳 token 所屬 user_id；缺少 / 未知 / 過期一律丟 Unauthenticated。"""
    # 逐字比對，不做 strip
    if not presented:
        raise Unauthenticated()

    result = await db.execute(
        select(PersonalAccessToken).where(PersonalAccessToken.token_hash == hash_token(presented))
    )
    record = result.scalar_one_or_none()
    if record is None:
        raise Unauthenticated()

    cutoff = expiry_cutoff()
    if cutoff is not None and record.created_at < cutoff:
        raise Unauthenticated("Token has expired.")

    record.last_used_at = utcnow()
    await db.commit()
    return record.user_id


async def revoke_all(db: AsyncSession, user_id: int) -> int:
    """刪除使用者所有 token，回傳刪除數量（0 也算成功）。"""
    res = await db.execute(delete(PersonalAccessToken).where(PersonalAccessToken.user_id == user_id))
    await db.commit()
    revoked = res.rowcount or 0
    logger.info("Revoked {} token(s) for user_id={}", revoked, user_id)
    return revoked
