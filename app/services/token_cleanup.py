# app/services/token_cleanup.py
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.personal_access_tokens import PersonalAccessToken
from app.services.tokens import expiry_cutoff


async def prune_expired_tokens(db: AsyncSession) -> int:
    """刪除已過期的 token，回傳刪除數量；未設定過期時間時不做事。"""
    cutoff = expiry_cutoff()
    if cutoff is None:
        return 0
    stmt = delete(PersonalAccessToken).where(PersonalAccessToken.created_at < cutoff)
    res = await db.execute(stmt)
    await db.commit()
    return res.rowcount or 0
