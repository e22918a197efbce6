# app/services/accounts.py
from typing import Optional, Tuple

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.access import Identity
from app.core.errors import DuplicateEmail, InvalidCredentials
from app.core.security import dummy_verify_password, hash_password, verify_password
from app.models.users import User
from app.schemas.user import UserCreate
from app.services import tokens

TOKEN_TYPE = "bearer"


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == _normalize_email(email)))
    return result.scalar_one_or_none()


async def register(db: AsyncSession, payload: UserCreate) -> User:
    """建立一般使用者（非 admin）；不簽發 token。"""
    if await get_user_by_email(db, payload.email):
        raise DuplicateEmail()

    user = User(
        name=payload.name,
        email=_normalize_email(payload.email),
        password_hash=hash_password(payload.password),
        is_admin=False,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # 併發註冊同一 email：交給 unique constraint 判定
        await db.rollback()
        raise DuplicateEmail()
    await db.refresh(user)
    logger.info("Registered user id={}", user.id)
    return user


async def login(
    db: AsyncSession, email: str, password: str, device_name: Optional[str] = None,
) -> Tuple[str, str]:
    """帳密正確則簽發新 token，回傳 (明文 token, token_type)。"""
    user = await get_user_by_email(db, email)
    if user is None:
        dummy_verify_password()
        logger.info("Login failed: invalid credentials")
        raise InvalidCredentials()
    if not verify_password(password, user.password_hash):
        logger.info("Login failed: invalid credentials")
        raise InvalidCredentials()

    plain, _ = await tokens.issue(db, user, device_name)
    logger.info("Login succeeded for user_id={}", user.id)
    return plain, TOKEN_TYPE


async def logout(db: AsyncSession, caller: Identity) -> int:
    # 撤銷所有裝置的 token，而不只是目前這一把
    return await tokens.revoke_all(db, caller.user_id)
