# app/api/v1/endpoints/auth.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.access import Identity
from app.core.deps import get_current_user, get_identity
from app.core.errors import TooManyAttempts
from app.db.session import get_db
from app.models.users import User
from app.schemas.auth import LoginRequest, LogoutResult, Token
from app.schemas.user import UserCreate, UserRead
from app.services import accounts
from app.services.rate_limit import check_login_allowed, reset_login_attempts

router = APIRouter(tags=["auth"])


# === 註冊（開放） ===
@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    return await accounts.register(db, payload)


# === 登入（含 Redis Rate Limit） ===
@router.post("/login", response_model=Token)
async def login(
    request: Request,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    使用者登入，簽發新的不透明 token（明文只回傳這一次）。
    """
    ip = (request.client.host if request.client else "unknown") or "unknown"

    allowed, retry_after = await check_login_allowed(ip, payload.email)
    if not allowed:
        raise TooManyAttempts(retry_after)

    access_token, token_type = await accounts.login(
        db, payload.email, payload.password, payload.device_name,
    )

    # ✅ 登入成功後清空 email+IP 的嘗試（避免誤鎖）
    await reset_login_attempts(ip, payload.email)
    return Token(access_token=access_token, token_type=token_type)


# === 登出（撤銷所有裝置的 token） ===
@router.post("/logout", response_model=LogoutResult)
async def logout(
    caller: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    revoked = await accounts.logout(db, caller)
    return LogoutResult(revoked=revoked)


@router.get("/me", response_model=UserRead)
async def read_me(current_user: User = Depends(get_current_user)):
    return current_user
