# app/core/security.py
import hashlib
import hmac
import secrets
from datetime import datetime, timezone

from passlib.context import CryptContext

from app.core.config import settings

# === Password Hashing ===
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__ident="2b",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
    # 若密碼超過 72 bytes，不拋錯（與現有流程相容）
    bcrypt__truncate_error=False,
)

def _sanitize_password(p: str) -> str:
    # bcrypt 只吃前 72 bytes，避免極長密碼在某些環境報錯
    return p[:72] if isinstance(p, str) else p

def hash_password(plain: str) -> str:
    return pwd_context.hash(_sanitize_password(plain))

def verify_password(plain: str, password_hash: str) -> bool:
    return pwd_context.verify(_sanitize_password(plain), password_hash)

def dummy_verify_password() -> None:
    """查無使用者時也跑一次雜湊比對，讓兩種失敗的耗時相近。"""
    pwd_context.dummy_verify()

# === Opaque Bearer Tokens ===
TOKEN_BYTES = 40

def generate_token_secret() -> str:
    """產生不透明的 token 明文；只在簽發當下回傳給 client 一次。"""
    return secrets.token_urlsafe(TOKEN_BYTES)

def hash_token(plain: str) -> str:
    """DB 只存以 SECRET_KEY 為金鑰的 HMAC-SHA256(hex)，不存明文。更換 SECRET_KEY 會讓既有 token 全部失效。"""
    return hmac.new(settings.SECRET_KEY.encode("utf-8"), plain.encode("utf-8"), hashlib.sha256).hexdigest()

# === Time Helpers ===
def utcnow() -> datetime:
    # DB 多半是 naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)
