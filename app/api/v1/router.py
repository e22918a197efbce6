# app/api/v1/router.py
from fastapi import APIRouter

# 匯入所有已定義的 endpoint 模組
from .endpoints import health, auth, reservations

# === API v1 主路由 ===
api_router = APIRouter()

# 系統健康檢查
api_router.include_router(health.router, prefix="/health", tags=["health"])

# 註冊 / 登入 / 登出 / me（掛在根路徑，如 /api/v1/login）
api_router.include_router(auth.router)

# 訂位 CRUD（需 Bearer Token）
api_router.include_router(reservations.router, prefix="/reservations", tags=["reservations"])
