# app/services/rate_limit.py
from __future__ import annotations

import time
from typing import Optional, Tuple
from uuid import uuid4

from redis.asyncio import Redis
from app.core.config import settings

# 單例 Redis（lazy-init）
_redis: Optional[Redis] = None


def is_enabled() -> bool:
    # 每次呼叫才讀 settings，方便測試 monkeypatch
    return bool(settings.RATE_LIMIT_ENABLED)


def get_redis() -> Redis:
    """Lazy 初始化 Redis 連線（redis.asyncio）。"""
    global _redis
    if _redis is None:
        _redis = Redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,  # 用字串便於除錯
        )
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


def _key_ip(ip: str) -> str:
    return f"rl:login:ip:{ip or 'unknown'}"


def _key_email_ip(email: str, ip: str) -> str:
    return f"rl:login:ei:{(email or '').lower()}|{ip or 'unknown'}"


class SlidingWindow:
    """以 ZSET 實作的滑動視窗：score = 嘗試時間（epoch 秒）。"""

    def __init__(self, redis: Redis, window_sec: int):
        self.redis = redis
        self.window_sec = window_sec

    async def count(self, key: str, now_s: float) -> int:
        # 先移除視窗外的紀錄
        await self.redis.zremrangebyscore(key, "-inf", now_s - self.window_sec)
        return int(await self.redis.zcard(key))

    async def retry_after(self, key: str, now_s: float) -> int:
        """距離最舊紀錄出窗的剩餘秒數（>=1）。"""
        data = await self.redis.zrange(key, 0, 0, withscores=True)
        oldest = float(data[0][1]) if data else now_s
        return max(1, int(self.window_sec - (now_s - oldest)))

    async def hit(self, key: str, now_s: float) -> None:
        # member 加上亂數，避免同一時間點的嘗試被合併
        await self.redis.zadd(key, {f"{now_s:.6f}:{uuid4().hex[:8]}": now_s})
        await self.redis.expire(key, self.window_sec)


async def check_login_allowed(ip: str, email: Optional[str]) -> Tuple[bool, int]:
    """
    檢查登入是否超出限流；若允許，會「順便記一次嘗試」。
    回傳：(allowed, retry_after_seconds)
      先看 IP 維度，再看 email+IP 維度。
    """
    if not is_enabled():
        return True, 0

    window = SlidingWindow(get_redis(), settings.RATE_LIMIT_WINDOW_SEC)
    now_s = time.time()

    buckets = [(_key_ip(ip), settings.RATE_LIMIT_MAX_PER_IP)]
    if email:
        buckets.append((_key_email_ip(email, ip), settings.RATE_LIMIT_MAX_PER_EMAIL_IP))

    for key, limit in buckets:
        if await window.count(key, now_s) >= limit:
            return False, await window.retry_after(key, now_s)

    for key, _ in buckets:
        await window.hit(key, now_s)
    return True, 0


async def reset_login_attempts(ip: str, email: Optional[str]) -> None:
    """
    登入成功後清空 email+IP 的桶，降低誤鎖風險。
    IP 維度不清空，保留反掃號的保護力。
    """
    if not email or not is_enabled():
        return
    await get_redis().delete(_key_email_ip(email, ip))
