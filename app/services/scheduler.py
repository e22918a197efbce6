# app/services/scheduler.py
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from fastapi import FastAPI

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from app.core.config import settings
from app.db.session import AsyncSessionLocal
from app.services.rate_limit import close_redis
from app.services.token_cleanup import prune_expired_tokens

scheduler: Optional[AsyncIOScheduler] = None


@asynccontextmanager
async def lifespan_scheduler(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan：有設定 TOKEN_EXPIRE_MINUTES 時才啟動 APScheduler 清理過期 token。
    """
    global scheduler
    if settings.TOKEN_EXPIRE_MINUTES:
        scheduler = AsyncIOScheduler(timezone="UTC")
        scheduler.add_job(
            run_prune_job,
            IntervalTrigger(minutes=settings.TOKEN_PRUNE_INTERVAL_MINUTES),
        )
        scheduler.start()
        logger.info(
            "APScheduler started: token pruning every {} minutes",
            settings.TOKEN_PRUNE_INTERVAL_MINUTES,
        )
    try:
        yield
    finally:
        if scheduler:
            scheduler.shutdown(wait=False)
            scheduler = None
            logger.info("APScheduler shutdown")
        await close_redis()


async def run_prune_job() -> int:
    """排程作業：建立一次性 DB session 來清理過期 token。"""
    async with AsyncSessionLocal() as db:
        try:
            deleted = await prune_expired_tokens(db)
        except Exception:
            await db.rollback()
            logger.exception("Token pruning failed")
            raise
    logger.info("Token pruning done: deleted={}", deleted)
    return deleted
