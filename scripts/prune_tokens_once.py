# scripts/prune_tokens_once.py
import asyncio

from app.services.scheduler import run_prune_job


async def main():
    deleted = await run_prune_job()
    print({"deleted": deleted})

if __name__ == "__main__":
    asyncio.run(main())
