import asyncio
import logging
import os
import time

from sqlalchemy import and_, select

from docshare.core.database import SessionLocal
from docshare.models.link import Link
from docshare.monitoring.setup import report_cleanup, report_cleanup_failure
from docshare.utils.dates import utcnow

logger = logging.getLogger("docshare")

INTERVAL_SECS = int(os.getenv("CLEANUP_INTERVAL_SECONDS", "300"))
MAX_PER_LOOP = int(os.getenv("CLEANUP_MAX_RECORDS_PER_LOOP", "200"))

CLEANED_LINKS = 0

async def delete_expired_links(db, now=None, limit: int = MAX_PER_LOOP) -> int:
    """Delete up to ``limit`` links whose expiration time has passed, with their visitors."""
    now = now or utcnow()
    res = await db.execute(
        select(Link).where(
            and_(Link.expiration_time.is_not(None), Link.expiration_time <= now)
        ).limit(limit)
    )
    expired_links = res.scalars().all()
    for link in expired_links:
        await db.delete(link)
    if expired_links:
        await db.commit()
    return len(expired_links)

async def run_cleanup_once() -> int:
    global CLEANED_LINKS
    started = time.monotonic()
    async with SessionLocal() as db:
        deleted = await delete_expired_links(db)

    CLEANED_LINKS += deleted
    duration = time.monotonic() - started
    report_cleanup(deleted, duration)
    logger.info("cleanup_summary links_deleted=%s duration=%.3fs total_links=%s",
                deleted, duration, CLEANED_LINKS)
    return deleted

async def cleanup_expired_links():
    logger.info("Cleanup task started: interval=%s max_per_loop=%s", INTERVAL_SECS, MAX_PER_LOOP)

    while True:
        try:
            deleted = await run_cleanup_once()
            # a full batch means more may be waiting
            await asyncio.sleep(0 if deleted >= MAX_PER_LOOP else INTERVAL_SECS)
        except asyncio.CancelledError:
            logger.info("Cleanup task cancelled by shutdown")
            raise
        except Exception as e:
            report_cleanup_failure()
            logger.exception("Cleanup loop error: %s", e)
            await asyncio.sleep(min(60, INTERVAL_SECS))

async def start_cleanup_task():
    return await cleanup_expired_links()
