import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from starlette.concurrency import run_in_threadpool

from docshare.core.database import Base, SessionLocal, engine
from docshare.core.storage import get_storage
from docshare.monitoring.setup import setup_monitoring
from docshare.routes import access, auth, contacts, documents, links, profile
from docshare.tasks.cleanup import start_cleanup_task
from docshare.utils.dates import to_iso, utcnow

logger = logging.getLogger("docshare")

@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        async with engine.begin() as conn:
            if engine.dialect.name == "sqlite":
                await conn.execute(text("PRAGMA journal_mode=WAL;"))
            logger.info("Creating database tables: %s", ", ".join(Base.metadata.tables))
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    try:
        await run_in_threadpool(get_storage().initialize)
        logger.info("Storage initialized")
    except Exception as e:
        logger.error(f"Storage initialization failed: {e}")
        raise

    cleanup_task = asyncio.create_task(start_cleanup_task())
    logger.info("Background cleanup task started")

    yield

    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        logger.info("Cleanup task cancelled")
    logger.info("Application shutdown complete")

app = FastAPI(
    title="DocShare",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "Content-Length"],
)

app.include_router(auth)
app.include_router(profile)
app.include_router(documents)
app.include_router(contacts)
app.include_router(links)
app.include_router(access)

setup_monitoring(app)

@app.get("/health")
async def health_check():
    try:
        async with SessionLocal() as session:
            await session.execute(text("SELECT 1"))
        db_status = "ok"
    except Exception as e:
        db_status = f"error: {str(e)}"

    try:
        await run_in_threadpool(get_storage().initialize)
        storage_status = "ok"
    except Exception as e:
        storage_status = f"error: {str(e)}"

    return {
        "status": "running",
        "timestamp": to_iso(utcnow()),
        "database": db_status,
        "storage": storage_status
    }

if __name__ == "__main__":
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info",
        timeout_keep_alive=60,
        limit_concurrency=100
    )
