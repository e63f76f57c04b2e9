import logging
import time

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.types import ASGIApp

logger = logging.getLogger("docshare")

cleanup_runs = Counter("docshare_cleanup_runs_total", "Cleanup loop runs")
cleanup_links_deleted = Counter("docshare_cleanup_links_deleted_total", "Expired links deleted by cleanup")
cleanup_failures = Counter("docshare_cleanup_failures_total", "Cleanup runs that raised")
cleanup_duration = Histogram("docshare_cleanup_duration_seconds", "Duration of a cleanup run in seconds")

def report_cleanup(links_deleted: int, duration: float) -> None:
    """Record cleanup metrics to Prometheus."""
    cleanup_runs.inc()
    if links_deleted:
        cleanup_links_deleted.inc(links_deleted)
    cleanup_duration.observe(duration)

def report_cleanup_failure() -> None:
    cleanup_failures.inc()

def setup_monitoring(app: ASGIApp):
    Instrumentator().instrument(app).expose(app, endpoint="/api/metrics", include_in_schema=False)

    @app.middleware("http")
    async def monitor_requests(request: Request, call_next):
        start_time = time.time()
        response = None
        try:
            response = await call_next(request)
        except HTTPException as e:
            logger.exception("HTTP exception: %s %s -> %s", request.method, request.url.path, e.detail)
            response = JSONResponse(status_code=e.status_code, content={"detail": e.detail})
        except Exception as e:
            logger.exception("Unhandled error: %s %s -> %s", request.method, request.url.path, e)
            response = JSONResponse(status_code=500, content={"detail": "Internal Server Error"})
        finally:
            process_time = time.time() - start_time
            logger.info("method=%s path=%s status=%s duration=%.4fs",
                        request.method, request.url.path,
                        getattr(response, "status_code", "?"), process_time)
        return response
