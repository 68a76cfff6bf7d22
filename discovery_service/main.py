import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .cache import redis_client
from .config import LOG_LEVEL, RABBIT_URL
from .errors import InvalidQuery
from .event_consumer import start_consumer_with_retry
from .routes import router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [discovery-service] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Discovery Service")
app.include_router(router)

_consumer_conn = None
_consumer_task = None
_stop_event = asyncio.Event()


@app.exception_handler(InvalidQuery)
async def invalid_query_handler(request: Request, exc: InvalidQuery):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "service": "discovery-service",
        "cache_enabled": redis_client is not None,
        "events_enabled": bool(RABBIT_URL),
    }


async def _run_consumer():
    global _consumer_conn
    _consumer_conn = await start_consumer_with_retry(_stop_event)


@app.on_event("startup")
async def startup():
    global _consumer_task
    # invalidation only matters when there is a cache to invalidate
    if RABBIT_URL and redis_client is not None:
        _consumer_task = asyncio.create_task(_run_consumer())
    else:
        logger.info("event consumer disabled (needs both RABBIT_URL and REDIS_URL)")


@app.on_event("shutdown")
async def shutdown():
    _stop_event.set()
    if _consumer_task:
        try:
            await _consumer_task
        except Exception as e:
            logger.warning("consumer task ended with error: %s", e)
    try:
        if _consumer_conn and not _consumer_conn.is_closed:
            await _consumer_conn.close()
    except Exception as e:
        logger.warning("consumer connection close failed: %s", e)
    if redis_client is not None:
        await redis_client.aclose()
