import logging
import logging.config

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config import get_settings
from app.limits import limiter
from app.routers.ingest import router as ingest_router
from app.routers.knowledge import router as knowledge_router
from app.routers.playground import router as playground_router

logging.config.dictConfig(
    {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "format": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
            },
        },
        "root": {"level": get_settings().log_level.upper(), "handlers": ["console"]},
        # Keep per-request client logs out of the JSON stream
        "loggers": {"httpx": {"level": "WARNING"}},
    }
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Knowledge Ingest – Adaptive Site Ingestion API",
    description=(
        "Chooses how to extract a website (plain HTTP, API-docs aware or headless "
        "browser), crawls its relevant same-domain pages and stores them as "
        "chunked vectors for similarity search."
    ),
    version="1.0.0",
)

# Rate-limiting state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception for %s", request.url)
    return JSONResponse(status_code=500, content={"detail": "An unexpected error occurred."})


app.include_router(ingest_router)
app.include_router(knowledge_router)
app.include_router(playground_router)


@app.get("/", summary="Health check")
async def root() -> dict:
    return {"message": "Hello from Knowledge Ingest"}
