import logging
import logging.config

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.routers.analyze import limiter, router as analyze_router

LOGGING_CONFIG = {
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
    "root": {"level": "INFO", "handlers": ["console"]},
    # httpx logs every request at INFO; the fetcher already logs outcomes
    "loggers": {"httpx": {"level": "WARNING"}},
}

logging.config.dictConfig(LOGGING_CONFIG)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="URL Analyzer",
    description=(
        "Fetches one URL under a byte and time budget, classifies the body by "
        "Content-Type (HTML, JSON, CSS, JavaScript or text), reports structure, "
        "frameworks and quality issues, and returns synthetic source files "
        "for downstream storage and AI analysis."
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


app.include_router(analyze_router)


@app.get("/", summary="Health check")
async def root() -> dict:
    """Report liveness; the analyzer keeps no per-request state to check."""
    return {"status": "ok", "service": app.title, "version": app.version}
