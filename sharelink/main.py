import logging
import logging.config
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sharelink.auth.session import SessionGate, init_session_gate
from sharelink.config import Settings, get_settings
from sharelink.errors import SharelinkError
from sharelink.routers.scrape import router as scrape_router
from sharelink.services.strategy import build_extractor

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
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
            "root": {"level": level.upper(), "handlers": ["console"]},
        }
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def sharelink_exception_handler(request: Request, exc: SharelinkError) -> JSONResponse:
    logger.warning("%s for %s: %s", type(exc).__name__, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Always terminate the response; never echo the exception message.
    logger.exception("Unhandled exception for %s", request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="sharelink – Link Unfurl API",
        description="Fetches a URL and returns Open Graph-style preview metadata.",
        version="1.0.0",
    )

    app.state.settings = settings
    app.state.session_gate = init_session_gate(settings)
    app.state.extractor = build_extractor(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_allowed_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["content-type", *SessionGate.cors_headers()],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SharelinkError, sharelink_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(scrape_router)

    @app.get("/", summary="Health check")
    async def root() -> dict:
        return {"message": "Hello from sharelink"}

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("sharelink.main:app", host=settings.host, port=settings.port)
