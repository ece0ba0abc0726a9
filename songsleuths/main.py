from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from songsleuths.core.config import get_settings
from songsleuths.core.errors import SongSleuthsError
from songsleuths.core.logging import setup_logging
from songsleuths.db.session import Base, engine
import songsleuths.models  # noqa: F401  ensure models are imported

# Routers
from songsleuths.routers import catalog as catalog_router
from songsleuths.routers import games as games_router
from songsleuths.routers import players as players_router
from songsleuths.routers import rankings as rankings_router
from songsleuths.routers import submissions as submissions_router


settings = get_settings()
setup_logging()
logger = logging.getLogger("songsleuths")

app = FastAPI(title=settings.APP_NAME)

# Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SongSleuthsError)
async def songsleuths_error_handler(request: Request, exc: SongSleuthsError):
    log = logger.warning if exc.http_status >= 500 else logger.info
    log("%s on %s: %s", exc.code, request.url.path, exc.message)
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info("Malformed request on %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": {"code": "validation_error", "message": "malformed request body"}},
    )


@app.on_event("startup")
def on_startup() -> None:
    # Create tables if not present
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured.")


@app.get("/healthz", response_class=PlainTextResponse)
def healthz():
    return PlainTextResponse("ok")


# Include routers
app.include_router(players_router.router)
app.include_router(games_router.router)
app.include_router(submissions_router.router)
app.include_router(rankings_router.router)
app.include_router(catalog_router.router)
