"""Stickerbook — FastAPI Application Entry Point."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from stickerbook import __version__
from stickerbook.config import settings
from stickerbook.database import engine, Base
from stickerbook.exceptions import StickerbookError, TransientError
from stickerbook.middleware.rate_limit import limiter
from stickerbook.routers import albums, auth, friends, packs, profile, share, trades
from stickerbook.services.session_service import SessionManager
import stickerbook.models  # noqa: F401  (register tables on Base)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("stickerbook")

# Create all tables on startup
Base.metadata.create_all(bind=engine)

# ── CORS origins from env ────────────────────────────────────────────────────
_cors_origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]

app = FastAPI(
    title="Stickerbook",
    description="Collect stickers, trade duplicates with friends and complete albums.",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Profile cache + session lifecycle, shared by every request
app.state.session_manager = SessionManager()

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StickerbookError)
async def stickerbook_error_handler(request: Request, exc: StickerbookError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})


@app.exception_handler(OperationalError)
@app.exception_handler(PoolTimeoutError)
async def store_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Store unavailable on %s %s", request.method, request.url.path)
    err = TransientError()
    return JSONResponse(status_code=err.status_code, content={"detail": err.message, "code": err.code})


# Routers
app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(albums.router)
app.include_router(friends.router)
app.include_router(trades.router)
app.include_router(packs.router)
app.include_router(share.router)


@app.get("/")
def root():
    return {
        "name": "Stickerbook API",
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"status": "ok"}
