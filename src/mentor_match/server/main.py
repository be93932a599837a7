"""FastAPI account service for the mentor matching app.

This module is a thin **presentation layer** over ``UserStore``: it wires
the store into the app lifespan, mounts the user routes and renders every
error as ``{"message": ...}``, which is the shape the profile client expects.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from mentor_match import __version__
from mentor_match.config import get_settings
from mentor_match.logging_config import setup_logging_from_settings
from mentor_match.server.routes import router as users_router
from mentor_match.server.user_store import UserStore
from mentor_match.telemetry import instrument_app

setup_logging_from_settings(get_settings())


# ---------------------------------------------------------------------------
# Lifespan: initialise shared resources once at startup
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the user store around the application lifetime."""
    settings = get_settings()
    settings.validate_runtime()

    users = UserStore(db_path=settings.user_db_path)
    users.connect()

    app.state.settings = settings
    app.state.users = users

    logger.info("Account service startup complete")
    yield

    users.close()
    logger.info("Account service shutdown complete")


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Mentor Match Account Service",
    description="Registration, login and learner profiles.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

instrument_app(app, get_settings())

app.include_router(users_router)


@app.exception_handler(StarletteHTTPException)
async def http_error(_request, exc: StarletteHTTPException):
    return JSONResponse({"message": exc.detail}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error(_request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ())[1:]) or "body"
    message = f"Invalid {field}: {first.get('msg', 'invalid value')}"
    return JSONResponse({"message": message}, status_code=422)


@app.get("/health")
async def health():
    """Simple liveness / readiness check."""
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("mentor_match.server.main:app", host="0.0.0.0", port=5000, reload=True)
