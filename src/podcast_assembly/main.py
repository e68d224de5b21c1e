"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.requests import Request

from podcast_assembly.api.routes import router
from podcast_assembly.config import get_output_dir, get_storage_dir, settings
from podcast_assembly.tools.errors import BackendRejected

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# CORS configuration
# ---------------------------------------------------------------------------

_DEFAULT_ORIGINS = {
    "http://localhost:3000",
    "http://127.0.0.1:3000",
}


def _get_allowed_origins() -> set[str]:
    origins = set(_DEFAULT_ORIGINS)
    if settings.allowed_origins:
        origins.update(o.strip() for o in settings.allowed_origins.split(",") if o.strip())
    return origins


_ALLOWED_ORIGINS = _get_allowed_origins()


# ---------------------------------------------------------------------------
# App lifecycle
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the storage layout on startup and shutdown."""
    logger.info(
        "app.startup",
        allowed_origins=sorted(_ALLOWED_ORIGINS),
        storage_dir=str(get_storage_dir()),
        output_dir=str(get_output_dir()),
        speech_backend=settings.speech_backend_url or "openai",
    )
    yield
    logger.info("app.shutdown")


app = FastAPI(
    title="Podcast Assembly Service",
    description="Generate, validate and render Podcast Assembly Plans into episodes",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(_ALLOWED_ORIGINS),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BackendRejected)
async def backend_rejected_handler(request: Request, exc: BackendRejected):
    """Render a structured backend refusal as its own JSON payload."""
    logger.warning(
        "api.backend_rejected",
        path=request.url.path,
        status_code=exc.status_code,
        error=exc.payload.get("error"),
    )
    return JSONResponse(status_code=exc.status_code, content=exc.payload)


app.include_router(router)

# Static file serving for stitched episodes
app.mount("/files/output", StaticFiles(directory=str(get_output_dir())), name="output")


@app.get("/health")
async def health_check():
    return {"status": "ok"}
