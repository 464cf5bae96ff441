import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pokevault.api import catalog_router, collection_router, health_router
from pokevault.config import settings
from pokevault.db.database import init_db
from pokevault.models.failure import KnownError

logger = logging.getLogger(__name__)


def _app_version() -> str:
    try:
        return pkg_version("pokevault")
    except PackageNotFoundError:
        return "0.0.0"


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    await init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    version=_app_version(),
    lifespan=lifespan,
)

app.include_router(catalog_router)
app.include_router(collection_router)
app.include_router(health_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(request: Request, exc: KnownError) -> JSONResponse:
    """Render a KnownError as a known-failure envelope with its status code."""
    logger.info(
        "known_failure",
        extra={"path": request.url.path, "kind": exc.kind.value, "status": exc.status_code},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(mode="json"),
    )
