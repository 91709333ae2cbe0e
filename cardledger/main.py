import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from cardledger.api import cards_router, health_router, upload_router
from cardledger.config import settings
from cardledger.db.store import create_store
from cardledger.logging_config import configure_logging
from cardledger.models.failure import KnownError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler: build the store client once, dispose on shutdown."""
    configure_logging(settings.log_level)

    store = create_store(settings)
    if store is not None:
        try:
            await store.init_schema()
        except (SQLAlchemyError, OSError) as e:
            # Keep serving; uploads still validate and listing reports the error
            logger.error("Could not initialize card store schema: %s", e)
    app.state.store = store

    yield

    if store is not None:
        await store.close()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("cardledger"),
    lifespan=lifespan,
)

app.include_router(cards_router)
app.include_router(health_router)
app.include_router(upload_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_detail().model_dump(mode="json"),
    )
