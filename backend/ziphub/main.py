from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .errors import InvalidInput, ZiphubError
from .observability import setup_logging
from .routers import admin, auth, developers, files, social
from .services import identity
from .services.content import CreatorSeedingPolicy, SeedingPolicy
from .storage import CollectionStore
from .timeutils import epoch_millis, now_utc

_logger = logging.getLogger(__name__)


def create_app(store: Optional[CollectionStore] = None, seeding: Optional[SeedingPolicy] = None) -> FastAPI:
    setup_logging(config.LOG_LEVEL, config.LOG_FORMAT)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        identity.bootstrap_creator(app.state.store)
        yield

    app = FastAPI(title="ZIPHUB API", version="0.1.0", lifespan=lifespan)
    app.state.store = store or CollectionStore(config.DATA_DIR)
    app.state.seeding = seeding or CreatorSeedingPolicy(config.CREATOR_USERNAME)

    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=".*",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ZiphubError)
    async def domain_error(request: Request, exc: ZiphubError) -> JSONResponse:
        _logger.debug("%s %s failed: %s", request.method, request.url.path, exc.kind, extra={"error_kind": exc.kind})
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        error = InvalidInput("Malformed request body")
        return JSONResponse(status_code=error.http_status, content=error.to_response())

    app.include_router(auth.router)
    app.include_router(developers.router)
    app.include_router(social.router)
    app.include_router(files.router)
    app.include_router(admin.router)

    @app.get("/ping")
    def ping() -> dict:
        return {"ok": True, "ts": epoch_millis(now_utc())}

    return app


app = create_app()
