from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from certsvc.api.admin import router as admin_router
from certsvc.api.categories import router as categories_router
from certsvc.api.certificates import router as certificates_router
from certsvc.api.health import router as health_router
from certsvc.api.hooks import router as hooks_router
from certsvc.api.metrics_endpoint import router as metrics_router
from certsvc.api.notifications import router as notifications_router
from certsvc.core.config import SETTINGS
from certsvc.core.errors import CertificationError, status_code_for
from certsvc.core.logging import setup_logging
from certsvc.db.engine import async_session_factory, lifespan_db
from certsvc.db.redis import lifespan_redis
from certsvc.middleware.metrics import MetricsMiddleware
from certsvc.middleware.request_context import RequestContextMiddleware
from certsvc.services.container import seed_sample_catalog

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order even if one fails.
    async with lifespan_db():
        async with lifespan_redis():
            if SETTINGS.is_dev and async_session_factory is None:
                seed_sample_catalog()
            yield


app = FastAPI(
    title="certification-service",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)


@app.exception_handler(CertificationError)
async def certification_error_handler(
    request: Request, exc: CertificationError
) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info(
            "%s %s rejected (%s): %s", request.method, request.url.path, exc.code, exc
        )
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": exc.code},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last-added runs first: RequestContext → Metrics → CORS → route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(categories_router)
app.include_router(certificates_router)
app.include_router(notifications_router)
app.include_router(hooks_router)
app.include_router(admin_router)

logger.info(
    "certification-service started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
