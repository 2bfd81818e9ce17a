from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from coursetrack.api.enrollments import router as enrollments_router
from coursetrack.api.errors import install_error_handlers
from coursetrack.api.health import router as health_router
from coursetrack.api.lessons import router as lessons_router
from coursetrack.api.me import router as me_router
from coursetrack.api.metrics_endpoint import router as metrics_router
from coursetrack.api.quizzes import router as quizzes_router
from coursetrack.api.reviews import router as reviews_router
from coursetrack.api.submissions import router as submissions_router
from coursetrack.core.config import SETTINGS
from coursetrack.core.logging import setup_logging
from coursetrack.db.engine import lifespan_db
from coursetrack.db.redis import lifespan_redis
from coursetrack.middleware.metrics import MetricsMiddleware
from coursetrack.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order even if one fails.
    async with lifespan_db():
        async with lifespan_redis():
            yield


# only app setup + router registration

app = FastAPI(
    title="coursetrack",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last-added runs first: RequestContext -> Metrics -> CORS -> route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

install_error_handlers(app)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(enrollments_router)
app.include_router(lessons_router)
app.include_router(quizzes_router)
app.include_router(submissions_router)
app.include_router(reviews_router)
app.include_router(me_router)

logger.info(
    "coursetrack started  env=%s log_level=%s port=%d notify_mode=%s docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    SETTINGS.notify_mode,
    "on" if SETTINGS.is_dev else "off",
)
