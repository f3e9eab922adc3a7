import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace.api.routes import admin as admin_router
from marketplace.api.routes import auth as auth_router
from marketplace.api.routes import services as services_router
from marketplace.core.config import Settings, get_settings
from marketplace.core.errors import error_body, register_error_handlers
from marketplace.core.hashing import configure_hashing
from marketplace.core.logging import configure_logging
from marketplace.core.middleware import BodySizeLimitMiddleware, SecurityHeadersMiddleware
from marketplace.core.rate_limit import FixedWindowRateLimiter
from marketplace.db.base import Base, create_db_engine, create_session_factory

logger = logging.getLogger("marketplace.access")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    configure_hashing(settings.bcrypt_rounds)

    app = FastAPI(title=settings.app_name, version=settings.app_version)
    app.state.settings = settings
    app.state.started_at = time.monotonic()
    app.state.rate_limiter = FixedWindowRateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.state.engine = create_db_engine(settings.database_url)
    app.state.session_factory = create_session_factory(app.state.engine)

    @app.on_event("startup")
    def startup():
        Base.metadata.create_all(bind=app.state.engine)

    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)

    # rate limit on /api/
    @app.middleware("http")
    async def request_guards(request: Request, call_next):
        if request.url.path.startswith("/api/"):
            limiter = request.app.state.rate_limiter
            client_key = request.client.host if request.client else "unknown"
            if not limiter.hit(client_key):
                return JSONResponse(
                    status_code=429,
                    content=error_body("Too many requests from this IP, please try again later."),
                    headers={"Retry-After": str(limiter.retry_after(client_key))},
                )

        return await call_next(request)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.client_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - started) * 1000.0
        response.headers["x-request-id"] = request_id
        response.headers["x-response-time-ms"] = f"{duration_ms:.2f}"
        logger.info(
            "%s %s %s %.2fms request_id=%s",
            request.method, request.url.path, response.status_code, duration_ms, request_id,
        )
        return response

    register_error_handlers(app, settings)

    @app.get("/")
    def root():
        return {
            "success": True,
            "message": "Service Marketplace API running",
            "data": {"version": settings.app_version},
        }

    @app.get("/api/health")
    def health():
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - app.state.started_at, 3),
        }

    app.include_router(auth_router.router)
    app.include_router(services_router.router)
    app.include_router(admin_router.router)

    return app


app = create_app()
