"""
main.py
FastAPI application entry point.
Registers all routers, middleware, startup/shutdown events.

Features:
- Pluggable storage (in-memory or PostgreSQL) behind one repository interface
- JWT auth with Redis deny-list
- Unauthenticated rate limiting (fails open without Redis)
- Structured JSON logging
- Prometheus metrics
"""

import json
import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from decimal import Decimal
from logging import LogRecord

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from config.database import close_db, init_db
from config.redis_client import RedisCache, close_redis, init_redis
from config.settings import settings
from shared.repositories.base import NotFoundError
from shared.repositories.factory import repository_context

# Service routers
from services.auth.router import router as auth_router
from services.user.router import router as user_router
from services.search.router import router as search_router
from services.provider.router import router as provider_router
from services.producer.router import router as producer_router
from services.booking.router import router as booking_router
from services.review.router import router as review_router
from services.notification.router import router as notification_router


# ── Logging ──────────────────────────────────────────────────

class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "instance": os.getenv("INSTANCE_NAME", "unknown"),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, ensure_ascii=False)


# Configure structured logging
handler = logging.StreamHandler()
handler.setFormatter(JSONFormatter())
logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    handlers=[handler],
)
logger = logging.getLogger(__name__)


# ── Lifespan (startup/shutdown) ───────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle handler."""
    logger.info(f"Starting {settings.APP_NAME} API (storage={settings.STORAGE_BACKEND})")

    if settings.STORAGE_BACKEND == "sql":
        await init_db()
        logger.info("Database connected")

    await init_redis()

    # Seed demo providers/producer, only in dev
    if settings.APP_ENV == "development" and settings.SEED_DEMO_DATA:
        await seed_initial_data()

    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION} is ready")
    yield

    # Cleanup
    await close_redis()
    if settings.STORAGE_BACKEND == "sql":
        await close_db()
    logger.info("Server shutdown complete")


# ── App Factory ───────────────────────────────────────────────

def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
## AgroConnect API

Marketplace connecting farm producers with agricultural service providers:
- **Auth**: email/password registration and login, JWT access tokens
- **Search**: providers by service type, location, availability and distance
- **Bookings**: producer → provider service requests with status tracking
- **Reviews**: post-service ratings, aggregated on the provider profile
- **Notifications**: in-app notifications for booking and review events

### Authentication
Protected endpoints require `Authorization: Bearer <access_token>` header.
Get a token via `POST /api/auth/login`.

### User types
- `producer`: book providers, write reviews, manage farm profile
- `provider`: manage service profile, handle bookings
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware (order matters, outermost first) ───────────────
    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Process-Time"],
    )

    # GZip compression
    app.add_middleware(GZipMiddleware, minimum_size=500)

    # ── Custom Middleware ──────────────────────────────────────────

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Add unique X-Request-ID to every request for tracing."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.middleware("http")
    async def process_time_middleware(request: Request, call_next):
        """Track and expose request processing time."""
        start = time.perf_counter()
        response = await call_next(request)
        process_time = round((time.perf_counter() - start) * 1000, 2)
        response.headers["X-Process-Time"] = f"{process_time}ms"
        return response

    @app.middleware("http")
    async def rate_limit_middleware(request: Request, call_next):
        """
        Per-IP rate limiter for unauthenticated requests.
        Authenticated requests and operational endpoints are not limited.
        """
        skip_paths = {"/health", "/docs", "/redoc", "/openapi.json", "/metrics"}
        if request.url.path in skip_paths:
            return await call_next(request)

        from config.redis_client import redis_client

        auth_header = request.headers.get("Authorization", "")
        if redis_client is not None and not auth_header.startswith("Bearer "):
            client_ip = request.client.host if request.client else "unknown"
            try:
                allowed = await RedisCache(redis_client).check_rate_limit(
                    f"rate:unauth:{client_ip}", settings.RATE_LIMIT_UNAUTH_PER_MINUTE
                )
            except (RedisError, OSError) as e:
                # Don't fail requests if Redis is down - fail open
                logger.error(f"Rate limit check failed: {e}")
                allowed = True

            if not allowed:
                logger.warning(f"Rate limit exceeded for IP {client_ip}")
                return JSONResponse(
                    status_code=429,
                    content={"detail": "Rate limit exceeded. Please slow down."},
                    headers={"Retry-After": "60"},
                )

        return await call_next(request)

    # ── Exception Handlers ─────────────────────────────────────────

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler. Never expose stack traces in production."""
        request_id = getattr(request.state, "request_id", None)
        logger.error(f"[{request_id}] Exception: {exc}", exc_info=True)

        detail = str(exc) if settings.DEBUG else "An internal server error occurred"
        return JSONResponse(
            status_code=500,
            content={
                "detail": detail,
                "request_id": request_id,
            },
        )

    # ── Routes ────────────────────────────────────────────────────

    # Health check (public)
    @app.get("/health", tags=["Health"], include_in_schema=False)
    async def health_check():
        from config.redis_client import redis_client

        checks = {"status": "ok", "version": settings.APP_VERSION, "storage": settings.STORAGE_BACKEND}

        # Storage check
        try:
            async with repository_context() as repo:
                await repo.ping()
            checks["database"] = "ok"
        except (SQLAlchemyError, OSError):
            checks["database"] = "error"
            checks["status"] = "degraded"

        # Redis check
        if redis_client is None:
            checks["redis"] = "disabled"
        else:
            try:
                await redis_client.ping()
                checks["redis"] = "ok"
            except (RedisError, OSError):
                checks["redis"] = "error"
                checks["status"] = "degraded"

        status_code = 200 if checks["status"] == "ok" else 503
        return JSONResponse(content=checks, status_code=status_code)

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "health": "/health",
        }

    # Register all service routers (search before provider: /search, /nearby vs /{id})
    app.include_router(auth_router)
    app.include_router(user_router)
    app.include_router(search_router)
    app.include_router(provider_router)
    app.include_router(producer_router)
    app.include_router(booking_router)
    app.include_router(review_router)
    app.include_router(notification_router)

    # ── Prometheus Metrics ─────────────────────────────────────────
    Instrumentator().instrument(app).expose(app, endpoint="/metrics", tags=["Monitoring"])

    return app


# ── Dev Data Seeder ───────────────────────────────────────────

DEMO_PASSWORD = "password123"

DEMO_PROVIDERS = [
    {
        "user": {
            "username": "carlos.santos",
            "email": "carlos@example.com",
            "name": "Carlos Santos",
            "phone": "(11) 99999-1111",
        },
        "profile": {
            "service_type": "drone",
            "specialty": "Pulverização Agrícola",
            "description": "Operador de drone especializado em pulverização com certificação ANAC",
            "price_per_hectare": Decimal("35.00"),
            "location": "São Paulo, SP",
            "latitude": Decimal("-23.5505"),
            "longitude": Decimal("-46.6333"),
            "coverage_radius": 50,
            "certifications": ["ANAC", "Fitossanitário"],
            "equipment_owned": True,
        },
    },
    {
        "user": {
            "username": "ana.oliveira",
            "email": "ana@example.com",
            "name": "Ana Oliveira",
            "phone": "(11) 99999-2222",
        },
        "profile": {
            "service_type": "drone",
            "specialty": "Pulverização Orgânica",
            "description": "Especialista em produtos orgânicos e sustentabilidade",
            "price_per_hectare": Decimal("32.00"),
            "location": "Campinas, SP",
            "latitude": Decimal("-22.9056"),
            "longitude": Decimal("-47.0608"),
            "coverage_radius": 40,
            "certifications": ["ANAC", "Orgânicos"],
            "equipment_owned": True,
        },
    },
]

DEMO_PRODUCER = {
    "user": {
        "username": "joao.silva",
        "email": "joao@example.com",
        "name": "João Silva",
        "phone": "(11) 99999-3333",
    },
    "profile": {
        "farm_name": "Fazenda Santa Maria",
        "location": "Ribeirão Preto, SP",
        "latitude": Decimal("-21.1775"),
        "longitude": Decimal("-47.8100"),
        "farm_size": Decimal("150.00"),
        "crop_types": ["soja", "milho", "cana"],
    },
}


async def seed_initial_data():
    """Seed demo providers and a demo producer on first run (development only)."""
    from shared.utils.security import hash_password

    async with repository_context() as repo:
        if await repo.get_user_by_email(DEMO_PRODUCER["user"]["email"]):
            return  # Already seeded

        password = hash_password(DEMO_PASSWORD)

        for entry in DEMO_PROVIDERS:
            user = await repo.create_user({**entry["user"], "password": password, "user_type": "provider"})
            await repo.create_provider({**entry["profile"], "user_id": user.id})

        user = await repo.create_user({**DEMO_PRODUCER["user"], "password": password, "user_type": "producer"})
        await repo.create_producer({**DEMO_PRODUCER["profile"], "user_id": user.id})

        await repo.commit()
        logger.info(f"Seeded {len(DEMO_PROVIDERS)} demo providers and 1 demo producer")


# ── Entry Point ───────────────────────────────────────────────

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=settings.server_workers,
        log_level="debug" if settings.DEBUG else "info",
        access_log=True,
    )
