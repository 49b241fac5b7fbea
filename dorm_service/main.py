import time
import logging
import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from .infrastructure.db import engine, SessionLocal
from .infrastructure.models import Base
from .infrastructure.metrics import (
    metrics_endpoint,
    http_requests_total,
    http_request_duration_seconds
)
from .infrastructure.security import PasswordHasher, TokenService
from .interfaces.http.errors import install_error_handlers
from .interfaces.http.ratelimit import limiter
from .interfaces.http.routers import (
    auth as auth_router,
    admin as admin_router,
    housing as housing_router,
    students as students_router,
    tickets as tickets_router,
)
from .seed import seed_admin
from .config import settings

# Настройка структурированного логирования
log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(log_level),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

app = FastAPI(title="Dorm Service", version="0.1.0")

# Секрет и время жизни токена читаются один раз при старте
app.state.tokens = TokenService(settings.JWT_SECRET, settings.JWT_ALGORITHM, settings.token_lifetime)
app.state.hasher = PasswordHasher(settings.BCRYPT_ROUNDS)
app.state.limiter = limiter

if settings.CORS_ORIGIN:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.CORS_ORIGIN.split(",")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    # без настройки отражаем любой Origin
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=".*",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# middleware для кодировки, метрик и логов
@app.middleware("http")
async def add_charset_header(request: Request, call_next):
    start_time = time.time()
    method = request.method

    try:
        response = await call_next(request)
    except Exception:
        # ответ 500 соберёт ServerErrorMiddleware снаружи, учитываем его здесь
        _observe(request, method, 500, time.time() - start_time)
        raise

    if response.headers.get("content-type", "").startswith("application/json"):
        response.headers["content-type"] = "application/json; charset=utf-8"

    _observe(request, method, response.status_code, time.time() - start_time)
    return response


def _observe(request: Request, method: str, status_code: int, duration: float):
    # шаблон маршрута вместо сырого пути, чтобы id не плодили метки
    route = request.scope.get("route")
    path = getattr(route, "path", request.url.path)

    # Метрики
    http_requests_total.labels(method=method, endpoint=path, status=status_code).inc()
    http_request_duration_seconds.labels(method=method, endpoint=path).observe(duration)

    # Логирование
    logger.info(
        "http_request",
        method=method,
        path=request.url.path,
        status_code=status_code,
        duration_ms=round(duration * 1000, 2)
    )


@app.on_event("startup")
def on_startup():
    logger.info("Starting dorm service", version="0.1.0")
    Base.metadata.create_all(bind=engine)

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("Database connection established")

    if settings.SEED_ADMIN:
        db = SessionLocal()
        try:
            seed_admin(db, app.state.hasher)
        finally:
            db.close()


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint"""
    return metrics_endpoint()


app.include_router(auth_router.router)
app.include_router(admin_router.router)
app.include_router(housing_router.router)
app.include_router(students_router.router)
app.include_router(tickets_router.router)

install_error_handlers(app)


def run():
    uvicorn.run("dorm_service.main:app", host=settings.HOST, port=settings.PORT)
