import time
import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .infrastructure import db
from .infrastructure.metrics import (
    metrics_endpoint,
    http_requests_total,
    http_request_duration_seconds
)
from .interfaces.http.errors import register_error_handlers
from .interfaces.http.routers import (
    applications as applications_router,
    auth as auth_router,
    cart as cart_router,
    classes as classes_router,
    enrollment as enrollment_router,
    payments as payments_router,
    users as users_router,
)
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


@asynccontextmanager
async def lifespan(_: FastAPI):
    # одно подключение к БД на процесс: проверяем при старте, закрываем при остановке
    logger.info("Starting yoga service", version="0.1.0")
    db.connect()
    logger.info("Database connection established")
    try:
        yield
    finally:
        db.dispose()
        logger.info("Database connection closed")


app = FastAPI(title="Yoga Service", version="0.1.0", lifespan=lifespan)

app.state.limiter = Limiter(key_func=get_remote_address)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _route_label(request: Request) -> str:
    # шаблон вида /cart/{email}; неизвестные пути сводим в одну метку
    route = request.scope.get("route")
    return getattr(route, "path", "unmatched")


@app.middleware("http")
async def observe_request(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)

    if response.headers.get("content-type", "").startswith("application/json"):
        response.headers["content-type"] = "application/json; charset=utf-8"

    elapsed = time.perf_counter() - started
    route = _route_label(request)
    http_requests_total.labels(method=request.method, route=route, status=response.status_code).inc()
    http_request_duration_seconds.labels(method=request.method, route=route).observe(elapsed)
    logger.info(
        "http_request",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(elapsed * 1000, 2),
    )
    return response


@app.get("/")
def root():
    return {"message": "Yoga service is running"}


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint"""
    return metrics_endpoint()


app.include_router(auth_router.router)
app.include_router(users_router.router)
app.include_router(classes_router.router)
app.include_router(cart_router.router)
app.include_router(payments_router.router)
app.include_router(enrollment_router.router)
app.include_router(applications_router.router)
