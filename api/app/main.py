"""
Tripfolio API - Main Application Entry Point
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse, Response
import time
import logging

# Prometheus metrics
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST, REGISTRY

from app.config import settings

REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

REQUEST_LATENCY = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint']
)
from app.routers import (
    auth,
    trips,
    expenses,
    day_details,
    explore,
    users,
    location,
    chat,
    billing,
    uploads,
    health,
)
from app.utils.database import init_db, close_db
from app.utils.redis import init_redis, close_redis

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager - handles startup and shutdown events
    """
    logger.info("Starting Tripfolio API...")

    await init_db()
    await init_redis()

    logger.info("Tripfolio API ready to serve requests")

    yield

    logger.info("Shutting down Tripfolio API...")

    await close_db()
    await close_redis()

    logger.info("Cleanup completed")


app = FastAPI(
    title="Tripfolio API",
    description="""
    ## Travel Budget Planning & Sharing API

    Tripfolio lets travelers plan trip budgets day by day and share finished trips.

    ### Features
    - Trips with per-day expenses, notes and locations
    - Budget breakdowns by category
    - Share links and a public explore feed with likes and comments
    - Travel map pins and public profiles
    - A streaming AI budgeting assistant
    - Premium subscriptions and tips through Stripe

    ### Authentication
    Requests carry a Clerk session token, either as `Authorization: Bearer <token>`
    or in the `__session` cookie.
    """,
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware with Prometheus metrics
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    # Label by route template so ids in paths do not explode cardinality
    if request.url.path != "/metrics":
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)
        method = request.method

        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=response.status_code).inc()
        REQUEST_LATENCY.labels(method=method, endpoint=endpoint).observe(process_time)

        if request.url.path.startswith(settings.API_PREFIX):
            logger.info(f"{method} {request.url.path} {response.status_code} in {process_time * 1000:.0f}ms")

    response.headers["X-Process-Time"] = str(process_time)
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return ORJSONResponse(status_code=500, content={"message": "Internal Server Error"})


api = settings.API_PREFIX

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, prefix=f"{api}/auth", tags=["Authentication"])
app.include_router(trips.router, prefix=f"{api}/trips", tags=["Trips"])
app.include_router(day_details.router, prefix=f"{api}/trips", tags=["Day Details"])
app.include_router(expenses.router, prefix=api, tags=["Expenses"])
app.include_router(explore.router, prefix=api, tags=["Explore & Sharing"])
app.include_router(users.router, prefix=api, tags=["Users"])
app.include_router(billing.router, prefix=api, tags=["Billing"])
app.include_router(location.router, prefix=f"{api}/location", tags=["Location"])
app.include_router(chat.router, prefix=f"{api}/chat", tags=["Assistant"])
app.include_router(uploads.router, prefix=f"{api}/objects", tags=["Uploads"])


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint - API information"""
    return {
        "name": "Tripfolio API",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs" if settings.DEBUG else "disabled",
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint"""
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST
    )
