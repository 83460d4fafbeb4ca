from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
import time
import structlog

from app.config import CORS_ORIGINS
from app.db import init_db
from app.routers import auth as auth_router
from app.routers import attempts as attempts_router
from app.routers import documents as documents_router
from app.routers import quizzes as quizzes_router
from app.services.logging import bind_request_context, clear_request_context, configure_logging, log_api_request
from app.services.monitoring import health_checker, get_metrics, REQUEST_COUNT, REQUEST_DURATION
from app.middleware.rate_limit import limiter, rate_limit_exceeded_handler

# Configure logging
configure_logging()
logger = structlog.get_logger()

app = FastAPI(
    title="Quizlit",
    description="Turns study documents into multiple-choice and true/false quizzes",
    version="1.0.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


# Add middleware for request logging and metrics
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    request_id = bind_request_context(request)

    # Log request start
    log_api_request(request)

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error("unhandled_request_error", error=str(e), error_type=type(e).__name__)
        clear_request_context()
        raise

    # Calculate processing time
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    response.headers["X-Request-ID"] = request_id

    # Label by route template so quiz ids don't explode the metric cardinality
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=endpoint,
        status=response.status_code
    ).inc()

    REQUEST_DURATION.labels(
        method=request.method,
        endpoint=endpoint
    ).observe(process_time)

    # Log request completion
    log_api_request(request, response, process_time)
    clear_request_context()

    return response


# ----------------- Health & Monitoring Endpoints -----------------
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return health_checker.get_health_status()


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return get_metrics()


# ----------------- Startup -----------------
@app.on_event("startup")
def on_startup():
    init_db()


# ----------------- Routers -----------------
app.include_router(auth_router.router)
app.include_router(documents_router.router)
app.include_router(quizzes_router.router)
app.include_router(attempts_router.router)
