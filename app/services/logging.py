"""
Structured logging configuration
"""
import structlog
import logging
import sys
import uuid
from datetime import datetime
from functools import wraps

from app.config import LOG_FORMAT, LOG_LEVEL


def configure_logging(level: str = LOG_LEVEL, fmt: str = LOG_FORMAT):
    """Configure structlog on top of the standard library logger"""
    renderer = (
        structlog.dev.ConsoleRenderer()
        if fmt == "console"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    # Quiet chatty dependencies
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("pypdf").setLevel(logging.ERROR)


def get_logger(name: str = None):
    """Get a structured logger"""
    return structlog.get_logger(name)


def bind_request_context(request) -> str:
    """Attach a request id to every log line emitted while serving `request`."""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)
    return request_id


def clear_request_context():
    structlog.contextvars.clear_contextvars()


def log_performance(func_name: str):
    """Decorator logging the duration and outcome of a pipeline stage"""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger("performance")
            start_time = datetime.now()

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration = (datetime.now() - start_time).total_seconds()
                logger.error(
                    "function_failed",
                    function=func_name,
                    duration_seconds=duration,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise
            duration = (datetime.now() - start_time).total_seconds()
            logger.info("function_completed", function=func_name, duration_seconds=duration)
            return result
        return wrapper
    return decorator


def log_api_request(request, response=None, duration: float = None):
    """Log the start (no response yet) or the end of an API request"""
    logger = get_logger("api")

    log_data = {
        "method": request.method,
        "client_ip": request.client.host if request.client else "unknown",
    }

    if response is None:
        log_data["user_agent"] = request.headers.get("user-agent", "unknown")
        logger.info("api_request_started", **log_data)
        return

    log_data["status_code"] = response.status_code
    if duration is not None:
        log_data["duration_ms"] = round(duration * 1000, 2)
    if response.status_code >= 500:
        logger.error("api_request_failed", **log_data)
    else:
        logger.info("api_request_completed", **log_data)
