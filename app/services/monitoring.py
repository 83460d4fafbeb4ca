"""
Health checks and Prometheus metrics for the API and the quiz generators
"""
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi.responses import Response
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select
import time
import psutil
import structlog

from app.config import OLLAMA_ENABLED, openai_enabled
from app.db import engine
from app.models import Quiz, QuizAttempt

logger = structlog.get_logger()

GB = 1024 ** 3

# Prometheus metrics
REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])
QUIZ_GENERATION_REQUESTS = Counter(
    'quiz_generation_requests_total', 'Quiz generation attempts per strategy', ['strategy', 'status']
)
QUESTIONS_GENERATED = Counter('questions_generated_total', 'Questions produced per strategy', ['strategy'])
GENERATION_DURATION = Histogram('quiz_generation_duration_seconds', 'Time spent generating one quiz')


class HealthChecker:
    def __init__(self):
        self.started = time.time()

    def check_database(self) -> dict:
        started = time.perf_counter()
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error("database_health_check_failed", error=str(e))
            return {"status": "unhealthy", "message": f"Database unreachable: {e}"}
        latency_ms = round((time.perf_counter() - started) * 1000, 2)
        return {"status": "healthy", "backend": engine.url.get_backend_name(), "latency_ms": latency_ms}

    def get_system_metrics(self) -> dict:
        """Process host resources, sampled without blocking"""
        try:
            memory = psutil.virtual_memory()
            disk = psutil.disk_usage("/")
            cpu = psutil.cpu_percent(interval=None)
        except (psutil.Error, OSError) as e:
            logger.error("system_metrics_failed", error=str(e))
            return {"error": str(e)}
        return {
            "cpu_percent": cpu,
            "memory_percent": memory.percent,
            "memory_available_gb": round(memory.available / GB, 2),
            "disk_percent": disk.percent,
            "disk_free_gb": round(disk.free / GB, 2),
            "uptime_seconds": round(time.time() - self.started, 1),
        }

    def get_application_metrics(self) -> dict:
        """Count stored quizzes and attempts"""
        try:
            with Session(engine) as session:
                quizzes = session.exec(select(func.count()).select_from(Quiz)).one()
                attempts = session.exec(select(func.count()).select_from(QuizAttempt)).one()
        except SQLAlchemyError as e:
            logger.error("application_metrics_failed", error=str(e))
            return {"error": str(e)}
        return {"total_quizzes": quizzes, "total_attempts": attempts}

    def get_generator_status(self) -> dict:
        """Which quiz generators the cascade will try, in order"""
        return {
            "openai": openai_enabled(),
            "ollama": OLLAMA_ENABLED,
            "rule-based": True,
        }

    def get_health_status(self) -> dict:
        checks = {"database": self.check_database()}
        failing = [name for name, check in checks.items() if check["status"] != "healthy"]
        return {
            "status": "unhealthy" if failing else "healthy",
            "timestamp": time.time(),
            "checks": checks,
            "system_metrics": self.get_system_metrics(),
            "application_metrics": self.get_application_metrics(),
            "generators": self.get_generator_status(),
            "unhealthy_components": failing,
        }


health_checker = HealthChecker()


def record_generation(strategy: str, status: str, question_count: int = 0):
    QUIZ_GENERATION_REQUESTS.labels(strategy=strategy, status=status).inc()
    if question_count:
        QUESTIONS_GENERATED.labels(strategy=strategy).inc(question_count)


def get_metrics():
    """Prometheus exposition for the /metrics endpoint"""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
