from sqlmodel import SQLModel, create_engine, Session
import structlog

from app.config import DATABASE_URL
from app import models  # noqa: F401  registers the tables on SQLModel.metadata

logger = structlog.get_logger()

# SQLite connections are shared across FastAPI's worker threads
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=False, connect_args=connect_args)


def init_db() -> None:
    """Create the quiz, question and attempt tables if they don't exist."""
    SQLModel.metadata.create_all(engine)
    logger.info("database_initialized", backend=engine.url.get_backend_name())


def get_session():
    with Session(engine) as session:
        yield session
