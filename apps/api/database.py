from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.pool import StaticPool
import os
import logging

logger = logging.getLogger(__name__)

# SQLite file next to the app unless DATABASE_URL points elsewhere
SQLITE_FILE = os.path.join(os.path.dirname(__file__), "medstock_dev.db")
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{SQLITE_FILE}")

# SECURITY: Disable SQL echo in production to prevent sensitive data leakage
DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"

if DATABASE_URL == "sqlite://":
    # In-memory database: every session must share the one connection
    engine = create_engine(
        DATABASE_URL,
        echo=DB_ECHO,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
elif DATABASE_URL.startswith("sqlite"):
    engine = create_engine(DATABASE_URL, echo=DB_ECHO, connect_args={"check_same_thread": False})
else:
    # Production configuration with connection pooling
    engine = create_engine(
        DATABASE_URL,
        echo=DB_ECHO,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,  # Handle stale connections
        pool_recycle=300,  # Recycle connections every 5 minutes
    )

def get_session():
    with Session(engine) as session:
        yield session

def open_session() -> Session:
    """Session for code running outside a request (middleware, scripts)"""
    return Session(engine)

def create_db_and_tables():
    logger.info("Creating database tables")
    SQLModel.metadata.create_all(engine)
