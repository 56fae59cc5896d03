# clinic_api/db.py

import logging

from sqlmodel import SQLModel, create_engine, Session

from .config import DATABASE_URL

logger = logging.getLogger(__name__)

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}  # required for SQLite + FastAPI

# Engine = connection to the database, shared by the whole process
engine = create_engine(
    DATABASE_URL,
    echo=False,          # set to True to see SQL
    pool_pre_ping=True,
    connect_args=connect_args,
)


def create_db_and_tables():
    from . import models  # noqa: F401 - registers the tables

    SQLModel.metadata.create_all(engine)
    logger.info("Database tables ready")


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
