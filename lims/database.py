# lims/database.py

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from lims.core.config import settings


connect_args = {}

# SQLite connections are handed between threadpool workers by FastAPI
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=connect_args,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

# Integer columns map to int4 on Postgres
INT4_MAX = 2_147_483_647


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
