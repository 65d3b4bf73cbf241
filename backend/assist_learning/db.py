from __future__ import annotations
from typing import Optional
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from .settings import settings


DATABASE_URL = settings.database_url or "sqlite:///./assist_learning.db"

Base = declarative_base()


def make_engine(url: Optional[str] = None) -> Engine:
	url = url or DATABASE_URL
	connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
	return create_engine(url, connect_args=connect_args, future=True)


def make_session_factory(engine: Engine) -> sessionmaker:
	return sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)


def init_db(engine: Engine) -> None:
	# Import models so their tables are registered on Base
	from . import models  # noqa: F401
	Base.metadata.create_all(bind=engine)
