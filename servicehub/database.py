from fastapi import Request
from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.engine import Engine

def build_engine(db_url: str, echo: bool = False) -> Engine:
    engine_kwargs = {}
    if db_url.startswith("sqlite"):
        # SQLite specific connect args
        engine_kwargs.update({
            "connect_args": {"check_same_thread": False}
        })
    else:
        # Better resiliency for managed Postgres
        engine_kwargs.update({
            "pool_pre_ping": True,
            "pool_recycle": 300,
            "pool_size": 5,
            "max_overflow": 10,
        })
    return create_engine(db_url, echo=echo, **engine_kwargs)

def create_db_and_tables(bind: Engine):
    # Import models so their tables are registered on the metadata
    from .db import models  # noqa: F401
    SQLModel.metadata.create_all(bind)

def get_session(request: Request):
    # One engine per app, built by create_app from its own settings
    with Session(request.app.state.db_engine) as session:
        yield session
