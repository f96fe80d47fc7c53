"""Database engine and session factory"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def create_session_factory(database_url: str) -> sessionmaker:
    """Create an engine for ``database_url`` and return a bound session factory"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Sessions are opened from worker threads
        connect_args["check_same_thread"] = False

    engine = create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
