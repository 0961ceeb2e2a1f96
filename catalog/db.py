import ssl

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from .config import Settings


class Base(DeclarativeBase):
    pass


def _connect_args(settings: Settings, url) -> dict:
    if url.get_backend_name() != "mysql" or not settings.db_ssl:
        return {}
    # Server certificate is verified against DB_SSL_CA or the system bundle
    return {"ssl": ssl.create_default_context(cafile=settings.db_ssl_ca)}


def create_db_engine(settings: Settings) -> Engine:
    url = make_url(settings.sqlalchemy_url())
    return create_engine(
        url,
        connect_args=_connect_args(settings, url),
        pool_pre_ping=True,
        pool_recycle=300,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    # Rows are handed back to the service after the session closes
    return sessionmaker(
        bind=engine, autoflush=False, autocommit=False, expire_on_commit=False
    )
