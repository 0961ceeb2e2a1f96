import ssl

import pytest
from sqlalchemy.engine import make_url

from catalog.config import Settings
from catalog.db import _connect_args, create_db_engine

ENV_VARS = (
    "S3_BUCKET_NAME", "AWS_REGION", "DATABASE_URL", "DB_HOST", "DB_PORT", "DB_USER",
    "DB_PASSWORD", "DB_NAME", "DB_SSL", "DB_SSL_CA", "S3_ENDPOINT_URL", "S3_KEY_PREFIX",
    "SIGNED_URL_TTL", "PORT", "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_bucket_is_required():
    with pytest.raises(RuntimeError, match="S3_BUCKET_NAME"):
        Settings.from_env()


def test_defaults(monkeypatch):
    monkeypatch.setenv("S3_BUCKET_NAME", "images")
    s = Settings.from_env()
    assert s.bucket_name == "images"
    assert s.region == "us-east-1"
    assert s.port == 3000
    assert s.db_ssl is True
    assert s.key_prefix == "products/"
    assert s.signed_url_ttl == 3600


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("S3_BUCKET_NAME", "images")
    monkeypatch.setenv("AWS_REGION", "eu-west-1")
    monkeypatch.setenv("DB_HOST", "db.internal")
    monkeypatch.setenv("DB_USER", "catalog")
    monkeypatch.setenv("DB_PASSWORD", "s3cret")
    monkeypatch.setenv("DB_NAME", "shop")
    monkeypatch.setenv("DB_SSL", "false")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("SIGNED_URL_TTL", "600")

    s = Settings.from_env()
    url = make_url(s.sqlalchemy_url())
    assert url.drivername == "mysql+pymysql"
    assert url.host == "db.internal"
    assert url.username == "catalog"
    assert url.password == "s3cret"
    assert url.database == "shop"
    assert s.region == "eu-west-1"
    assert s.db_ssl is False
    assert s.port == 8080
    assert s.signed_url_ttl == 600


def test_database_url_overrides_parts(monkeypatch):
    monkeypatch.setenv("S3_BUCKET_NAME", "images")
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("DB_HOST", "ignored")
    assert Settings.from_env().sqlalchemy_url() == "sqlite://"


def test_non_integer_port_is_rejected(monkeypatch):
    monkeypatch.setenv("S3_BUCKET_NAME", "images")
    monkeypatch.setenv("PORT", "eighty")
    with pytest.raises(RuntimeError, match="PORT"):
        Settings.from_env()


def test_mysql_connection_requires_tls():
    s = Settings(bucket_name="images")
    args = _connect_args(s, make_url(s.sqlalchemy_url()))
    assert isinstance(args["ssl"], ssl.SSLContext)
    assert args["ssl"].verify_mode == ssl.CERT_REQUIRED


def test_tls_can_be_disabled_and_is_skipped_for_sqlite():
    s = Settings(bucket_name="images", db_ssl=False)
    assert _connect_args(s, make_url(s.sqlalchemy_url())) == {}

    s = Settings(bucket_name="images", database_url="sqlite://")
    assert _connect_args(s, make_url("sqlite://")) == {}


def test_engine_is_lazy():
    engine = create_db_engine(Settings(bucket_name="images", db_host="nowhere.invalid"))
    try:
        assert engine.url.drivername == "mysql+pymysql"
        assert engine.url.host == "nowhere.invalid"
    finally:
        engine.dispose()
