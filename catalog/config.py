import os
from dataclasses import dataclass

from sqlalchemy.engine import URL


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    bucket_name: str
    region: str = "us-east-1"
    database_url: str | None = None
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "catalog"
    db_ssl: bool = True
    db_ssl_ca: str | None = None
    s3_endpoint_url: str | None = None
    key_prefix: str = "products/"
    signed_url_ttl: int = 3600
    port: int = 3000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        bucket = os.getenv("S3_BUCKET_NAME")
        if not bucket:
            raise RuntimeError("S3_BUCKET_NAME is not set")

        return cls(
            bucket_name=bucket,
            region=os.getenv("AWS_REGION", "us-east-1"),
            database_url=os.getenv("DATABASE_URL") or None,
            db_host=os.getenv("DB_HOST", "localhost"),
            db_port=_env_int("DB_PORT", 3306),
            db_user=os.getenv("DB_USER", "root"),
            db_password=os.getenv("DB_PASSWORD", ""),
            db_name=os.getenv("DB_NAME", "catalog"),
            db_ssl=_env_bool("DB_SSL", True),
            db_ssl_ca=os.getenv("DB_SSL_CA") or None,
            s3_endpoint_url=os.getenv("S3_ENDPOINT_URL") or None,
            key_prefix=os.getenv("S3_KEY_PREFIX", "products/"),
            signed_url_ttl=_env_int("SIGNED_URL_TTL", 3600),
            port=_env_int("PORT", 3000),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def sqlalchemy_url(self):
        """DATABASE_URL wins; otherwise build a MySQL URL from the DB_* parts."""
        if self.database_url:
            return self.database_url
        return URL.create(
            "mysql+pymysql",
            username=self.db_user,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )
