import boto3
import pytest
from botocore.config import Config
from botocore.exceptions import NoCredentialsError
from botocore.stub import Stubber
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from catalog.config import Settings
from catalog.db import create_session_factory
from catalog.errors import StoreUnavailable
from catalog.main import create_app
from catalog.repository import CatalogRepository

BUCKET = "test-bucket"


@pytest.fixture
def settings():
    return Settings(bucket_name=BUCKET, region="us-east-1", database_url="sqlite://")


@pytest.fixture
def engine():
    # One shared in-memory database across the threadpool
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield eng
    eng.dispose()


@pytest.fixture
def repository(engine):
    repo = CatalogRepository(engine, create_session_factory(engine))
    repo.ensure_schema()
    return repo


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        config=Config(signature_version="s3v4"),
    )


@pytest.fixture
def stubber(s3_client):
    with Stubber(s3_client) as stub:
        yield stub
        stub.assert_no_pending_responses()


@pytest.fixture
def app(settings, engine, s3_client):
    return create_app(settings, engine=engine, s3_client=s3_client)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


class FakeBlobStore:
    """In-memory stand-in for S3BlobStore that records calls."""

    def __init__(self, fail_store=False, fail_sign_keys=(), events=None):
        self.fail_store = fail_store
        self.fail_sign_keys = set(fail_sign_keys)
        self.events = events if events is not None else []
        self.objects = {}

    def store(self, payload, original_name, content_type):
        self.events.append("store")
        if self.fail_store:
            raise StoreUnavailable("Image upload failed", original_exception=NoCredentialsError())
        key = f"products/00000000-0000-0000-0000-{len(self.objects):012d}-{original_name}"
        self.objects[key] = (payload, content_type)
        return key

    def signed_read_url(self, key, ttl_seconds=3600):
        self.events.append("sign")
        if not key or key in self.fail_sign_keys:
            return None
        return f"https://{BUCKET}.s3.amazonaws.com/{key}?X-Amz-Expires={ttl_seconds}"


@pytest.fixture
def make_fake_store():
    return FakeBlobStore
