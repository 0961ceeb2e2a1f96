import os
import re
import uuid

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings
from .errors import StoreUnavailable
from .logging_config import get_child_logger

logger = get_child_logger("storage")

DEFAULT_URL_TTL = 3600

# Width of products.image_key
MAX_KEY_LENGTH = 255

_WHITESPACE = re.compile(r"\s")


def build_s3_client(settings: Settings):
    # SigV4 so presigned URLs work in every region
    return boto3.client(
        "s3",
        region_name=settings.region,
        endpoint_url=settings.s3_endpoint_url,
        config=Config(signature_version="s3v4"),
    )


def sanitize_filename(name: str) -> str:
    return _WHITESPACE.sub("_", name or "upload")


class S3BlobStore:
    """Product images in an S3 bucket, addressed by ``<prefix><uuid>-<filename>`` keys."""

    def __init__(self, client, bucket: str, prefix: str = "products/"):
        self.client = client
        self.bucket = bucket
        self.prefix = prefix

    def make_key(self, original_name: str) -> str:
        head = f"{self.prefix}{uuid.uuid4()}-"
        name = sanitize_filename(original_name)
        room = MAX_KEY_LENGTH - len(head)
        if len(name) > room:
            # Shorten the stem, keep the extension
            stem, ext = os.path.splitext(name)
            if len(ext) >= room:
                ext = ""
            name = stem[: room - len(ext)] + ext
        return head + name

    def store(self, payload: bytes, original_name: str, content_type: str) -> str:
        key = self.make_key(original_name)
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=payload,
                ContentType=content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload failed key=%s error=%s", key, repr(e))
            raise StoreUnavailable("Image upload failed", original_exception=e) from e

        logger.info("Uploaded %d bytes to s3://%s/%s", len(payload), self.bucket, key)
        return key

    def signed_read_url(self, key: str | None, ttl_seconds: int = DEFAULT_URL_TTL) -> str | None:
        """
        Presigned GET url for ``key``, or None.

        Never raises: a missing image url must not fail a catalog read.
        """
        if not key:
            return None
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except Exception as e:
            logger.warning("Signing url failed key=%s error=%s", key, repr(e))
            return None
