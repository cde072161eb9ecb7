"""
Blob store port for images embedded in answers.

Only deletion is needed here. Cleanup is always best-effort: the answer
row is the record of truth and is saved before any remote call.
"""
import logging
from abc import ABC, abstractmethod

from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


class BlobStore(ABC):
    @abstractmethod
    def destroy(self, public_id: str) -> None:
        """Delete the stored object identified by ``public_id``."""


class S3BlobStore(BlobStore):
    """S3-compatible bucket (AWS S3, Cloudflare R2, MinIO)."""

    def __init__(self, bucket=None, client=None):
        self.bucket = bucket or settings.BLOB_BUCKET
        self._client = client

    @property
    def client(self):
        if self._client is None:
            import boto3

            self._client = boto3.client(
                "s3",
                endpoint_url=settings.BLOB_ENDPOINT,
                aws_access_key_id=settings.BLOB_ACCESS_KEY,
                aws_secret_access_key=settings.BLOB_SECRET_KEY,
                region_name="auto",
            )
        return self._client

    def destroy(self, public_id: str) -> None:
        self.client.delete_object(Bucket=self.bucket, Key=public_id)


def get_blob_store():
    path = getattr(settings, 'EXAM_BLOB_STORE', '')
    if not path:
        return None
    return import_string(path)()


def public_id_from_url(url):
    """Object key for a URL served from our bucket, or None for foreign URLs."""
    base = (getattr(settings, 'BLOB_PUBLIC_BASE_URL', '') or '').rstrip('/')
    if not base or not url or not url.startswith(base + '/'):
        return None
    return url[len(base) + 1:].split('?', 1)[0] or None


def destroy_quietly(public_id, store=None):
    if not public_id:
        return False
    store = store or get_blob_store()
    if store is None:
        logger.info("No blob store configured; leaving %s in place", public_id)
        return False
    try:
        store.destroy(public_id)
    except Exception:
        logger.warning("Blob cleanup failed for %s", public_id, exc_info=True)
        return False
    return True
