"""
Test configuration and fixtures.
Storage is an in-memory stand-in for the boto3 S3 client, so no bucket
or credentials are needed.
"""
import os

# Set test environment before any imports
os.environ["ENVIRONMENT"] = "test"
os.environ["R2_BUCKET_NAME"] = "test-bucket"
os.environ["R2_PUBLIC_URL"] = "https://images.example.com"

import io
import pytest
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

from botocore.exceptions import ClientError
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from PIL import Image

from vgm_admin.config import Settings
from vgm_admin.services.image_service import ImageService
from vgm_admin.storage.r2_client import R2Client


PUBLIC_URL = "https://images.example.com"


class FakeS3:
    """
    Minimal in-memory replacement for a boto3 S3 client.
    
    Implements the calls R2Client makes (put_object, list_objects_v2 with
    pagination, head_bucket). Every write gets a strictly increasing
    LastModified so ordering is deterministic.
    """
    
    def __init__(self, page_size: int = 1000):
        self.objects: dict[str, dict] = {}
        self.page_size = page_size
        self.put_calls = 0
        self.list_calls = 0
        self.fail_operation: Optional[str] = None
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)
    
    def _maybe_fail(self, operation: str):
        if self.fail_operation == operation:
            raise ClientError(
                {"Error": {"Code": "InternalError", "Message": "We encountered an internal error"}},
                operation,
            )
    
    def add(self, key: str, size: int = 0, last_modified: Optional[datetime] = None):
        """Seed an object directly, bypassing put_object."""
        self.objects[key] = {
            "Key": key,
            "Size": size,
            "LastModified": last_modified,
            "Body": b"",
            "ContentType": "application/octet-stream",
        }
    
    def put_object(self, Bucket, Key, Body, ContentType):
        self._maybe_fail("PutObject")
        self.put_calls += 1
        self._clock += timedelta(seconds=1)
        self.objects[Key] = {
            "Key": Key,
            "Size": len(Body),
            "LastModified": self._clock,
            "Body": Body,
            "ContentType": ContentType,
        }
        return {"ETag": '"fake"'}
    
    def list_objects_v2(self, Bucket, Prefix="", MaxKeys=1000, ContinuationToken=None):
        self._maybe_fail("ListObjectsV2")
        self.list_calls += 1
        keys = sorted(k for k in self.objects if k.startswith(Prefix))
        start = int(ContinuationToken or 0)
        page = keys[start:start + min(MaxKeys, self.page_size)]
        contents = []
        for key in page:
            entry = {"Key": key, "Size": self.objects[key]["Size"]}
            if self.objects[key]["LastModified"] is not None:
                entry["LastModified"] = self.objects[key]["LastModified"]
            contents.append(entry)
        response = {"KeyCount": len(page), "IsTruncated": start + len(page) < len(keys)}
        if contents:
            response["Contents"] = contents
        if response["IsTruncated"]:
            response["NextContinuationToken"] = str(start + len(page))
        return response
    
    def head_bucket(self, Bucket):
        self._maybe_fail("HeadBucket")
        return {}


@pytest.fixture
def test_settings() -> Settings:
    """Settings with a bucket and public URL but no real credentials."""
    return Settings(r2_bucket_name="test-bucket", r2_public_url=PUBLIC_URL)


@pytest.fixture
def fake_s3() -> FakeS3:
    return FakeS3()


@pytest.fixture
def r2_client(fake_s3: FakeS3, test_settings: Settings) -> R2Client:
    return R2Client(config=test_settings, client=fake_s3)


@pytest.fixture
def image_service(r2_client: R2Client, test_settings: Settings) -> ImageService:
    return ImageService(r2_client, config=test_settings)


def get_test_app(image_service: ImageService) -> FastAPI:
    """Return the app with the storage-backed service overridden."""
    from vgm_admin.main import app
    from vgm_admin.services.image_service import get_image_service
    
    app.dependency_overrides[get_image_service] = lambda: image_service
    return app


@pytest.fixture
def app(image_service: ImageService):
    app = get_test_app(image_service)
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_image():
    """Factory encoding a small solid-color image with Pillow."""
    def _make(fmt: str = "JPEG", size=(32, 32)) -> bytes:
        buffer = io.BytesIO()
        Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format=fmt)
        return buffer.getvalue()
    return _make
