import importlib
import io
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from botocore.exceptions import ClientError
from botocore.response import StreamingBody
from httpx import ASGITransport, AsyncClient

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from filegate.core.config import get_settings
from filegate.services import storage as storage_service


class FakeS3Client:
    """In-memory stand-in for a boto3 S3 client that records every call."""

    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.calls: list[tuple[str, dict]] = []
        self.list_response: dict | None = None
        self.delete_response: dict | None = None
        self.body_factory = None

    def _record(self, name: str, **kwargs) -> None:
        self.calls.append((name, kwargs))

    def calls_to(self, name: str) -> list[dict]:
        return [kwargs for call, kwargs in self.calls if call == name]

    def put_object(self, **kwargs):
        self._record("put_object", **kwargs)
        self.objects[kwargs["Key"]] = (kwargs["Body"], kwargs["ContentType"])
        return {"ETag": '"etag"'}

    def list_objects_v2(self, **kwargs):
        self._record("list_objects_v2", **kwargs)
        if self.list_response is not None:
            return self.list_response
        keys = sorted(self.objects)[: kwargs["MaxKeys"]]
        return {
            "Contents": [
                {
                    "Key": key,
                    "Size": len(self.objects[key][0]),
                    "LastModified": datetime(2024, 1, 1, tzinfo=timezone.utc),
                }
                for key in keys
            ],
            "IsTruncated": False,
        }

    def delete_objects(self, **kwargs):
        self._record("delete_objects", **kwargs)
        if self.delete_response is not None:
            return self.delete_response
        deleted = []
        for item in kwargs["Delete"]["Objects"]:
            self.objects.pop(item["Key"], None)
            deleted.append({"Key": item["Key"]})
        return {"Deleted": deleted}

    def generate_presigned_url(self, client_method, Params=None, ExpiresIn=3600):
        self._record(
            "generate_presigned_url",
            ClientMethod=client_method,
            Params=Params,
            ExpiresIn=ExpiresIn,
        )
        return (
            f"https://store.example.com/{Params['Bucket']}/{Params['Key']}"
            f"?X-Amz-Expires={ExpiresIn}&X-Amz-Signature=deadbeef"
        )

    def get_object(self, **kwargs):
        self._record("get_object", **kwargs)
        key = kwargs["Key"]
        if key not in self.objects:
            raise ClientError(
                {"Error": {"Code": "NoSuchKey", "Message": "The specified key does not exist."}},
                "GetObject",
            )
        data, content_type = self.objects[key]
        if self.body_factory is not None:
            body = self.body_factory(data)
        else:
            body = StreamingBody(io.BytesIO(data), len(data))
        return {"ContentType": content_type, "ContentLength": len(data), "Body": body}


def _set_test_environment() -> None:
    os.environ["R2_ENDPOINT"] = "https://account.r2.cloudflarestorage.com"
    os.environ["R2_ACCOUNT_ID"] = "test-account"
    os.environ["R2_ACCESS_KEY_ID"] = "test"
    os.environ["R2_SECRET_ACCESS_KEY"] = "test"
    os.environ["R2_BUCKET"] = "test-bucket"
    os.environ["STATIC_DIR"] = str(PROJECT_ROOT / "tests" / "missing-static")


# Test modules import filegate.main (which builds the app at import time)
# during collection, before any fixture runs.
_set_test_environment()


@pytest.fixture(scope="session", autouse=True)
def configure_environment():
    _set_test_environment()
    get_settings.cache_clear()
    storage_service.reset_storage_service()


@pytest.fixture
def s3_client(configure_environment):
    client = FakeS3Client()
    storage_service._storage_service = storage_service.StorageService(get_settings(), client=client)
    yield client
    storage_service.reset_storage_service()


@pytest.fixture(scope="session")
def app_instance(configure_environment):
    from filegate import main as app_module

    importlib.reload(app_module)
    return app_module.app


@pytest_asyncio.fixture
async def client(app_instance, s3_client):
    transport = ASGITransport(app=app_instance)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
