import os

os.environ.setdefault("AWS_ACCESS_KEY", "test-access-key")
os.environ.setdefault("AWS_SECRET_KEY", "test-secret-key")
os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_BUCKET", "test-bucket")
os.environ.setdefault("MONGODB_CONN_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGODB_DB_NAME", "test_db")
os.environ.setdefault("COLLECTION_NAME", "posts")

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock
from app.main import app
from app.routers.posts import get_mongo_service, get_s3_service
from app.services.mongo_service import MongoService
from app.services.s3_service import S3Service


@pytest.fixture
def mock_s3_service():
    service = MagicMock(spec=S3Service)
    service.store.return_value = "https://test-bucket.s3.amazonaws.com/20240101120000-alice.jpg"
    return service


@pytest.fixture
def mock_mongo_service():
    return MagicMock(spec=MongoService)


@pytest.fixture(scope="function")
def client(mock_s3_service, mock_mongo_service):
    app.dependency_overrides[get_s3_service] = lambda: mock_s3_service
    app.dependency_overrides[get_mongo_service] = lambda: mock_mongo_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sample_post_data():
    return {
        "name": "Alice",
        "email": "alice@example.com"
    }


@pytest.fixture
def sample_picture():
    # JPEG magic bytes padded to roughly 5KB
    return b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x00" * 5110
