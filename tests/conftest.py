import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_CLEANUP_ENABLED"] = "false"
os.environ["ASSET_PUBLIC_URL"] = "https://assets.test"

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from dependencies.storage import get_asset_store
from main import app
from services.asset_store import AssetStore, StoredAsset


class FakeAssetStore(AssetStore):
    """Records every call instead of talking to R2"""

    def __init__(self):
        self.uploads = []
        self.deleted = []
        self.fail_with = None

    def upload(self, content, folder, resource_type, file_name):
        self.uploads.append({
            "content": content,
            "folder": folder,
            "resource_type": resource_type,
            "file_name": file_name,
        })
        if self.fail_with:
            raise self.fail_with

        base_name, ext = os.path.splitext(file_name)
        public_id = f"products/{folder}/{base_name}-{len(self.uploads)}{ext}"
        return StoredAsset(url=f"https://assets.test/{public_id}", public_id=public_id)

    def delete(self, public_id):
        if self.fail_with:
            raise self.fail_with
        self.deleted.append(public_id)


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def asset_store():
    return FakeAssetStore()


@pytest.fixture
def client(asset_store):
    app.dependency_overrides[get_asset_store] = lambda: asset_store
    yield TestClient(app)
    app.dependency_overrides.clear()


def send_chunk(client, payload, index, total=3, upload_id="abc123", file_type="image", file_name="logo.png"):
    return client.post(
        "/api/upload-chunk",
        data={
            "uploadId": upload_id,
            "chunkIndex": str(index),
            "totalChunks": str(total),
            "fileType": file_type,
            "fileName": file_name,
        },
        files={"chunk": ("blob", payload, "application/octet-stream")},
    )
