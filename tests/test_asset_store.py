import boto3
import pytest
from botocore.stub import ANY, Stubber

from exceptions.exceptions import AssetStoreException
from services.asset_store import R2AssetStore


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="test",
        aws_secret_access_key="test"
    )


@pytest.fixture
def store(s3_client):
    return R2AssetStore(
        client=s3_client,
        bucket="nexus",
        public_url="https://assets.test/",
        root_folder="products"
    )


def test_upload_puts_object_under_folder(s3_client, store):
    with Stubber(s3_client) as stubber:
        stubber.add_response(
            "put_object",
            {"ETag": '"abc"'},
            {
                "Bucket": "nexus",
                "Key": ANY,
                "Body": b"%PDF-1.4",
                "ContentType": "application/pdf",
                "Metadata": {"resource-type": "raw"},
            }
        )
        stored = store.upload(b"%PDF-1.4", folder="pdfs", resource_type="raw", file_name="leaflet.pdf")
        stubber.assert_no_pending_responses()

    assert stored.public_id.startswith("products/pdfs/leaflet-")
    assert stored.public_id.endswith(".pdf")
    assert stored.url == f"https://assets.test/{stored.public_id}"


def test_upload_failure_raises_asset_store_exception(s3_client, store):
    with Stubber(s3_client) as stubber:
        stubber.add_client_error("put_object", service_error_code="InternalError", http_status_code=500)

        with pytest.raises(AssetStoreException):
            store.upload(b"data", folder="images", resource_type="image", file_name="logo.png")


def test_delete_removes_object(s3_client, store):
    with Stubber(s3_client) as stubber:
        stubber.add_response("delete_object", {}, {"Bucket": "nexus", "Key": "products/images/logo-1.png"})
        store.delete("products/images/logo-1.png")
        stubber.assert_no_pending_responses()


def test_delete_failure_raises_asset_store_exception(s3_client, store):
    with Stubber(s3_client) as stubber:
        stubber.add_client_error("delete_object", service_error_code="AccessDenied", http_status_code=403)

        with pytest.raises(AssetStoreException):
            store.delete("products/images/logo-1.png")


@pytest.mark.parametrize("file_name, prefix, suffix", [
    ("logo.png", "products/images/logo-", ".png"),
    ("datasheet", "products/images/datasheet-", ".pdf"),
    ("cow feed.jpg", "products/images/cow_feed-", ".jpg"),
    ("", "products/images/file-", ".pdf"),
])
def test_generate_public_id(store, file_name, prefix, suffix):
    public_id = store._generate_public_id("images", file_name)

    assert public_id.startswith(prefix)
    assert public_id.endswith(suffix)
    millis, unique_id = public_id[len(prefix):-len(suffix)].split("-")
    assert millis.isdigit()
    assert len(unique_id) == 12


def test_same_file_name_gets_distinct_public_ids(store):
    first = store._generate_public_id("images", "logo.png")
    second = store._generate_public_id("images", "logo.png")

    assert first != second
