import logging
import mimetypes
import os
import time
import uuid
from dataclasses import dataclass

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from core.config import settings
from exceptions.exceptions import AssetStoreException

logger = logging.getLogger(__name__)


@dataclass
class StoredAsset:
    url: str
    public_id: str


class AssetStore:
    """Interface of the remote asset host"""

    def upload(self, content: bytes, folder: str, resource_type: str, file_name: str) -> StoredAsset:
        raise NotImplementedError

    def delete(self, public_id: str) -> None:
        raise NotImplementedError


class R2AssetStore(AssetStore):
    """Asset host backed by a Cloudflare R2 bucket"""

    def __init__(
        self,
        client=None,
        bucket: str = None,
        public_url: str = None,
        root_folder: str = None
    ):
        self.s3_client = client or self._create_r2_client()
        self.bucket = bucket or settings.R2_BUCKET_NAME
        self.public_url = (public_url if public_url is not None else settings.ASSET_PUBLIC_URL).rstrip("/")
        self.root_folder = root_folder if root_folder is not None else settings.ASSET_ROOT_FOLDER

    def _create_r2_client(self):
        """Create and return a boto3 S3 client configured for Cloudflare R2"""

        return boto3.client(
            's3',
            endpoint_url=settings.R2_ENDPOINT_URL,
            aws_access_key_id=settings.R2_ACCESS_KEY_ID,
            aws_secret_access_key=settings.R2_SECRET_ACCESS_KEY,
            region_name='auto'
        )

    def _generate_public_id(self, folder: str, file_name: str) -> str:
        """Build a unique public id of the form {root}/{folder}/{base}-{millis}-{uuid}.{ext}"""

        base_name, file_ext = os.path.splitext(file_name)
        base_name = base_name.replace(' ', '_') or 'file'
        extension = file_ext.lstrip('.') or 'pdf'
        unique_id = uuid.uuid4().hex[:12]
        millis = int(time.time() * 1000)
        prefix = f"{self.root_folder}/{folder}" if self.root_folder else folder
        return f"{prefix}/{base_name}-{millis}-{unique_id}.{extension}"

    def _public_url_for(self, public_id: str) -> str:
        if self.public_url:
            return f"{self.public_url}/{public_id}"
        return f"{settings.R2_ENDPOINT_URL.rstrip('/')}/{self.bucket}/{public_id}"

    def upload(self, content: bytes, folder: str, resource_type: str, file_name: str) -> StoredAsset:
        public_id = self._generate_public_id(folder, file_name)

        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=public_id,
                Body=content,
                ContentType=mimetypes.guess_type(public_id)[0] or "application/octet-stream",
                Metadata={"resource-type": resource_type}
            )
        except (ClientError, BotoCoreError) as e:
            raise AssetStoreException(f"Failed to upload asset to R2: {str(e)}")

        logger.info(f"Stored asset {public_id} ({len(content)} bytes, {resource_type})")
        return StoredAsset(url=self._public_url_for(public_id), public_id=public_id)

    def delete(self, public_id: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket, Key=public_id)
        except (ClientError, BotoCoreError) as e:
            raise AssetStoreException(f"Failed to delete asset from R2: {str(e)}")

        logger.info(f"Deleted asset {public_id}")
