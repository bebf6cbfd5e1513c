import boto3
from botocore.exceptions import ClientError
from app.config import settings
from app.core.errors import NotFoundError, TransientIOError
from app.storage.object_store import BlobInfo
from typing import List
import logging

logger = logging.getLogger(__name__)


class S3Storage:
    """Blob backend on an S3 bucket; keys are the object-store paths unchanged."""

    # DeleteObjects accepts at most 1000 keys
    _DELETE_BATCH = 1000

    def __init__(self):
        if not settings.s3_configured:
            raise ValueError("AWS S3 credentials and bucket name must be configured")

        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region
        )
        self.bucket_name = settings.s3_bucket_name

    def upload_file(self, file_content: bytes, key: str, content_type: str = "application/octet-stream") -> str:
        """Upload file to S3 and return the key"""
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=file_content,
                ContentType=content_type
            )
            return key
        except ClientError as e:
            logger.error(f"Failed to upload file to S3: {str(e)}")
            raise TransientIOError("Failed to upload file")

    def download_file(self, key: str) -> bytes:
        try:
            response = self.s3_client.get_object(Bucket=self.bucket_name, Key=key)
            return response["Body"].read()
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in ("NoSuchKey", "404"):
                raise NotFoundError("File not found")
            logger.error(f"Failed to download file from S3: {str(e)}")
            raise TransientIOError("Failed to download file")

    def delete_files(self, keys: List[str]) -> bool:
        """Delete files from S3, at most _DELETE_BATCH keys per request"""
        if not keys:
            return True
        ok = True
        for start in range(0, len(keys), self._DELETE_BATCH):
            batch = keys[start:start + self._DELETE_BATCH]
            try:
                response = self.s3_client.delete_objects(
                    Bucket=self.bucket_name,
                    Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True}
                )
            except ClientError as e:
                logger.error(f"Failed to delete files from S3: {str(e)}")
                ok = False
                continue
            errors = response.get("Errors") or []
            if errors:
                logger.error(f"S3 refused to delete {len(errors)} of {len(batch)} files, first: {errors[0].get('Key')} ({errors[0].get('Code')})")
                ok = False
        return ok

    def list_files(self) -> List[BlobInfo]:
        blobs = []
        try:
            paginator = self.s3_client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket_name):
                for item in page.get("Contents", []):
                    blobs.append(BlobInfo(path=item["Key"], created_at=item.get("LastModified")))
        except ClientError as e:
            logger.error(f"Failed to list S3 bucket: {str(e)}")
            raise TransientIOError("Failed to list stored files")
        return blobs
