import os
from datetime import datetime, timezone
from typing import BinaryIO, Optional
from urllib.parse import quote

import boto3
import structlog

from app.config import Settings
from app.errors import StorageWriteFailed

logger = structlog.get_logger()

SNIFF_BYTES = 512
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def create_s3_client(settings: Settings):
    return boto3.client(
        's3',
        aws_access_key_id=settings.aws_access_key,
        aws_secret_access_key=settings.aws_secret_key,
        region_name=settings.aws_region
    )


class S3Service:
    def __init__(self, settings: Settings, s3_client=None):
        self.s3_client = s3_client or create_s3_client(settings)
        self.bucket_name = settings.aws_bucket

    @staticmethod
    def build_object_key(filename: str, now: Optional[datetime] = None) -> str:
        """Prefix the caller's file name with a sortable timestamp."""
        now = now or datetime.now(timezone.utc)
        return f"{now.strftime('%Y%m%d%H%M%S')}-{os.path.basename(filename)}"

    @staticmethod
    def detect_content_type(head: bytes) -> str:
        """
        Sniff the MIME type from the leading bytes of a file.

        Falls back to application/octet-stream when libmagic cannot tell.
        """
        if not head:
            return DEFAULT_CONTENT_TYPE
        try:
            import magic
            mime_type = magic.from_buffer(head[:SNIFF_BYTES], mime=True)
        except Exception as e:
            logger.warning("Content type detection failed", error=str(e))
            return DEFAULT_CONTENT_TYPE
        if not mime_type or mime_type == "application/x-empty":
            return DEFAULT_CONTENT_TYPE
        return mime_type

    def object_url(self, key: str) -> str:
        return f"https://{self.bucket_name}.s3.amazonaws.com/{quote(key, safe='/')}"

    def store(self, fileobj: BinaryIO, filename: str) -> str:
        """
        Upload a file as a public-read object.

        Args:
            fileobj: Readable, seekable file object
            filename: The original filename

        Returns:
            Public URL of the stored object

        Raises:
            StorageWriteFailed: If reading the file or the S3 write fails
        """
        key = self.build_object_key(filename)
        try:
            head = fileobj.read(SNIFF_BYTES)
            content_type = self.detect_content_type(head)
            # The whole file goes to S3, not just the sniffed prefix
            fileobj.seek(0)

            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=fileobj,
                ContentType=content_type,
                ACL="public-read"
            )
        except Exception as e:
            logger.error(
                "Failed to upload file to S3",
                error=str(e),
                filename=filename,
                s3_key=key
            )
            raise StorageWriteFailed() from e

        url = self.object_url(key)
        logger.info(
            "Uploaded file to S3",
            filename=filename,
            s3_key=key,
            content_type=content_type,
            url=url
        )
        return url
