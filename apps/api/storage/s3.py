"""S3 object storage for processed videos."""

import asyncio
import logging
from typing import BinaryIO, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from errors import UploadError

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    async def put_object(self, bucket: str, key: str, body: BinaryIO, content_type: str) -> None: ...

    async def presign_get_object(self, bucket: str, key: str, expires_in: int) -> str: ...


class S3ObjectStore:
    """Thin async wrapper over a boto3 S3 client.

    boto3 is blocking, so calls run in a worker thread. A call already in
    flight is not interrupted if the request is cancelled.
    """

    def __init__(self, client):
        self.client = client

    @classmethod
    def from_region(cls, region: str) -> "S3ObjectStore":
        return cls(boto3.client("s3", region_name=region))

    async def put_object(self, bucket: str, key: str, body: BinaryIO, content_type: str) -> None:
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise UploadError("Unable to upload video to S3") from exc
        logger.info("Uploaded s3://%s/%s (%s)", bucket, key, content_type)

    async def presign_get_object(self, bucket: str, key: str, expires_in: int) -> str:
        try:
            return await asyncio.to_thread(
                self.client.generate_presigned_url,
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as exc:
            raise UploadError("Unable to generate presigned URL") from exc
