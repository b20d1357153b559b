import boto3
from boto3.exceptions import Boto3Error
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from .errors import ObjectNotFound, TransportError

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def get_s3_client(endpoint_url: str | None = None):
    """
    SDK client for server-side upload/download. Pass the public endpoint
    for a client whose presigned URLs the browser/curl will call.
    """
    session = boto3.session.Session(
        aws_access_key_id=settings.S3_ACCESS_KEY,
        aws_secret_access_key=settings.S3_SECRET_KEY,
        region_name=settings.S3_REGION,
    )
    return session.client(
        "s3",
        endpoint_url=endpoint_url or settings.S3_ENDPOINT_URL,  # e.g. http://127.0.0.1:9000
        config=BotoConfig(
            s3={"addressing_style": "path"},
            signature_version="s3v4",
        ),
    )


def physical_key(key: str) -> str:
    """Logical keys may start with '/' (``/videos/v1.mov``); S3 keys don't."""
    return key.lstrip("/")


class ObjectStorage:
    """
    Download/upload of named blobs between a bucket and local scratch paths.

    Every call performs real I/O; there is no caching and no retrying here.
    Failures surface as ObjectNotFound / TransportError.
    """

    def __init__(self, client, bucket: str, presign_client=None, presign_expires: int = 900):
        self.client = client
        self.bucket = bucket
        self.presign_client = presign_client or client
        self.presign_expires = presign_expires

    @classmethod
    def from_settings(cls) -> "ObjectStorage":
        return cls(
            client=get_s3_client(),
            bucket=settings.S3_BUCKET,
            presign_client=get_s3_client(settings.S3_PUBLIC_ENDPOINT),
            presign_expires=settings.S3_PRESIGN_EXPIRE_SECONDS,
        )

    def download(self, remote_key: str, local_path) -> None:
        key = physical_key(remote_key)
        try:
            # head first: download_file reports a missing key as a bare 404
            self.client.head_object(Bucket=self.bucket, Key=key)
            self.client.download_file(self.bucket, key, str(local_path))
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                raise ObjectNotFound(remote_key) from e
            raise TransportError(remote_key, str(e)) from e
        except (BotoCoreError, Boto3Error) as e:
            raise TransportError(remote_key, str(e)) from e

    def upload(self, local_path, remote_key: str, content_type: str | None = None) -> None:
        """Upload a single file, overwriting any existing object at the key."""
        extra = {}
        if content_type:
            extra["ContentType"] = content_type
        try:
            self.client.upload_file(
                str(local_path), self.bucket, physical_key(remote_key), ExtraArgs=extra or None
            )
        except (ClientError, BotoCoreError, Boto3Error) as e:  # upload_file wraps ClientError in S3UploadFailedError
            raise TransportError(remote_key, str(e)) from e

    def presign_put(self, key: str, content_type: str | None = None) -> dict:
        """
        Create a presigned PUT URL to upload a single object directly to S3/MinIO.

        ContentType is intentionally not signed so clients that omit or alter
        the header don't hit 'signature does not match'.
        """
        url = self.presign_client.generate_presigned_url(
            ClientMethod="put_object",
            Params={"Bucket": self.bucket, "Key": physical_key(key)},
            ExpiresIn=self.presign_expires,
            HttpMethod="PUT",
        )
        headers = {"Content-Type": content_type} if content_type else {}
        return {"url": url, "headers": headers}

    def presign_get(self, key: str) -> str:
        return self.presign_client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": physical_key(key)},
            ExpiresIn=self.presign_expires,
            HttpMethod="GET",
        )

    def close(self) -> None:
        self.client.close()
        if self.presign_client is not self.client:
            self.presign_client.close()


def _error_code(e: ClientError) -> str:
    return str(e.response.get("Error", {}).get("Code", ""))

