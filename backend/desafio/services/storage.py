from __future__ import annotations
import io
from fastapi import Request
from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError
from desafio.config import Settings


class StorageError(Exception):
    pass


def _parse_endpoint(ep: str) -> tuple[str, bool]:
    # Return (host:port, secure)
    secure = ep.startswith("https://")
    host = ep.replace("http://", "").replace("https://", "")
    return host.rstrip("/"), secure


class PrintStorage:
    """Object storage for uploaded prints, one folder per challenge slug."""

    def __init__(self, client: Minio, bucket: str, public_base_url: str):
        self._client = client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> "PrintStorage":
        host, secure = _parse_endpoint(settings.s3_endpoint)
        client = Minio(host, access_key=settings.s3_access_key, secret_key=settings.s3_secret_key, secure=secure)
        return cls(client, settings.s3_bucket_prints, settings.s3_public_url)

    def ensure_bucket(self) -> None:
        try:
            if not self._client.bucket_exists(self.bucket):
                self._client.make_bucket(self.bucket)
        except S3Error as e:
            # Creation may race with another worker; it's fine if it already exists
            if e.code not in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
                raise StorageError(e.message or str(e)) from e

    def put_bytes(self, key: str, data: bytes, content_type: str) -> None:
        try:
            self._client.put_object(
                self.bucket, key, io.BytesIO(data), length=len(data), content_type=content_type
            )
        except (S3Error, HTTPError) as e:
            raise StorageError(getattr(e, "message", None) or str(e)) from e

    def remove(self, key: str) -> None:
        try:
            self._client.remove_object(self.bucket, key)
        except (S3Error, HTTPError) as e:
            raise StorageError(getattr(e, "message", None) or str(e)) from e

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{self.bucket}/{key}"


def get_storage(request: Request) -> PrintStorage:
    return request.app.state.storage
