"""MinIO (S3-compatible) blob store for the page-result JSON objects."""

from dataclasses import dataclass
from importlib import import_module
from io import BytesIO
from typing import Any

from pdf_tutor.application.ports.blob_store_port import BlobStorePort
from pdf_tutor.domain.errors import DomainError, StorageError
from pdf_tutor.domain.types import Result

_MISSING_CODES = frozenset({"NoSuchKey", "NoSuchObject"})


@dataclass
class MinioConfig:
    """Configuration for MinIO client."""

    endpoint: str
    access_key: str
    secret_key: str
    bucket_name: str = "pdf-tutor"
    secure: bool = True
    region: str | None = None


class MinioBlobStore(BlobStorePort):
    def __init__(self, cfg: MinioConfig) -> None:
        """Connect and create the bucket if needed.

        Raises:
            StorageError: If minio is not installed or the bucket cannot be created
        """
        self._cfg = cfg
        self._client = self._init_client(cfg)
        self._ensure_bucket()

    def _init_client(self, cfg: MinioConfig) -> Any:
        try:
            minio = import_module("minio")
            return minio.Minio(
                cfg.endpoint,
                access_key=cfg.access_key,
                secret_key=cfg.secret_key,
                secure=cfg.secure,
                region=cfg.region,
            )
        except Exception as ex:
            raise StorageError(f"MinIO init failed: {ex}") from ex

    def _ensure_bucket(self) -> None:
        try:
            if not self._client.bucket_exists(bucket_name=self._cfg.bucket_name):
                self._client.make_bucket(bucket_name=self._cfg.bucket_name, location=self._cfg.region)
        except Exception as ex:
            raise StorageError(f"Bucket creation failed: {ex}") from ex

    def put(self, key: str, data: bytes, meta: dict[str, Any]) -> Result[str, DomainError]:
        try:
            meta = dict(meta)
            content_type = str(meta.pop("content-type", "application/octet-stream"))
            # S3 metadata values must be strings
            self._client.put_object(
                bucket_name=self._cfg.bucket_name,
                object_name=key,
                data=BytesIO(data),
                length=len(data),
                content_type=content_type,
                metadata={k: str(v) for k, v in meta.items()},
            )
            return Result.success(key)
        except Exception as ex:  # noqa: BLE001
            return Result.failure(StorageError(f"put failed: {ex}"))

    def get(self, key: str) -> Result[bytes | None, DomainError]:
        try:
            response = self._client.get_object(bucket_name=self._cfg.bucket_name, object_name=key)
        except Exception as ex:  # noqa: BLE001
            if getattr(ex, "code", None) in _MISSING_CODES:
                return Result.success(None)
            return Result.failure(StorageError(f"get failed: {ex}"))
        try:
            return Result.success(response.read())
        except Exception as ex:  # noqa: BLE001
            return Result.failure(StorageError(f"get failed: {ex}"))
        finally:
            response.close()
            response.release_conn()

    def delete(self, key: str) -> Result[None, DomainError]:
        try:
            self._client.remove_object(bucket_name=self._cfg.bucket_name, object_name=key)
            return Result.success(None)
        except Exception as ex:  # noqa: BLE001
            return Result.failure(StorageError(f"delete failed: {ex}"))
