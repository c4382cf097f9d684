import logging
import pathlib
import time
from datetime import timedelta
from typing import BinaryIO
from urllib.parse import urlencode

from fastapi import Request
from google.cloud import storage

from app.core.config import Settings

logger = logging.getLogger("fieldservice.storage")

CHUNK_SIZE = 1024 * 1024


class StorageError(Exception):
    pass


class ObjectTooLarge(StorageError):
    pass


class ObjectStore:
    """Object store client: Google Cloud Storage, or a local directory for development."""

    def __init__(
        self,
        bucket_name: str | None = None,
        use_local: bool = False,
        base_dir: str = "storage",
    ) -> None:
        self.bucket_name = bucket_name
        self.use_local = use_local or not bucket_name
        self.base_dir = pathlib.Path(base_dir).resolve()
        self._client: storage.Client | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ObjectStore":
        return cls(
            bucket_name=settings.GCS_BUCKET,
            use_local=settings.LOCAL_STORAGE,
            base_dir=settings.LOCAL_STORAGE_DIR,
        )

    @property
    def bucket_label(self) -> str:
        return self.bucket_name or "local"

    def init(self) -> None:
        if self.use_local:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        elif self._client is None:
            self._client = storage.Client()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _bucket(self):
        if not self.bucket_name:
            raise StorageError("GCS_BUCKET is not configured")
        if self._client is None:
            self._client = storage.Client()
        return self._client.bucket(self.bucket_name)

    def _local_path(self, key: str) -> pathlib.Path:
        full_path = (self.base_dir / key).resolve()
        if self.base_dir not in full_path.parents:
            raise StorageError("Storage key escapes the storage directory")
        return full_path

    def put(
        self,
        key: str,
        file_obj: BinaryIO,
        content_type: str,
        max_bytes: int | None = None,
    ) -> int:
        """Stream ``file_obj`` under ``key`` and return the number of bytes written."""
        total = 0
        try:
            if self.use_local:
                full_path = self._local_path(key)
                full_path.parent.mkdir(parents=True, exist_ok=True)
                with open(full_path, "wb") as handle:
                    while True:
                        chunk = file_obj.read(CHUNK_SIZE)
                        if not chunk:
                            break
                        total += len(chunk)
                        if max_bytes and total > max_bytes:
                            raise ObjectTooLarge("File exceeds the maximum allowed size")
                        handle.write(chunk)
                return total

            blob = self._bucket().blob(key)
            with blob.open("wb", content_type=content_type) as handle:
                while True:
                    chunk = file_obj.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    total += len(chunk)
                    if max_bytes and total > max_bytes:
                        raise ObjectTooLarge("File exceeds the maximum allowed size")
                    handle.write(chunk)
            return total
        except ObjectTooLarge:
            self._discard_partial(key)
            raise
        except StorageError:
            raise
        except Exception as exc:
            raise StorageError(f"failed to upload {key}: {exc}") from exc

    def _discard_partial(self, key: str) -> None:
        try:
            self.delete(key)
        except StorageError:
            logger.warning("could not discard partial object key=%s", key)

    def delete(self, key: str) -> None:
        try:
            if self.use_local:
                self._local_path(key).unlink(missing_ok=True)
                return
            self._bucket().blob(key).delete()
        except StorageError:
            raise
        except Exception as exc:
            raise StorageError(f"failed to delete {key}: {exc}") from exc

    def exists(self, key: str) -> bool:
        try:
            if self.use_local:
                return self._local_path(key).is_file()
            return self._bucket().blob(key).exists()
        except StorageError:
            raise
        except Exception as exc:
            raise StorageError(f"failed to stat {key}: {exc}") from exc

    def sign_get(self, key: str, ttl: timedelta) -> str:
        try:
            if self.use_local:
                expires = int(time.time() + ttl.total_seconds())
                return f"{self._local_path(key).as_uri()}?{urlencode({'expires': expires})}"
            blob = self._bucket().blob(key)
            return blob.generate_signed_url(expiration=ttl, method="GET", version="v4")
        except StorageError:
            raise
        except Exception as exc:
            raise StorageError(f"failed to sign {key}: {exc}") from exc


def get_object_store(request: Request) -> ObjectStore:
    return request.app.state.object_store
