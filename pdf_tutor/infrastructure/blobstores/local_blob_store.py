from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from pdf_tutor.application.ports.blob_store_port import BlobStorePort
from pdf_tutor.domain.errors import DomainError, StorageError, ValidationError
from pdf_tutor.domain.types import Result


class LocalBlobStore(BlobStorePort):
    """Blob store on the local filesystem; keys are relative paths below ``root``."""

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValidationError(f"blob key escapes store root: {key}")
        return path

    def put(self, key: str, data: bytes, meta: dict[str, Any]) -> Result[str, DomainError]:
        try:
            path = self._path(key)
            path.parent.mkdir(parents=True, exist_ok=True)
            # atomar ersetzen: Leser sehen nie eine halb geschriebene Datei
            fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=".tmp-")
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp, path)
            if meta:
                path.with_name(path.name + ".meta").write_text(
                    json.dumps({k: str(v) for k, v in meta.items()}), encoding="utf-8"
                )
            return Result.success(key)
        except (OSError, ValidationError) as ex:
            return Result.failure(StorageError(f"put failed: {ex}"))

    def get(self, key: str) -> Result[bytes | None, DomainError]:
        try:
            path = self._path(key)
            if not path.exists():
                return Result.success(None)
            return Result.success(path.read_bytes())
        except (OSError, ValidationError) as ex:
            return Result.failure(StorageError(f"get failed: {ex}"))

    def delete(self, key: str) -> Result[None, DomainError]:
        try:
            path = self._path(key)
            path.unlink(missing_ok=True)
            path.with_name(path.name + ".meta").unlink(missing_ok=True)
            return Result.success(None)
        except (OSError, ValidationError) as ex:
            return Result.failure(StorageError(f"delete failed: {ex}"))
