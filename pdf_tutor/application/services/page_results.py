"""Page-keyed transcript/MCQ JSON objects on top of a BlobStorePort."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pdf_tutor.application.ports.blob_store_port import BlobStorePort
from pdf_tutor.domain.errors import StorageError
from pdf_tutor.domain.models import McqQuestion, validate_filename

logger = logging.getLogger(__name__)

TRANSCRIPTS_PREFIX = "llm_transcripts"
MCQS_PREFIX = "llm_mcqs"


def transcripts_key(filename: str) -> str:
    return f"{TRANSCRIPTS_PREFIX}/{validate_filename(filename)}.json"


def mcqs_key(filename: str) -> str:
    return f"{MCQS_PREFIX}/{validate_filename(filename)}.json"


class PageResultStore:
    def __init__(self, blobs: BlobStorePort) -> None:
        self.blobs = blobs

    def _put(self, key: str, payload: Mapping[str, Any]) -> None:
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        res = self.blobs.put(key, data, {"content-type": "application/json"})
        if not res.ok:
            raise StorageError(f"failed to store {key}: {res.error}") from res.error

    def _get(self, key: str) -> dict[str, Any] | None:
        res = self.blobs.get(key)
        if not res.ok:
            raise StorageError(f"failed to read {key}: {res.error}") from res.error
        if res.value is None:
            return None
        try:
            return json.loads(res.value.decode("utf-8"))
        except ValueError as ex:
            raise StorageError(f"corrupt page results in {key}: {ex}") from ex

    def save_transcripts(self, filename: str, transcripts: Mapping[int, str]) -> None:
        self._put(transcripts_key(filename), {str(page): text for page, text in sorted(transcripts.items())})

    def save_mcqs(self, filename: str, mcqs: Mapping[int, Sequence[McqQuestion]]) -> None:
        payload = {str(page): [q.as_dict() for q in items] for page, items in sorted(mcqs.items())}
        self._put(mcqs_key(filename), payload)

    def transcripts(self, filename: str) -> dict[str, str] | None:
        return self._get(transcripts_key(filename))

    def mcqs(self, filename: str) -> dict[str, list[dict[str, Any]]] | None:
        return self._get(mcqs_key(filename))

    def delete(self, filename: str) -> None:
        for key in (transcripts_key(filename), mcqs_key(filename)):
            res = self.blobs.delete(key)
            if not res.ok:
                raise StorageError(f"failed to delete {key}: {res.error}") from res.error
        logger.info("Deleted page results for: %s", filename)
