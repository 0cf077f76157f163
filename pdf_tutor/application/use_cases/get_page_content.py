from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ...domain.errors import NotFoundError
from ...domain.models import validate_filename, validate_page_number
from ..services.page_results import PageResultStore


@dataclass
class GetPageContent:
    """Read one page's generated transcript or MCQs.

    Results are written once per run, at the very end, so a missing blob
    means the document is still being processed (or its run failed).
    """

    results: PageResultStore

    def transcript(self, filename: str, page: int) -> str:
        validate_filename(filename)
        validate_page_number(page)
        data = self.results.transcripts(filename)
        if data is None:
            raise NotFoundError(f"Transcript for '{filename}' is being processed, please try again later")
        if str(page) not in data:
            raise NotFoundError(f"No transcript for page {page} of '{filename}'")
        return data[str(page)]

    def mcqs(self, filename: str, page: int) -> list[dict[str, Any]]:
        validate_filename(filename)
        validate_page_number(page)
        data = self.results.mcqs(filename)
        if data is None:
            raise NotFoundError(f"MCQs for '{filename}' are being processed, please try again later")
        if str(page) not in data:
            raise NotFoundError(f"No MCQs for page {page} of '{filename}'")
        return data[str(page)]
