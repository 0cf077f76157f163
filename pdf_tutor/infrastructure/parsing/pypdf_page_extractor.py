from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO

from pdf_tutor.application.ports.page_extractor_port import PageTextExtractorPort
from pdf_tutor.domain.errors import DocumentError
from pdf_tutor.domain.models import ExtractedPages


@dataclass
class PypdfPageExtractor(PageTextExtractorPort):
    """Per-page text of an in-memory PDF; image-only pages yield an empty string."""

    strict: bool = False

    def extract(self, content: bytes) -> ExtractedPages:
        try:
            from pypdf import PdfReader  # lazy import to avoid hard dependency in tests
        except Exception as ex:  # pragma: no cover
            raise DocumentError("pypdf is not installed") from ex

        if not content:
            raise DocumentError("empty PDF upload")
        try:
            reader = PdfReader(BytesIO(content), strict=self.strict)
            pages = tuple((p.extract_text() or "").strip() for p in reader.pages)
        except Exception as ex:  # noqa: BLE001
            raise DocumentError(f"PDF parse failed: {ex}") from ex
        return ExtractedPages(pages=pages, num_pages=len(pages))
