from __future__ import annotations

from typing import Protocol

from pdf_tutor.domain.models import ExtractedPages


class PageTextExtractorPort(Protocol):
    def extract(self, content: bytes) -> ExtractedPages: ...
