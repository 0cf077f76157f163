"""SQLAlchemy document store: one row per ChunkedDocument, keyed by filename."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, String, Text, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from pdf_tutor.application.ports.document_store_port import DocumentStorePort
from pdf_tutor.domain.errors import StorageError
from pdf_tutor.domain.models import ChunkedDocument

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DocumentRow(Base):
    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    full_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # {"1": ["chunk", ...], "2": [...]}; JSON object keys are strings
    page_chunks: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def to_domain(self) -> ChunkedDocument:
        return ChunkedDocument(
            id=self.id,
            full_text=self.full_text,
            page_chunks={int(k): tuple(v) for k, v in (self.page_chunks or {}).items()},
        )


class SqlDocumentStore(DocumentStorePort):
    def __init__(self, url: str = "sqlite:///pdf_tutor.db", echo: bool = False) -> None:
        kwargs: dict[str, Any] = {"echo": echo}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool
        try:
            self._engine = create_engine(url, **kwargs)
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as ex:
            raise StorageError(f"document store init failed: {ex}") from ex
        self._sessions = sessionmaker(bind=self._engine, expire_on_commit=False)

    def store(self, document: ChunkedDocument) -> None:
        chunks = {str(page): list(items) for page, items in sorted(document.page_chunks.items())}
        try:
            with self._sessions.begin() as session:
                row = session.get(DocumentRow, document.id)
                if row is None:
                    session.add(
                        DocumentRow(id=document.id, full_text=document.full_text, page_chunks=chunks)
                    )
                else:
                    row.full_text = document.full_text
                    row.page_chunks = chunks
        except SQLAlchemyError as ex:
            raise StorageError(f"failed to store document '{document.id}': {ex}") from ex
        logger.debug("Stored document %s (%d pages)", document.id, document.total_pages)

    def get(self, filename: str) -> ChunkedDocument | None:
        try:
            with Session(self._engine) as session:
                row = session.get(DocumentRow, filename)
                return row.to_domain() if row is not None else None
        except SQLAlchemyError as ex:
            raise StorageError(f"failed to read document '{filename}': {ex}") from ex

    def delete(self, filename: str) -> None:
        try:
            with self._sessions.begin() as session:
                row = session.get(DocumentRow, filename)
                if row is not None:
                    session.delete(row)
        except SQLAlchemyError as ex:
            raise StorageError(f"failed to delete document '{filename}': {ex}") from ex

    def close(self) -> None:
        self._engine.dispose()
