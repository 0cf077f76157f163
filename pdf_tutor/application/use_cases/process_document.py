"""Ingest-and-generate orchestration for one uploaded PDF.

extracting -> chunking -> embedding -> storing -> generating(page 1..N) -> done | failed

Pages are processed strictly one after another. Only a failed extraction,
invalid chunking parameters or a failed final write end the run as
``failed``; everything else degrades per page.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field

from ...domain.errors import DomainError
from ...domain.models import AugmentedPromptData, ChunkedDocument, EmbeddingVector, McqQuestion
from ...domain.services.chunking import ChunkingParams, build_chunked_document
from ..dto.process_dto import ProcessDocumentRequest, RunReport, RunState
from ..ports.clock_port import ClockPort
from ..ports.document_store_port import DocumentStorePort
from ..ports.page_extractor_port import PageTextExtractorPort
from ..ports.telemetry_port import NoopTelemetry, TelemetryPort
from ..services.content_generation import McqGenerator, TranscriptGenerator
from ..services.embedder import Embedder
from ..services.page_results import PageResultStore
from ..services.retrieval import Retrieval
from ..services.run_locks import DocumentRunLocks
from ..services.vector_store import VectorStore

logger = logging.getLogger(__name__)


@dataclass
class ProcessDocument:
    extractor: PageTextExtractorPort
    embedder: Embedder
    vectors: VectorStore
    documents: DocumentStorePort
    retrieval: Retrieval
    transcripts: TranscriptGenerator
    mcqs: McqGenerator
    results: PageResultStore
    clock: ClockPort
    locks: DocumentRunLocks = field(default_factory=DocumentRunLocks)
    telemetry: TelemetryPort = field(default_factory=NoopTelemetry)
    chunking: ChunkingParams = field(default_factory=ChunkingParams)
    store_full_text_vector: bool = True
    max_concurrent_runs: int = 2
    _executor: ThreadPoolExecutor | None = field(default=None, init=False, repr=False)
    _executor_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    # ---------- entry points ----------

    def execute(self, req: ProcessDocumentRequest) -> RunReport:
        """Run the whole pipeline synchronously; never raises."""
        started = self.clock.now()
        with self.locks.hold(req.filename):
            # id erst unter dem Lock vergeben: höhere id schreibt immer zuletzt
            report = RunReport(run_id=self.locks.next_run_id(), filename=req.filename)
            logger.info("Run %d started for: %s", report.run_id, req.filename)
            try:
                self._run(req, report)
            except Exception as ex:  # noqa: BLE001
                self.telemetry.incr("runs_failed", {"step": report.state.value})
                report.state = RunState.FAILED
                report.error = str(ex)
                logger.error("Run %d for %s failed: %s", report.run_id, req.filename, ex)
        elapsed = (self.clock.now() - started).total_seconds()
        self.telemetry.observe("run_seconds", elapsed, {"state": report.state.value})
        return report

    def schedule(self, req: ProcessDocumentRequest) -> Future[RunReport]:
        """Fire-and-forget: hand the run to a bounded worker pool."""
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_concurrent_runs, thread_name_prefix="pdf-tutor-run"
                )
            return self._executor.submit(self.execute, req)

    def shutdown(self, wait: bool = True) -> None:
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=wait)
                self._executor = None

    # ---------- steps ----------

    def _run(self, req: ProcessDocumentRequest, report: RunReport) -> None:
        # 1) Seitentext extrahieren
        report.state = RunState.EXTRACTING
        extracted = self.extractor.extract(req.content)
        pages = list(extracted.pages)
        logger.info("Extracted %d pages from: %s", len(pages), req.filename)

        # 2) Chunken (pure Domain)
        report.state = RunState.CHUNKING
        document = build_chunked_document(req.filename, pages, self.chunking)
        report.total_pages = document.total_pages
        logger.info("Created %d chunks for: %s", document.total_chunks, req.filename)

        # 3) Embeddings (best effort pro Seite)
        report.state = RunState.EMBEDDING
        page_vectors = self.embedder.embed_pages(document.page_chunks)
        report.embedded_pages = sorted(page_vectors)
        report.skipped_pages = [p for p in document.page_numbers if p not in page_vectors]
        if report.skipped_pages:
            for _ in report.skipped_pages:
                self.telemetry.incr("embedding_pages_skipped")
            logger.warning("Skipped embedding for pages %s of %s", report.skipped_pages, req.filename)
        full_vector = self._embed_full_text(document) if self.store_full_text_vector else None

        # 4) Persistenz (Fehler nur loggen, kein Rollback)
        report.state = RunState.STORING
        self._store(document, page_vectors, full_vector)

        # 5) Inhalte pro Seite generieren
        report.state = RunState.GENERATING
        goal_vectors = self._goal_vectors(document, pages)
        transcripts: dict[int, str] = {}
        mcqs: dict[int, list[McqQuestion]] = {}
        for page in document.page_numbers:
            report.current_page = page
            page_text = pages[page - 1]
            context = self._context(req.filename, page, page_text, self.transcripts, goal_vectors)
            transcript = self.transcripts.generate(page_text, page, context)
            context = self._context(req.filename, page, page_text, self.mcqs, goal_vectors)
            questions = self.mcqs.generate(page_text, page, context)
            transcripts[page] = transcript.value
            mcqs[page] = questions.value
            self.telemetry.incr("pages_generated")
            if not (transcript.generated and questions.generated):
                report.fallback_pages.append(page)
                self.telemetry.incr("content_fallbacks")

        # 6) Ergebnisse schreiben; StorageError beendet den Lauf als failed
        self.results.save_transcripts(req.filename, transcripts)
        self.results.save_mcqs(req.filename, mcqs)
        report.current_page = None
        report.state = RunState.DONE
        logger.info(
            "Run %d done for %s: %d pages, %d with fallback content",
            report.run_id,
            req.filename,
            document.total_pages,
            len(report.fallback_pages),
        )

    def _embed_full_text(self, document: ChunkedDocument) -> EmbeddingVector | None:
        try:
            return self.embedder.embed_full_text(document.full_text)
        except DomainError as ex:
            logger.error("Failed to embed full text of %s: %s", document.id, ex)
            return None

    def _store(
        self,
        document: ChunkedDocument,
        page_vectors: dict[int, EmbeddingVector],
        full_vector: EmbeddingVector | None,
    ) -> None:
        try:
            previous = self.documents.get(document.id)
        except DomainError as ex:
            logger.error("Failed to read previous version of %s: %s", document.id, ex)
            previous = None
        try:
            self.documents.store(document)
            logger.info("Stored chunked document: %s", document.id)
        except DomainError as ex:
            logger.error("Failed to store chunked document %s: %s", document.id, ex)
        try:
            if page_vectors:
                self.vectors.upsert_page_vectors(document.id, page_vectors)
            if full_vector is not None:
                self.vectors.upsert_full_text_vector(document.id, full_vector)
            if previous is not None:
                stale = set(previous.page_numbers) - set(page_vectors)
                self.vectors.delete_page_vectors(document.id, stale)
        except DomainError as ex:
            logger.error("Failed to store vectors for %s: %s", document.id, ex)

    def _goal_vectors(
        self, document: ChunkedDocument, pages: list[str]
    ) -> dict[str, EmbeddingVector]:
        """One query vector per generator goal and run, only if some page will use it."""
        goals = [
            generator.goal
            for generator in (self.transcripts, self.mcqs)
            if any(generator.accepts(pages[p - 1]) for p in document.page_numbers)
        ]
        return self.embedder.embed_texts(goals)

    def _context(
        self,
        filename: str,
        page: int,
        page_text: str,
        generator: TranscriptGenerator | McqGenerator,
        goal_vectors: dict[str, EmbeddingVector],
    ) -> AugmentedPromptData | None:
        vector = goal_vectors.get(generator.goal)
        if vector is None or not generator.accepts(page_text):
            return None
        try:
            return self.retrieval.for_page(filename, page, generator.goal, query_vector=vector)
        except Exception as ex:  # noqa: BLE001
            logger.warning("No retrieval context for page %d of %s: %s", page, filename, ex)
            return None
