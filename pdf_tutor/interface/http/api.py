"""HTTP API: upload a PDF, poll per-page transcripts/MCQs, delete a document.

Konsumierbare API ohne Business-Logik; pure Delegation an die Use Cases.
"""

from __future__ import annotations

import logging
from typing import Any

try:
    from fastapi import BackgroundTasks, FastAPI, File, HTTPException, UploadFile
    from pydantic import BaseModel
except ImportError as err:
    raise ImportError("FastAPI not installed. Install with: pip install 'pdf-tutor[http]'") from err

from pdf_tutor.application.dto.process_dto import ProcessDocumentRequest
from pdf_tutor.config.compose import Container
from pdf_tutor.domain.errors import DomainError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPES = frozenset({"application/pdf", "application/x-pdf"})


class UploadResponseModel(BaseModel):
    status: str
    filename: str
    message: str


class TranscriptResponseModel(BaseModel):
    filename: str
    page: int
    transcript: str


class McqResponseModel(BaseModel):
    filename: str
    page: int
    mcqs: list[dict[str, Any]]


class DeleteResponseModel(BaseModel):
    status: str
    filename: str
    deleted_vectors: int


def _http_error(ex: DomainError) -> HTTPException:
    if isinstance(ex, ValidationError):
        return HTTPException(status_code=400, detail=str(ex))
    if isinstance(ex, NotFoundError):
        return HTTPException(status_code=404, detail=str(ex))
    logger.error("Request failed: %s", ex)
    return HTTPException(status_code=500, detail=f"Internal error: {ex}")


def create_app(container: Container | None = None) -> FastAPI:
    app = FastAPI(title="PDF Tutor API", version="1.0.0")
    app.state.container = container or Container()

    def _container() -> Container:
        return app.state.container

    @app.post("/v1/documents", response_model=UploadResponseModel, status_code=202)
    async def upload(
        background_tasks: BackgroundTasks, file: UploadFile = File(...)
    ) -> UploadResponseModel:
        """Accept a PDF and process it in the background.

        Clients poll the per-page endpoints; they answer 404 until the run
        has written its results.
        """
        filename = file.filename or ""
        if file.content_type not in PDF_CONTENT_TYPES and not filename.lower().endswith(".pdf"):
            raise HTTPException(status_code=400, detail="Only PDF files are allowed")
        content = await file.read()
        limit = _container().settings.max_upload_mb * 1024 * 1024
        if len(content) > limit:
            raise HTTPException(status_code=413, detail="File too large")
        if not content:
            raise HTTPException(status_code=400, detail="Empty upload")
        try:
            req = ProcessDocumentRequest(filename=filename, content=content)
        except ValidationError as ex:
            raise _http_error(ex) from ex

        background_tasks.add_task(_container().get_process_document().execute, req)
        logger.info("Accepted upload: %s (%d bytes)", filename, len(content))
        return UploadResponseModel(
            status="accepted",
            filename=filename,
            message="Document accepted; transcripts and MCQs are being generated",
        )

    @app.get(
        "/v1/documents/{filename}/transcripts/{page}", response_model=TranscriptResponseModel
    )
    def get_transcript(filename: str, page: int) -> TranscriptResponseModel:
        try:
            text = _container().get_page_content().transcript(filename, page)
        except DomainError as ex:
            raise _http_error(ex) from ex
        return TranscriptResponseModel(filename=filename, page=page, transcript=text)

    @app.get("/v1/documents/{filename}/mcqs/{page}", response_model=McqResponseModel)
    def get_mcqs(filename: str, page: int) -> McqResponseModel:
        try:
            mcqs = _container().get_page_content().mcqs(filename, page)
        except DomainError as ex:
            raise _http_error(ex) from ex
        return McqResponseModel(filename=filename, page=page, mcqs=mcqs)

    @app.delete("/v1/documents/{filename}", response_model=DeleteResponseModel)
    def delete_document(filename: str) -> DeleteResponseModel:
        try:
            result = _container().get_delete_document().execute(filename)
        except DomainError as ex:
            raise _http_error(ex) from ex
        return DeleteResponseModel(
            status="deleted", filename=filename, deleted_vectors=len(result.vector_ids)
        )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "healthy", "service": "pdf-tutor"}

    return app


app = create_app()
