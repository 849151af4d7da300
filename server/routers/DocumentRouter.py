from fastapi import APIRouter, BackgroundTasks, File, HTTPException, Request, UploadFile, status

from server.models.responses import AcceptedResponse, DocumentResponse
from shared.models.document import ProcessingStatus
from shared.models.errors import DocumentNotFoundError, PipelineError
from shared.models.search import DocumentContent

MAX_UPLOAD_BYTES = 10 * 1024 * 1024

router = APIRouter(tags=["documents"])


@router.post("/transactions/{transaction_id}/documents", status_code=status.HTTP_201_CREATED)
async def upload_document(
    request: Request,
    transaction_id: str,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
) -> DocumentResponse:
    """Store an uploaded file for a transaction and schedule its ingestion.

    Args:
        request (Request): FastAPI request (provides app.state.ingestion_service).
        transaction_id (str): Transaction the file belongs to.
        background_tasks (BackgroundTasks): FastAPI background task queue.
        file (UploadFile): The uploaded file, at most 10 MB.

    Returns:
        DocumentResponse: The new document in status "pending".
    """
    data = await file.read(MAX_UPLOAD_BYTES + 1)
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File exceeds the 10 MB upload limit")
    if not data:
        raise HTTPException(status_code=400, detail="File is empty")

    ingestion_service = request.app.state.ingestion_service
    document = await ingestion_service.register_upload(transaction_id, file.filename or "upload", data)
    background_tasks.add_task(ingestion_service.process_document, document.id)
    return DocumentResponse.from_document(document)


@router.get("/transactions/{transaction_id}/documents")
async def list_documents(request: Request, transaction_id: str) -> list[DocumentResponse]:
    documents = await request.app.state.repository.do_list_documents(transaction_id)
    return [DocumentResponse.from_document(d) for d in documents]


@router.get("/documents/{document_id}")
async def get_document(request: Request, document_id: str) -> DocumentResponse:
    """Status, category and failure reason of a document."""
    document = await request.app.state.repository.do_get_document(document_id)
    if document is None:
        raise HTTPException(status_code=404, detail=f"Document not found: {document_id}")
    return DocumentResponse.from_document(document)


@router.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(request: Request, document_id: str) -> None:
    try:
        await request.app.state.ingestion_service.delete_document(document_id)
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PipelineError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.post("/documents/{document_id}/reingest", status_code=status.HTTP_202_ACCEPTED)
async def reingest_document(
    request: Request,
    document_id: str,
    background_tasks: BackgroundTasks,
    force: bool = False,
) -> AcceptedResponse:
    """Run ingestion again in the background.

    A document that is still "processing" is refused with 409 unless force
    is set, which re-drives a run that stalled after a crash.
    """
    document = await request.app.state.repository.do_get_document(document_id)
    if document is None:
        raise HTTPException(status_code=404, detail=f"Document not found: {document_id}")
    if document.status is ProcessingStatus.PROCESSING and not force:
        raise HTTPException(status_code=409, detail=f"Document is being processed: {document_id}")
    background_tasks.add_task(request.app.state.ingestion_service.reingest_document, document_id, force=force)
    return AcceptedResponse(status="accepted", document_id=document_id)


@router.get("/documents/{document_id}/content")
async def get_document_content(request: Request, document_id: str) -> DocumentContent:
    try:
        return await request.app.state.retrieval_service.fetch_full_content(document_id)
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=f"Stored file of document {document_id} is missing") from exc
