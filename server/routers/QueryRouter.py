from fastapi import APIRouter, HTTPException, Request

from server.models.responses import CategoryStatsResponse
from shared.models.errors import PipelineError
from shared.models.search import SearchRequest, SearchResponse

router = APIRouter(tags=["query"])


@router.post("/search")
async def search_documents(request: Request, body: SearchRequest) -> SearchResponse:
    """Execute a semantic search over indexed document chunks.

    Args:
        request (Request): FastAPI request (provides app.state.retrieval_service).
        body (SearchRequest): JSON body with query, optional filters and limit.

    Returns:
        SearchResponse: Matching chunk previews, highest score first.
    """
    retrieval_service = request.app.state.retrieval_service
    try:
        return await retrieval_service.search(body.query, filters=body.filters, limit=body.limit)
    except PipelineError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.get("/stats/categories")
async def category_stats(request: Request) -> CategoryStatsResponse:
    counts = await request.app.state.retrieval_service.count_documents_by_category()
    return CategoryStatsResponse(counts=counts, total=sum(counts.values()))
