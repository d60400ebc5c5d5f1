"""Search endpoint."""

import logging

from fastapi import APIRouter, Depends

from ...domain.models.search import SearchRequest, SearchResponse
from ...domain.services.retrieval_service import RetrievalService
from ...infrastructure.dependencies import get_retrieval_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["search"])


@router.post("/search", response_model=SearchResponse)
async def search(
    request: SearchRequest,
    service: RetrievalService = Depends(get_retrieval_service),
) -> SearchResponse:
    """Search contributed insights by meaning, keywords, or both.

    Args:
        request: Question, filters and search options

    Returns:
        Ranked results with related domains and trust framing
    """
    return await service.search(request)
