from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...domain.search_models import SearchRequest, SearchResponse
from ...services.search_service import SearchService
from ..dependencies import get_search_service


logger = logging.getLogger("ideacrafter.search")

router = APIRouter(tags=["search"])


@router.post("/search-web", response_model=SearchResponse)
def search_web(req: SearchRequest, service: SearchService = Depends(get_search_service)):
    try:
        return service.search(req)
    except Exception:
        logger.exception("Search API error")
        return JSONResponse(status_code=500, content={"success": False, "error": "Search failed"})
