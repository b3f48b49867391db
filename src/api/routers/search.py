from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from src.search import (
    NotLoadedError,
    ProviderError,
    SearchService,
    ValidationError,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["search"])


class SuggestTermsRequest(BaseModel):
    query: str = Field(..., description="Free-text query; must be non-empty after trimming.")
    top_k: int = Field(
        5,
        alias="topK",
        description="Number of results to return (>= 1). Values above the dataset size are clamped.",
    )

    model_config = ConfigDict(populate_by_name=True)


class SuggestionItem(BaseModel):
    text: str = Field(..., description="Catalog entry text (e.g. the dictionary word).")
    category: str = Field("", description="Entry category (e.g. part of speech).")
    description: str = Field("", description="Entry description (e.g. the meaning).")
    score: float = Field(..., description="Cosine similarity, nominally in [-1, 1].")


class SuggestTermsResponse(BaseModel):
    query: str = Field(..., description="The trimmed query text.")
    results: List[SuggestionItem] = Field(default_factory=list)
    elapsed_ms: int = Field(..., alias="elapsedMs", description="Embed + search wall-clock time.")

    model_config = ConfigDict(populate_by_name=True)


class StatusResponse(BaseModel):
    status: str
    entries: int = Field(..., description="Number of loaded catalog entries.")


def get_search_service(request: Request) -> SearchService:
    service = getattr(request.app.state, "search_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Search service is not ready")
    return service


@router.post(
    "/suggest-terms",
    summary="Suggest catalog entries for a free-text query",
    response_model=SuggestTermsResponse,
    response_model_by_alias=True,
)
async def suggest_terms(
    request: SuggestTermsRequest,
    service: SearchService = Depends(get_search_service),
) -> SuggestTermsResponse:
    try:
        result = await service.asuggest(request.query, top_k=request.top_k)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except NotLoadedError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except ProviderError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Error in /api/suggest-terms")
        raise HTTPException(status_code=500, detail=f"Search failed: {exc}") from exc

    return SuggestTermsResponse(
        query=result.query,
        results=[SuggestionItem(**item.to_dict()) for item in result.results],
        elapsed_ms=result.elapsed_ms,
    )


@router.get("/status", summary="Service status", response_model=StatusResponse)
async def status(service: SearchService = Depends(get_search_service)) -> StatusResponse:
    return StatusResponse(status="ok", entries=service.store.count())
