from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field


router = APIRouter(prefix="/dataset", tags=["dataset"])


class DatasetInfo(BaseModel):
    version: int | None = Field(None, description="Snapshot format version")
    model: str = Field("", description="Embedding model the snapshot was built with")
    dimensions: int = Field(..., description="Embedding dimension D")
    entries: int = Field(..., description="Number of loaded entries")
    generated_at: datetime | None = Field(
        None, alias="generatedAt", description="When the snapshot was generated"
    )
    source: str | None = Field(None, description="Where the snapshot was loaded from")

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())


@router.get(
    "",
    summary="Describe the loaded dataset snapshot",
    response_model=DatasetInfo,
    response_model_by_alias=True,
)
async def dataset_info(request: Request) -> DatasetInfo:
    store = getattr(request.app.state, "store", None)
    if store is None or not store.is_loaded:
        raise HTTPException(status_code=503, detail="Dataset not loaded")
    return DatasetInfo(
        version=store.version,
        model=store.model,
        dimensions=store.dimensions,
        entries=store.count(),
        generated_at=store.generated_at,
        source=store.source,
    )
