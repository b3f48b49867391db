from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import JSONResponse

from src.search import SearchService, SearchServiceConfig
from src.vectorstore.config import CONFIG_FILE_PATH, dataset_path, embedding_timeout, load_config
from src.vectorstore.data_store import DatasetStore
from src.vectorstore.embeddings import Embedder, EmbeddingProvider

from .routers.dataset import router as dataset_router
from .routers.search import router as search_router


# Configure logging
logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


"""
FastAPI application

Note on OpenAPI/Swagger docs:
Some recent combinations of FastAPI/Starlette serve the OpenAPI schema with
the vendor media type "application/vnd.oai.openapi+json". In certain client
environments (or with strict Accept headers), this can cause a 406 Not
Acceptable when the Swagger UI tries to fetch /openapi.json.

To avoid that, we disable the auto-registered OpenAPI/docs routes and add
explicit JSONResponse-based endpoints for the schema and Swagger UI.
"""


def _base_path() -> str:
    """Optional deployment sub-path (e.g. https://example.com/term-suggest/...)."""
    base = os.getenv("API_BASE_PATH", "").strip()
    if base and not base.startswith("/"):
        base = "/" + base
    if base.endswith("/") and base != "/":
        base = base.rstrip("/")
    return base


def create_app(
    store: Optional[DatasetStore] = None,
    embedder: Optional[EmbeddingProvider] = None,
    config: Optional[SearchServiceConfig] = None,
) -> FastAPI:
    """Build the API. Store/embedder are created from config.yaml unless injected.

    The dataset is loaded during lifespan startup; a SchemaError propagates and
    aborts startup so the server never serves a partial store.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            cfg = load_config(CONFIG_FILE_PATH)
        except FileNotFoundError:
            cfg = {}

        dataset_store = store or DatasetStore()
        dataset_store.load(dataset_path(cfg))

        provider = embedder or Embedder(config=cfg)
        provider_dim = getattr(provider, "dim", None)
        if provider_dim and provider_dim != dataset_store.dimensions:
            logger.warning(
                "Embedding provider dimension %s does not match dataset dimension %s; "
                "scores will degrade to 0.",
                provider_dim,
                dataset_store.dimensions,
            )

        service_config = config or SearchServiceConfig(
            embedding_timeout_sec=embedding_timeout(cfg)
        )
        app.state.store = dataset_store
        app.state.search_service = SearchService(
            store=dataset_store, embedder=provider, config=service_config
        )
        logger.info("Serving %d entries", dataset_store.count())
        yield

    base_path = _base_path()

    # Disable built-in docs/openapi routes; we provide explicit JSON-based ones
    app = FastAPI(
        title="Term suggestion API",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        root_path=base_path,
    )

    # CORS: allow browser apps hosted on other origins to call this API.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(search_router)
    app.include_router(dataset_router)

    @app.get("/health", tags=["ops"], summary="Health check")
    async def health():
        return {"status": "ok"}

    def _with_servers(base: str | None):
        """Return OpenAPI schema optionally annotated with servers -> [{url: base}]."""
        schema = app.openapi()
        if base and base != "/":
            # FastAPI caches app.openapi(); copy instead of mutating it
            schema = {**schema, "servers": [{"url": base}]}
        return schema

    # Explicit OpenAPI JSON (forces application/json, avoids 406 with strict Accept)
    @app.get("/openapi.json", include_in_schema=False)
    def openapi_json():
        return JSONResponse(_with_servers(base_path or None))

    # Relative openapi_url so the UI works behind a sub-path reverse proxy.
    @app.get("/docs", include_in_schema=False)
    def swagger_ui():
        return get_swagger_ui_html(openapi_url="openapi.json", title="API Docs")

    return app


# Entry point for `uvicorn src.api.app:app`
app = create_app()
