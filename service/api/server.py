"""FastAPI server for the CTS text service.

Maps the CITE microservice routes onto TextService calls. Every route
answers with a JSON envelope carrying ``status`` "Success" or
"Exception"; resolution failures are never HTTP errors.

Usage:
    CITESERVE_CONFIG=config.json PYTHONPATH=src uvicorn service.api.server:app --port 8000
"""
from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, TypeVar

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

# Add src to path so citeserve imports work without an install
_src = Path(__file__).resolve().parents[2] / "src"
if str(_src) not in sys.path:
    sys.path.insert(0, str(_src))

from citeserve.config import ServiceConfig, config_from_env  # noqa: E402
from citeserve.service import TextService  # noqa: E402

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Globals
#
# The service holds only immutable configuration and a stateless fetcher, so
# blocking calls are safe to run concurrently in worker threads.
# ---------------------------------------------------------------------------
_service: TextService | None = None

_ERROR_MESSAGE = (
    "Error encountered. Please contact development team and send in current logfile!"
)


def _get_service() -> TextService:
    """Get the text service, raising 503 if startup did not configure it."""
    if _service is None:
        raise HTTPException(status_code=503, detail="Text service not configured.")
    return _service


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _service  # noqa: PLW0603
    config: ServiceConfig = app.state.config
    log.info(
        "Starting text service (default source: %s, match mode: %s)",
        config.test_cex_source or "<none>",
        config.match_mode,
    )
    _service = TextService(config)
    yield
    log.info("Shutting down text service")
    _service = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------

class _Envelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str
    service: str
    message: str | None = None


class NodeModel(BaseModel):
    urn: str
    text: str | None = None
    previous: str | None = None
    next: str | None = None
    sequence: int


class NodeResponse(_Envelope):
    request_urn: str | None = Field(default=None, alias="requestUrn")
    nodes: list[NodeModel] = Field(default_factory=list)


class UrnResponse(_Envelope):
    request_urn: str | None = Field(default=None, alias="requestUrn")
    urns: list[str] = Field(default_factory=list)


class CatalogResponse(_Envelope):
    urns: list[str] = Field(default_factory=list)


class VersionResponse(_Envelope):
    version: str


class CiteVersionResponse(_Envelope):
    versions: dict[str, str]


M = TypeVar("M", bound=BaseModel)


_MODEL_OPTS: dict[str, Any] = {"response_model_exclude_none": True}


async def _call(model: type[M], fn: Callable[..., Any], *args: Any) -> M:
    """Run a blocking service call off the event loop and wrap its result."""
    result = await asyncio.to_thread(fn, *args)
    return model.model_validate(result.to_dict())


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

def create_app(config: ServiceConfig | None = None) -> FastAPI:
    """Build the FastAPI app. CORS origins come from ``config`` (or env)."""
    config = config or config_from_env()
    app = FastAPI(
        title="CTS Text Service",
        version="1.1.0",
        description="CITE-style text retrieval over CEX sources",
        lifespan=lifespan,
    )
    app.state.config = config
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.allowed_origins),
        allow_methods=["GET", "HEAD", "POST", "PUT", "OPTIONS"],
        allow_headers=["X-Requested-With", "Content-Type"],
    )

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        log.exception("Error encountered on %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={"status": "Exception", "service": request.url.path, "message": _ERROR_MESSAGE},
        )

    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:
    # Registration order matters: fixed paths before ``{urn}`` catch-alls.

    @app.get("/cite", response_model=CiteVersionResponse, **_MODEL_OPTS)
    async def cite_version() -> CiteVersionResponse:
        return CiteVersionResponse.model_validate(_get_service().cite_version().to_dict())

    @app.get("/texts", response_model=UrnResponse, **_MODEL_OPTS)
    async def texts() -> UrnResponse:
        return await _call(UrnResponse, _get_service().work_urns, None)

    @app.get("/texts/version", response_model=VersionResponse, **_MODEL_OPTS)
    async def texts_version() -> VersionResponse:
        return VersionResponse.model_validate(_get_service().texts_version().to_dict())

    @app.get("/catalog", response_model=CatalogResponse, **_MODEL_OPTS)
    async def catalog() -> CatalogResponse:
        return await _call(CatalogResponse, _get_service().catalog, None, None)

    @app.get("/texts/first/{urn}", response_model=NodeResponse, **_MODEL_OPTS)
    async def first(urn: str) -> NodeResponse:
        return await _call(NodeResponse, _get_service().first, urn, None)

    @app.get("/texts/last/{urn}", response_model=NodeResponse, **_MODEL_OPTS)
    async def last(urn: str) -> NodeResponse:
        return await _call(NodeResponse, _get_service().last, urn, None)

    @app.get("/texts/previous/{urn}", response_model=NodeResponse, **_MODEL_OPTS)
    async def previous(urn: str) -> NodeResponse:
        return await _call(NodeResponse, _get_service().previous, urn, None)

    @app.get("/texts/next/{urn}", response_model=NodeResponse, **_MODEL_OPTS)
    async def next_(urn: str) -> NodeResponse:
        return await _call(NodeResponse, _get_service().next, urn, None)

    @app.get("/texts/urns/{urn}", response_model=UrnResponse, **_MODEL_OPTS)
    async def urns(urn: str) -> UrnResponse:
        return await _call(UrnResponse, _get_service().urns, urn, None)

    @app.get("/catalog/{urn}", response_model=CatalogResponse, **_MODEL_OPTS)
    async def catalog_urn(urn: str) -> CatalogResponse:
        return await _call(CatalogResponse, _get_service().catalog, urn, None)

    @app.get("/texts/{urn}", response_model=NodeResponse, **_MODEL_OPTS)
    async def passage(urn: str) -> NodeResponse:
        return await _call(NodeResponse, _get_service().passage, urn, None)

    # Named-source variants: /{cex}/... reads <cex_source><cex>.cex

    @app.get("/{cex}/texts", response_model=UrnResponse, **_MODEL_OPTS)
    async def cex_texts(cex: str) -> UrnResponse:
        return await _call(UrnResponse, _get_service().work_urns, cex)

    @app.get("/{cex}/catalog", response_model=CatalogResponse, **_MODEL_OPTS)
    async def cex_catalog(cex: str) -> CatalogResponse:
        return await _call(CatalogResponse, _get_service().catalog, None, cex)

    @app.get("/{cex}/texts/first/{urn}", response_model=NodeResponse, **_MODEL_OPTS)
    async def cex_first(cex: str, urn: str) -> NodeResponse:
        return await _call(NodeResponse, _get_service().first, urn, cex)

    @app.get("/{cex}/texts/last/{urn}", response_model=NodeResponse, **_MODEL_OPTS)
    async def cex_last(cex: str, urn: str) -> NodeResponse:
        return await _call(NodeResponse, _get_service().last, urn, cex)

    @app.get("/{cex}/texts/previous/{urn}", response_model=NodeResponse, **_MODEL_OPTS)
    async def cex_previous(cex: str, urn: str) -> NodeResponse:
        return await _call(NodeResponse, _get_service().previous, urn, cex)

    @app.get("/{cex}/texts/next/{urn}", response_model=NodeResponse, **_MODEL_OPTS)
    async def cex_next(cex: str, urn: str) -> NodeResponse:
        return await _call(NodeResponse, _get_service().next, urn, cex)

    @app.get("/{cex}/texts/urns/{urn}", response_model=UrnResponse, **_MODEL_OPTS)
    async def cex_urns(cex: str, urn: str) -> UrnResponse:
        return await _call(UrnResponse, _get_service().urns, urn, cex)

    @app.get("/{cex}/catalog/{urn}", response_model=CatalogResponse, **_MODEL_OPTS)
    async def cex_catalog_urn(cex: str, urn: str) -> CatalogResponse:
        return await _call(CatalogResponse, _get_service().catalog, urn, cex)

    @app.get("/{cex}/texts/{urn}", response_model=NodeResponse, **_MODEL_OPTS)
    async def cex_passage(cex: str, urn: str) -> NodeResponse:
        return await _call(NodeResponse, _get_service().passage, urn, cex)

    @app.get("/", response_model=CiteVersionResponse, **_MODEL_OPTS)
    async def root() -> CiteVersionResponse:
        return CiteVersionResponse.model_validate(_get_service().cite_version().to_dict())


app = create_app()
