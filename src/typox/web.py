"""
Typox HTTP host

FastAPI app exposing the plugin operations over HTTP for hosts that
cannot call the plugin in-process. Responses carry the plugin payloads
unchanged and always use status 200, so the ``ERROR: `` prefix stays the
only error signal, exactly as across the in-process boundary.
"""

from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field

from typox import __version__
from typox.plugin import TypoxPlugin, is_error

TEXT = "text/plain; charset=utf-8"
JSON = "application/json"


class SPARQLQueryRequest(BaseModel):
    """SPARQL query against a named store."""
    query: str = Field(..., description="SPARQL query string")


def _reply(payload: bytes, media_type: str = TEXT) -> Response:
    if is_error(payload):
        media_type = TEXT
    return Response(content=payload, media_type=media_type)


def create_plugin_router(plugin: TypoxPlugin) -> APIRouter:
    """
    Create the store API router.

    Args:
        plugin: Plugin instance whose registry backs every route

    Returns:
        APIRouter mounted under /stores
    """
    router = APIRouter(prefix="/stores", tags=["Stores"])

    @router.get("")
    async def list_stores():
        """List all store names."""
        return _reply(plugin.list_stores(), JSON)

    @router.get("/{name}/size")
    async def store_size(name: str):
        """Number of triples in a store."""
        return _reply(plugin.get_store_size(name.encode("utf-8")))

    @router.delete("/{name}")
    async def clear_store(name: str):
        """Remove all triples from a store."""
        return _reply(plugin.clear_store(name.encode("utf-8")))

    # =========================================================================
    # Loading (raw request body)
    # =========================================================================

    @router.post("/{name}/turtle")
    async def load_turtle(name: str, request: Request):
        return _reply(plugin.load_turtle(name.encode("utf-8"), await request.body()))

    @router.post("/{name}/rdf-xml")
    async def load_rdf_xml(name: str, request: Request):
        return _reply(plugin.load_rdf_xml(name.encode("utf-8"), await request.body()))

    @router.post("/{name}/ntriples")
    async def load_ntriples(name: str, request: Request):
        return _reply(plugin.load_ntriples(name.encode("utf-8"), await request.body()))

    # =========================================================================
    # Queries
    # =========================================================================

    @router.post("/{name}/query")
    async def query(name: str, request: SPARQLQueryRequest):
        """SELECT query; JSON array of row objects."""
        return _reply(plugin.query(name.encode("utf-8"), request.query.encode("utf-8")), JSON)

    @router.post("/{name}/construct")
    async def query_construct(name: str, request: SPARQLQueryRequest):
        """CONSTRUCT query; Turtle text."""
        payload = plugin.query_construct(name.encode("utf-8"), request.query.encode("utf-8"))
        return _reply(payload, "text/turtle; charset=utf-8")

    @router.post("/{name}/ask")
    async def query_ask(name: str, request: SPARQLQueryRequest):
        """ASK query; "true" or "false"."""
        return _reply(plugin.query_ask(name.encode("utf-8"), request.query.encode("utf-8")))

    return router


def create_app(plugin: Optional[TypoxPlugin] = None) -> FastAPI:
    """Create the FastAPI application."""
    plugin = plugin or TypoxPlugin()
    app = FastAPI(
        title="Typox",
        description="Named Oxigraph stores with typed SPARQL results",
        version=__version__,
    )
    app.state.plugin = plugin
    app.include_router(create_plugin_router(plugin))

    @app.get("/health")
    async def health():
        return {"status": "ok", "stores": len(plugin.registry)}

    return app
