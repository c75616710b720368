"""
Query dispatch for Typox.

Routes a query either to a local Oxigraph store (a registry name or a
store directory) or to a remote SPARQL endpoint, depending on the scheme
of the store reference, then checks the result shape against the entry
point that was called and projects row sets into JSON-ready objects.

Handles:
- Local execution through a pluggable LocalExecutor
- Remote execution through HTTP POST (sync and async)
- Result shape verification (SELECT / ASK / CONSTRUCT)
- Empty result policy (error for the CLI, valid for the plugin)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from pyoxigraph import RdfFormat, Store, serialize

from typox.config import EmptyResultPolicy, RemoteConfig
from typox.errors import (
    InvalidInputError,
    NoResultsError,
    ParseFailureError,
    RemoteQueryError,
    StoreNotFoundError,
    TypoxError,
)
from typox.prefixes import build_prefix_table
from typox.projection import BindingTerm, TermProjector
from typox.registry import StoreRegistry
from typox.results import QueryResult, ResultShape

logger = logging.getLogger(__name__)

SPARQL_RESULTS_JSON = "application/sparql-results+json"


def is_remote(store_ref: str) -> bool:
    """True if the reference is an http:// or https:// endpoint URL."""
    lowered = store_ref.lower()
    return lowered.startswith("http://") or lowered.startswith("https://")


# =============================================================================
# Local execution
# =============================================================================

class LocalExecutor(ABC):
    """Runs a query against a local store resolved from a reference."""

    @abstractmethod
    def open(self, store_ref: str) -> Store:
        """Resolve a reference to an open store."""
        pass

    def execute(self, store_ref: str, query: str) -> QueryResult:
        store = self.open(store_ref)
        try:
            results = store.query(query)
            return QueryResult.from_engine(results, source=store_ref)
        except SyntaxError as e:
            raise ParseFailureError(f"SPARQL query execution failed: {e}") from e
        except (OSError, ValueError) as e:
            raise TypoxError(f"SPARQL query execution failed on store '{store_ref}': {e}") from e


class RegistryExecutor(LocalExecutor):
    """Resolves references as names in a StoreRegistry."""

    def __init__(self, registry: StoreRegistry):
        self.registry = registry

    def open(self, store_ref: str) -> Store:
        return self.registry.get(store_ref)


class PathExecutor(LocalExecutor):
    """Resolves references as persistent store directories."""

    def open(self, store_ref: str) -> Store:
        path = Path(store_ref)
        if not path.exists():
            raise StoreNotFoundError(store_ref, f"Store path does not exist: {store_ref}")
        try:
            return Store(str(path))
        except OSError as e:
            raise TypoxError(f"Failed to open store at: {store_ref}: {e}") from e


# =============================================================================
# Remote execution
# =============================================================================

def binding_to_term(value: Dict[str, Any]) -> BindingTerm:
    """Convert one SPARQL JSON results binding into a BindingTerm."""
    kind = value.get("type")
    lexical = value.get("value")
    if not isinstance(lexical, str):
        raise ValueError(f"binding has no string value: {value!r}")

    if kind in ("uri", "bnode"):
        return BindingTerm(kind, lexical)
    if kind in ("literal", "typed-literal"):
        return BindingTerm(
            "literal",
            lexical,
            datatype=value.get("datatype") or None,
            language=value.get("xml:lang") or None,
        )
    raise ValueError(f"unsupported binding type: {kind!r}")


class RemoteExecutor:
    """
    Executes SELECT queries against a remote SPARQL endpoint.

    Each call issues a single POST with the query as a form field and
    maps ``results.bindings`` into row-set solutions.
    """

    def __init__(
        self,
        config: Optional[RemoteConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or RemoteConfig()
        self._transport = transport
        self._async_transport = async_transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": SPARQL_RESULTS_JSON}
        headers.update(self.config.headers)
        return headers

    def execute(self, endpoint: str, query: str) -> QueryResult:
        logger.debug(f"POST query to {endpoint}")
        try:
            with httpx.Client(timeout=self.config.timeout_seconds, transport=self._transport) as client:
                response = client.post(endpoint, data={"query": query}, headers=self._headers())
        except httpx.HTTPError as e:
            raise RemoteQueryError(endpoint, f"Request failed: {e}") from e
        return self.parse_response(endpoint, response)

    async def execute_async(self, endpoint: str, query: str) -> QueryResult:
        """Async version of execute."""
        logger.debug(f"POST query to {endpoint} (async)")
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                transport=self._async_transport,
            ) as client:
                response = await client.post(endpoint, data={"query": query}, headers=self._headers())
        except httpx.HTTPError as e:
            raise RemoteQueryError(endpoint, f"Request failed: {e}") from e
        return self.parse_response(endpoint, response)

    @staticmethod
    def parse_response(endpoint: str, response: httpx.Response) -> QueryResult:
        if not response.is_success:
            raise RemoteQueryError(endpoint, "Remote query failed", status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteQueryError(endpoint, f"Malformed JSON response: {e}") from e

        results = data.get("results") if isinstance(data, dict) else None
        bindings = results.get("bindings") if isinstance(results, dict) else None
        if not isinstance(bindings, list):
            raise RemoteQueryError(endpoint, "Malformed SPARQL results: missing results.bindings")

        head = data.get("head") or {}
        if not isinstance(head, dict) or not isinstance(head.get("vars") or [], list):
            raise RemoteQueryError(endpoint, "Malformed SPARQL results: head.vars must be a list")
        variables = list(head.get("vars") or [])

        solutions = []
        try:
            for binding in bindings:
                row = {var: binding_to_term(value) for var, value in binding.items()}
                for var in row:
                    if var not in variables:
                        variables.append(var)
                solutions.append(row)
        except (AttributeError, TypeError, ValueError) as e:
            raise RemoteQueryError(endpoint, f"Malformed SPARQL results: {e}") from e

        return QueryResult.rows(variables, solutions, source=endpoint)


# =============================================================================
# Dispatcher
# =============================================================================

class QueryDispatcher:
    """
    Chooses local or remote execution and verifies result shapes.

    References starting with http:// or https:// go to the remote
    executor unless remote_enabled is False, in which case every
    reference resolves locally (registry names may themselves be IRIs).

    Usage:
        dispatcher = QueryDispatcher(RegistryExecutor(registry))
        rows = dispatcher.query_select("memory", "SELECT ?s WHERE { ?s ?p ?o }")
        text = dispatcher.query_construct("memory", "CONSTRUCT WHERE { ?s ?p ?o }")
        flag = dispatcher.query_ask("memory", "ASK { ?s ?p ?o }")
    """

    def __init__(
        self,
        local: LocalExecutor,
        remote: Optional[RemoteExecutor] = None,
        empty_results: EmptyResultPolicy = EmptyResultPolicy.ALLOW,
        coerce_booleans: bool = False,
        remote_enabled: bool = True,
    ):
        self.local = local
        self.remote = remote or RemoteExecutor()
        self.empty_results = empty_results
        self.coerce_booleans = coerce_booleans
        self.remote_enabled = remote_enabled

    def routes_remote(self, store_ref: str) -> bool:
        return self.remote_enabled and is_remote(store_ref)

    def execute(self, store_ref: str, query: str) -> QueryResult:
        """Execute a query and return the result in whatever shape it has."""
        if self.routes_remote(store_ref):
            return self.remote.execute(store_ref, query)
        return self.local.execute(store_ref, query)

    async def execute_async(self, store_ref: str, query: str) -> QueryResult:
        """Like execute, but suspends on the remote request."""
        if self.routes_remote(store_ref):
            return await self.remote.execute_async(store_ref, query)
        return self.local.execute(store_ref, query)

    def projector_for(self, query: str) -> TermProjector:
        return TermProjector(build_prefix_table(query), coerce_booleans=self.coerce_booleans)

    def project(self, result: QueryResult, query: str) -> List[Dict[str, Any]]:
        """Project a row-set result, applying the empty result policy."""
        result.expect(ResultShape.ROW_SET)
        if not result.solutions and self.empty_results is EmptyResultPolicy.ERROR:
            raise NoResultsError()
        return self.projector_for(query).project_rows(result.solutions)

    def query_select(self, store_ref: str, query: str) -> List[Dict[str, Any]]:
        return self.project(self.execute(store_ref, query), query)

    async def query_select_async(self, store_ref: str, query: str) -> List[Dict[str, Any]]:
        result = await self.execute_async(store_ref, query)
        return self.project(result, query)

    def query_construct(self, store_ref: str, query: str, format: RdfFormat = RdfFormat.TURTLE) -> str:
        """Run a CONSTRUCT query and serialize the triples (Turtle by default)."""
        self._reject_remote(store_ref)
        result = self.execute(store_ref, query).expect(ResultShape.GRAPH)
        return serialize(result.triples, format=format).decode("utf-8")

    def query_ask(self, store_ref: str, query: str) -> bool:
        self._reject_remote(store_ref)
        result = self.execute(store_ref, query).expect(ResultShape.BOOLEAN)
        return bool(result.boolean)

    def _reject_remote(self, store_ref: str) -> None:
        if self.routes_remote(store_ref):
            raise InvalidInputError(f"Remote endpoint {store_ref} only supports SELECT queries")
