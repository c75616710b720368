"""
Byte-buffer plugin boundary for Typox.

Every operation takes its arguments as raw bytes and returns raw bytes.
Failures never escape: they come back as a payload starting with
``ERROR: `` followed by a readable message, which is the only error
signal a host can check.

Operations are methods of TypoxPlugin, which owns its StoreRegistry and
QueryDispatcher. The module-level functions of the same names delegate
to one process-wide instance created on first use.
"""

import functools
import json
import logging
from typing import Callable, Optional

from pyoxigraph import RdfFormat

from typox.config import TypoxConfig
from typox.dispatcher import QueryDispatcher, RegistryExecutor
from typox.errors import InvalidInputError, ParseFailureError, TypoxError, WrongResultShapeError
from typox.registry import StoreRegistry
from typox.results import ResultShape

logger = logging.getLogger(__name__)

ERROR_PREFIX = "ERROR: "
OK = b"OK"


def error_payload(message: object) -> bytes:
    return f"{ERROR_PREFIX}{message}".encode("utf-8")


def is_error(payload: bytes) -> bool:
    return payload.startswith(ERROR_PREFIX.encode("utf-8"))


def decode_store_name(raw: bytes) -> str:
    try:
        name = bytes(raw).decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidInputError(f"Invalid store name: {e}") from e
    if not name:
        raise InvalidInputError("Invalid store name: store name cannot be empty")
    return name


def decode_query(raw: bytes) -> str:
    try:
        return bytes(raw).decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidInputError(f"Invalid SPARQL query: {e}") from e


def _to_json(value) -> bytes:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def boundary(func: Callable[..., bytes]) -> Callable[..., bytes]:
    """Convert any failure raised by ``func`` into an error payload."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> bytes:
        try:
            return func(*args, **kwargs)
        except TypoxError as e:
            return error_payload(e)
        except Exception as e:
            logger.exception(f"Unexpected failure in {func.__name__}")
            return error_payload(e)

    return wrapper


class TypoxPlugin:
    """
    Plugin operations over an owned store registry.

    Every store name is a registry name, including names that look like
    http(s) IRIs; the plugin never issues network requests.

    Args:
        registry: Registry to operate on (a fresh one by default)
        config: Configuration; defaults to the plugin preset, where an
            empty SELECT result is a valid empty array
    """

    def __init__(self, registry: Optional[StoreRegistry] = None, config: Optional[TypoxConfig] = None):
        self.config = config or TypoxConfig.for_plugin()
        self.registry = registry or StoreRegistry(default_store=self.config.registry.default_store)
        self.dispatcher = QueryDispatcher(
            RegistryExecutor(self.registry),
            empty_results=self.config.query.empty_results,
            coerce_booleans=self.config.query.coerce_booleans,
            remote_enabled=False,
        )

    def _load(self, store_name: bytes, data: bytes, format: RdfFormat, label: str) -> bytes:
        name = decode_store_name(store_name)
        store = self.registry.get_or_create(name)
        try:
            store.load(bytes(data), format=format)
        except (SyntaxError, ValueError) as e:
            raise ParseFailureError(f"Failed to parse {label} data: {e}") from e
        logger.debug(f"Loaded {label} data into store '{name}'")
        return OK

    @boundary
    def load_turtle(self, store_name: bytes, data: bytes) -> bytes:
        return self._load(store_name, data, RdfFormat.TURTLE, "Turtle")

    @boundary
    def load_rdf_xml(self, store_name: bytes, data: bytes) -> bytes:
        return self._load(store_name, data, RdfFormat.RDF_XML, "RDF/XML")

    @boundary
    def load_ntriples(self, store_name: bytes, data: bytes) -> bytes:
        return self._load(store_name, data, RdfFormat.N_TRIPLES, "N-Triples")

    @boundary
    def query(self, store_name: bytes, sparql: bytes) -> bytes:
        """
        Run a SELECT query and return a JSON array of row objects.

        An ASK query answers ``{"boolean": ...}`` instead; a CONSTRUCT
        query is an error pointing at query_construct.
        """
        name = decode_store_name(store_name)
        text = decode_query(sparql)
        result = self.dispatcher.execute(name, text)
        if result.shape is ResultShape.BOOLEAN:
            return _to_json({"boolean": bool(result.boolean)})
        if result.shape is ResultShape.GRAPH:
            raise WrongResultShapeError(expected=ResultShape.ROW_SET, got=result.shape)
        return _to_json(self.dispatcher.project(result, text))

    @boundary
    def query_construct(self, store_name: bytes, sparql: bytes) -> bytes:
        name = decode_store_name(store_name)
        return self.dispatcher.query_construct(name, decode_query(sparql)).encode("utf-8")

    @boundary
    def query_ask(self, store_name: bytes, sparql: bytes) -> bytes:
        name = decode_store_name(store_name)
        return b"true" if self.dispatcher.query_ask(name, decode_query(sparql)) else b"false"

    @boundary
    def clear_store(self, store_name: bytes) -> bytes:
        self.registry.clear(decode_store_name(store_name))
        return OK

    @boundary
    def list_stores(self) -> bytes:
        return _to_json(self.registry.list_stores())

    @boundary
    def get_store_size(self, store_name: bytes) -> bytes:
        return str(self.registry.size(decode_store_name(store_name))).encode("utf-8")


# Process-wide instance
_plugin: Optional[TypoxPlugin] = None


def get_plugin() -> TypoxPlugin:
    """Return the process-wide plugin, creating it on first use."""
    global _plugin
    if _plugin is None:
        _plugin = TypoxPlugin(config=TypoxConfig.from_env(TypoxConfig.for_plugin()))
        logger.debug("Initialized plugin registry")
    return _plugin


def reset_plugin() -> None:
    """Discard the process-wide plugin and all of its stores."""
    global _plugin
    _plugin = None


def load_turtle(store_name: bytes, data: bytes) -> bytes:
    return get_plugin().load_turtle(store_name, data)


def load_rdf_xml(store_name: bytes, data: bytes) -> bytes:
    return get_plugin().load_rdf_xml(store_name, data)


def load_ntriples(store_name: bytes, data: bytes) -> bytes:
    return get_plugin().load_ntriples(store_name, data)


def query(store_name: bytes, sparql: bytes) -> bytes:
    return get_plugin().query(store_name, sparql)


def query_construct(store_name: bytes, sparql: bytes) -> bytes:
    return get_plugin().query_construct(store_name, sparql)


def query_ask(store_name: bytes, sparql: bytes) -> bytes:
    return get_plugin().query_ask(store_name, sparql)


def clear_store(store_name: bytes) -> bytes:
    return get_plugin().clear_store(store_name)


def list_stores() -> bytes:
    return get_plugin().list_stores()


def get_store_size(store_name: bytes) -> bytes:
    return get_plugin().get_store_size(store_name)
