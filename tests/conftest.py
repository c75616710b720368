"""Shared fixtures for the Typox test suite."""

from urllib.parse import parse_qs

import httpx
import pytest
from pyoxigraph import RdfFormat

from typox.registry import StoreRegistry

PEOPLE_TTL = b"""@prefix ex: <http://example.org/> .
@prefix foaf: <http://xmlns.com/foaf/0.1/> .

ex:alice foaf:name "Alice" ;
    ex:age 42 ;
    ex:score 9.5 .

ex:bob foaf:name "Bob"@en ;
    ex:age 37 .
"""

PEOPLE_TRIPLES = 5


def ntriples(count: int) -> bytes:
    """N-Triples document with ``count`` distinct triples."""
    lines = [
        f'<http://example.org/s{i}> <http://example.org/p> "v{i}" .'
        for i in range(count)
    ]
    return ("\n".join(lines) + "\n").encode("utf-8")


@pytest.fixture(autouse=True)
def no_config_env(monkeypatch):
    """Keep a developer's $TYPOX_CONFIG out of the tests."""
    monkeypatch.delenv("TYPOX_CONFIG", raising=False)


@pytest.fixture
def registry():
    return StoreRegistry()


@pytest.fixture
def people_registry(registry):
    """Registry with the people data loaded into the 'people' store."""
    registry.get_or_create("people").load(PEOPLE_TTL, format=RdfFormat.TURTLE)
    return registry


class RecordingEndpoint:
    """A fake SPARQL endpoint served through httpx.MockTransport."""

    def __init__(self, status_code: int = 200, json_body=None, content: bytes = None):
        self.status_code = status_code
        self.json_body = json_body
        self.content = content
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        return httpx.Response(self.status_code, json=self.json_body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def form(self, index: int = 0) -> dict:
        """Decoded form fields of a recorded request."""
        return parse_qs(self.requests[index].content.decode("utf-8"))


@pytest.fixture
def endpoint_results():
    """SPARQL JSON results document with two bindings."""
    return {
        "head": {"vars": ["person", "name", "age"]},
        "results": {
            "bindings": [
                {
                    "person": {"type": "uri", "value": "http://example.org/alice"},
                    "name": {"type": "literal", "value": "Alice", "xml:lang": "en"},
                    "age": {
                        "type": "literal",
                        "value": "42",
                        "datatype": "http://www.w3.org/2001/XMLSchema#integer",
                    },
                },
                {
                    "person": {"type": "bnode", "value": "b1"},
                    "name": {"type": "literal", "value": "Anonymous"},
                },
            ]
        },
    }
