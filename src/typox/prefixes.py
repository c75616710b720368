"""
Prefix tables for display-side IRI compaction.

A prefix table maps a short name to a namespace IRI. It starts from a
fixed set of well-known vocabularies and is extended with the PREFIX
declarations found in the query text. It never affects how a query is
evaluated, only how result IRIs are rendered.
"""

from typing import Dict, Optional

DEFAULT_PREFIXES: Dict[str, str] = {
    "rdf": "http://www.w3.org/1999/02/22-rdf-syntax-ns#",
    "rdfs": "http://www.w3.org/2000/01/rdf-schema#",
    "owl": "http://www.w3.org/2002/07/owl#",
    "xsd": "http://www.w3.org/2001/XMLSchema#",
    "foaf": "http://xmlns.com/foaf/0.1/",
    "dc": "http://purl.org/dc/elements/1.1/",
    "dcterms": "http://purl.org/dc/terms/",
    "skos": "http://www.w3.org/2004/02/skos/core#",
}

_KEYWORD = "PREFIX"


class PrefixTable:
    """
    Mapping of short name -> namespace IRI used to compact IRIs.

    When several namespaces are string-prefixes of the same IRI, the
    longest namespace wins, so the result does not depend on insertion
    order.
    """

    def __init__(self, prefixes: Optional[Dict[str, str]] = None):
        self._prefixes: Dict[str, str] = dict(prefixes or {})

    @classmethod
    def defaults(cls) -> "PrefixTable":
        return cls(DEFAULT_PREFIXES)

    def add(self, name: str, namespace: str) -> None:
        """Insert or override the namespace for a short name."""
        self._prefixes[name] = namespace

    def get(self, name: str) -> Optional[str]:
        return self._prefixes.get(name)

    def compact(self, iri: str) -> str:
        """Return ``short:suffix`` for the best matching namespace, else the IRI."""
        best_name = None
        best_namespace = ""
        for name, namespace in self._prefixes.items():
            if not iri.startswith(namespace):
                continue
            if best_name is None or len(namespace) > len(best_namespace):
                best_name = name
                best_namespace = namespace
        if best_name is None:
            return iri
        return f"{best_name}:{iri[len(best_namespace):]}"

    def to_dict(self) -> Dict[str, str]:
        return dict(self._prefixes)

    def __contains__(self, name: str) -> bool:
        return name in self._prefixes

    def __len__(self) -> int:
        return len(self._prefixes)

    def __repr__(self) -> str:
        return f"PrefixTable({self._prefixes!r})"


def parse_prefix_line(line: str) -> Optional[tuple[str, str]]:
    """
    Parse a single ``PREFIX name: <namespace>`` line.

    Returns (name, namespace) or None when the line is not a well-formed
    declaration.
    """
    line = line.strip()
    if not line.upper().startswith(_KEYWORD):
        return None

    rest = line[len(_KEYWORD):].strip()
    colon = rest.find(":")
    if colon < 0:
        return None

    name = rest[:colon].strip()
    remainder = rest[colon + 1:].strip()
    if not remainder.startswith("<"):
        return None
    end = remainder.find(">")
    if end < 0:
        return None

    return name, remainder[1:end]


def build_prefix_table(query: str, base: Optional[Dict[str, str]] = None) -> PrefixTable:
    """
    Build the display prefix table for a query.

    Seeds the table with ``base`` (the well-known defaults when omitted),
    then applies each PREFIX declaration of the query in order, so a later
    declaration for the same name overrides an earlier one. Malformed
    declarations are skipped.
    """
    table = PrefixTable(DEFAULT_PREFIXES if base is None else base)
    for line in query.splitlines():
        parsed = parse_prefix_line(line)
        if parsed is not None:
            table.add(*parsed)
    return table
