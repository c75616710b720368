"""
Typed projection of RDF terms into JSON values.

IRIs are compacted against a prefix table, blank nodes are rendered as
``_:label`` and literals are coerced to numbers when their datatype (or,
failing that, their lexical form) allows it. Language tags are dropped;
only the lexical value of a literal is ever emitted.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import polars as pl
from pyoxigraph import BlankNode, Literal, NamedNode

from typox.prefixes import PrefixTable

XSD_NS = "http://www.w3.org/2001/XMLSchema#"

INTEGER_DATATYPES = frozenset(XSD_NS + name for name in (
    "integer",
    "int",
    "long",
    "short",
    "byte",
    "nonNegativeInteger",
    "positiveInteger",
    "unsignedInt",
    "unsignedLong",
    "unsignedShort",
    "unsignedByte",
))

FLOAT_DATATYPES = frozenset(XSD_NS + name for name in ("decimal", "double", "float"))

XSD_BOOLEAN = XSD_NS + "boolean"

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

# Lexical forms accepted as numbers: no whitespace, no digit separators.
_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def parse_int64(text: str) -> Optional[int]:
    """Parse a signed 64-bit integer, or return None."""
    if not _INT_RE.fullmatch(text):
        return None
    value = int(text)
    if value < INT64_MIN or value > INT64_MAX:
        return None
    return value


def parse_float64(text: str) -> Optional[float]:
    """Parse a finite 64-bit float, or return None."""
    if not _FLOAT_RE.fullmatch(text):
        return None
    value = float(text)
    if not math.isfinite(value):
        return None
    return value


@dataclass(frozen=True)
class BindingTerm:
    """
    A term decoded from a SPARQL JSON results binding.

    Values are kept as the endpoint sent them, so labels such as
    ``nodeID://b10001`` or IRIs containing spaces survive unchanged.
    """
    kind: str    # "uri", "bnode" or "literal"
    value: str
    datatype: Optional[str] = None
    language: Optional[str] = None


def _parse_number(text: str) -> Optional[Any]:
    value = parse_int64(text)
    if value is not None:
        return value
    return parse_float64(text)


def project_literal(literal: Literal, coerce_booleans: bool = False) -> Any:
    datatype = literal.datatype.value if literal.datatype is not None else None
    return project_lexical(literal.value, datatype, coerce_booleans=coerce_booleans)


def project_lexical(value: str, datatype: Optional[str] = None, coerce_booleans: bool = False) -> Any:
    """Coerce a literal's lexical form using its datatype IRI."""
    if datatype in INTEGER_DATATYPES:
        number = parse_int64(value)
        if number is not None:
            return number
    elif datatype in FLOAT_DATATYPES:
        number = parse_float64(value)
        if number is not None:
            return number
    elif coerce_booleans and datatype == XSD_BOOLEAN:
        if value in ("true", "false"):
            return value == "true"

    number = _parse_number(value)
    if number is not None:
        return number
    return value


def project_term(term: Any, prefixes: PrefixTable, coerce_booleans: bool = False) -> Any:
    """Convert a single term to a JSON value."""
    if isinstance(term, NamedNode):
        return prefixes.compact(term.value)
    if isinstance(term, BlankNode):
        return f"_:{term.value}"
    if isinstance(term, Literal):
        return project_literal(term, coerce_booleans=coerce_booleans)
    if isinstance(term, BindingTerm):
        if term.kind == "uri":
            return prefixes.compact(term.value)
        if term.kind == "bnode":
            return f"_:{term.value}"
        return project_lexical(term.value, term.datatype, coerce_booleans=coerce_booleans)
    # Quoted triples and anything else the engine may hand back
    return str(term)


class TermProjector:
    """
    Projects query solutions into JSON-ready row objects.

    Args:
        prefixes: Table used to compact IRIs
        coerce_booleans: Emit xsd:boolean literals as JSON booleans
    """

    def __init__(self, prefixes: Optional[PrefixTable] = None, coerce_booleans: bool = False):
        self.prefixes = prefixes if prefixes is not None else PrefixTable.defaults()
        self.coerce_booleans = coerce_booleans

    def project(self, term: Any) -> Any:
        return project_term(term, self.prefixes, coerce_booleans=self.coerce_booleans)

    def project_row(self, solution: Dict[str, Any]) -> Dict[str, Any]:
        return {var: self.project(term) for var, term in solution.items()}

    def project_rows(self, solutions: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [self.project_row(solution) for solution in solutions]


def rows_to_frame(rows: List[Dict[str, Any]], variables: Optional[List[str]] = None) -> pl.DataFrame:
    """
    Convert projected rows to a Polars DataFrame.

    Columns follow ``variables`` when given; unbound values become nulls
    and mixed-type columns widen to their common supertype.
    """
    if not rows:
        return pl.DataFrame({var: [] for var in (variables or [])})
    frame = pl.from_dicts(rows, strict=False, infer_schema_length=None)
    if variables:
        for var in variables:
            if var not in frame.columns:
                frame = frame.with_columns(pl.lit(None).alias(var))
        frame = frame.select(variables)
    return frame
