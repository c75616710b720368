"""
Query result shapes.

The engine decides the shape of a result from the query form; callers
state the shape they expect and QueryResult.expect() verifies it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pyoxigraph import QueryBoolean, QuerySolutions, QueryTriples

from typox.errors import WrongResultShapeError


class ResultShape(Enum):
    """The three result forms a SPARQL query can produce."""
    ROW_SET = "row_set"    # SELECT
    BOOLEAN = "boolean"    # ASK
    GRAPH = "graph"        # CONSTRUCT / DESCRIBE

    @property
    def hint(self) -> str:
        """Message telling the caller which entry point handles this shape."""
        return {
            ResultShape.ROW_SET: "SELECT queries should use query function",
            ResultShape.BOOLEAN: "ASK queries should use query_ask function",
            ResultShape.GRAPH: "CONSTRUCT queries should use query_construct function",
        }[self]


@dataclass
class QueryResult:
    """A materialized query result of one of the three shapes."""
    shape: ResultShape
    source: str = ""
    variables: List[str] = field(default_factory=list)
    solutions: List[Dict[str, Any]] = field(default_factory=list)
    boolean: Optional[bool] = None
    triples: List[Any] = field(default_factory=list)

    @classmethod
    def rows(cls, variables: List[str], solutions: List[Dict[str, Any]], source: str = "") -> "QueryResult":
        return cls(ResultShape.ROW_SET, source=source, variables=variables, solutions=solutions)

    @classmethod
    def from_engine(cls, results: Any, source: str = "") -> "QueryResult":
        """
        Materialize a pyoxigraph query result.

        Unbound variables are left out of a solution mapping.
        """
        if isinstance(results, QuerySolutions):
            variables = list(results.variables)
            solutions = []
            for solution in results:
                row = {}
                for var in variables:
                    term = solution[var]
                    if term is not None:
                        row[var.value] = term
                solutions.append(row)
            return cls.rows([v.value for v in variables], solutions, source=source)

        if isinstance(results, QueryBoolean):
            return cls(ResultShape.BOOLEAN, source=source, boolean=bool(results))

        if isinstance(results, QueryTriples):
            return cls(ResultShape.GRAPH, source=source, triples=list(results))

        raise TypeError(f"Unsupported query result type: {type(results).__name__}")

    def expect(self, shape: ResultShape) -> "QueryResult":
        """Return self if the shape matches, else raise WrongResultShapeError."""
        if self.shape is not shape:
            raise WrongResultShapeError(expected=shape, got=self.shape)
        return self

    def __len__(self) -> int:
        if self.shape is ResultShape.ROW_SET:
            return len(self.solutions)
        if self.shape is ResultShape.GRAPH:
            return len(self.triples)
        return 1
