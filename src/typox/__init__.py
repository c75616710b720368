"""
Typox: named Oxigraph stores with typed SPARQL results.

Loads RDF data into named or persistent stores, runs SPARQL queries
against them (or against a remote endpoint) and projects the results
into plain JSON values.
"""

__version__ = "0.3.0"

from typox.config import EmptyResultPolicy, TypoxConfig
from typox.dispatcher import (
    PathExecutor,
    QueryDispatcher,
    RegistryExecutor,
    RemoteExecutor,
    is_remote,
)
from typox.errors import (
    InvalidInputError,
    MissingFileError,
    NoFilesMatchedError,
    NoResultsError,
    ParseFailureError,
    RemoteQueryError,
    StoreNotFoundError,
    TypoxError,
    WrongResultShapeError,
)
from typox.loader import BulkLoader, FileLoad, LoadReport
from typox.prefixes import PrefixTable, build_prefix_table
from typox.projection import TermProjector, project_term
from typox.registry import StoreRegistry
from typox.results import QueryResult, ResultShape

__all__ = [
    "TypoxConfig",
    "EmptyResultPolicy",
    # Registry and dispatch
    "StoreRegistry",
    "QueryDispatcher",
    "RegistryExecutor",
    "PathExecutor",
    "RemoteExecutor",
    "is_remote",
    "QueryResult",
    "ResultShape",
    # Projection
    "PrefixTable",
    "build_prefix_table",
    "TermProjector",
    "project_term",
    # Loading
    "BulkLoader",
    "FileLoad",
    "LoadReport",
    # Errors
    "TypoxError",
    "InvalidInputError",
    "StoreNotFoundError",
    "ParseFailureError",
    "WrongResultShapeError",
    "NoResultsError",
    "RemoteQueryError",
    "MissingFileError",
    "NoFilesMatchedError",
]
