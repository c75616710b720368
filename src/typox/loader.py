"""
Bulk loader for persistent Oxigraph stores.

Expands file patterns, opens (or recreates) a store directory and loads
each file into it, recording how many triples every file added.
"""

import glob
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from pyoxigraph import RdfFormat, Store

from typox.config import LoaderConfig
from typox.errors import (
    MissingFileError,
    NoFilesMatchedError,
    ParseFailureError,
    TypoxError,
)

logger = logging.getLogger(__name__)

GLOB_CHARS = ("*", "?", "[")

EXTENSION_FORMATS = {
    "ttl": RdfFormat.TURTLE,
    "turtle": RdfFormat.TURTLE,
    "nt": RdfFormat.N_TRIPLES,
    "ntriples": RdfFormat.N_TRIPLES,
    "nq": RdfFormat.N_QUADS,
    "nquads": RdfFormat.N_QUADS,
    "trig": RdfFormat.TRIG,
    "rdf": RdfFormat.RDF_XML,
    "owl": RdfFormat.RDF_XML,
    "xml": RdfFormat.RDF_XML,
}


def format_for_path(path: Path) -> RdfFormat:
    """RDF format implied by a file extension; Turtle when unknown."""
    return EXTENSION_FORMATS.get(path.suffix.lower().lstrip("."), RdfFormat.TURTLE)


def has_glob(pattern: str) -> bool:
    return any(c in pattern for c in GLOB_CHARS)


@dataclass
class FileLoad:
    """Triples added to the store by one file."""
    path: Path
    triples_added: int

    def to_dict(self) -> Dict[str, Any]:
        return {"path": str(self.path), "triples_added": self.triples_added}


@dataclass
class LoadReport:
    """Outcome of one bulk load."""
    store_path: Path
    files: List[FileLoad] = field(default_factory=list)
    triples_before: int = 0
    triples_after: int = 0
    created: bool = False

    @property
    def total_added(self) -> int:
        return sum(f.triples_added for f in self.files)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "store_path": str(self.store_path),
            "files": [f.to_dict() for f in self.files],
            "triples_before": self.triples_before,
            "triples_after": self.triples_after,
            "total_added": self.total_added,
            "created": self.created,
        }


class BulkLoader:
    """
    Loads graph data files into a persistent store.

    Args:
        config: Loader configuration (recognized extensions)
        progress: Callback receiving human-readable progress lines;
            defaults to logging at INFO
    """

    def __init__(
        self,
        config: Optional[LoaderConfig] = None,
        progress: Optional[Callable[[str], None]] = None,
    ):
        self.config = config or LoaderConfig()
        self.progress = progress or logger.info

    def expand_pattern(self, pattern: str) -> List[Path]:
        """
        Resolve one pattern into a sorted list of files.

        A pattern without glob characters is a literal path and must
        exist. A glob keeps only regular files with a recognized
        extension.
        """
        if not has_glob(pattern):
            path = Path(pattern)
            if not path.exists():
                raise MissingFileError(pattern)
            return [path]

        extensions = {ext.lower() for ext in self.config.extensions}
        paths = []
        for match in glob.glob(pattern, recursive=True):
            path = Path(match)
            if path.is_file() and path.suffix.lower().lstrip(".") in extensions:
                paths.append(path)

        if not paths:
            raise NoFilesMatchedError(pattern)

        return sorted(paths, key=str)

    def resolve(self, patterns: Sequence[str]) -> List[Path]:
        """Expand every pattern, in the order given."""
        files = []
        for pattern in patterns:
            files.extend(self.expand_pattern(pattern))
        return files

    def load_file(self, store: Store, path: Path, base_iri: Optional[str] = None) -> int:
        """Load one file and return the number of triples it added."""
        try:
            content = path.read_bytes()
        except OSError as e:
            raise TypoxError(f"Failed to read file: {path}: {e}") from e

        before = len(store)
        try:
            store.load(content, format=format_for_path(path), base_iri=base_iri)
        except (SyntaxError, ValueError) as e:
            raise ParseFailureError(f"Failed to load file: {path}: {e}") from e
        return len(store) - before

    def load(
        self,
        store_path: str | Path,
        patterns: Sequence[str],
        create_new: bool = False,
        base_iri: Optional[str] = None,
    ) -> LoadReport:
        """
        Load files matching ``patterns`` into the store at ``store_path``.

        All patterns are resolved before the store is touched. With
        ``create_new`` an existing store directory is deleted first; this
        is irreversible. A parse failure stops the load at that file.

        Args:
            store_path: Store directory (created if missing)
            patterns: Literal paths or glob patterns
            create_new: Remove any existing store first
            base_iri: Base IRI for relative IRIs in the data

        Returns:
            LoadReport with per-file and total counts
        """
        store_path = Path(store_path)
        files = self.resolve(patterns)

        if create_new and store_path.exists():
            self.progress(f"Removing existing store at: {store_path}")
            if store_path.is_dir():
                shutil.rmtree(store_path)
            else:
                store_path.unlink()

        store_path.parent.mkdir(parents=True, exist_ok=True)

        created = not store_path.exists()
        if created:
            self.progress(f"Creating new Oxigraph store at: {store_path}")
        else:
            self.progress(f"Opening existing Oxigraph store at: {store_path}")

        try:
            store = Store(str(store_path))
        except OSError as e:
            raise TypoxError(f"Failed to open store at: {store_path}: {e}") from e

        report = LoadReport(store_path=store_path, created=created, triples_before=len(store))

        for path in files:
            self.progress(f"Loading file: {path}")
            added = self.load_file(store, path, base_iri=base_iri)
            report.files.append(FileLoad(path=path, triples_added=added))
            self.progress(f"  → Loaded {added} triples")

        report.triples_after = len(store)
        return report
