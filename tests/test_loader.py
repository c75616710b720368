"""
Tests for the bulk loader.

Each test loads into its own store directory under tmp_path. A store
directory can only be opened once per process at a time, so reports are
inspected without reopening the store while a handle is alive.
"""

import pytest
from pyoxigraph import RdfFormat, Store

from typox.config import LoaderConfig
from typox.errors import MissingFileError, NoFilesMatchedError, ParseFailureError
from typox.loader import BulkLoader, format_for_path, has_glob

from conftest import PEOPLE_TRIPLES, PEOPLE_TTL, ntriples


@pytest.fixture
def data_dir(tmp_path):
    """Directory holding a.ttl (people), b.ttl (2 triples) and a notes.txt."""
    directory = tmp_path / "data"
    directory.mkdir()
    (directory / "a.ttl").write_bytes(PEOPLE_TTL)
    (directory / "b.ttl").write_text(
        "<http://example.org/carol> <http://xmlns.com/foaf/0.1/name> \"Carol\" .\n"
        "<http://example.org/carol> <http://example.org/age> 29 .\n",
        encoding="utf-8",
    )
    (directory / "notes.txt").write_text("not rdf", encoding="utf-8")
    return directory


@pytest.fixture
def messages():
    return []


@pytest.fixture
def loader(messages):
    return BulkLoader(progress=messages.append)


def store_size(path) -> int:
    return len(Store(str(path)))


# =============================================================================
# Format and pattern helpers
# =============================================================================

class TestFormatForPath:
    def test_known_extensions(self, tmp_path):
        assert format_for_path(tmp_path / "x.ttl") == RdfFormat.TURTLE
        assert format_for_path(tmp_path / "x.NT") == RdfFormat.N_TRIPLES
        assert format_for_path(tmp_path / "x.nq") == RdfFormat.N_QUADS
        assert format_for_path(tmp_path / "x.trig") == RdfFormat.TRIG
        assert format_for_path(tmp_path / "x.owl") == RdfFormat.RDF_XML

    def test_unknown_extension_is_turtle(self, tmp_path):
        assert format_for_path(tmp_path / "x.data") == RdfFormat.TURTLE
        assert format_for_path(tmp_path / "noext") == RdfFormat.TURTLE

    def test_has_glob(self):
        assert has_glob("data/*.ttl")
        assert has_glob("data/file?.ttl")
        assert has_glob("data/[ab].ttl")
        assert not has_glob("data/file.ttl")


class TestExpandPattern:
    """Pattern expansion into sorted file lists."""

    def test_glob_sorted_and_filtered(self, loader, data_dir):
        files = loader.expand_pattern(str(data_dir / "*"))
        assert [f.name for f in files] == ["a.ttl", "b.ttl"]

    def test_literal_path(self, loader, data_dir):
        path = data_dir / "notes.txt"
        # Literal paths are taken as given, whatever the extension
        assert loader.expand_pattern(str(path)) == [path]

    def test_missing_literal(self, loader, data_dir):
        with pytest.raises(MissingFileError, match="File does not exist"):
            loader.expand_pattern(str(data_dir / "missing.ttl"))

    def test_no_match(self, loader, data_dir):
        with pytest.raises(NoFilesMatchedError):
            loader.expand_pattern(str(data_dir / "*.nq"))

    def test_recursive_glob(self, loader, data_dir):
        nested = data_dir / "nested"
        nested.mkdir()
        (nested / "c.nt").write_bytes(ntriples(3))
        files = loader.expand_pattern(str(data_dir / "**" / "*.nt"))
        assert [f.name for f in files] == ["c.nt"]

    def test_configured_extensions(self, data_dir):
        loader = BulkLoader(LoaderConfig(extensions=["txt"]), progress=lambda line: None)
        files = loader.expand_pattern(str(data_dir / "*"))
        assert [f.name for f in files] == ["notes.txt"]

    def test_resolve_keeps_pattern_order(self, loader, data_dir):
        files = loader.resolve([str(data_dir / "b.ttl"), str(data_dir / "a.ttl")])
        assert [f.name for f in files] == ["b.ttl", "a.ttl"]


# =============================================================================
# Loading
# =============================================================================

class TestBulkLoad:
    """Loading files into persistent stores."""

    def test_load_glob(self, loader, data_dir, tmp_path, messages):
        store_path = tmp_path / "store"
        report = loader.load(store_path, [str(data_dir / "*.ttl")])

        assert report.created is True
        assert [f.path.name for f in report.files] == ["a.ttl", "b.ttl"]
        assert [f.triples_added for f in report.files] == [PEOPLE_TRIPLES, 2]
        assert report.total_added == PEOPLE_TRIPLES + 2
        assert report.triples_before == 0
        assert report.triples_after == PEOPLE_TRIPLES + 2

        assert messages[0] == f"Creating new Oxigraph store at: {store_path}"
        assert f"Loading file: {data_dir / 'a.ttl'}" in messages
        assert f"  → Loaded {PEOPLE_TRIPLES} triples" in messages

    def test_files_load_in_sorted_order(self, loader, data_dir, tmp_path, messages):
        loader.load(tmp_path / "store", [str(data_dir / "*.ttl")])
        loading = [m for m in messages if m.startswith("Loading file:")]
        assert loading == [
            f"Loading file: {data_dir / 'a.ttl'}",
            f"Loading file: {data_dir / 'b.ttl'}",
        ]

    def test_load_into_existing_store(self, loader, data_dir, tmp_path, messages):
        store_path = tmp_path / "store"
        loader.load(store_path, [str(data_dir / "a.ttl")])
        report = loader.load(store_path, [str(data_dir / "b.ttl")])

        assert report.created is False
        assert report.triples_before == PEOPLE_TRIPLES
        assert report.triples_after == PEOPLE_TRIPLES + 2
        assert f"Opening existing Oxigraph store at: {store_path}" in messages

    def test_duplicate_triples_not_counted(self, loader, data_dir, tmp_path):
        store_path = tmp_path / "store"
        report = loader.load(store_path, [str(data_dir / "a.ttl"), str(data_dir / "a.ttl")])
        assert [f.triples_added for f in report.files] == [PEOPLE_TRIPLES, 0]

    def test_create_new_replaces_store(self, loader, data_dir, tmp_path, messages):
        store_path = tmp_path / "store"
        loader.load(store_path, [str(data_dir / "a.ttl")])
        report = loader.load(store_path, [str(data_dir / "b.ttl")], create_new=True)

        assert report.created is True
        assert report.triples_before == 0
        assert report.triples_after == 2
        assert f"Removing existing store at: {store_path}" in messages

    def test_missing_file_leaves_store_untouched(self, loader, data_dir, tmp_path):
        store_path = tmp_path / "store"
        loader.load(store_path, [str(data_dir / "a.ttl")])

        with pytest.raises(MissingFileError):
            loader.load(store_path, [str(data_dir / "missing.ttl")], create_new=True)

        assert store_size(store_path) == PEOPLE_TRIPLES

    def test_no_match_creates_nothing(self, loader, data_dir, tmp_path):
        store_path = tmp_path / "store"
        with pytest.raises(NoFilesMatchedError):
            loader.load(store_path, [str(data_dir / "*.trig")])
        assert not store_path.exists()

    def test_parse_failure_names_file(self, loader, data_dir, tmp_path):
        broken = data_dir / "broken.ttl"
        broken.write_text("this is not turtle <<<", encoding="utf-8")
        with pytest.raises(ParseFailureError, match="broken.ttl"):
            loader.load(tmp_path / "store", [str(broken)])

    def test_ntriples_by_extension(self, loader, tmp_path):
        source = tmp_path / "data.nt"
        source.write_bytes(ntriples(10))
        report = loader.load(tmp_path / "store", [str(source)])
        assert report.total_added == 10

    def test_base_iri(self, loader, tmp_path):
        source = tmp_path / "relative.ttl"
        source.write_text('<alice> <name> "Alice" .\n', encoding="utf-8")
        store_path = tmp_path / "store"
        loader.load(store_path, [str(source)], base_iri="http://example.org/")

        store = Store(str(store_path))
        subjects = [q.subject.value for q in store]
        del store
        assert subjects == ["http://example.org/alice"]

    def test_creates_parent_directories(self, loader, data_dir, tmp_path):
        store_path = tmp_path / "deep" / "nested" / "store"
        loader.load(store_path, [str(data_dir / "b.ttl")])
        assert store_path.exists()

    def test_report_to_dict(self, loader, data_dir, tmp_path):
        report = loader.load(tmp_path / "store", [str(data_dir / "b.ttl")])
        data = report.to_dict()
        assert data["total_added"] == 2
        assert data["files"] == [{"path": str(data_dir / "b.ttl"), "triples_added": 2}]
