"""
Typox command-line interface.

    typox query --store ./stores/people --query "SELECT ..." [--output out.json]
    typox query --store https://example.org/sparql --query "SELECT ..."
    typox load --store ./stores/people --files "data/*.ttl" [--create] [--base-iri IRI]
    typox serve [--host 127.0.0.1] [--port 8000]

For backwards compatibility ``typox --store S --query Q [--output F]``
runs a query without a subcommand.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from typox import __version__
from typox.config import TypoxConfig
from typox.dispatcher import PathExecutor, QueryDispatcher, RemoteExecutor
from typox.errors import TypoxError
from typox.loader import BulkLoader
from typox.projection import rows_to_frame

logger = logging.getLogger(__name__)

USAGE_HINT = (
    "Error: Use 'typox query' or 'typox load' subcommands, "
    "or provide both --store and --query for legacy mode"
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="typox",
        description="Query and load RDF data from Oxigraph stores",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="YAML configuration file (default: $TYPOX_CONFIG)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    # Legacy direct query format
    parser.add_argument("--store", "-s", dest="legacy_store", metavar="STORE_URL_OR_PATH",
                        help="Oxigraph store URL (http://) or file path")
    parser.add_argument("--query", "-q", dest="legacy_query", metavar="SPARQL_QUERY",
                        help="SPARQL SELECT query to execute")
    parser.add_argument("--output", "-o", dest="legacy_output", metavar="OUTPUT_FILE",
                        help="Output file path (optional, defaults to stdout)")

    subparsers = parser.add_subparsers(dest="command")

    query = subparsers.add_parser("query", help="Query RDF data from an Oxigraph store")
    query.add_argument("--store", "-s", required=True, metavar="STORE_URL_OR_PATH",
                       help="Oxigraph store URL (http://) or file path")
    query.add_argument("--query", "-q", required=True, metavar="SPARQL_QUERY",
                       help="SPARQL SELECT query to execute")
    query.add_argument("--output", "-o", metavar="OUTPUT_FILE",
                       help="Output file path (optional, defaults to stdout)")
    query.add_argument("--format", "-F", choices=["json", "csv"], default="json",
                       help="Output format (default: json)")

    load = subparsers.add_parser("load", help="Load RDF files into an Oxigraph store")
    load.add_argument("--store", "-s", required=True, metavar="STORE_PATH",
                      help="Path where to create or update the Oxigraph store")
    load.add_argument("--files", "-f", required=True, nargs="+", metavar="FILES",
                      help="Files to load (supports glob patterns)")
    load.add_argument("--create", "-c", action="store_true",
                      help="Create new store (removes existing store if present)")
    load.add_argument("--base-iri", "-b", metavar="BASE_IRI",
                      help="Base IRI for resolving relative IRIs")

    serve = subparsers.add_parser("serve", help="Serve the plugin operations over HTTP")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser


def load_config(path: Optional[str], base: TypoxConfig) -> TypoxConfig:
    try:
        if path:
            return TypoxConfig.load(path, base=base)
        return TypoxConfig.from_env(base=base)
    except (OSError, yaml.YAMLError) as e:
        raise TypoxError(f"Failed to read configuration: {e}") from e


def format_rows(rows: List[Dict[str, Any]], variables: List[str], fmt: str) -> str:
    if fmt == "csv":
        return rows_to_frame(rows, variables).write_csv()
    return json.dumps(rows, indent=2, ensure_ascii=False)


def write_output(text: str, output: Optional[str]) -> None:
    if output is None:
        print(text)
        return
    try:
        Path(output).write_text(text, encoding="utf-8")
    except OSError as e:
        raise TypoxError(f"Failed to write to file: {output}: {e}") from e
    print(f"Results written to: {output}")


def run_query(store: str, query: str, output: Optional[str], fmt: str, config: TypoxConfig) -> None:
    dispatcher = QueryDispatcher(
        PathExecutor(),
        RemoteExecutor(config.remote),
        empty_results=config.query.empty_results,
        coerce_booleans=config.query.coerce_booleans,
    )
    result = asyncio.run(dispatcher.execute_async(store, query))
    rows = dispatcher.project(result, query)
    write_output(format_rows(rows, result.variables, fmt), output)


def run_load(args: argparse.Namespace, config: TypoxConfig) -> None:
    loader = BulkLoader(config.loader, progress=print)
    report = loader.load(args.store, args.files, create_new=args.create, base_iri=args.base_iri)
    print(f"\nSuccessfully loaded {report.total_added} total triples into store")
    print(f"Store now contains {report.triples_after} triples")


def run_serve(args: argparse.Namespace, config: TypoxConfig) -> None:
    import uvicorn

    from typox.plugin import TypoxPlugin
    from typox.web import create_app

    app = create_app(TypoxPlugin(config=config))
    uvicorn.run(app, host=args.host, port=args.port)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "serve":
            run_serve(args, load_config(args.config, TypoxConfig.for_plugin()))
            return 0

        config = load_config(args.config, TypoxConfig.for_cli())
        if args.command == "query":
            run_query(args.store, args.query, args.output, args.format, config)
        elif args.command == "load":
            run_load(args, config)
        elif args.legacy_store and args.legacy_query:
            run_query(args.legacy_store, args.legacy_query, args.legacy_output, "json", config)
        else:
            print(USAGE_HINT, file=sys.stderr)
            return 1
    except TypoxError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
