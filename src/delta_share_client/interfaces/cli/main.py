import argparse
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import colorlog
import pyarrow as pa

from delta_share_client import __version__
from delta_share_client.client import DeltaSharingClient
from delta_share_client.core.config import load_settings
from delta_share_client.core.errors import DeltaSharingError, ProfileError, TransportError
from delta_share_client.core.query import filter_files_by_partition
from delta_share_client.core.utils import parse_table_name

EXIT_OK = 0
EXIT_SERVER = 1
EXIT_USAGE = 2
EXIT_CONFIG = 3

LOG_FORMAT = "%(asctime)s:%(levelname)s:%(name)s:%(lineno)d: %(message)s"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


def _log_level(verbose: bool, warnings_only: bool, errors_only: bool) -> int:
    # the quieter flag wins
    if errors_only:
        return logging.ERROR
    if warnings_only:
        return logging.WARNING
    return logging.DEBUG if verbose else logging.INFO


def setup_logging(
    verbose: bool = False, warnings_only: bool = False, errors_only: bool = False
) -> None:
    """Send colored log lines to stderr, replacing any root handlers."""
    handler = colorlog.StreamHandler()
    handler.setFormatter(
        colorlog.ColoredFormatter(f"%(log_color)s{LOG_FORMAT}", log_colors=LOG_COLORS)
    )
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(_log_level(verbose, warnings_only, errors_only))
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _parse_partition_args(values: Optional[List[str]]) -> Dict[str, str]:
    """Parse repeated ``KEY=VALUE`` arguments into a constraint mapping."""
    constraints: Dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Invalid partition filter '{item}': expected KEY=VALUE")
        constraints[key] = value.strip()
    return constraints


def _build_client(args: argparse.Namespace) -> Tuple[Optional[DeltaSharingClient], int]:
    """Create a client from --profile or --endpoint/--token, or an exit code."""
    config_arg = getattr(args, "config", None)
    try:
        settings = load_settings(Path(config_arg) if config_arg else None)
        client = DeltaSharingClient(
            endpoint=getattr(args, "endpoint", None),
            token=getattr(args, "token", None),
            profile_path=getattr(args, "profile", None),
            settings=settings,
        )
    except (FileNotFoundError, ProfileError) as e:
        logging.error("Failed to load configuration: %s", e)
        return None, EXIT_CONFIG
    except ValueError as e:
        logging.error("%s", e)
        return None, EXIT_USAGE
    return client, EXIT_OK


def _print_listing(listing, as_json: bool) -> None:
    if as_json:
        payload = {
            "items": listing.to_pandas().to_dict(orient="records"),
            "nextPageToken": listing.next_page_token,
        }
        print(json.dumps(payload, indent=2))
        return
    df = listing.to_pandas()
    print(df.to_string(index=False) if len(df) else f"(no rows; columns: {', '.join(df.columns)})")
    if listing.next_page_token:
        logging.info("More results available; pass --page-token %s", listing.next_page_token)


def _run_listing(args: argparse.Namespace, kind: str) -> int:
    client, code = _build_client(args)
    if client is None:
        return code
    try:
        with client:
            if kind == "shares":
                listing = client.list_shares(args.max_results, args.page_token)
            elif kind == "schemas":
                listing = client.list_schemas(args.share, args.max_results, args.page_token)
            elif kind == "tables":
                listing = client.list_tables(
                    args.share, args.schema, args.max_results, args.page_token
                )
            else:
                listing = client.list_all_tables(args.share, args.max_results, args.page_token)
    except TransportError as e:
        logging.error("%s", e)
        return EXIT_SERVER
    except DeltaSharingError as e:
        logging.error("Unexpected server response: %s", e)
        return EXIT_SERVER
    _print_listing(listing, bool(args.json))
    return EXIT_OK


def cmd_shares(args: argparse.Namespace) -> int:
    return _run_listing(args, "shares")


def cmd_schemas(args: argparse.Namespace) -> int:
    return _run_listing(args, "schemas")


def cmd_tables(args: argparse.Namespace) -> int:
    return _run_listing(args, "tables")


def cmd_all_tables(args: argparse.Namespace) -> int:
    return _run_listing(args, "all-tables")


def cmd_metadata(args: argparse.Namespace) -> int:
    try:
        ref = parse_table_name(args.table)
    except ValueError as e:
        logging.error("%s", e)
        return EXIT_USAGE
    client, code = _build_client(args)
    if client is None:
        return code
    try:
        with client:
            result = client.get_table_metadata(ref.share, ref.schema, ref.name)
    except DeltaSharingError as e:
        logging.error("%s", e)
        return EXIT_SERVER

    protocol = result.protocol.raw if result.protocol else None
    metadata = result.metadata
    if args.json:
        print(
            json.dumps(
                {
                    "protocol": protocol,
                    "metadata": {
                        "id": metadata.id,
                        "name": metadata.name,
                        "format": metadata.format,
                        "schemaString": metadata.schema_string,
                        "partitionColumns": list(metadata.partition_columns),
                        "configuration": metadata.configuration,
                        "version": metadata.version,
                    }
                    if metadata
                    else None,
                },
                indent=2,
            )
        )
        return EXIT_OK
    print(f"Table: {ref.full_name}")
    if result.protocol:
        print(f"  Min reader version: {result.protocol.min_reader_version}")
    if metadata:
        print(f"  Id: {metadata.id}")
        print(f"  Columns: {', '.join(metadata.column_names()) or '(unknown)'}")
        print(f"  Partition columns: {', '.join(metadata.partition_columns) or '(none)'}")
    return EXIT_OK


def cmd_version(args: argparse.Namespace) -> int:
    try:
        ref = parse_table_name(args.table)
    except ValueError as e:
        logging.error("%s", e)
        return EXIT_USAGE
    client, code = _build_client(args)
    if client is None:
        return code
    try:
        with client:
            version = client.get_table_version(ref.share, ref.schema, ref.name)
    except DeltaSharingError as e:
        logging.error("%s", e)
        return EXIT_SERVER
    if version is None:
        logging.warning("Server did not report a version for %s", ref.full_name)
        return EXIT_SERVER
    print(version)
    return EXIT_OK


def cmd_query(args: argparse.Namespace) -> int:
    """Print the signed file URLs of a table query, after partition filtering."""
    try:
        ref = parse_table_name(args.table)
        constraints = _parse_partition_args(args.partition)
    except ValueError as e:
        logging.error("%s", e)
        return EXIT_USAGE
    client, code = _build_client(args)
    if client is None:
        return code
    try:
        with client:
            result = client.query_table(
                ref.share,
                ref.schema,
                ref.name,
                predicate_hints=args.predicate_hint,
                limit_hint=args.limit_hint,
                version=args.version,
            )
    except DeltaSharingError as e:
        logging.error("%s", e)
        return EXIT_SERVER

    files = filter_files_by_partition(result.files, constraints)
    logging.info("%d of %d file(s) selected", len(files), len(result.files))
    if args.json:
        print(
            json.dumps(
                [
                    {
                        "url": f.url,
                        "id": f.id,
                        "partitionValues": f.partition_values,
                        "size": f.size,
                    }
                    for f in files
                ],
                indent=2,
            )
        )
    else:
        for f in files:
            print(f.url)
    return EXIT_OK


def cmd_read(args: argparse.Namespace) -> int:
    """Read a table and write it to --output, or print its first rows."""
    try:
        ref = parse_table_name(args.table)
        constraints = _parse_partition_args(args.partition)
    except ValueError as e:
        logging.error("%s", e)
        return EXIT_USAGE

    output_path = Path(args.output).resolve() if args.output else None
    if output_path is not None and output_path.suffix.lower() not in {".csv", ".parquet"}:
        logging.error("Unsupported output format: %s (use .csv or .parquet)", output_path.suffix)
        return EXIT_USAGE

    client, code = _build_client(args)
    if client is None:
        return code
    try:
        with client:
            result = client.read(
                ref.share,
                ref.schema,
                ref.name,
                partition_filter=constraints or None,
                predicate_hints=args.predicate_hint,
                limit_hint=args.limit_hint,
                version=args.version,
                show_progress=False if args.no_progress else None,
            )
    except DeltaSharingError as e:
        logging.error("%s", e)
        return EXIT_SERVER
    except pa.ArrowException as e:
        logging.error("Failed to decode %s: %s", ref.full_name, e)
        return EXIT_SERVER

    df = result.table
    if result.notice is not None:
        logging.warning("Empty result for %s: %s", ref.full_name, result.notice.value)
    if result.failed_urls:
        logging.warning(
            "%d of %d file(s) could not be downloaded", result.dropped_count, result.filtered_count
        )
    logging.info(
        "Read %d row(s) from %d file(s) of %s",
        len(df),
        result.filtered_count - result.dropped_count,
        ref.full_name,
    )

    if output_path is not None:
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            if output_path.suffix.lower() == ".csv":
                df.to_csv(output_path, index=False)
            else:
                df.to_parquet(output_path, index=False)
        except OSError as e:
            logging.error("Failed to write %s: %s", output_path, e)
            return EXIT_SERVER
        logging.info("Saved %s → %s", ref.full_name, output_path)
    else:
        print(df.head(args.head).to_string(index=False))
    return EXIT_SERVER if result.notice is not None and result.failed_urls else EXIT_OK


def _add_paging_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--max-results", type=int, default=None, help="Maximum items per page")
    p.add_argument("--page-token", default=None, help="Continuation token from a previous page")
    p.add_argument("--json", action="store_true", help="Print JSON instead of a table")


def _add_query_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("table", help="Fully qualified table name: share.schema.table")
    p.add_argument(
        "--partition",
        action="append",
        default=None,
        metavar="KEY=VALUE",
        help="Client-side partition filter; repeat for several keys (all must match)",
    )
    p.add_argument(
        "--predicate-hint",
        action="append",
        default=None,
        help="Server-side predicate hint (advisory); may be repeated",
    )
    p.add_argument("--limit-hint", type=int, default=None, help="Row limit hint for the server")
    p.add_argument("--version", type=int, default=None, help="Table version to query")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="delta-share",
        description=f"Delta Sharing client (v{__version__})",
    )
    p.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    p.add_argument(
        "--warnings-only",
        action="store_true",
        help="Show only warnings and errors (overrides --verbose)",
    )
    p.add_argument(
        "--errors-only",
        action="store_true",
        help="Show only errors (overrides --warnings-only and --verbose)",
    )
    p.add_argument("--config", default=None, help="Path to a YAML settings file")
    p.add_argument("--profile", default=None, help="Path to a Delta Sharing profile (.share)")
    p.add_argument("--endpoint", default=None, help="Server endpoint (ignored with --profile)")
    p.add_argument("--token", default=None, help="Bearer token (ignored with --profile)")
    sub = p.add_subparsers(dest="command", required=True)

    p_shares = sub.add_parser("shares", help="List shares")
    _add_paging_args(p_shares)
    p_shares.set_defaults(func=cmd_shares)

    p_schemas = sub.add_parser("schemas", help="List schemas in a share")
    p_schemas.add_argument("share")
    _add_paging_args(p_schemas)
    p_schemas.set_defaults(func=cmd_schemas)

    p_tables = sub.add_parser("tables", help="List tables in a schema")
    p_tables.add_argument("share")
    p_tables.add_argument("schema")
    _add_paging_args(p_tables)
    p_tables.set_defaults(func=cmd_tables)

    p_all = sub.add_parser("all-tables", help="List tables across all schemas of a share")
    p_all.add_argument("share")
    _add_paging_args(p_all)
    p_all.set_defaults(func=cmd_all_tables)

    p_meta = sub.add_parser("metadata", help="Show table protocol and metadata")
    p_meta.add_argument("table", help="Fully qualified table name: share.schema.table")
    p_meta.add_argument("--json", action="store_true", help="Print JSON")
    p_meta.set_defaults(func=cmd_metadata)

    p_version = sub.add_parser("version", help="Show the current table version")
    p_version.add_argument("table", help="Fully qualified table name: share.schema.table")
    p_version.set_defaults(func=cmd_version)

    p_query = sub.add_parser("query", help="List the signed file URLs of a table")
    _add_query_args(p_query)
    p_query.add_argument("--json", action="store_true", help="Print file records as JSON")
    p_query.set_defaults(func=cmd_query)

    p_read = sub.add_parser("read", help="Download a table into a CSV/Parquet file or preview it")
    _add_query_args(p_read)
    p_read.add_argument("--output", default=None, help="Write the table to this .csv or .parquet")
    p_read.add_argument("--head", type=int, default=10, help="Rows to print without --output")
    p_read.add_argument("--no-progress", action="store_true", help="Hide the download progress bar")
    p_read.set_defaults(func=cmd_read)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        verbose=bool(args.verbose),
        warnings_only=bool(getattr(args, "warnings_only", False)),
        errors_only=bool(getattr(args, "errors_only", False)),
    )
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
