"""fixedrec CLI: decode, group and store fixed-width record files."""

import argparse
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [FIXEDREC] %(levelname)s %(message)s"


def main():
    """Main CLI entry point for fixedrec commands."""
    try:
        fixedrec_version = get_version("fixedrec")
    except PackageNotFoundError:
        fixedrec_version = "dev"

    parser = argparse.ArgumentParser(
        prog="fixedrec",
        description="fixedrec: schema-driven decoding of fixed-width record files"
    )
    parser.add_argument("--version", action="version", version=f"fixedrec {fixedrec_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parent_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Log level for stderr logging (default: WARNING)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ingest command
    ingest_parser = subparsers.add_parser(
        "ingest",
        help="Decode an input file, group records and write the batch",
        parents=[parent_parser]
    )
    ingest_parser.add_argument(
        "--schema",
        type=Path,
        default=None,
        help="Path to schema JSON (or FIXEDREC_SCHEMA_PATH)"
    )
    ingest_parser.add_argument(
        "--codes",
        type=Path,
        default=None,
        help="Path to code-to-message JSON (or FIXEDREC_CODES_PATH)"
    )
    ingest_parser.add_argument(
        "--input",
        type=Path,
        default=None,
        help="Path to the fixed-width input file (or FIXEDREC_INPUT_PATH)"
    )
    ingest_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="JSON-lines output file for grouped documents (or FIXEDREC_OUTPUT_PATH); "
             "omit to only report counts"
    )
    ingest_parser.add_argument(
        "--group-field",
        default=None,
        help="Field used to group records (default: isin)"
    )
    ingest_parser.add_argument(
        "--encoding",
        default=None,
        help="Input file encoding (default: latin-1)"
    )

    # verify command group
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verification commands"
    )
    verify_subparsers = verify_parser.add_subparsers(dest="verify_command", help="Available verify commands")

    verify_schema_parser = verify_subparsers.add_parser(
        "schema",
        help="Preflight-check a schema and optional code table",
        parents=[parent_parser]
    )
    verify_schema_parser.add_argument(
        "schema_path",
        type=Path,
        help="Path to schema JSON"
    )
    verify_schema_parser.add_argument(
        "--codes",
        type=Path,
        default=None,
        help="Path to code-to-message JSON"
    )
    verify_schema_parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Output directory for the verification report"
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=getattr(args, "log_level", "WARNING"),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )

    def _write_validation_result(result, output_dir: Optional[Path], filename: str) -> None:
        from ._internal.canonical_json import canonical_dumps

        result_dict = result.model_dump()
        if output_dir is not None:
            output_dir.mkdir(parents=True, exist_ok=True)
            report_out = output_dir / filename
            report_out.write_text(canonical_dumps(result_dict) + "\n", encoding="utf-8")
            if not args.quiet:
                print("[OK] Verification complete")
                print(f"  Report: {report_out}")
        else:
            if not args.quiet:
                status = "OK" if result.ok else "FAILED"
                print(f"[{status}] Verification complete")
        if not args.quiet:
            print(f"  Status: {'OK' if result.ok else 'FAILED'}")
            print(f"  Errors: {len(result.errors)}")
            print(f"  Warnings: {len(result.warnings)}")
            for issue in result.errors + result.warnings:
                print(f"  - {issue.code}: {issue.message}")
        if not result.ok:
            sys.exit(1)

    if args.command == "ingest":
        # Lazy import: only load pydantic models and kernel when a command runs
        from pydantic import ValidationError
        from .api import run
        from .config import load_config
        from .kernel.scanner import ScanError
        from .kernel.schema import SchemaLoadError
        from .sinks import JsonLinesSink, MemorySink, SinkError

        try:
            config = load_config(
                schema_path=args.schema,
                codes_path=args.codes,
                input_path=args.input,
                output_path=args.out,
                group_field=args.group_field,
                encoding=args.encoding,
            )
        except ValidationError as e:
            print(f"Error: incomplete configuration: {e}", file=sys.stderr)
            sys.exit(1)

        sink = JsonLinesSink(config.output_path) if config.output_path else MemorySink()

        try:
            result = run(config, sink)
        except (SchemaLoadError, ScanError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        except SinkError as e:
            print(f"Error: {e}", file=sys.stderr)
            if e.report is not None:
                print(
                    f"  Partial: insert: {e.report.inserted}, updated: {e.report.modified}, "
                    f"deleted: {e.report.deleted}",
                    file=sys.stderr,
                )
            sys.exit(1)

        if not args.quiet:
            print("[OK] Ingest complete")
            print(f"  Lines: {result.total_lines}")
            print(f"  Grouped: {result.grouped} records under {result.groups} identifiers")
            print(f"  Dropped: {result.dropped}")
            print(f"  Decode failures: {len(result.failures)}")
            if config.output_path:
                print(f"  Output: {config.output_path}")
            print(
                f"  insert: {result.sink.inserted}, updated: {result.sink.modified}, "
                f"deleted: {result.sink.deleted}"
            )
        sys.exit(0)
    elif args.command == "verify" and args.verify_command == "schema":
        from .api import validate_schema

        schema_path = Path(args.schema_path).resolve()
        codes_path = Path(args.codes).resolve() if args.codes else None
        output_dir = Path(args.output_dir).resolve() if args.output_dir else None

        result = validate_schema(schema_path, codes_path)
        _write_validation_result(result, output_dir, "verify_schema.json")
    elif args.command == "verify":
        verify_parser.print_help()
        sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
