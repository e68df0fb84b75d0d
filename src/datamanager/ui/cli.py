from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from pydantic import ValidationError

from datamanager.app import export_models, import_file, sync_file
from datamanager.config import configure_logging
from datamanager.domain.errors import ConfigurationError
from datamanager.domain.identity import IDENTITY_RESOLVERS, identity_resolver_named
from datamanager.domain.reconciliation import UpdateMethod

from .schema import ExportQueryPayload

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from datamanager.domain.export import ExportQuery

log = logging.getLogger(__name__)


def _add_import_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("entity", help="Identity of the model to import into")
    parser.add_argument("path", type=Path, help="File holding the records")
    parser.add_argument(
        "--format",
        dest="fmt",
        type=str,
        help="Format tag (defaults to the file extension)",
    )
    parser.add_argument(
        "--truncate",
        action="store_true",
        default=None,
        help="Remove every existing record before importing",
    )
    parser.add_argument(
        "--identity-field",
        dest="identity_fields",
        action="append",
        help="Field identifying an existing record (repeatable, defaults to config)",
    )
    parser.add_argument(
        "--identity-resolver",
        choices=sorted(IDENTITY_RESOLVERS),
        help="'unique' adds the model's unique fields to the identity fields, 'fixed' does not",
    )
    parser.add_argument(
        "--update-method",
        type=str,
        help=f"Store operation ({', '.join(method.value for method in UpdateMethod)})",
    )
    parser.add_argument(
        "--transform",
        dest="transform_plugin",
        type=str,
        help="Batch transform plugin, 'package.module:attr' or 'file.py:attr'",
    )
    parser.add_argument(
        "--non-strict",
        dest="strict",
        action="store_false",
        default=None,
        help="Drop record fields the model does not declare",
    )
    parser.add_argument(
        "--items-before-delay",
        dest="number_of_items_before_delay",
        type=int,
        help="Pause after this many records",
    )
    parser.add_argument(
        "--batch-delay",
        dest="delay_after_item_batch",
        type=float,
        help="Pause length in milliseconds after each batch",
    )
    parser.add_argument(
        "--item-delay",
        dest="delay_between_items",
        type=float,
        help="Pause length in milliseconds before every record",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import and export model collections")
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser("import", help="Import a file into a model")
    _add_import_options(import_parser)

    sync = subparsers.add_parser("sync", help="Import a file and archive it when clean")
    _add_import_options(sync)
    sync.add_argument(
        "--move-after-done",
        action="store_true",
        help="Move the file into the history directory after a clean import",
    )
    sync.add_argument(
        "--history-path",
        type=Path,
        help="Directory receiving archived files (defaults to the file's directory)",
    )

    export = subparsers.add_parser("export", help="Export a model to a file")
    export.add_argument("entity", help="Identity of the model to export")
    export.add_argument(
        "--format",
        dest="fmt",
        type=str,
        default="json",
        help="Format tag (default: %(default)s)",
    )
    export.add_argument(
        "--output",
        type=Path,
        help="Destination file (defaults to <epoch-millis>-<entity>.<format>)",
    )
    export.add_argument(
        "--dir",
        dest="directory",
        type=Path,
        help="Directory for generated file names",
    )
    export.add_argument(
        "--query",
        type=str,
        help='JSON query, e.g. \'{"criteria": {"active": true}, "limit": 10}\'',
    )

    return parser.parse_args(list(argv))


def _parse_query(raw: str | None) -> ExportQuery | None:
    if raw is None:
        return None
    try:
        return ExportQueryPayload.model_validate_json(raw).to_query()
    except ValidationError as exc:
        raise ValueError(f"Invalid query: {exc}") from exc


def _import_overrides(args: argparse.Namespace) -> dict[str, object]:
    overrides: dict[str, object] = {
        "truncate": args.truncate,
        "strict": args.strict,
        "transform_plugin": args.transform_plugin,
        "number_of_items_before_delay": args.number_of_items_before_delay,
        "delay_after_item_batch": args.delay_after_item_batch,
        "delay_between_items": args.delay_between_items,
    }
    if args.identity_fields:
        overrides["identity_fields"] = tuple(args.identity_fields)
    if args.update_method:
        overrides["update_method"] = UpdateMethod.parse(args.update_method)
    if args.identity_resolver:
        overrides["identity_resolver"] = identity_resolver_named(args.identity_resolver)
    return overrides


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        query = _parse_query(parsed_args.query) if parsed_args.command == "export" else None
        overrides = _import_overrides(parsed_args) if parsed_args.command != "export" else {}
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "import":
            result = import_file(
                parsed_args.entity,
                parsed_args.path,
                fmt=parsed_args.fmt,
                **overrides,
            )
            for error in result.errors:
                log.error("%s: %s", error.error_id, error)
            log.info(
                "Imported %s: stored=%s, failed=%s",
                parsed_args.entity,
                len(result.records),
                len(result.errors),
            )
            if not result.ok:
                sys.exit(1)
        elif parsed_args.command == "sync":
            sync = sync_file(
                parsed_args.entity,
                parsed_args.path,
                move_after_done=parsed_args.move_after_done,
                history_path=parsed_args.history_path,
                fmt=parsed_args.fmt,
                **overrides,
            )
            if sync.errors:
                sys.exit(1)
        elif parsed_args.command == "export":
            target = export_models(
                parsed_args.entity,
                query=query,
                fmt=parsed_args.fmt,
                filename=parsed_args.output,
                directory=parsed_args.directory,
            )
            log.info("Exported %s to %s", parsed_args.entity, target)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except ConfigurationError:
        log.exception(
            "Invalid configuration for %s; check --identity-field or DATAMANAGER_IDENTITY_FIELDS "
            "against the fields %s declares",
            parsed_args.command,
            parsed_args.entity,
        )
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
