from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from schedsync.app import (
    create_festival,
    export_schedule,
    import_schedule,
    preview_schedule_import,
)
from schedsync.config import configure_logging
from schedsync.domain.reconciliation import ImportMode, MergePreview, parse_decisions

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from schedsync.domain.reconciliation import DecisionsById

log = logging.getLogger(__name__)


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--festival-id", type=str, required=True, help="Target festival id")
    parser.add_argument(
        "--file",
        type=Path,
        required=True,
        help="Delimited schedule file (';' or ',' separated, with header row)",
    )
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ImportMode],
        default=ImportMode.MERGE.value,
        help="Import mode (default: %(default)s)",
    )
    parser.add_argument("--caller", type=str, help="Acting user, checked against the owner")


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile festival schedules")
    subparsers = parser.add_subparsers(dest="command", required=True)

    festival = subparsers.add_parser("festival", help="Festival management commands")
    festival_sub = festival.add_subparsers(dest="festival_command", required=True)
    festival_create = festival_sub.add_parser("create", help="Create a festival")
    festival_create.add_argument("--name", type=str, required=True, help="Festival name")
    festival_create.add_argument(
        "--start-date",
        type=str,
        help="First festival day (YYYY-MM-DD); anchors weekday-only rows",
    )
    festival_create.add_argument("--end-date", type=str, help="Last festival day (YYYY-MM-DD)")
    festival_create.add_argument("--owner", type=str, help="Owning user")

    preview = subparsers.add_parser("preview", help="Dry-run a schedule import")
    _add_source_arguments(preview)

    apply = subparsers.add_parser("import", help="Import a schedule into a festival")
    _add_source_arguments(apply)
    apply.add_argument(
        "--decisions",
        type=str,
        help='JSON object mapping suggested session ids to "update" or "create"',
    )
    apply.add_argument(
        "--yes",
        action="store_true",
        help="Confirm a replace import that deletes sessions with bookings",
    )

    export = subparsers.add_parser("export", help="Export a festival schedule")
    export.add_argument("--festival-id", type=str, required=True, help="Festival id")
    export.add_argument("--output", type=Path, help="Write to this file instead of stdout")
    export.add_argument("--caller", type=str, help="Acting user, checked against the owner")

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _parse_date(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid ISO date: {value}") from exc


def _parse_decisions(value: str | None) -> DecisionsById:
    if not value:
        return {}
    loaded = json.loads(value)
    if not isinstance(loaded, dict):
        raise ValueError("--decisions must be a JSON object")
    return parse_decisions({str(key): str(item) for key, item in loaded.items()})


def _read_source(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _write(text: str) -> None:
    sys.stdout.write(text)
    if not text.endswith("\n"):
        sys.stdout.write("\n")


def _run_preview(args: argparse.Namespace, festival_id: UUID) -> None:
    outcome = preview_schedule_import(
        festival_id,
        _read_source(args.file),
        mode=ImportMode(args.mode),
        caller=args.caller,
    )
    if isinstance(outcome, MergePreview):
        _write(json.dumps(outcome.to_payload(), indent=2))
        return
    _write(outcome.summary)
    if outcome.warning:
        log.warning(outcome.warning)


def _run_import(
    args: argparse.Namespace,
    festival_id: UUID,
    decisions: DecisionsById,
) -> bool:
    source = _read_source(args.file)
    mode = ImportMode(args.mode)
    if mode is ImportMode.REPLACE and not args.yes:
        planned = preview_schedule_import(festival_id, source, mode=mode, caller=args.caller)
        if not isinstance(planned, MergePreview) and planned.sessions_with_bookings:
            log.error("%s Re-run with --yes to proceed.", planned.warning)
            return False
    outcome = import_schedule(
        festival_id,
        source,
        mode=mode,
        decisions=decisions,
        caller=args.caller,
    )
    _write(outcome.plan.summary)
    for warning in outcome.plan.warnings:
        log.warning(warning)
    return True


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    decisions: DecisionsById = {}
    festival_id: UUID | None = None
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.command != "festival":
            festival_id = _parse_uuid(parsed_args.festival_id)
        if parsed_args.command == "import":
            decisions = _parse_decisions(parsed_args.decisions)
        if parsed_args.command == "festival":
            start_date = _parse_date(parsed_args.start_date)
            end_date = _parse_date(parsed_args.end_date)
            if start_date and end_date and start_date > end_date:
                raise ValueError("Festival start date must not be after its end date")  # noqa: TRY301
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "festival" and parsed_args.festival_command == "create":
            festival = create_festival(
                parsed_args.name,
                start_date=_parse_date(parsed_args.start_date),
                end_date=_parse_date(parsed_args.end_date),
                owner=parsed_args.owner,
            )
            _write(str(festival.id))
        elif parsed_args.command == "preview" and festival_id is not None:
            _run_preview(parsed_args, festival_id)
        elif parsed_args.command == "import" and festival_id is not None:
            if not _run_import(parsed_args, festival_id, decisions):
                sys.exit(2)
        elif parsed_args.command == "export" and festival_id is not None:
            text = export_schedule(festival_id, caller=parsed_args.caller)
            if parsed_args.output is not None:
                parsed_args.output.write_text(text, encoding="utf-8")
                log.info("Exported schedule to %s", parsed_args.output)
            else:
                _write(text)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during schedule command")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()
