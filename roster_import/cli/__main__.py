from __future__ import annotations

import argparse
import asyncio
import signal
import sys
import time
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from roster_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from roster_import.db.connection import db_connection, load_env_file
from roster_import.db.memory_store import InMemoryRosterStore
from roster_import.db.postgres_store import PostgresRosterStore
from roster_import.db.store import RosterStore, StoreError
from roster_import.excel.reader import SchemaError
from roster_import.logging.error_log import ErrorLogBuffer
from roster_import.logging.init import log_summary, set_debug, setup_logging
from roster_import.models.candidate import ImportCandidate
from roster_import.models.config_models import ImportConfig
from roster_import.models.outcome import ImportOutcome
from roster_import.services.identity import precheck_candidates
from roster_import.services.pipeline import ParseResult, build_report, commit_import, detect_and_parse
from roster_import.services.summary import render_summary_line

"""CLI entrypoint.

    python -m roster_import.cli preview FILE [--precheck]
    python -m roster_import.cli commit FILE --event-id ID [--dry-run]

Exit codes:
    0  every row committed (or preview finished)
    1  fatal: config, upload, schema or database connection error
    2  at least one row failed to commit
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="roster_import", description="Spreadsheet -> event roster importer"
    )
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=None, help="Path to import.yml")
    sub = p.add_subparsers(dest="command", required=True)

    preview = sub.add_parser("preview", help="Parse a roster and print the candidates")
    preview.add_argument("file", type=Path)
    preview.add_argument(
        "--precheck", action="store_true", help="Look up which rows already exist in the directory"
    )

    commit = sub.add_parser("commit", help="Commit a roster to an event")
    commit.add_argument("file", type=Path)
    commit.add_argument("--event-id", required=True, help="Target event id")
    commit.add_argument(
        "--dry-run", action="store_true", help="Commit against an empty in-memory store"
    )
    return p.parse_args(argv)


def _load_config(path: Path | None) -> ImportConfig:
    """Explicit --config must exist; the default path is optional."""
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    setup_logging().debug(f"{DEFAULT_CONFIG_PATH} not found, using built-in defaults")
    return ImportConfig()


@contextmanager
def _open_store(cfg: ImportConfig, dry_run: bool) -> Iterator[RosterStore]:
    if dry_run:
        yield InMemoryRosterStore()
        return
    with db_connection(cfg.database) as conn:
        yield PostgresRosterStore(conn)


def _print_candidates(result: ParseResult) -> None:
    print(
        f"layout={result.layout.value} header_row={result.header_row_index + 1} "
        f"candidates={len(result.candidates)} invalid={len(result.invalid)}"
    )
    for c in result.candidates:
        line = (
            f"  row {c.row_number:>4} [{c.status.value}] {c.full_name} "
            f"code={c.identifier_code or '-'} email={c.email or '-'}"
        )
        if c.validation_error:
            line += f"  !! {c.validation_error}"
        print(line)


def _run_preview(args: argparse.Namespace, cfg: ImportConfig, result: ParseResult) -> int:
    logger = setup_logging()
    if not args.precheck:
        _print_candidates(result)
        return EXIT_SUCCESS_ALL
    try:
        with _open_store(cfg, dry_run=False) as store:
            labelled, summary = asyncio.run(precheck_candidates(result.candidates, store))
    except StoreError as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL
    _print_candidates(
        ParseResult(
            candidates=labelled,
            layout=result.layout,
            header_row_index=result.header_row_index,
            mapping=result.mapping,
        )
    )
    print(f"precheck existing={summary.existing} new={summary.new} invalid={summary.invalid}")
    return EXIT_SUCCESS_ALL


async def _commit_with_cancel(
    event_id: str,
    candidates: Sequence[ImportCandidate],
    store: RosterStore,
    cfg: ImportConfig,
    error_log: ErrorLogBuffer,
    source_name: str,
) -> list[ImportOutcome]:
    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.set)
    except (NotImplementedError, RuntimeError):  # pragma: no cover (non-POSIX / not main thread)
        pass
    try:
        return await commit_import(
            event_id,
            candidates,
            store,
            cfg.settings,
            error_log=error_log,
            source_name=source_name,
            cancel=cancel,
        )
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):  # pragma: no cover
            pass


def _run_commit(args: argparse.Namespace, cfg: ImportConfig, result: ParseResult) -> int:
    logger = setup_logging()
    error_log = ErrorLogBuffer()
    source_name = args.file.name
    mode = "dry-run" if args.dry_run else "live"
    logger.info(f"mode={mode} event={args.event_id} candidates={len(result.candidates)}")

    started = time.perf_counter()
    try:
        with _open_store(cfg, args.dry_run) as store:
            outcomes = asyncio.run(
                _commit_with_cancel(
                    args.event_id, result.candidates, store, cfg, error_log, source_name
                )
            )
    except StoreError as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL
    report = build_report(outcomes, elapsed_seconds=time.perf_counter() - started)

    for failure in report.failures:
        logger.warning(f"row {failure.row_number} ({failure.full_name}): {failure.reason}")
    log_path = error_log.flush()
    if log_path is not None:
        logger.info(f"error log written: {log_path}")

    # log_summary adds the "SUMMARY " label itself
    log_summary(render_summary_line(report).removeprefix("SUMMARY "))
    return EXIT_PARTIAL_FAILURE if report.failed else EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()
    # an empty list must not fall back to sys.argv (pytest arguments would leak in)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    load_env_file(Path(".env"), override=True)
    try:
        cfg = _load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    path: Path = args.file
    if not path.is_file():
        logger.error(f"file not found: {path}")
        return EXIT_FATAL
    try:
        result = detect_and_parse(path.read_bytes(), path.name, cfg.settings)
    except SchemaError as e:
        logger.error(f"upload: {e}")
        return EXIT_FATAL

    if args.command == "preview":
        return _run_preview(args, cfg, result)
    return _run_commit(args, cfg, result)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
