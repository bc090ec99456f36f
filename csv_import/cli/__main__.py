from __future__ import annotations

import argparse
import asyncio
import os
import sys
from datetime import UTC, datetime
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, ImportConfig, load_config
from ..csvfile.reader import CsvReadError, read_csv_file
from ..logging.error_log import ValidationErrorLog
from ..logging.init import log_summary, setup_logging
from ..models.import_summary import ImportSummary
from ..services.import_driver import EmptyUploadError, ImportSession
from ..services.summary import render_summary_line
from ..services.template_store import TemplateFileError, TemplateStore
from ..sinks.jsonl_sink import JsonLinesCommitSink

"""CLI entrypoint.

Runs one import session end to end:
- load .env and config
- read the CSV and auto-map its headers
- apply template / manual mapping / transformation / default options
- validate; on errors print them, write the validation log and stop
- print the requested preview page and commit the records as JSON Lines
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_VALIDATION_FAILED = 2

MAX_ERRORS_SHOWN = 20
INSPECT_SAMPLE_ROWS = 3


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load .env using python-dotenv; failures only warn."""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except Exception as e:  # pragma: no cover
        print(f"WARNING: failed to load .env via python-dotenv: {e}")


def _key_value(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got '{raw}'")
    return key.strip(), value


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="csv-import", description="CSV -> field catalog importer")
    p.add_argument("csv_path", type=Path, help="CSV file to import")
    p.add_argument("--config", type=Path, default=None, help="Config YAML (default: config/import.yml)")
    p.add_argument("--map", dest="mappings", action="append", type=_key_value, default=[],
                   metavar="HEADER=FIELD", help="Bind a header to a field (empty FIELD unmaps)")
    p.add_argument("--transform", dest="transforms", action="append", type=_key_value, default=[],
                   metavar="FIELD=KIND", help="Transformation: none|trim|uppercase|lowercase")
    p.add_argument("--default", dest="defaults", action="append", type=_key_value, default=[],
                   metavar="FIELD=VALUE", help="Default value for empty fields")
    p.add_argument("--template", default=None, help="Load a saved mapping template by name")
    p.add_argument("--save-template", default=None, help="Save the final mapping under this name")
    p.add_argument("--page", type=int, default=1, help="Preview page to print")
    p.add_argument("--output", type=Path, default=None, help="Directory for committed records")
    p.add_argument("--dry-run", action="store_true", help="Validate and preview without committing")
    p.add_argument("--inspect-data", action="store_true", help="Print headers, proposals & first rows then exit")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _resolve_config_path(args: argparse.Namespace) -> Path:
    if args.config is not None:
        return args.config
    env_path = os.getenv("CSV_IMPORT_CONFIG")
    return Path(env_path) if env_path else DEFAULT_CONFIG_PATH


def _print_mapping(session: ImportSession) -> None:
    confidences = {p.source_header: p.confidence for p in session.proposals}
    print("MAPPING:")
    for m in session.mappings:
        target = m.target_field or "(unmapped)"
        conf = confidences.get(m.source_header)
        suffix = f"  [{conf:.2f}]" if conf is not None and m.target_field else ""
        print(f"  {m.source_header} -> {target}{suffix}")
    for field in session.catalog.ordered_required:
        if field not in session.mapping.bound_fields() and field not in session.default_values:
            print(f"  ! required field not mapped: {field}")


def _print_page(session: ImportSession) -> None:
    records = session.current_page_records()
    start = (session.current_page - 1) * session.page_size
    print(f"PREVIEW page {session.current_page}/{max(session.total_pages, 1)}:")
    for offset, record in enumerate(records):
        index = start + offset
        flag = " (duplicate?)" if index in session.duplicates else ""
        print(f"  [{index}] {record}{flag}")


def _inspect_data(session: ImportSession) -> int:
    print(f"HEADERS: {session.headers}")
    for p in session.proposals:
        print(f"  {p.source_header}: suggested={p.suggested_field} confidence={p.confidence:.2f} bound={p.target_field}")
    print("  sample_rows=", session.rows[:INSPECT_SAMPLE_ROWS])
    return EXIT_SUCCESS


def _apply_options(session: ImportSession, args: argparse.Namespace, templates: TemplateStore) -> None:
    """Apply template and manual edits. Raises ValueError / KeyError on bad input."""
    if args.template:
        template = templates.find_by_name(args.template)
        if template is None:
            raise ValueError(f"template not found: {args.template}")
        session.load_template(template.id)
    for header, field in args.mappings:
        session.set_mapping(header, field.strip() or None)
    for field, kind in args.transforms:
        session.set_transformation(field, kind)
    for field, value in args.defaults:
        session.set_default_value(field, value)


def _finish(session: ImportSession, start: datetime, committed: bool) -> None:
    end = datetime.now(UTC)
    summary = ImportSummary(
        total_rows=len(session.rows),
        mapped_fields=len(session.mapping.bound_fields()),
        error_count=len(session.errors),
        duplicate_rows=len(session.duplicates),
        step=session.step.value,
        committed=committed,
        start_time=start,
        end_time=end,
        elapsed_seconds=(end - start).total_seconds(),
    )
    # log_summary が "SUMMARY " を付与するので除去
    log_summary(render_summary_line(summary)[len("SUMMARY "):])


def _build_session(cfg: ImportConfig, args: argparse.Namespace, templates: TemplateStore) -> ImportSession:
    sink = JsonLinesCommitSink(args.output or Path(cfg.output_directory))
    return ImportSession(
        cfg.catalog,
        commit_handler=sink,
        page_size=cfg.page_size,
        patterns=cfg.field_patterns,
        threshold=cfg.match_threshold,
        template_store=templates,
        field_formats=cfg.field_formats,
    )


def main(argv: list[str] | None = None) -> int:
    # None のときのみ sys.argv を読む ([] はテスト用)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")
    start = datetime.now(UTC)

    _load_env_file(Path(".env"))
    try:
        cfg = load_config(_resolve_config_path(args))
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    templates_path = Path(cfg.templates_file)
    try:
        templates = TemplateStore.from_file(templates_path)
        parsed = read_csv_file(args.csv_path)
    except (TemplateFileError, CsvReadError) as e:
        logger.error(f"input: {e}")
        return EXIT_FATAL

    session = _build_session(cfg, args, templates)
    try:
        session.upload(parsed.headers, parsed.rows)
    except EmptyUploadError as e:
        logger.error(f"upload: {e}")
        return EXIT_FATAL
    logger.info(f"Processing file: {args.csv_path}")

    if args.inspect_data:
        return _inspect_data(session)

    try:
        _apply_options(session, args, templates)
    except (ValueError, KeyError) as e:
        logger.error(f"mapping: {e}")
        return EXIT_FATAL
    _print_mapping(session)

    if args.save_template:
        session.save_template(args.save_template)
        try:
            templates.dump(templates_path)
        except TemplateFileError as e:
            logger.error(f"template: {e}")
            return EXIT_FATAL

    result = session.validate_data()
    if not result.is_valid:
        for err in result.errors[:MAX_ERRORS_SHOWN]:
            logger.error(f"row {err.row_index}: {err.message}")
        if len(result.errors) > MAX_ERRORS_SHOWN:
            logger.error(f"... {len(result.errors) - MAX_ERRORS_SHOWN} more errors")
        error_log = ValidationErrorLog()
        error_log.extend(result.errors)
        path = error_log.flush()
        logger.info(f"validation log: {path}")
        _finish(session, start, committed=False)
        return EXIT_VALIDATION_FAILED

    for warn in session.warnings[:MAX_ERRORS_SHOWN]:
        logger.warning(f"row {warn.row_index}: {warn.message}")

    session.set_page(args.page)
    _print_page(session)

    if args.dry_run:
        _finish(session, start, committed=False)
        return EXIT_SUCCESS

    committed = bool(asyncio.run(session.commit()))
    if not committed:
        logger.error(f"commit: {session.last_commit_error}")
    _finish(session, start, committed=committed)
    return EXIT_SUCCESS if committed else EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
