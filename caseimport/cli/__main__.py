from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from caseimport.config.loader import ConfigError, ImportConfig, load_config
from caseimport.db.factory import create_record_store
from caseimport.db.record_store import RecordStore, RecordStoreError
from caseimport.logging.error_log import ErrorLogBuffer
from caseimport.logging.init import log_summary, set_debug, setup_logging
from caseimport.services.client_linker import ClientLinker
from caseimport.services.cnr_standardizer import analyze_cnrs, apply_standardization
from caseimport.services.context import ProcessingError, UserContext, resolve_firm_id
from caseimport.services.orchestrator import CaseImporter
from caseimport.services.report import build_report_rows, write_report, write_template
from caseimport.services.summary import render_summary_line

"""CLI entrypoint: ``python -m caseimport.cli <command>``.

Commands:
- import FILE          import disposed cases, optionally write a report
- preview FILE        validate the first rows without writing
- link-clients FILE   attach clients to existing cases by CNR
- standardize-cnr     list (and with --apply, rewrite) non-normalized CNRs
- template PATH       write the sample upload template

Exit codes: 0 all rows succeeded, 2 some rows failed or the run was
cancelled, 1 fatal (config, setup, record store connection).
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

DEFAULT_CONFIG_PATH = Path("config/import.yml")


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so its credentials win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="caseimport", description="Bulk import of disposed legal cases"
    )
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to import.yml")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import cases from a spreadsheet")
    imp.add_argument("file", type=Path)
    imp.add_argument("--user-id", required=True)
    imp.add_argument("--firm-id", default=None, help="Skip the team membership lookup")
    imp.add_argument("--report", type=Path, default=None, help="Write a per-row report (.xlsx or .csv)")

    prev = sub.add_parser("preview", help="Validate the first rows without importing")
    prev.add_argument("file", type=Path)
    prev.add_argument("--user-id", required=True)
    prev.add_argument("--firm-id", default=None)

    link = sub.add_parser("link-clients", help="Link clients to existing cases by CNR")
    link.add_argument("file", type=Path)
    link.add_argument("--user-id", required=True)
    link.add_argument("--firm-id", default=None)

    std = sub.add_parser("standardize-cnr", help="Normalize stored CNR numbers")
    std.add_argument("--user-id", required=True)
    std.add_argument("--firm-id", default=None)
    std.add_argument("--apply", action="store_true", help="Write the changes (default: list only)")

    tpl = sub.add_parser("template", help="Write the sample upload template")
    tpl.add_argument("path", type=Path)
    return p.parse_args(argv)


def _run_import(args: argparse.Namespace, cfg: ImportConfig, store: RecordStore, logger) -> int:
    importer = CaseImporter.from_config(
        store, cfg, error_log=ErrorLogBuffer(Path(cfg.error_log_dir))
    )
    result = importer.run_import(args.file, UserContext(args.user_id, args.firm_id))

    if args.report is not None:
        try:
            path = write_report(build_report_rows(result), args.report)
            logger.info(f"report written to {path}")
        except OSError as e:
            logger.warning(f"could not write report: {e}")

    log_summary(render_summary_line(result)[len("SUMMARY "):])
    if result.has_failures or result.cancelled:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _run_preview(args: argparse.Namespace, cfg: ImportConfig, store: RecordStore, logger) -> int:
    importer = CaseImporter.from_config(store, cfg)
    preview = importer.preview(
        args.file, UserContext(args.user_id, args.firm_id), limit=cfg.preview_rows
    )
    logger.info(f"columns: {', '.join(preview.columns)}")
    for v in preview.validation_results:
        client = v.matched_client.full_name if v.matched_client else (v.client_name or "-")
        status = "ok" if v.has_required_fields else "invalid"
        line = f"row={v.row_number} {status} title={v.title!r} id={v.identifier!r} client={client!r}"
        if v.errors:
            line += f" errors={'; '.join(v.errors)}"
        logger.info(line)
    logger.info(f"{preview.valid_count}/{len(preview.rows)} preview rows valid")
    return EXIT_SUCCESS_ALL


def _run_link(args: argparse.Namespace, cfg: ImportConfig, store: RecordStore, logger) -> int:
    linker = ClientLinker.from_config(store, cfg)
    result = linker.link_clients(args.file, UserContext(args.user_id, args.firm_id))
    for err in result.errors:
        logger.error(f"row={err.row_number} {err.error}")
    log_summary(
        f"rows={result.total} linked={result.linked} skipped={result.skipped} "
        f"case_not_found={result.case_not_found} client_not_found={result.client_not_found} "
        f"errors={len(result.errors)}"
    )
    if result.errors or result.case_not_found or result.client_not_found or result.cancelled:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _run_standardize(args: argparse.Namespace, store: RecordStore, logger) -> int:
    firm_id = resolve_firm_id(store, UserContext(args.user_id, args.firm_id))
    changes = analyze_cnrs(store, firm_id)
    for c in changes:
        logger.info(f"{c.case_title}: {c.original} -> {c.standardized}")
    if not args.apply:
        log_summary(f"cases_to_update={len(changes)} applied=no")
        return EXIT_SUCCESS_ALL
    result = apply_standardization(store, changes)
    for err in result.errors:
        logger.error(err)
    log_summary(f"cases_to_update={len(changes)} updated={result.updated} errors={len(result.errors)}")
    return EXIT_PARTIAL_FAILURE if result.errors else EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an empty list must not pull in pytest's own argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug()
        logger.debug("debug mode enabled")

    if args.command == "template":
        try:
            path = write_template(args.path)
        except OSError as e:
            logger.error(f"template: {e}")
            return EXIT_FATAL
        logger.info(f"template written to {path}")
        return EXIT_SUCCESS_ALL

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        store = create_record_store(cfg.record_store)
    except RecordStoreError as e:
        logger.error(f"record store: {e}")
        return EXIT_FATAL

    try:
        if args.command == "import":
            return _run_import(args, cfg, store, logger)
        if args.command == "preview":
            return _run_preview(args, cfg, store, logger)
        if args.command == "link-clients":
            return _run_link(args, cfg, store, logger)
        return _run_standardize(args, store, logger)
    except ProcessingError as e:
        logger.error(f"{args.command}: {e}")
        return EXIT_FATAL
    except RecordStoreError as e:
        logger.error(f"record store: {e}")
        return EXIT_FATAL
    finally:
        close = getattr(store, "close", None)
        if callable(close):
            close()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
