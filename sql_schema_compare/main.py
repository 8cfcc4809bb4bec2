"""Command line entry point for SQL Schema Compare."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from sql_schema_compare.core.comparator import SchemaComparator
from sql_schema_compare.core.errors import ScriptingError
from sql_schema_compare.core.options import ScriptingOptions
from sql_schema_compare.core.script_generator import ScriptGenerator
from sql_schema_compare.core.scripter_factory import create_scripter
from sql_schema_compare.core.snapshot import load_snapshot
from sql_schema_compare.utils.config import Config
from sql_schema_compare.utils.logger import get_logger, setup_logger
from sql_schema_compare.utils.report_generator import export_report

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sql-schema-compare",
        description="Script, compare and migrate database schema snapshots.",
    )
    parser.add_argument("--config", type=Path, help="Path to the JSON settings file")

    scripting = argparse.ArgumentParser(add_help=False)
    scripting.add_argument("--no-schema-name", action="store_true", help="Do not qualify names with their schema")
    scripting.add_argument("--alphabetical-columns", action="store_true", help="Order table columns by name")
    scripting.add_argument("--ignore-reference-column-order", action="store_true",
                           help="Do not align column order to the other table")
    scripting.add_argument("--ignore-collate", action="store_true", help="Omit COLLATE clauses")

    commands = parser.add_subparsers(dest="command", required=True)

    script = commands.add_parser("script", parents=[scripting], help="Full create script of a snapshot")
    script.add_argument("snapshot", type=Path)
    script.add_argument("-o", "--output", type=Path, help="Write the script to a file instead of stdout")

    compare = commands.add_parser("compare", help="Compare two snapshots")
    compare.add_argument("source", type=Path)
    compare.add_argument("target", type=Path)
    compare.add_argument("--report", type=Path, help="Export results (.csv, .html, .json, .xlsx, .pdf)")

    migrate = commands.add_parser("migrate", parents=[scripting], help="Script moving the target toward the source")
    migrate.add_argument("source", type=Path)
    migrate.add_argument("target", type=Path)
    migrate.add_argument("-o", "--output", type=Path, help="Write the script to a file instead of stdout")
    migrate.add_argument("--no-drop", action="store_true", help="Skip dropping objects missing in the source")

    return parser


def scripting_options(config: Config, args: argparse.Namespace) -> ScriptingOptions:
    """Options from the settings file with command line flags on top."""
    options = ScriptingOptions.from_config(config)
    return options.with_overrides(
        use_schema_name=False if args.no_schema_name else None,
        order_column_alphabetically=True if args.alphabetical_columns else None,
        ignore_reference_table_column_order=True if args.ignore_reference_column_order else None,
        ignore_collate=True if args.ignore_collate else None,
    )


def _write(text: str, output: Optional[Path]) -> None:
    if output is None:
        sys.stdout.write(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    logger.info(f"Script written to {output}")


def run_script(config: Config, args: argparse.Namespace) -> int:
    database = load_snapshot(args.snapshot)
    scripter = create_scripter(database.dialect, scripting_options(config, args))
    _write(scripter.generate_full_script(database), args.output)
    return 0


def run_compare(config: Config, args: argparse.Namespace) -> int:
    source = load_snapshot(args.source)
    target = load_snapshot(args.target)
    results = SchemaComparator(source, target).compare()

    for kind, items in results.items():
        for item in items:
            if item.status != "IDENTICAL":
                print(f"{item.status:<18} {kind:<18} {item.name}")
    summary = SchemaComparator.summarize(results)
    print(", ".join(f"{status}: {count}" for status, count in summary.items()))

    if args.report:
        export_report(results, args.report)
    return 0


def run_migrate(config: Config, args: argparse.Namespace) -> int:
    source = load_snapshot(args.source)
    target = load_snapshot(args.target)
    results = SchemaComparator(source, target).compare()

    deploy_options = dict(config.get_section("deployment"))
    if args.no_drop:
        deploy_options["include_drop_phase"] = False

    scripter = create_scripter(target.dialect, scripting_options(config, args))
    script = ScriptGenerator(source, target, results, scripter, deploy_options).generate()
    _write(script, args.output)
    return 0


COMMANDS = {
    "script": run_script,
    "compare": run_compare,
    "migrate": run_migrate,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = Config(args.config)

    # Initialize logging system
    level = getattr(logging, str(config.get("logging", "level", "INFO")).upper(), logging.INFO)
    setup_logger(log_dir=config.get("logging", "log_dir", "logs"), level=level)

    try:
        return COMMANDS[args.command](config, args)
    except (ScriptingError, ValueError, OSError) as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
