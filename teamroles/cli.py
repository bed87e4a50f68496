"""Command line interface for the team roles export."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable, Optional

from tabulate import tabulate

from .config import SOURCE_KINDS, VARIANTS, AppConfig, load_config
from .flatten import display_frame, flatten, get_layout
from .join import join
from .reporting import export_rows
from .sources import load_source
from .tsv import serialize_rows

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Flatten Dataverse teams and roles into an Excel-pasteable table"
    )
    parser.add_argument("--config", type=Path, help="Path to YAML configuration")
    parser.add_argument("--variant", choices=VARIANTS, help="Embedded roles or separately loaded roles")
    parser.add_argument("--source", choices=SOURCE_KINDS, help="Where to load teams from")
    parser.add_argument("--teams", type=Path, help="Teams JSON file ({\"value\": [...]})")
    parser.add_argument("--roles", type=Path, help="Roles JSON file for the separate variant")
    parser.add_argument("--base-url", help="Dataverse Web API base URL for the remote source")
    parser.add_argument("--output-dir", type=Path, help="Directory for generated exports")
    parser.add_argument("--stdout", action="store_true", help="Print the TSV payload instead of writing files")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING)")
    parser.add_argument("--quiet", action="store_true", help="Suppress the console table preview")
    return parser


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    try:
        config = load_config(args.config)
        _apply_overrides(config, args)
    except Exception as exc:  # pragma: no cover - CLI validation
        logger.error("Failed to load configuration: %s", exc)
        return 1

    try:
        source = load_source(config)
    except ValueError as exc:
        logger.error("Failed to load teams: %s", exc)
        return 1

    layout = get_layout(config.variant)
    rows = flatten(join(source.teams, source.roles_by_team), layout)
    logger.info("Flattened %d teams into %d rows", len(source.teams), len(rows))

    if not (args.quiet or args.stdout):
        _print_table(rows, layout)

    if not rows:
        logger.warning("No rows to export")
        return 0

    if args.stdout:
        print(serialize_rows(rows, layout))
        return 0

    try:
        paths = export_rows(rows, layout, source.teams, config.output)
    except Exception as exc:
        logger.exception("Failed to export rows: %s", exc)
        return 1

    for name, path in paths.items():
        logger.info("Wrote %s export to %s", name, path)
    return 0


def _apply_overrides(config: AppConfig, args: argparse.Namespace) -> None:
    if args.variant:
        config.variant = args.variant

    if args.teams:
        config.source.kind = "json"
        config.source.teams = _resolve_override_path(args.teams)

    if args.roles:
        config.source.roles = _resolve_override_path(args.roles)

    if args.base_url:
        config.source.kind = "remote"
        config.remote.base_url = args.base_url

    if args.source:
        config.source.kind = args.source

    if args.output_dir:
        config.output.directory = _resolve_override_path(args.output_dir)


def _resolve_override_path(path: Path) -> Path:
    path = Path(path).expanduser()
    if path.is_absolute():
        return path
    return (Path.cwd() / path).resolve()


def _print_table(rows, layout) -> None:
    if not rows:
        print("No data loaded.")
        return
    frame = display_frame(rows, layout)
    print(tabulate(frame, headers="keys", tablefmt="github", showindex=False, disable_numparse=True))


if __name__ == "__main__":  # pragma: no cover - manual execution entry point
    raise SystemExit(main())
