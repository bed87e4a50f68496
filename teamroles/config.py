"""Configuration loading utilities for the team roles export."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

VARIANTS = ("embedded", "separate")
SOURCE_KINDS = ("mock", "json", "remote")


@dataclass
class SourceConfig:
    """Where teams (and, for the separate variant, roles) come from."""

    kind: str = "mock"
    teams: Optional[Path] = None
    roles: Optional[Path] = None

    def resolved(self, base_path: Path) -> "SourceConfig":
        return SourceConfig(
            kind=self.kind,
            teams=_resolve_optional(self.teams, base_path),
            roles=_resolve_optional(self.roles, base_path),
        )


@dataclass
class RemoteConfig:
    """Connection settings for the Dataverse Web API."""

    base_url: Optional[str] = None
    token_env: str = "DATAVERSE_TOKEN"
    timeout: float = 30.0
    max_workers: int = 4
    team_select: List[str] = field(
        default_factory=lambda: ["teamid", "name", "_businessunitid_value", "emailaddress"]
    )


@dataclass
class OutputConfig:
    """Paths describing where exports should be written."""

    directory: Path = Path("output")
    tsv_report: str = "teams_roles.tsv"
    xlsx_report: str = "teams_roles.xlsx"
    json_preview: str = "teams_preview.json"

    def resolved(self, base_path: Path) -> "OutputConfig":
        return OutputConfig(
            directory=_resolve_path(self.directory, base_path),
            tsv_report=self.tsv_report,
            xlsx_report=self.xlsx_report,
            json_preview=self.json_preview,
        )


@dataclass
class AppConfig:
    """Container for all configuration required by the CLI pipeline."""

    variant: str = "embedded"
    source: SourceConfig = field(default_factory=SourceConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def resolved(self, base_path: Path) -> "AppConfig":
        return AppConfig(
            variant=self.variant,
            source=self.source.resolved(base_path),
            remote=self.remote,
            output=self.output.resolved(base_path),
        )


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load :class:`AppConfig` from a YAML file.

    Without a path the defaults are returned, resolved against the current
    working directory.
    """

    if path is None:
        return AppConfig().resolved(Path.cwd())

    config_path = Path(path).expanduser()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file '{config_path}' does not exist")

    with config_path.open("r", encoding="utf-8") as stream:
        raw_config: Mapping[str, Any] = yaml.safe_load(stream) or {}

    if not isinstance(raw_config, Mapping):
        raise ValueError("Configuration root must be a mapping")

    variant = _parse_choice(raw_config.get("variant", "embedded"), VARIANTS, "variant")
    source = SourceConfig(**_parse_source_section(raw_config.get("source") or {}))
    remote = RemoteConfig(**(raw_config.get("remote") or {}))
    output = OutputConfig(**_parse_output_section(raw_config.get("output") or {}))

    config = AppConfig(variant=variant, source=source, remote=remote, output=output)
    return config.resolved(config_path.parent)


def _parse_source_section(section: Mapping[str, Any]) -> Dict[str, Any]:
    parsed: Dict[str, Any] = {}
    if "kind" in section:
        parsed["kind"] = _parse_choice(section["kind"], SOURCE_KINDS, "source.kind")
    for key in ("teams", "roles"):
        value = section.get(key)
        if value:
            parsed[key] = Path(value)
    return parsed


def _parse_output_section(section: Mapping[str, Any]) -> Dict[str, Any]:
    parsed: Dict[str, Any] = {}
    if "directory" in section:
        parsed["directory"] = Path(section["directory"])
    for key in ("tsv_report", "xlsx_report", "json_preview"):
        if key in section:
            parsed[key] = section[key]
    return parsed


def _parse_choice(value: Any, choices: tuple, label: str) -> str:
    normalised = str(value).strip().lower()
    if normalised not in choices:
        raise ValueError(f"{label} must be one of {', '.join(choices)}; got '{value}'")
    return normalised


def _resolve_optional(path: Optional[Path], base_path: Path) -> Optional[Path]:
    if path is None:
        return None
    return _resolve_path(path, base_path)


def _resolve_path(path: Path, base_path: Path) -> Path:
    expanded = Path(path).expanduser()
    if expanded.is_absolute():
        return expanded
    return (base_path / expanded).resolve()
