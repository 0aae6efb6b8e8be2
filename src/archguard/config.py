"""Configuration: locate and parse archguard settings for a project."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from archguard.engine.catalog import Rules, parse_rules
from archguard.errors import ConfigurationError

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMA_VERSIONS: frozenset[int] = frozenset({1})
CONFIG_FILE_NAMES: tuple[str, ...] = ("archguard.yml", ".archguard.yml")
_KNOWN_KEYS: frozenset[str] = frozenset(
    {"version", "project_path", "package", "classpath", "strict_checks", "rules"}
)


@dataclass(frozen=True)
class Settings:
    """Everything one run needs."""

    project_path: Path
    rules: Rules
    package: str = ""
    classpath: tuple[Path, ...] = ()
    strict_checks: bool = False
    config_file: Path | None = None

    @property
    def locations(self) -> tuple[Path, ...]:
        """Classpath with the analyzed project first, duplicates removed."""
        return tuple(dict.fromkeys((self.project_path, *self.classpath)))


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        msg = f"{path.name}: invalid YAML: {exc}"
        raise ConfigurationError(msg) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"{path.name} must be a YAML mapping"
        raise ConfigurationError(msg)
    return data


def _read_pyproject(path: Path) -> dict[str, Any] | None:
    """Return the ``[tool.archguard]`` table, or None when there is none."""
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Failed to read %s: %s", path, exc)
        return None
    section = data.get("tool", {}).get("archguard")
    return section if isinstance(section, dict) else None


def find_config(project_root: Path) -> tuple[Path, dict[str, Any]] | None:
    """Find the first configuration source under *project_root*."""
    for name in CONFIG_FILE_NAMES:
        candidate = project_root / name
        if candidate.is_file():
            return candidate, _read_yaml(candidate)

    pyproject = project_root / "pyproject.toml"
    if pyproject.is_file():
        section = _read_pyproject(pyproject)
        if section is not None:
            return pyproject, section
    return None


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _as_path(value: object, base: Path, context: str) -> Path:
    if not isinstance(value, str) or not value.strip():
        msg = f"{context} must be a non-empty string"
        raise ConfigurationError(msg)
    path = Path(value)
    return path if path.is_absolute() else base / path


def parse_settings(data: dict[str, Any], base_dir: Path, *, source: Path | None = None) -> Settings:
    """Validate a raw configuration mapping and build :class:`Settings`.

    Relative paths resolve against *base_dir*.
    """
    version = data.get("version", 1)
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        expected = sorted(SUPPORTED_SCHEMA_VERSIONS)
        msg = f"unsupported configuration version {version}, expected one of {expected}"
        raise ConfigurationError(msg)

    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        logger.warning("Ignoring unknown configuration keys: %s", ", ".join(unknown))

    project_path = _as_path(data.get("project_path", "."), base_dir, "'project_path'")

    package = data.get("package", "")
    if not isinstance(package, str):
        msg = "'package' must be a string"
        raise ConfigurationError(msg)

    classpath_raw = data.get("classpath", [])
    if isinstance(classpath_raw, str):
        classpath_raw = [classpath_raw]
    if not isinstance(classpath_raw, list):
        msg = "'classpath' must be a list of paths"
        raise ConfigurationError(msg)
    classpath = tuple(
        _as_path(item, base_dir, f"classpath[{idx}]") for idx, item in enumerate(classpath_raw)
    )

    strict_checks = data.get("strict_checks", False)
    if not isinstance(strict_checks, bool):
        msg = "'strict_checks' must be a boolean"
        raise ConfigurationError(msg)

    try:
        rules = parse_rules(data.get("rules"))
    except ValueError as exc:
        msg = f"Invalid rules configuration: {exc}"
        raise ConfigurationError(msg) from exc

    return Settings(
        project_path=project_path,
        rules=rules,
        package=package.strip(),
        classpath=classpath,
        strict_checks=strict_checks,
        config_file=source,
    )


def load_settings(project_root: Path, config_path: Path | None = None) -> Settings:
    """Load settings for *project_root*.

    *config_path* wins when given; otherwise ``archguard.yml``,
    ``.archguard.yml`` and ``[tool.archguard]`` in ``pyproject.toml`` are tried
    in that order.

    Raises
    ------
    ConfigurationError
        When no configuration exists or it is malformed.
    """
    if config_path is not None:
        if not config_path.is_file():
            msg = f"Configuration file not found: {config_path}"
            raise ConfigurationError(msg)
        if config_path.name == "pyproject.toml":
            section = _read_pyproject(config_path)
            if section is None:
                msg = f"{config_path} has no [tool.archguard] section"
                raise ConfigurationError(msg)
            found: tuple[Path, dict[str, Any]] | None = (config_path, section)
        else:
            found = (config_path, _read_yaml(config_path))
    else:
        found = find_config(project_root)

    if found is None:
        msg = (
            f"No configuration found in {project_root} "
            f"(expected {', '.join(CONFIG_FILE_NAMES)} or [tool.archguard] in pyproject.toml)"
        )
        raise ConfigurationError(msg)

    source, data = found
    logger.debug("Using configuration from %s", source)
    return parse_settings(data, source.parent, source=source)


def with_overrides(
    settings: Settings,
    *,
    classpath: tuple[Path, ...] = (),
    package: str | None = None,
) -> Settings:
    """Return *settings* with command-line overrides applied."""
    return replace(
        settings,
        package=settings.package if package is None else package,
        classpath=(*settings.classpath, *classpath),
    )
