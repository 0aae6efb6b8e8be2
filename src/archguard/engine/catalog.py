"""Rule catalog: the configured pre-built and configurable rules of one run."""

from __future__ import annotations

from dataclasses import dataclass

EMPTY_CATALOG_MESSAGE = "archguard should have at least one preconfigured/configurable rule"

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConfigurableRule:
    """A user-defined rule class, optionally restricted to some of its checks.

    ``checks=None`` applies every discovered check; a tuple (even an empty
    one) applies only the listed names, in order.
    """

    rule: str
    package_to_be_analyzed: str | None = None
    checks: tuple[str, ...] | None = None


@dataclass(frozen=True)
class Rules:
    """The whole rule catalog, read-only once built."""

    preconfigured_rules: tuple[str, ...] = ()
    configurable_rules: tuple[ConfigurableRule, ...] = ()

    def is_valid(self) -> bool:
        return bool(self.preconfigured_rules) or bool(self.configurable_rules)

    def __len__(self) -> int:
        return len(self.preconfigured_rules) + len(self.configurable_rules)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _parse_identifier(value: object, context: str) -> str:
    if not isinstance(value, str) or not value.strip():
        msg = f"{context} must be a non-empty string"
        raise ValueError(msg)
    return value.strip()


def _parse_checks(value: object, context: str) -> tuple[str, ...] | None:
    if value is None:
        return None
    if not isinstance(value, list):
        msg = f"{context}: 'checks' must be a list"
        raise ValueError(msg)
    return tuple(
        _parse_identifier(item, f"{context}: check at index {idx}")
        for idx, item in enumerate(value)
    )


def _parse_configurable_rule(data: object, idx: int) -> ConfigurableRule:
    context = f"rules.configurable_rules[{idx}]"
    if isinstance(data, str):
        return ConfigurableRule(rule=_parse_identifier(data, context))
    if not isinstance(data, dict):
        msg = f"{context} must be a mapping or a rule identifier"
        raise ValueError(msg)

    if data.get("rule") is None:
        msg = f"{context}: missing required 'rule' field"
        raise ValueError(msg)
    rule = _parse_identifier(data["rule"], f"{context}: 'rule'")

    package_raw = data.get("package")
    package: str | None = None
    if package_raw is not None:
        if not isinstance(package_raw, str):
            msg = f"{context}: 'package' must be a string"
            raise ValueError(msg)
        package = package_raw.strip()

    return ConfigurableRule(
        rule=rule,
        package_to_be_analyzed=package,
        checks=_parse_checks(data.get("checks"), context),
    )


def parse_rules(data: object) -> Rules:
    """Build a :class:`Rules` catalog from the ``rules:`` block of the configuration.

    Only the structure is validated here; an empty catalog parses fine and is
    rejected by the runner before anything is loaded.

    Raises ``ValueError`` on schema errors.
    """
    if data is None:
        return Rules()
    if not isinstance(data, dict):
        msg = "'rules' must be a mapping"
        raise ValueError(msg)

    preconfigured_raw = data.get("preconfigured_rules") or []
    if not isinstance(preconfigured_raw, list):
        msg = "rules.preconfigured_rules must be a list"
        raise ValueError(msg)
    preconfigured = tuple(
        _parse_identifier(item, f"rules.preconfigured_rules[{idx}]")
        for idx, item in enumerate(preconfigured_raw)
    )

    configurable_raw = data.get("configurable_rules") or []
    if not isinstance(configurable_raw, list):
        msg = "rules.configurable_rules must be a list"
        raise ValueError(msg)
    configurable = tuple(
        _parse_configurable_rule(item, idx) for idx, item in enumerate(configurable_raw)
    )

    return Rules(preconfigured_rules=preconfigured, configurable_rules=configurable)
