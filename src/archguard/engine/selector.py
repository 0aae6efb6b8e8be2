"""Rule selector: pick the checks of a rule class that a run should execute."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from archguard.engine.catalog import ConfigurableRule
    from archguard.engine.discovery import DiscoveredRules, RuleProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectedCheck:
    """One provider to invoke, with the scope its code set is imported from."""

    provider: RuleProvider
    scope: str

    @property
    def name(self) -> str:
        return self.provider.name


@dataclass(frozen=True)
class Selection:
    """Ordered checks to run plus the requested names nothing matched."""

    checks: tuple[SelectedCheck, ...]
    unmatched: tuple[str, ...] = ()


def resolve_scope(rule: ConfigurableRule, default: str) -> str:
    """Return the rule's own package override, or *default* when it has none."""
    if rule.package_to_be_analyzed is not None:
        return rule.package_to_be_analyzed
    return default


def select_checks(
    discovered: DiscoveredRules,
    requested: Sequence[str] | None,
    scope: str,
) -> Selection:
    """Resolve the providers to invoke.

    Without *requested*, every producer is selected followed by every holder.
    Otherwise each requested name is looked up among the producers first and
    the holders second; a name found in neither is reported in
    :attr:`Selection.unmatched` and logged, but never raises.
    """
    if requested is None:
        providers: list[RuleProvider] = [
            *discovered.producers.values(),
            *discovered.holders.values(),
        ]
        return Selection(checks=tuple(SelectedCheck(p, scope) for p in providers))

    checks: list[SelectedCheck] = []
    unmatched: list[str] = []
    for name in requested:
        provider: RuleProvider | None = discovered.producers.get(name)
        if provider is None:
            provider = discovered.holders.get(name)
        if provider is None:
            logger.warning("Check '%s' matches no condition producer or rule holder", name)
            unmatched.append(name)
            continue
        checks.append(SelectedCheck(provider, scope))

    return Selection(checks=tuple(checks), unmatched=tuple(unmatched))
