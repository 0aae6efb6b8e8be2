"""Rule discovery: find the condition producers and rule holders a rule class declares."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from archguard.errors import DiscoveryError
from archguard.lang.rules import ArchCondition, ArchRule

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

# Optional own-declared class/static method returning the class's providers.
REGISTRATION_HOOK = "arch_rules"

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConditionProducer:
    """A zero-argument method returning an :class:`ArchCondition`."""

    name: str
    attribute: str | None = None  # member to call; defaults to name

    @property
    def member(self) -> str:
        return self.attribute or self.name


@dataclass(frozen=True)
class RuleHolder:
    """An attribute that already holds a complete :class:`ArchRule`."""

    name: str
    attribute: str | None = None  # member to read; defaults to name

    @property
    def member(self) -> str:
        return self.attribute or self.name


RuleProvider = ConditionProducer | RuleHolder


@dataclass(frozen=True)
class DiscoveredRules:
    """Name-keyed providers of one rule class, in declaration order."""

    producers: dict[str, ConditionProducer] = field(default_factory=dict)
    holders: dict[str, RuleHolder] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.producers) + len(self.holders)

    def names(self) -> list[str]:
        return [*self.producers, *self.holders]


# ---------------------------------------------------------------------------
# Type checks
# ---------------------------------------------------------------------------


_CONDITION_NAMES: frozenset[str] = frozenset({"ArchCondition"})
_RULE_NAMES: frozenset[str] = frozenset({"ArchRule", "ClassesShould"})


def _is_subclass_of(hint: object, base: type, names: frozenset[str]) -> bool:
    if isinstance(hint, str):
        # Unresolved annotation: compare on the final name only.
        return hint.strip("'\"").rpartition(".")[2] in names
    return inspect.isclass(hint) and issubclass(hint, base)


def _annotations(obj: Any) -> dict[str, Any]:
    """Return *obj*'s own annotations, resolved where possible, raw otherwise."""
    try:
        return dict(inspect.get_annotations(obj, eval_str=True))
    except Exception:  # noqa: BLE001 - any unresolvable annotation
        logger.debug("Could not resolve annotations of %r", obj, exc_info=True)
    try:
        return dict(inspect.get_annotations(obj))
    except Exception:  # noqa: BLE001
        return {}


def _producer_function(value: object) -> Callable[..., Any] | None:
    """Return the function behind *value* if it takes no arguments once bound."""
    if isinstance(value, staticmethod):
        func = value.__func__
        bound_params = 0
    elif isinstance(value, classmethod):
        func = value.__func__
        bound_params = 1
    elif inspect.isfunction(value):
        func = value
        bound_params = 1
    else:
        return None

    params = list(inspect.signature(func).parameters.values())
    if len(params) < bound_params:
        return None
    required = [
        p
        for p in params[bound_params:]
        if p.default is inspect.Parameter.empty
        and p.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    ]
    return None if required else func


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def _discover_registered(rule_class: type) -> DiscoveredRules:
    try:
        providers = list(getattr(rule_class, REGISTRATION_HOOK)())
    except Exception as exc:  # noqa: BLE001 - any error from user code in the hook
        msg = f"{rule_class.__qualname__}.{REGISTRATION_HOOK}() failed: {exc!r}"
        raise DiscoveryError(msg) from exc
    producers: dict[str, ConditionProducer] = {}
    holders: dict[str, RuleHolder] = {}
    for provider in providers:
        if isinstance(provider, ConditionProducer):
            producers[provider.name] = provider
        elif isinstance(provider, RuleHolder):
            holders[provider.name] = provider
        else:
            msg = (
                f"{rule_class.__qualname__}.{REGISTRATION_HOOK}() returned {provider!r}, "
                f"expected ConditionProducer or RuleHolder"
            )
            raise DiscoveryError(msg)
    return DiscoveredRules(producers=producers, holders=holders)


def _discover_declared(rule_class: type) -> DiscoveredRules:
    producers: dict[str, ConditionProducer] = {}
    holders: dict[str, RuleHolder] = {}

    for name, value in vars(rule_class).items():
        if name.startswith("__"):
            continue
        if isinstance(value, ArchRule):
            holders[name] = RuleHolder(name)
            continue
        func = _producer_function(value)
        if func is None:
            continue
        returns = _annotations(func).get("return")
        if returns is not None and _is_subclass_of(returns, ArchCondition, _CONDITION_NAMES):
            producers[name] = ConditionProducer(name)

    # Attributes declared by annotation only, assigned per instance.
    for name, hint in _annotations(rule_class).items():
        if name in holders or name.startswith("__"):
            continue
        if _is_subclass_of(hint, ArchRule, _RULE_NAMES):
            holders[name] = RuleHolder(name)

    return DiscoveredRules(producers=producers, holders=holders)


def discover(rule_class: type) -> DiscoveredRules:
    """Partition a rule class's own members into producers and holders.

    A class that declares its own ``arch_rules()`` hook is trusted to list its
    providers explicitly.  Otherwise the class's own namespace is inspected:

    - a zero-argument method whose return annotation is :class:`ArchCondition`
      (or a subclass) is a condition producer;
    - an attribute holding an :class:`ArchRule`, or annotated as one, is a
      rule holder.

    Inherited members are never considered.

    Raises
    ------
    DiscoveryError
        When the registration hook cannot be called, raises, or returns
        something other than providers.
    """
    if REGISTRATION_HOOK in vars(rule_class):
        discovered = _discover_registered(rule_class)
    else:
        discovered = _discover_declared(rule_class)

    logger.debug(
        "Discovered %d producers and %d holders on %s",
        len(discovered.producers),
        len(discovered.holders),
        rule_class.__qualname__,
    )
    return discovered
