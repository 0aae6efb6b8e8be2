"""Rule invocation: run pre-built rules and selected checks, returning explicit outcomes."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from archguard.engine.discovery import ConditionProducer
from archguard.lang.codeset import import_code_set
from archguard.lang.rules import ArchCondition, ArchRule, classes

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from archguard.engine.loader import LoadingContext
    from archguard.engine.selector import SelectedCheck
    from archguard.lang.codeset import CodeSet

    CodeSetImporter = Callable[[str | Path, str], CodeSet]

logger = logging.getLogger(__name__)

EXECUTE_METHOD_NAME = "execute"

# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CheckPassed:
    name: str


@dataclass(frozen=True)
class CheckFailed:
    """The rule ran and found violations."""

    name: str
    message: str


@dataclass(frozen=True)
class InvocationFailed:
    """The rule could not be loaded, built, or run."""

    name: str
    cause: Exception

    @property
    def message(self) -> str:
        return str(self.cause) or type(self.cause).__name__


InvocationOutcome = CheckPassed | CheckFailed | InvocationFailed


# ---------------------------------------------------------------------------
# Pre-built rules
# ---------------------------------------------------------------------------


def _execute_method(rule_class: type) -> Callable[..., object]:
    if not callable(vars(rule_class).get(EXECUTE_METHOD_NAME)):
        msg = f"{rule_class.__qualname__} declares no '{EXECUTE_METHOD_NAME}(project_path)' method"
        raise AttributeError(msg)
    return getattr(rule_class(), EXECUTE_METHOD_NAME)


def invoke_prebuilt(
    context: LoadingContext, identifier: str, project_path: str | Path
) -> InvocationOutcome:
    """Load and run one pre-built rule; never raises.

    The rule class is instantiated with no arguments and its own
    ``execute(project_path)`` method is called.  The rule reports its own
    violations by raising; an ``AssertionError`` becomes :class:`CheckFailed`,
    anything else :class:`InvocationFailed`, both keyed by *identifier*.
    """
    try:
        rule_class = context.load_class(identifier)
        execute = _execute_method(rule_class)
        inspect.signature(execute).bind(str(project_path))
        execute(str(project_path))
    except AssertionError as exc:
        logger.info("Pre-built rule %s failed", identifier)
        return CheckFailed(identifier, str(exc))
    except Exception as exc:  # noqa: BLE001 - every error becomes a failure record
        logger.info("Pre-built rule %s could not run: %s", identifier, exc)
        return InvocationFailed(identifier, exc)
    return CheckPassed(identifier)


# ---------------------------------------------------------------------------
# Configurable rules
# ---------------------------------------------------------------------------


def build_rule(rule_class: type, selected: SelectedCheck) -> ArchRule:
    """Instantiate *rule_class* afresh and obtain the rule behind *selected*.

    A producer's condition is wrapped as ``classes().should(condition)``; a
    holder's attribute is used as-is.
    """
    instance = rule_class()
    member = getattr(instance, selected.provider.member)

    if isinstance(selected.provider, ConditionProducer):
        condition = member()
        if not isinstance(condition, ArchCondition):
            msg = (
                f"{rule_class.__qualname__}.{selected.provider.member}() returned "
                f"{type(condition).__name__}, expected ArchCondition"
            )
            raise TypeError(msg)
        return classes().should(condition)

    if not isinstance(member, ArchRule):
        msg = (
            f"{rule_class.__qualname__}.{selected.provider.member} holds "
            f"{type(member).__name__}, expected ArchRule"
        )
        raise TypeError(msg)
    return member


def invoke_check(
    rule_class: type,
    selected: SelectedCheck,
    project_path: str | Path,
    *,
    importer: CodeSetImporter = import_code_set,
) -> InvocationOutcome:
    """Build and check one selected rule against the code set of its scope."""
    try:
        rule = build_rule(rule_class, selected)
        code_set = importer(project_path, selected.scope)
    except Exception as exc:  # noqa: BLE001 - surfaced as an outcome, the runner decides
        return InvocationFailed(selected.name, exc)

    try:
        rule.check(code_set)
    except AssertionError as exc:
        logger.info("Check %s failed", selected.name)
        return CheckFailed(selected.name, str(exc))
    except Exception as exc:  # noqa: BLE001
        return InvocationFailed(selected.name, exc)

    logger.debug("Check %s passed on %d classes", selected.name, len(code_set))
    return CheckPassed(selected.name)
