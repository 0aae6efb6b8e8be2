"""Run orchestrator: validate the catalog, load rule sources, invoke checks, aggregate."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from archguard.engine.catalog import EMPTY_CATALOG_MESSAGE
from archguard.engine.discovery import discover
from archguard.engine.invoker import (
    CheckFailed,
    InvocationFailed,
    invoke_check,
    invoke_prebuilt,
)
from archguard.engine.loader import LoadingContext
from archguard.engine.report import FailureAggregator, RunResult
from archguard.engine.selector import resolve_scope, select_checks
from archguard.errors import ArchViolationError, ConfigurationError, RuleInvocationError
from archguard.lang.codeset import import_code_set

if TYPE_CHECKING:
    from pathlib import Path

    from archguard.config import Settings
    from archguard.engine.invoker import CodeSetImporter
    from archguard.lang.codeset import CodeSet

logger = logging.getLogger(__name__)


def _memoized(importer: CodeSetImporter) -> CodeSetImporter:
    """Reuse code sets within one run; they are immutable."""
    cache: dict[tuple[str, str], CodeSet] = {}

    def _import(root_path: str | Path, scope: str) -> CodeSet:
        key = (str(root_path), scope)
        if key not in cache:
            cache[key] = importer(root_path, scope)
        return cache[key]

    return _import


def _run_preconfigured(
    settings: Settings, context: LoadingContext, aggregator: FailureAggregator
) -> int:
    for identifier in settings.rules.preconfigured_rules:
        outcome = invoke_prebuilt(context, identifier, settings.project_path)
        if isinstance(outcome, (CheckFailed, InvocationFailed)):
            aggregator.record(outcome.name, outcome.message)
    return len(settings.rules.preconfigured_rules)


def _run_configurable(
    settings: Settings,
    context: LoadingContext,
    aggregator: FailureAggregator,
    importer: CodeSetImporter,
    unmatched: list[str],
) -> int:
    checks_run = 0
    for rule in settings.rules.configurable_rules:
        # Loading and discovery errors propagate: a broken rule class stops the run.
        rule_class = context.load_class(rule.rule)
        discovered = discover(rule_class)
        scope = resolve_scope(rule, settings.package)
        selection = select_checks(discovered, rule.checks, scope)

        for name in selection.unmatched:
            unmatched.append(name)
            if settings.strict_checks:
                aggregator.record(name, f"Check '{name}' not found in rule source '{rule.rule}'")

        for selected in selection.checks:
            outcome = invoke_check(rule_class, selected, settings.project_path, importer=importer)
            checks_run += 1
            if isinstance(outcome, InvocationFailed):
                msg = (
                    f"Check '{outcome.name}' of rule source '{rule.rule}' "
                    f"could not run: {outcome.message}"
                )
                raise RuleInvocationError(msg) from outcome.cause
            if isinstance(outcome, CheckFailed):
                aggregator.record(outcome.name, outcome.message)
    return checks_run


def run(
    settings: Settings,
    *,
    importer: CodeSetImporter = import_code_set,
) -> RunResult:
    """Run every configured rule and return the aggregated result.

    Pre-built rules are isolated: any error they raise becomes a failure
    record and the batch continues.  For configurable rules only failed checks
    are recorded; a rule class that cannot be loaded, built or invoked aborts
    the run.

    Raises
    ------
    ConfigurationError
        When the catalog holds no rules; nothing is loaded in that case.
    LoadingError
        When a classpath entry or a configurable rule source cannot be loaded.
    DiscoveryError
        When a rule source registers invalid providers.
    RuleInvocationError
        When a selected check of a configurable rule cannot be invoked.
    """
    if not settings.rules.is_valid():
        raise ConfigurationError(EMPTY_CATALOG_MESSAGE)

    start = time.monotonic()
    aggregator = FailureAggregator()
    unmatched: list[str] = []

    context = LoadingContext(settings.locations)
    with context.activated():
        checks_run = _run_preconfigured(settings, context, aggregator)
        checks_run += _run_configurable(
            settings, context, aggregator, _memoized(importer), unmatched
        )

    elapsed = (time.monotonic() - start) * 1000
    logger.info(
        "Ran %d checks from %d rules: %d failures (%.0f ms)",
        checks_run,
        len(settings.rules),
        len(aggregator.records),
        elapsed,
    )
    return RunResult(
        records=aggregator.records,
        rules_evaluated=len(settings.rules),
        checks_run=checks_run,
        unmatched_checks=unmatched,
        elapsed_ms=elapsed,
    )


def enforce(result: RunResult) -> None:
    """Raise :class:`ArchViolationError` with the report if the run failed."""
    if not result.passed:
        raise ArchViolationError(result.report, result.records)


def check(settings: Settings, *, importer: CodeSetImporter = import_code_set) -> RunResult:
    """Run and enforce in one call; returns the result only when every check passed."""
    result = run(settings, importer=importer)
    enforce(result)
    return result
