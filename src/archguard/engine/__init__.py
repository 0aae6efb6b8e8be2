"""Rule engine: catalog, loader, discovery, selection, invocation, and reporting."""

from archguard.engine.catalog import (
    EMPTY_CATALOG_MESSAGE,
    ConfigurableRule,
    Rules,
    parse_rules,
)
from archguard.engine.discovery import (
    ConditionProducer,
    DiscoveredRules,
    RuleHolder,
    RuleProvider,
    discover,
)
from archguard.engine.invoker import (
    EXECUTE_METHOD_NAME,
    CheckFailed,
    CheckPassed,
    InvocationFailed,
    InvocationOutcome,
    build_rule,
    invoke_check,
    invoke_prebuilt,
)
from archguard.engine.loader import LoadingContext
from archguard.engine.report import (
    FailureAggregator,
    FailureRecord,
    RunResult,
    build_report,
    format_json,
    format_porcelain,
    format_rich,
)
from archguard.engine.runner import check, enforce, run
from archguard.engine.selector import (
    SelectedCheck,
    Selection,
    resolve_scope,
    select_checks,
)

__all__ = [
    "EMPTY_CATALOG_MESSAGE",
    "EXECUTE_METHOD_NAME",
    "CheckFailed",
    "CheckPassed",
    "ConditionProducer",
    "ConfigurableRule",
    "DiscoveredRules",
    "FailureAggregator",
    "FailureRecord",
    "InvocationFailed",
    "InvocationOutcome",
    "LoadingContext",
    "RuleHolder",
    "RuleProvider",
    "Rules",
    "RunResult",
    "SelectedCheck",
    "Selection",
    "build_report",
    "build_rule",
    "check",
    "discover",
    "enforce",
    "format_json",
    "format_porcelain",
    "format_rich",
    "invoke_check",
    "invoke_prebuilt",
    "parse_rules",
    "resolve_scope",
    "run",
    "select_checks",
]
