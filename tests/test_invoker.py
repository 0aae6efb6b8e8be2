"""Tests for archguard.engine.invoker: running pre-built rules and selected checks."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from archguard.engine.discovery import ConditionProducer, RuleHolder
from archguard.engine.invoker import (
    CheckFailed,
    CheckPassed,
    InvocationFailed,
    build_rule,
    invoke_check,
    invoke_prebuilt,
)
from archguard.engine.loader import LoadingContext
from archguard.engine.selector import SelectedCheck
from archguard.lang import ArchCondition, ArchRule, ClassesShould, classes, not_call, not_import

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from archguard.lang import CodeSet

PREBUILT_RULES = """\
class PassingRule:
    def execute(self, project_path):
        self.seen = project_path


class FailingRule:
    def execute(self, project_path):
        raise AssertionError(f"violations in {project_path}")


class CrashingRule:
    def execute(self, project_path):
        raise RuntimeError("cannot read sources")


class NoExecuteRule:
    pass


class InheritedExecuteRule(PassingRule):
    pass


class WrongSignatureRule:
    def execute(self):
        pass


class NeedsArgumentsRule:
    def __init__(self, config):
        self.config = config

    def execute(self, project_path):
        pass
"""


class ShopRules:
    holder: ArchRule = classes().should(not_import("requests"))
    not_a_rule = "text"

    def no_print(self) -> ArchCondition:
        return not_call("print")

    def no_logging(self) -> ArchCondition:
        return not_import("logging")

    def broken(self) -> ArchCondition:
        msg = "condition factory exploded"
        raise RuntimeError(msg)

    def wrong_type(self) -> ArchCondition:
        return "not a condition"  # type: ignore[return-value]


def _selected(provider: ConditionProducer | RuleHolder, scope: str = "") -> SelectedCheck:
    return SelectedCheck(provider, scope)


class TestInvokePrebuilt:
    @pytest.fixture()
    def context(
        self, rule_dir: Path, write_rules: Callable[[str, str], Path]
    ) -> LoadingContext:
        write_rules("prebuilt_rules", PREBUILT_RULES)
        return LoadingContext([rule_dir])

    def test_passing_rule(self, context: LoadingContext, tmp_path: Path) -> None:
        with context.activated():
            outcome = invoke_prebuilt(context, "prebuilt_rules.PassingRule", tmp_path)
        assert outcome == CheckPassed("prebuilt_rules.PassingRule")

    def test_assertion_becomes_check_failed(self, context: LoadingContext, tmp_path: Path) -> None:
        with context.activated():
            outcome = invoke_prebuilt(context, "prebuilt_rules.FailingRule", tmp_path)
        assert outcome == CheckFailed("prebuilt_rules.FailingRule", f"violations in {tmp_path}")

    @pytest.mark.parametrize(
        ("identifier", "error"),
        [
            ("prebuilt_rules.CrashingRule", "cannot read sources"),
            ("prebuilt_rules.NoExecuteRule", "declares no 'execute(project_path)' method"),
            ("prebuilt_rules.InheritedExecuteRule", "declares no 'execute(project_path)' method"),
            ("prebuilt_rules.WrongSignatureRule", "argument"),
            ("prebuilt_rules.NeedsArgumentsRule", "config"),
            ("prebuilt_rules.MissingRule", "no attribute 'MissingRule'"),
            ("absent_module.Rule", "not found"),
        ],
    )
    def test_every_other_error_becomes_invocation_failed(
        self, context: LoadingContext, tmp_path: Path, identifier: str, error: str
    ) -> None:
        with context.activated():
            outcome = invoke_prebuilt(context, identifier, tmp_path)
        assert isinstance(outcome, InvocationFailed)
        assert outcome.name == identifier
        assert error in outcome.message


class TestBuildRule:
    def test_producer_is_wrapped(self) -> None:
        rule = build_rule(ShopRules, _selected(ConditionProducer("no_print")))
        assert isinstance(rule, ClassesShould)
        assert rule.description == "classes should not call print"

    def test_holder_is_used_as_is(self) -> None:
        assert build_rule(ShopRules, _selected(RuleHolder("holder"))) is ShopRules.holder

    def test_member_attribute_is_used(self) -> None:
        rule = build_rule(ShopRules, _selected(ConditionProducer("alias", attribute="no_logging")))
        assert rule.description == "classes should not depend on logging"

    def test_wrong_types(self) -> None:
        with pytest.raises(TypeError, match="expected ArchCondition"):
            build_rule(ShopRules, _selected(ConditionProducer("wrong_type")))
        with pytest.raises(TypeError, match="expected ArchRule"):
            build_rule(ShopRules, _selected(RuleHolder("not_a_rule")))


class TestInvokeCheck:
    def test_passing_check(self, clean_project: Path) -> None:
        outcome = invoke_check(ShopRules, _selected(ConditionProducer("no_print")), clean_project)
        assert outcome == CheckPassed("no_print")

    def test_failing_check_carries_violations(self, sample_project: Path) -> None:
        outcome = invoke_check(ShopRules, _selected(ConditionProducer("no_print")), sample_project)
        assert isinstance(outcome, CheckFailed)
        assert outcome.message.startswith("Rule 'classes should not call print' was violated")
        assert "shop.service.OrderService" in outcome.message

    def test_scope_limits_the_code_set(self, sample_project: Path) -> None:
        selected = _selected(ConditionProducer("no_print"), scope="shop.domain")
        assert invoke_check(ShopRules, selected, sample_project) == CheckPassed("no_print")

    def test_importer_receives_project_and_scope(self, sample_project: Path) -> None:
        calls: list[tuple[str | Path, str]] = []

        def importer(root: str | Path, scope: str) -> CodeSet:
            from archguard.lang import import_code_set

            calls.append((root, scope))
            return import_code_set(root, scope)

        invoke_check(
            ShopRules,
            _selected(RuleHolder("holder"), scope="shop"),
            sample_project,
            importer=importer,
        )
        assert calls == [(sample_project, "shop")]

    def test_factory_error_is_invocation_failed(self, sample_project: Path) -> None:
        outcome = invoke_check(ShopRules, _selected(ConditionProducer("broken")), sample_project)
        assert isinstance(outcome, InvocationFailed)
        assert isinstance(outcome.cause, RuntimeError)
        assert outcome.message == "condition factory exploded"

    def test_missing_code_root_is_invocation_failed(self, tmp_path: Path) -> None:
        outcome = invoke_check(
            ShopRules, _selected(ConditionProducer("no_print")), tmp_path / "missing"
        )
        assert isinstance(outcome, InvocationFailed)

    def test_fresh_instance_per_check(self, sample_project: Path) -> None:
        created: list[object] = []

        class Counting:
            def __init__(self) -> None:
                created.append(self)

            def no_print(self) -> ArchCondition:
                return not_call("print")

        selected = _selected(ConditionProducer("no_print"))
        invoke_check(Counting, selected, sample_project)
        invoke_check(Counting, selected, sample_project)
        assert len(created) == 2
