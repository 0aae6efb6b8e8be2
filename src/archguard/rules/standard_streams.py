"""Pre-built rule: classes must not write to the standard streams."""

from __future__ import annotations

from archguard.lang.codeset import import_code_set
from archguard.lang.conditions import not_call
from archguard.lang.rules import ArchRule, classes

STANDARD_STREAM_CALLS: tuple[str, ...] = ("print", "sys.stdout", "sys.stderr")


class NoStandardStreamRule:
    """Use logging instead of ``print`` or ``sys.stdout`` / ``sys.stderr``."""

    rule: ArchRule = (
        classes()
        .should(not_call(*STANDARD_STREAM_CALLS))
        .because("output should go through logging")
    )

    def execute(self, project_path: str) -> None:
        self.rule.check(import_code_set(project_path))
