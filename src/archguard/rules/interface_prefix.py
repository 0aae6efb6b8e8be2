"""Pre-built rule: abstract classes and protocols carry no ``I`` prefix."""

from __future__ import annotations

from typing import TYPE_CHECKING

from archguard.lang.codeset import import_code_set
from archguard.lang.conditions import not_have_name_matching
from archguard.lang.rules import ArchRule, classes

if TYPE_CHECKING:
    from archguard.lang.codeset import CodeClass

INTERFACE_BASES: frozenset[str] = frozenset(
    {"abc.ABC", "typing.Protocol", "typing_extensions.Protocol"}
)
INTERFACE_NAME_PATTERN = r"I[A-Z].*"


def is_interface(item: CodeClass) -> bool:
    return any(base in INTERFACE_BASES for base in item.bases)


class NoPrefixForInterfacesRule:
    """Interfaces are named for what they are, not for being interfaces."""

    rule: ArchRule = (
        classes()
        .that(is_interface, "are abstract base classes or protocols")
        .should(not_have_name_matching(INTERFACE_NAME_PATTERN))
    )

    def execute(self, project_path: str) -> None:
        self.rule.check(import_code_set(project_path))
