"""Rule library: code set import, conditions, and checkable rules."""

from archguard.lang.codeset import (
    CallSite,
    CodeClass,
    CodeSet,
    import_code_set,
)
from archguard.lang.conditions import (
    be_decorated_with,
    have_name_matching,
    not_call,
    not_define_attribute,
    not_have_name_matching,
    not_import,
)
from archguard.lang.rules import (
    ArchAssertionError,
    ArchCondition,
    ArchRule,
    ClassesShould,
    ConditionEvent,
    ConditionEvents,
    GivenClasses,
    classes,
)

__all__ = [
    "ArchAssertionError",
    "ArchCondition",
    "ArchRule",
    "CallSite",
    "ClassesShould",
    "CodeClass",
    "CodeSet",
    "ConditionEvent",
    "ConditionEvents",
    "GivenClasses",
    "be_decorated_with",
    "classes",
    "have_name_matching",
    "import_code_set",
    "not_call",
    "not_define_attribute",
    "not_have_name_matching",
    "not_import",
]
