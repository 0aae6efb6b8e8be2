"""Stock conditions for the common architecture checks."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from archguard.lang.rules import ArchCondition

if TYPE_CHECKING:
    from collections.abc import Iterable

    from archguard.lang.codeset import CodeClass


def _matches_prefix(name: str, prefixes: tuple[str, ...]) -> bool:
    return any(name == p or name.startswith(p + ".") for p in prefixes)


def not_call(*targets: str) -> ArchCondition:
    """Classes must not call any of *targets* (or anything below them).

    ``not_call("sys.stdout")`` forbids ``sys.stdout.write(...)`` as well.
    """

    def _evaluate(item: CodeClass) -> Iterable[str]:
        for call in item.calls:
            if _matches_prefix(call.target, targets):
                yield (
                    f"Class <{item.full_name}> calls <{call.target}> "
                    f"in ({item.file_path}:{call.line_number})"
                )

    return ArchCondition(f"not call {', '.join(targets)}", _evaluate)


def not_import(*modules: str) -> ArchCondition:
    """The module declaring a class must not import any of *modules*."""

    def _evaluate(item: CodeClass) -> Iterable[str]:
        for imported in item.imports:
            if _matches_prefix(imported, modules):
                yield (
                    f"Class <{item.full_name}> depends on <{imported}> "
                    f"in ({item.location})"
                )

    return ArchCondition(f"not depend on {', '.join(modules)}", _evaluate)


def have_name_matching(pattern: str) -> ArchCondition:
    regex = re.compile(pattern)

    def _evaluate(item: CodeClass) -> Iterable[str]:
        if regex.fullmatch(item.name) is None:
            yield (
                f"Class <{item.full_name}> does not have name matching '{pattern}' "
                f"in ({item.location})"
            )

    return ArchCondition(f"have name matching '{pattern}'", _evaluate)


def not_have_name_matching(pattern: str) -> ArchCondition:
    regex = re.compile(pattern)

    def _evaluate(item: CodeClass) -> Iterable[str]:
        if regex.fullmatch(item.name) is not None:
            yield (
                f"Class <{item.full_name}> has name matching '{pattern}' "
                f"in ({item.location})"
            )

    return ArchCondition(f"not have name matching '{pattern}'", _evaluate)


def be_decorated_with(decorator: str) -> ArchCondition:
    """Match on the resolved decorator path or its last segment."""

    def _evaluate(item: CodeClass) -> Iterable[str]:
        names = set(item.decorators) | {d.rpartition(".")[2] for d in item.decorators}
        if decorator not in names:
            yield (
                f"Class <{item.full_name}> is not decorated with @{decorator} "
                f"in ({item.location})"
            )

    return ArchCondition(f"be decorated with @{decorator}", _evaluate)


def not_define_attribute(pattern: str) -> ArchCondition:
    regex = re.compile(pattern)

    def _evaluate(item: CodeClass) -> Iterable[str]:
        for attribute in item.attributes:
            if regex.fullmatch(attribute) is not None:
                yield (
                    f"Class <{item.full_name}> defines attribute <{attribute}> "
                    f"in ({item.location})"
                )

    return ArchCondition(f"not define attributes matching '{pattern}'", _evaluate)
