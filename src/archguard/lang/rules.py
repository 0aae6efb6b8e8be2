"""Conditions, rules and the ``classes().should(...)`` builder."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from archguard.lang.codeset import CodeClass, CodeSet

    ClassPredicate = Callable[[CodeClass], bool]
    ClassEvaluator = Callable[[CodeClass], Iterable[str]]


class ArchAssertionError(AssertionError):
    """Raised by :meth:`ArchRule.check` when at least one class violates the rule."""

    def __init__(self, description: str, violations: list[str]) -> None:
        self.description = description
        self.violations = violations
        details = "\n".join(violations)
        super().__init__(
            f"Rule '{description}' was violated ({len(violations)} times):\n{details}"
        )


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConditionEvent:
    """Outcome of evaluating a condition against one class."""

    class_name: str
    message: str
    violated: bool


@dataclass
class ConditionEvents:
    """Collects the events produced while a condition is evaluated."""

    events: list[ConditionEvent] = field(default_factory=list)

    def add(self, event: ConditionEvent) -> None:
        self.events.append(event)

    @property
    def violations(self) -> list[ConditionEvent]:
        return [e for e in self.events if e.violated]

    def has_violations(self) -> bool:
        return any(e.violated for e in self.events)


class ArchCondition:
    """A per-class predicate.

    *evaluate* receives one :class:`CodeClass` and yields a message for each
    violation it finds; yielding nothing means the condition holds.
    """

    def __init__(self, description: str, evaluate: ClassEvaluator) -> None:
        self.description = description
        self._evaluate = evaluate

    def check(self, item: CodeClass, events: ConditionEvents) -> None:
        messages = list(self._evaluate(item))
        if not messages:
            events.add(ConditionEvent(item.full_name, "", violated=False))
            return
        for message in messages:
            events.add(ConditionEvent(item.full_name, message, violated=True))

    def and_(self, other: ArchCondition) -> ArchCondition:
        def _both(item: CodeClass) -> Iterable[str]:
            yield from self._evaluate(item)
            yield from other._evaluate(item)

        return ArchCondition(f"{self.description} and {other.description}", _both)

    def as_(self, description: str) -> ArchCondition:
        return ArchCondition(description, self._evaluate)

    def __repr__(self) -> str:
        return f"ArchCondition({self.description!r})"


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


class ArchRule(ABC):
    """A fully-formed rule that can be checked against a code set."""

    description: str

    @abstractmethod
    def evaluate(self, code_set: CodeSet) -> ConditionEvents:
        """Evaluate the rule and return every event, violated or not."""

    def check(self, code_set: CodeSet) -> None:
        """Raise :class:`ArchAssertionError` if the rule is violated."""
        events = self.evaluate(code_set)
        violations = events.violations
        if violations:
            raise ArchAssertionError(self.description, [v.message for v in violations])

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.description!r})"


class ClassesShould(ArchRule):
    """``classes().that(...).should(condition)``."""

    def __init__(
        self,
        condition: ArchCondition,
        *,
        predicates: tuple[tuple[ClassPredicate, str], ...] = (),
    ) -> None:
        self.condition = condition
        self._predicates = predicates
        that = " and ".join(d for _, d in predicates)
        subject = f"classes that {that}" if that else "classes"
        self.description = f"{subject} should {condition.description}"

    def evaluate(self, code_set: CodeSet) -> ConditionEvents:
        events = ConditionEvents()
        for item in code_set:
            if all(p(item) for p, _ in self._predicates):
                self.condition.check(item, events)
        return events

    def because(self, reason: str) -> ClassesShould:
        rule = ClassesShould(self.condition, predicates=self._predicates)
        rule.description = f"{self.description}, because {reason}"
        return rule


class GivenClasses:
    """Selection half of a rule definition."""

    def __init__(self, predicates: tuple[tuple[ClassPredicate, str], ...] = ()) -> None:
        self._predicates = predicates

    def that(self, predicate: ClassPredicate, description: str) -> GivenClasses:
        return GivenClasses((*self._predicates, (predicate, description)))

    def should(self, condition: ArchCondition) -> ClassesShould:
        return ClassesShould(condition, predicates=self._predicates)


def classes() -> GivenClasses:
    """Start a rule over every class of the code set."""
    return GivenClasses()
