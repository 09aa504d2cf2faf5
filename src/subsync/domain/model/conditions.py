"""Readiness conditions and the living condition set that derives ``Ready``."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import StrEnum


def utcnow() -> datetime:
    return datetime.now(UTC)


class ConditionStatus(StrEnum):
    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


@dataclass(slots=True, kw_only=True)
class Condition:
    type: str
    status: ConditionStatus = ConditionStatus.UNKNOWN
    reason: str = ""
    message: str = ""
    last_transition_time: datetime | None = None

    def is_true(self) -> bool:
        return self.status == ConditionStatus.TRUE

    def is_false(self) -> bool:
        return self.status == ConditionStatus.FALSE

    def is_unknown(self) -> bool:
        return self.status == ConditionStatus.UNKNOWN

    def same_state(self, other: Condition) -> bool:
        return (
            self.status == other.status
            and self.reason == other.reason
            and self.message == other.message
        )


def find_condition(conditions: list[Condition], condition_type: str) -> Condition | None:
    return next((c for c in conditions if c.type == condition_type), None)


@dataclass(frozen=True, slots=True)
class ConditionSet:
    """A happy condition that is True exactly when all dependents are True.

    The set operates on a plain list of conditions owned by a resource status.
    Conditions are kept sorted by type, and ``last_transition_time`` only moves
    when status, reason or message actually change.
    """

    happy: str
    dependents: tuple[str, ...]

    def initialize(self, conditions: list[Condition]) -> None:
        for condition_type in (self.happy, *self.dependents):
            if find_condition(conditions, condition_type) is None:
                self._set(conditions, Condition(type=condition_type))

    def mark_true(self, conditions: list[Condition], condition_type: str) -> None:
        changed = Condition(type=condition_type, status=ConditionStatus.TRUE)
        self._set(conditions, changed)
        self._recompute_happy(conditions, changed)

    def mark_false(
        self, conditions: list[Condition], condition_type: str, reason: str, message: str
    ) -> None:
        changed = Condition(
            type=condition_type, status=ConditionStatus.FALSE, reason=reason, message=message
        )
        self._set(conditions, changed)
        self._recompute_happy(conditions, changed)

    def mark_unknown(
        self, conditions: list[Condition], condition_type: str, reason: str, message: str
    ) -> None:
        changed = Condition(
            type=condition_type, status=ConditionStatus.UNKNOWN, reason=reason, message=message
        )
        self._set(conditions, changed)
        self._recompute_happy(conditions, changed)

    def is_happy(self, conditions: list[Condition]) -> bool:
        happy = find_condition(conditions, self.happy)
        return happy is not None and happy.is_true()

    def _recompute_happy(self, conditions: list[Condition], changed: Condition) -> None:
        if changed.type == self.happy:
            return
        dependents = [find_condition(conditions, t) for t in self.dependents]
        if changed.is_false():
            self._set(conditions, replace(changed, type=self.happy, last_transition_time=None))
            return
        failed = next((c for c in dependents if c is not None and c.is_false()), None)
        if failed is not None:
            self._set(conditions, replace(failed, type=self.happy, last_transition_time=None))
            return
        if all(c is not None and c.is_true() for c in dependents):
            self._set(conditions, Condition(type=self.happy, status=ConditionStatus.TRUE))
            return
        source = changed
        if not changed.is_unknown():
            source = next(
                (c for c in dependents if c is not None and c.is_unknown()),
                Condition(type=self.happy),
            )
        self._set(
            conditions,
            Condition(
                type=self.happy,
                status=ConditionStatus.UNKNOWN,
                reason=source.reason,
                message=source.message,
            ),
        )

    @staticmethod
    def _set(conditions: list[Condition], condition: Condition) -> None:
        existing = find_condition(conditions, condition.type)
        if existing is not None and existing.same_state(condition):
            return
        stored = replace(condition, last_transition_time=utcnow())
        if existing is not None:
            conditions.remove(existing)
        conditions.append(stored)
        conditions.sort(key=lambda c: c.type)
