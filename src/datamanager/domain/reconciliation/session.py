"""Caller-owned state shared by reconciliation passes.

A session replaces process-wide bookkeeping: it holds the outstanding
per-record errors and the set of identities with a pass in progress. Errors
accumulate across passes for the same identity until they are drained with
``consume_errors_for``.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from datamanager.domain.errors import RecordImportError

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("Only non-negative values can be encoded")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


@dataclass(slots=True)
class ReconciliationSession:
    """Error aggregator and in-flight tracking for reconciliation passes."""

    clock: Callable[[], int] = _epoch_millis
    _errors: dict[str, list[RecordImportError]] = field(
        default_factory=dict[str, list["RecordImportError"]]
    )
    _in_flight: dict[str, bool] = field(default_factory=dict[str, bool])
    _last_stamp: int = -1

    def add_errors(self, identity: str, errors: Iterable[RecordImportError]) -> None:
        self._errors.setdefault(identity, []).extend(errors)

    def errors_for(self, identity: str) -> tuple[RecordImportError, ...]:
        return tuple(self._errors.get(identity, ()))

    def consume_errors_for(self, identity: str) -> list[RecordImportError]:
        """Return and clear the outstanding errors for ``identity``."""

        errors = self._errors.get(identity, [])
        self._errors[identity] = []
        return errors

    def mark_importing(self, identity: str, *, importing: bool) -> None:
        self._in_flight[identity] = importing

    def is_importing(self, identity: str) -> bool:
        return self._in_flight.get(identity, False)

    def importing(self) -> frozenset[str]:
        return frozenset(identity for identity, flag in self._in_flight.items() if flag)

    def next_error_id(self, identity: str) -> str:
        stamp = self.clock()
        if stamp <= self._last_stamp:
            stamp = self._last_stamp + 1
        self._last_stamp = stamp
        return f"error_{identity}_{to_base36(stamp)}"
