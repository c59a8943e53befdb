"""Integration interfaces for consumers of the election ledger.

This module defines:
- EventSink, a @runtime_checkable Protocol for structural subtyping: a
  synchronous receiver of ledger events, called under the controller lock
  right after an event is appended
- InMemoryAuditTrail, a reference EventSink that keeps every event it is
  given, used by tests and for local runs.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from voting_protocol.types import LedgerEvent


# ─── Protocol Interfaces ──────────────────────────────────────────────────────


@runtime_checkable
class EventSink(Protocol):
    """Anything that wants to observe ledger events as they are appended.

    Structural subtyping: external projects can satisfy this without
    inheriting from any base class. publish() must not call back into the
    election; it runs inside the serialized section. An exception raised by
    publish() is logged by the controller and does not undo the operation.
    """

    def publish(self, event: LedgerEvent) -> None:
        ...


# ─── In-Memory Implementation ─────────────────────────────────────────────────


class InMemoryAuditTrail:
    """Append-only, in-process copy of the ledger. Satisfies EventSink."""

    def __init__(self) -> None:
        self._events: list[LedgerEvent] = []

    @property
    def events(self) -> tuple[LedgerEvent, ...]:
        return tuple(self._events)

    def publish(self, event: LedgerEvent) -> None:
        self._events.append(event)


__all__ = [
    "EventSink",
    "InMemoryAuditTrail",
]
