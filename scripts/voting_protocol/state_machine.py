"""Workflow controller for the election lifecycle.

Owns the single shared ElectionState record, the only operations that move
the workflow status forward, and the guards every other component calls
before touching the record.

Key types:
    ElectionState       — mutable election runtime state (one per election)
    TransitionRecord    — frozen, immutable audit entry for one transition
    WorkflowController  — 6-status linear state machine + voter registration

Guards (module functions, always called in this order by mutating entry points):
    only_administrator(state, caller)
    only_registered_voter(state, caller)
    only_during(state, required, specs)

Concurrency: one re-entrant lock per controller. Registry and BallotBox enter
the same lock through WorkflowController.serialized(), so every read-check-write
sequence on the shared record is linearizable.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from voting_protocol.errors import InvalidInput, InvalidPhase, NotFound, Unauthorized
from voting_protocol.interfaces import EventSink
from voting_protocol.types import (
    MSG_AFTER_VOTES_TALLIED,
    MSG_EMPTY_VOTER,
    MSG_ONLY_ADMINISTRATOR,
    MSG_ONLY_REGISTERED_VOTER,
    MSG_TALLY_REQUIRED,
    MSG_VOTER_ALREADY_REGISTERED,
    MSG_VOTER_NOT_FOUND,
    STATUS_SPECS,
    LedgerEvent,
    Proposal,
    StatusSpec,
    Tally,
    Voter,
    VoterRegisteredEvent,
    WorkflowStatus,
    WorkflowStatusChangeEvent,
)

logger = logging.getLogger(__name__)


# ─── State Records ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TransitionRecord:
    """Immutable audit entry for one status transition."""

    from_status: WorkflowStatus
    to_status: WorkflowStatus
    timestamp: datetime
    triggered_by: str


@dataclass
class ElectionState:
    """The one state record shared by controller, registry and ballot box.

    Created once per election with the administrator fixed. Only the
    controller and the components it serializes may mutate it.
    """

    election_id: str
    administrator: str
    status: WorkflowStatus = WorkflowStatus.NOT_STARTED
    proposals: list[Proposal] = field(default_factory=list)
    voters: dict[str, Voter] = field(default_factory=dict)
    # Indexed by proposal id, grows with proposals.
    vote_counts: list[int] = field(default_factory=list)
    winning_proposal_id: int | None = None
    tally: Tally | None = None
    transition_history: list[TransitionRecord] = field(default_factory=list)
    events: list[LedgerEvent] = field(default_factory=list)
    last_error: str | None = None


# ─── Guards ───────────────────────────────────────────────────────────────────


def phase_message(
    status: WorkflowStatus,
    specs: dict[WorkflowStatus, StatusSpec] = STATUS_SPECS,
) -> str:
    """Stable error message for operations that require `status`."""
    spec = specs.get(status)
    if spec is not None:
        return spec.phase_message
    if status.is_terminal:
        return MSG_AFTER_VOTES_TALLIED
    return f"this function can be called only while the workflow status is {status.name}"


def only_administrator(state: ElectionState, caller: str) -> None:
    if caller != state.administrator:
        raise Unauthorized(MSG_ONLY_ADMINISTRATOR)


def only_registered_voter(state: ElectionState, caller: str) -> Voter:
    voter = state.voters.get(caller)
    if voter is None or not voter.is_registered:
        raise Unauthorized(MSG_ONLY_REGISTERED_VOTER)
    return voter


def only_during(
    state: ElectionState,
    required: WorkflowStatus,
    specs: dict[WorkflowStatus, StatusSpec] = STATUS_SPECS,
) -> None:
    if state.status != required:
        raise InvalidPhase(phase_message(required, specs))


# ─── Controller ───────────────────────────────────────────────────────────────


class WorkflowController:
    """Linear election workflow: NOT_STARTED -> ... -> VOTES_TALLIED.

    Usage:
        state = ElectionState(election_id="e-1", administrator="admin")
        controller = WorkflowController(state)
        controller.register_voter("admin", "alice")
        controller.start_proposals_registration("admin")
        assert controller.get_workflow_status() == WorkflowStatus.PROPOSALS_REGISTRATION_STARTED

    Transitions are validated against the status spec table (STATUS_SPECS by
    default; injectable for tests). Each spec must step forward by exactly one.
    """

    def __init__(
        self,
        state: ElectionState,
        *,
        specs: dict[WorkflowStatus, StatusSpec] | None = None,
        sinks: Iterable[EventSink] = (),
    ) -> None:
        self._state = state
        self._specs = specs if specs is not None else STATUS_SPECS
        for spec in self._specs.values():
            if int(spec.next_status) != int(spec.status) + 1:
                raise ValueError(
                    f"status spec {spec.status.name} must move forward by exactly one, "
                    f"got next_status={spec.next_status.name}"
                )
        self._sinks: list[EventSink] = list(sinks)
        self._lock = threading.RLock()

    # ── Shared State ──────────────────────────────────────────────────────────

    @property
    def state(self) -> ElectionState:
        """The live state record. Callers must not modify it."""
        return self._state

    @property
    def specs(self) -> dict[WorkflowStatus, StatusSpec]:
        return self._specs

    @contextmanager
    def serialized(self) -> Iterator[ElectionState]:
        """Enter the election's mutual-exclusion boundary."""
        with self._lock:
            yield self._state

    def add_sink(self, sink: EventSink) -> None:
        with self._lock:
            self._sinks.append(sink)

    def emit(self, event: LedgerEvent) -> None:
        """Append an event to the ledger and publish it. Caller holds the lock.

        Called only after the operation's mutations are complete. A failing
        sink is logged and skipped; the operation has already been applied and
        must not surface as a failure.
        """
        self._state.events.append(event)
        for sink in self._sinks:
            try:
                sink.publish(event)
            except Exception:
                logger.exception(
                    "Event sink %r failed on %s (election=%s)",
                    sink,
                    type(event).__name__,
                    self._state.election_id,
                )

    def require_status(self, required: WorkflowStatus) -> None:
        only_during(self._state, required, self._specs)

    # ── Queries ───────────────────────────────────────────────────────────────

    def get_workflow_status(self) -> WorkflowStatus:
        with self._lock:
            return self._state.status

    @property
    def available_transitions(self) -> list[WorkflowStatus]:
        """Statuses reachable from the current one (empty once terminal)."""
        with self._lock:
            spec = self._specs.get(self._state.status)
            return [] if spec is None else [spec.next_status]

    def validate_advance(self, caller: str, to_status: WorkflowStatus) -> list[str]:
        """Dry run: return every reason advance() would fail. Never mutates."""
        with self._lock:
            violations: list[str] = []
            if caller != self._state.administrator:
                violations.append(MSG_ONLY_ADMINISTRATOR)
            required = self._required_status(to_status)
            if required is None:
                violations.append(f"no transition leads to {to_status.name}")
            elif self._state.status != required:
                violations.append(phase_message(required, self._specs))
            return violations

    # ── Transitions ───────────────────────────────────────────────────────────

    def advance(
        self,
        caller: str,
        to_status: WorkflowStatus,
        *,
        timestamp: datetime | None = None,
    ) -> TransitionRecord:
        """Move to `to_status`, which must be the next status in order.

        Raises:
            Unauthorized: caller is not the administrator (checked first).
            InvalidPhase: current status is not the one preceding to_status.
            InvalidInput: to_status is reached only through tally_votes().
        """
        with self.serialized() as state:
            only_administrator(state, caller)
            required = self._required_status(to_status)
            if required is None:
                raise InvalidPhase(f"no transition leads to {to_status.name}")
            only_during(state, required, self._specs)
            if self._specs[required].operation == "tally_votes":
                raise InvalidInput(MSG_TALLY_REQUIRED)
            return self.commit_transition(to_status, triggered_by=caller, timestamp=timestamp)

    def start_proposals_registration(
        self, caller: str, *, timestamp: datetime | None = None
    ) -> TransitionRecord:
        return self.advance(
            caller, WorkflowStatus.PROPOSALS_REGISTRATION_STARTED, timestamp=timestamp
        )

    def end_proposals_registration(
        self, caller: str, *, timestamp: datetime | None = None
    ) -> TransitionRecord:
        return self.advance(
            caller, WorkflowStatus.PROPOSALS_REGISTRATION_ENDED, timestamp=timestamp
        )

    def start_voting_session(
        self, caller: str, *, timestamp: datetime | None = None
    ) -> TransitionRecord:
        return self.advance(caller, WorkflowStatus.VOTING_SESSION_STARTED, timestamp=timestamp)

    def end_voting_session(
        self, caller: str, *, timestamp: datetime | None = None
    ) -> TransitionRecord:
        return self.advance(caller, WorkflowStatus.VOTING_SESSION_ENDED, timestamp=timestamp)

    def commit_transition(
        self,
        to_status: WorkflowStatus,
        *,
        triggered_by: str,
        timestamp: datetime | None = None,
    ) -> TransitionRecord:
        """Apply an already validated transition. Caller holds the lock."""
        state = self._state
        record = TransitionRecord(
            from_status=state.status,
            to_status=to_status,
            timestamp=timestamp if timestamp is not None else datetime.now(tz=timezone.utc),
            triggered_by=triggered_by,
        )
        state.status = to_status
        state.transition_history.append(record)
        state.last_error = None
        self.emit(
            WorkflowStatusChangeEvent(
                previous_status=record.from_status, new_status=record.to_status
            )
        )
        logger.info(
            "Workflow status changed: %s -> %s (election=%s, triggered_by=%s)",
            record.from_status.name,
            record.to_status.name,
            state.election_id,
            triggered_by,
        )
        return record

    def _required_status(self, to_status: WorkflowStatus) -> WorkflowStatus | None:
        for spec in self._specs.values():
            if spec.next_status == to_status:
                return spec.status
        return None

    # ── Voters ────────────────────────────────────────────────────────────────

    def register_voter(self, caller: str, voter: str) -> None:
        """Whitelist `voter`. Administrator only, before proposals registration."""
        with self.serialized() as state:
            only_administrator(state, caller)
            only_during(state, WorkflowStatus.NOT_STARTED, self._specs)
            if not voter:
                raise InvalidInput(MSG_EMPTY_VOTER)
            if voter in state.voters:
                raise InvalidInput(MSG_VOTER_ALREADY_REGISTERED)
            state.voters[voter] = Voter(address=voter)
            self.emit(VoterRegisteredEvent(voter=voter))
            logger.info("Voter registered: %s (election=%s)", voter, state.election_id)

    def get_voter(self, address: str) -> Voter:
        """Return a copy of the voter record; NotFound if never registered."""
        with self._lock:
            voter = self._state.voters.get(address)
            if voter is None:
                raise NotFound(MSG_VOTER_NOT_FOUND)
            return replace(voter)

    def is_registered(self, address: str) -> bool:
        with self._lock:
            voter = self._state.voters.get(address)
            return voter is not None and voter.is_registered
