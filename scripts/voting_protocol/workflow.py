"""Temporal workflow wrapper for one election.

Wraps VotingApp with durable Temporal execution. Signals are used for all
state mutations (advance_status, submit_proposal, cast_vote); queries are used
for reads (current_state, workflow_status, available_transitions, winner,
last_error).
Search attributes are updated after every accepted command for forensic
queryability.

Design rules:
- Workflow code MUST be deterministic: no I/O, no random, no datetime.now().
- Use workflow.now() for timestamps inside workflow code.
- Activities handle non-deterministic operations (transition checks, recording).
- One workflow per election. Commands are applied strictly in arrival order,
  which makes the workflow the single serialized writer of the election.

Key types (all frozen dataclasses):
    ElectionInput        — workflow run() input
    ElectionResult       — workflow run() return value
    StatusAdvanceSignal  — advance_status signal payload
    ProposalSignal       — submit_proposal signal payload
    BallotSignal         — cast_vote signal payload
    TransitionCheck      — check_transition activity input

Search attribute keys:
    SA_ELECTION_ID    — text key for election ID forensic lookup
    SA_STATUS         — keyword key for current workflow status
    SA_PROPOSAL_COUNT — int key for registered proposals
    SA_BALLOT_COUNT   — int key for ballots cast

Activities:
    check_transition(check: TransitionCheck) -> list[str]
    record_transition(record: TransitionRecord) -> None
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from temporalio import activity, workflow
from temporalio.common import SearchAttributeKey

with workflow.unsafe.imports_passed_through():
    from voting_protocol.app import VotingApp
    from voting_protocol.errors import VotingError
    from voting_protocol.state_machine import (
        ElectionState,
        TransitionRecord,
        WorkflowController,
    )
    from voting_protocol.types import WorkflowStatus

ACTIVITY_TIMEOUT = timedelta(seconds=10)

# ─── Search Attribute Keys ────────────────────────────────────────────────────
# These keys are registered in the Temporal namespace and used for forensic
# querying: "find all elections where VotingWorkflowStatus='VOTING_SESSION_STARTED'".

SA_ELECTION_ID: SearchAttributeKey = SearchAttributeKey.for_text("VotingElectionId")
SA_STATUS: SearchAttributeKey = SearchAttributeKey.for_keyword("VotingWorkflowStatus")
SA_PROPOSAL_COUNT: SearchAttributeKey = SearchAttributeKey.for_int("VotingProposalCount")
SA_BALLOT_COUNT: SearchAttributeKey = SearchAttributeKey.for_int("VotingBallotCount")


# ─── Signal / Query Types (frozen dataclasses) ────────────────────────────────


@dataclass(frozen=True)
class ElectionInput:
    """Input for ElectionWorkflow.run().

    election_id: globally unique election identifier
    administrator: the identity allowed to advance the workflow
    voters: identities registered before proposals registration opens
    """

    election_id: str
    administrator: str
    voters: tuple[str, ...] = ()


@dataclass(frozen=True)
class ElectionResult:
    """Return value of ElectionWorkflow.run() once votes are tallied.

    final_status: should always be WorkflowStatus.VOTES_TALLIED
    winning_proposal_id: None only if no proposal was registered
    rejected_command_total: signals refused with a VotingError during the run
    """

    election_id: str
    final_status: WorkflowStatus
    winning_proposal_id: int | None
    transition_count: int
    ballot_count: int
    rejected_command_total: int


@dataclass(frozen=True)
class StatusAdvanceSignal:
    """Signal payload for ElectionWorkflow.advance_status()."""

    caller: str
    to_status: WorkflowStatus


@dataclass(frozen=True)
class ProposalSignal:
    """Signal payload for ElectionWorkflow.submit_proposal()."""

    caller: str
    description: str


@dataclass(frozen=True)
class BallotSignal:
    """Signal payload for ElectionWorkflow.cast_vote()."""

    caller: str
    proposal_id: int


@dataclass(frozen=True)
class TransitionCheck:
    """Input for the check_transition activity (a snapshot, not live state)."""

    election_id: str
    administrator: str
    current_status: WorkflowStatus
    caller: str
    to_status: WorkflowStatus


Command = StatusAdvanceSignal | ProposalSignal | BallotSignal


# ─── Activities ───────────────────────────────────────────────────────────────
# Activities handle non-deterministic operations so the workflow remains
# deterministic and replayable.


@activity.defn
async def check_transition(check: TransitionCheck) -> list[str]:
    """Dry-run a requested status transition.

    Rebuilds a controller over a snapshot of the relevant state and returns
    WorkflowController.validate_advance() reasons (empty = valid).
    """
    snapshot = ElectionState(
        election_id=check.election_id,
        administrator=check.administrator,
        status=check.current_status,
    )
    return WorkflowController(snapshot).validate_advance(check.caller, check.to_status)


@activity.defn
async def record_transition(record: TransitionRecord) -> None:
    """Persist a transition record to the audit trail.

    v1: log only; the record is already in ElectionState.transition_history
    and in Temporal's event history.
    """
    logger = logging.getLogger(__name__)
    logger.info(
        "Transition recorded: %s -> %s (triggered_by=%s)",
        record.from_status.name,
        record.to_status.name,
        record.triggered_by,
    )


# ─── Workflow ─────────────────────────────────────────────────────────────────


@workflow.defn
class ElectionWorkflow:
    """Durable Temporal workflow wrapping one VotingApp.

    Lifecycle:
        1. run() builds the election, registers input voters, sets search attributes.
        2. run() loops, applying queued commands one at a time in arrival order.
        3. Status advances are dry-run checked (activity), applied, then recorded
           (activity). Proposals and ballots are applied directly.
        4. A command rejected with VotingError leaves state unchanged and sets
           current_state().last_error.
        5. When the status reaches VOTES_TALLIED, run() returns ElectionResult.

    Signals:
        advance_status(StatusAdvanceSignal)
        submit_proposal(ProposalSignal)
        cast_vote(BallotSignal)

    Queries:
        current_state() -> ElectionState
        workflow_status() -> WorkflowStatus
        available_transitions() -> list[WorkflowStatus]
        winner() -> int | None
        last_error() -> str | None
    """

    def __init__(self) -> None:
        self._pending: list[Command] = []
        self._rejected: int = 0
        self._app: VotingApp | None = None

    # ── Run ───────────────────────────────────────────────────────────────────

    @workflow.run
    async def run(self, input: ElectionInput) -> ElectionResult:
        self._app = VotingApp(input.administrator, election_id=input.election_id)
        for voter in input.voters:
            try:
                self._app.register_voter(input.administrator, voter)
            except VotingError as e:
                self._reject(e)

        workflow.upsert_search_attributes(
            [
                SA_ELECTION_ID.value_set(input.election_id),
                SA_STATUS.value_set(self._app.get_workflow_status().name),
                SA_PROPOSAL_COUNT.value_set(0),
                SA_BALLOT_COUNT.value_set(0),
            ]
        )

        while self._app.get_workflow_status() != WorkflowStatus.VOTES_TALLIED:
            await workflow.wait_condition(lambda: bool(self._pending))
            command = self._pending.pop(0)

            if isinstance(command, StatusAdvanceSignal):
                accepted = await self._advance(command)
            else:
                accepted = self._apply(command)
            if not accepted:
                continue

            workflow.upsert_search_attributes(
                [
                    SA_STATUS.value_set(self._app.get_workflow_status().name),
                    SA_PROPOSAL_COUNT.value_set(self._app.registry.proposal_count),
                    SA_BALLOT_COUNT.value_set(self._app.ballot_box.ballot_count),
                ]
            )

        state = self._app.state
        return ElectionResult(
            election_id=input.election_id,
            final_status=state.status,
            winning_proposal_id=state.winning_proposal_id,
            transition_count=len(state.transition_history),
            ballot_count=self._app.ballot_box.ballot_count,
            rejected_command_total=self._rejected,
        )

    async def _advance(self, command: StatusAdvanceSignal) -> bool:
        assert self._app is not None
        state = self._app.state
        violations = await workflow.execute_activity(
            check_transition,
            TransitionCheck(
                election_id=state.election_id,
                administrator=state.administrator,
                current_status=state.status,
                caller=command.caller,
                to_status=command.to_status,
            ),
            start_to_close_timeout=ACTIVITY_TIMEOUT,
        )
        if violations:
            self._reject_message(violations[0])
            return False

        try:
            record = self._app.advance(
                command.caller, command.to_status, timestamp=workflow.now()
            )
        except VotingError as e:
            self._reject(e)
            return False

        await workflow.execute_activity(
            record_transition,
            record,
            start_to_close_timeout=ACTIVITY_TIMEOUT,
        )
        return True

    def _apply(self, command: ProposalSignal | BallotSignal) -> bool:
        assert self._app is not None
        try:
            if isinstance(command, ProposalSignal):
                self._app.submit_proposal(command.caller, command.description)
            else:
                self._app.cast_vote(command.caller, command.proposal_id)
        except VotingError as e:
            self._reject(e)
            return False
        self._app.state.last_error = None
        return True

    def _reject(self, error: VotingError) -> None:
        self._reject_message(error.message)

    def _reject_message(self, message: str) -> None:
        assert self._app is not None
        self._app.state.last_error = message
        self._rejected += 1
        workflow.logger.debug("Command rejected: %s", message)

    # ── Signals ───────────────────────────────────────────────────────────────

    @workflow.signal
    def advance_status(self, signal: StatusAdvanceSignal) -> None:
        """Signal: request a status transition (queued, applied in run())."""
        self._pending.append(signal)

    @workflow.signal
    def submit_proposal(self, signal: ProposalSignal) -> None:
        """Signal: submit a proposal (queued, applied in run())."""
        self._pending.append(signal)

    @workflow.signal
    def cast_vote(self, signal: BallotSignal) -> None:
        """Signal: cast a ballot (queued, applied in run())."""
        self._pending.append(signal)

    # ── Queries ───────────────────────────────────────────────────────────────

    @workflow.query
    def current_state(self) -> ElectionState:
        """Query: the live election state. Callers must not modify it."""
        if self._app is None:
            raise RuntimeError("Workflow not yet initialized — run() has not started.")
        return self._app.state

    @workflow.query
    def workflow_status(self) -> WorkflowStatus:
        if self._app is None:
            return WorkflowStatus.NOT_STARTED
        return self._app.get_workflow_status()

    @workflow.query
    def available_transitions(self) -> list[WorkflowStatus]:
        if self._app is None:
            return []
        return self._app.available_transitions

    @workflow.query
    def winner(self) -> int | None:
        if self._app is None:
            return None
        return self._app.state.winning_proposal_id

    @workflow.query
    def last_error(self) -> str | None:
        """Query: message of the most recent rejected command, cleared on success."""
        if self._app is None:
            return None
        return self._app.state.last_error
