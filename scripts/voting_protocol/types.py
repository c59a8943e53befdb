"""Core type definitions for the voting protocol.

Enums:
    WorkflowStatus — 6 ordered values: NOT_STARTED (0) .. VOTES_TALLIED (5)

Frozen Dataclasses:
    StatusSpec — one non-terminal status: leaving operation, next status, phase message
    Proposal   — a candidate option (id, description)
    Tally      — finalized vote counts and winning proposal id

Mutable Dataclasses:
    Voter — registration / has-voted flags and the recorded choice

Ledger Event Types (frozen dataclasses):
    VoterRegisteredEvent
    WorkflowStatusChangeEvent
    ProposalRegisteredEvent
    VotedEvent
    VotesTalliedEvent

Canonical Lookup Dicts:
    STATUS_SPECS — dict[WorkflowStatus, StatusSpec] — all 5 non-terminal statuses

Stable Messages:
    MSG_* constants — error strings surfaced verbatim to callers
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


# ─── Enums ────────────────────────────────────────────────────────────────────


class WorkflowStatus(IntEnum):
    """Election lifecycle status. Ranks are compared as integers."""

    NOT_STARTED = 0
    PROPOSALS_REGISTRATION_STARTED = 1
    PROPOSALS_REGISTRATION_ENDED = 2
    VOTING_SESSION_STARTED = 3
    VOTING_SESSION_ENDED = 4
    VOTES_TALLIED = 5

    @property
    def is_terminal(self) -> bool:
        return self == WorkflowStatus.VOTES_TALLIED


# ─── Stable Messages ──────────────────────────────────────────────────────────

MSG_ONLY_ADMINISTRATOR = "the caller of this function must be the administrator"
MSG_ONLY_REGISTERED_VOTER = "the caller of this function must be a registered voter"

MSG_BEFORE_PROPOSALS_REGISTRATION = (
    "this function can be called only before proposals registration has started"
)
MSG_DURING_PROPOSALS_REGISTRATION = (
    "this function can be called only during proposals registration"
)
MSG_AFTER_PROPOSALS_REGISTRATION = (
    "this function can be called only after proposals registration has ended"
)
MSG_DURING_VOTING_SESSION = "this function can be called only during the voting session"
MSG_AFTER_VOTING_SESSION = (
    "this function can be called only after the voting session has ended"
)
MSG_AFTER_VOTES_TALLIED = "this function can be called only after votes have been tallied"

MSG_EMPTY_DESCRIPTION = "the proposal description must not be empty"
MSG_EMPTY_VOTER = "the voter identity must not be empty"
MSG_VOTER_ALREADY_REGISTERED = "the voter is already registered"
MSG_ALREADY_VOTED = "the caller has already voted"
MSG_PROPOSAL_NOT_FOUND = "the proposal does not exist"
MSG_VOTER_NOT_FOUND = "the voter is not registered"
MSG_NO_PROPOSALS = "no proposal was registered"
MSG_TALLY_REQUIRED = "votes can only be tallied through tally_votes"


# ─── Status Specs ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class StatusSpec:
    """Specification of one non-terminal workflow status.

    status: the status this spec describes
    name: human-readable name
    operation: name of the administrator operation that leaves this status
    next_status: the status reached by that operation
    phase_message: stable error for operations gated on this status
    """

    status: WorkflowStatus
    name: str
    operation: str
    next_status: WorkflowStatus
    phase_message: str


STATUS_SPECS: dict[WorkflowStatus, StatusSpec] = {
    WorkflowStatus.NOT_STARTED: StatusSpec(
        status=WorkflowStatus.NOT_STARTED,
        name="Not Started",
        operation="start_proposals_registration",
        next_status=WorkflowStatus.PROPOSALS_REGISTRATION_STARTED,
        phase_message=MSG_BEFORE_PROPOSALS_REGISTRATION,
    ),
    WorkflowStatus.PROPOSALS_REGISTRATION_STARTED: StatusSpec(
        status=WorkflowStatus.PROPOSALS_REGISTRATION_STARTED,
        name="Proposals Registration Started",
        operation="end_proposals_registration",
        next_status=WorkflowStatus.PROPOSALS_REGISTRATION_ENDED,
        phase_message=MSG_DURING_PROPOSALS_REGISTRATION,
    ),
    WorkflowStatus.PROPOSALS_REGISTRATION_ENDED: StatusSpec(
        status=WorkflowStatus.PROPOSALS_REGISTRATION_ENDED,
        name="Proposals Registration Ended",
        operation="start_voting_session",
        next_status=WorkflowStatus.VOTING_SESSION_STARTED,
        phase_message=MSG_AFTER_PROPOSALS_REGISTRATION,
    ),
    WorkflowStatus.VOTING_SESSION_STARTED: StatusSpec(
        status=WorkflowStatus.VOTING_SESSION_STARTED,
        name="Voting Session Started",
        operation="end_voting_session",
        next_status=WorkflowStatus.VOTING_SESSION_ENDED,
        phase_message=MSG_DURING_VOTING_SESSION,
    ),
    WorkflowStatus.VOTING_SESSION_ENDED: StatusSpec(
        status=WorkflowStatus.VOTING_SESSION_ENDED,
        name="Voting Session Ended",
        operation="tally_votes",
        next_status=WorkflowStatus.VOTES_TALLIED,
        phase_message=MSG_AFTER_VOTING_SESSION,
    ),
}


# ─── Domain Records ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Proposal:
    """A candidate option. Ids follow creation order starting at 0."""

    id: int
    description: str


@dataclass
class Voter:
    """A registered participant.

    has_voted flips to True exactly once; voted_proposal_id is set at the
    same time and never changes afterwards.
    """

    address: str
    is_registered: bool = True
    has_voted: bool = False
    voted_proposal_id: int | None = None


@dataclass(frozen=True)
class Tally:
    """Finalized result of an election.

    winning_proposal_id: None only when no proposal was registered
    vote_counts: per-proposal counts, indexed by proposal id
    total_votes: number of distinct voters who cast a ballot
    """

    winning_proposal_id: int | None
    vote_counts: tuple[int, ...]
    total_votes: int


# ─── Ledger Events ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class VoterRegisteredEvent:
    voter: str


@dataclass(frozen=True)
class WorkflowStatusChangeEvent:
    previous_status: WorkflowStatus
    new_status: WorkflowStatus


@dataclass(frozen=True)
class ProposalRegisteredEvent:
    proposal_id: int


@dataclass(frozen=True)
class VotedEvent:
    voter: str
    proposal_id: int


@dataclass(frozen=True)
class VotesTalliedEvent:
    winning_proposal_id: int | None
    total_votes: int


# Discriminated union of everything that can land in the ledger.
LedgerEvent = (
    VoterRegisteredEvent
    | WorkflowStatusChangeEvent
    | ProposalRegisteredEvent
    | VotedEvent
    | VotesTalliedEvent
)
