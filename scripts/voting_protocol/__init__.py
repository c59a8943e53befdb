"""Voting Protocol Engine — public API.

Single-administrator election workflow: the administrator registers voters
and walks the election through six ordered statuses; registered voters submit
proposals and cast one ballot each while the matching phase is open.

Public API (re-exported from submodules):

Enums:
    WorkflowStatus — NOT_STARTED (0) .. VOTES_TALLIED (5)

Frozen Dataclasses:
    StatusSpec   — one non-terminal status and the operation that leaves it
    Proposal     — candidate option (id from 0, description)
    Tally        — finalized counts and winning proposal id

Ledger Event Types (frozen dataclasses):
    VoterRegisteredEvent
    WorkflowStatusChangeEvent
    ProposalRegisteredEvent
    VotedEvent
    VotesTalliedEvent

Canonical Lookup Dicts:
    STATUS_SPECS — dict[WorkflowStatus, StatusSpec]

Errors (from errors.py):
    VotingError — base; Unauthorized, InvalidPhase, InvalidInput, AlreadyVoted, NotFound

Components:
    ElectionState       — the single shared state record
    TransitionRecord    — frozen audit entry for one transition
    WorkflowController  — status transitions, guards, voter registration
    ProposalRegistry    — proposals, open during proposals registration
    BallotBox           — ballots and tally
    VotingApp           — facade wiring the three together

Protocol Interfaces (runtime_checkable, from interfaces.py):
    EventSink

In-Memory Implementations:
    InMemoryAuditTrail — EventSink that keeps every published event
"""

from voting_protocol.app import VotingApp
from voting_protocol.ballot_box import BallotBox, pick_winner
from voting_protocol.errors import (
    AlreadyVoted,
    InvalidInput,
    InvalidPhase,
    NotFound,
    Unauthorized,
    VotingError,
)
from voting_protocol.interfaces import EventSink, InMemoryAuditTrail
from voting_protocol.registry import ProposalRegistry
from voting_protocol.state_machine import (
    ElectionState,
    TransitionRecord,
    WorkflowController,
)
from voting_protocol.types import (
    STATUS_SPECS,
    LedgerEvent,
    Proposal,
    ProposalRegisteredEvent,
    StatusSpec,
    Tally,
    Voter,
    VotedEvent,
    VoterRegisteredEvent,
    VotesTalliedEvent,
    WorkflowStatus,
    WorkflowStatusChangeEvent,
)

__all__ = [
    # Enums
    "WorkflowStatus",
    # Frozen dataclasses
    "StatusSpec",
    "Proposal",
    "Tally",
    "Voter",
    # Ledger events
    "VoterRegisteredEvent",
    "WorkflowStatusChangeEvent",
    "ProposalRegisteredEvent",
    "VotedEvent",
    "VotesTalliedEvent",
    "LedgerEvent",
    # Canonical lookup dicts
    "STATUS_SPECS",
    # Errors
    "VotingError",
    "Unauthorized",
    "InvalidPhase",
    "InvalidInput",
    "AlreadyVoted",
    "NotFound",
    # Components
    "ElectionState",
    "TransitionRecord",
    "WorkflowController",
    "ProposalRegistry",
    "BallotBox",
    "pick_winner",
    "VotingApp",
    # Protocol interfaces
    "EventSink",
    "InMemoryAuditTrail",
]
