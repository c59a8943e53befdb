"""VotingApp: one election, wired once.

Builds the single ElectionState and injects it into the workflow controller,
the proposal registry and the ballot box. Every operation takes the caller
identity explicitly; identities are opaque strings compared by equality.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from voting_protocol.ballot_box import BallotBox
from voting_protocol.interfaces import EventSink
from voting_protocol.registry import ProposalRegistry
from voting_protocol.state_machine import ElectionState, TransitionRecord, WorkflowController
from voting_protocol.types import Proposal, StatusSpec, Tally, Voter, WorkflowStatus


class VotingApp:
    """Facade over one election.

    Usage:
        app = VotingApp("admin")
        app.register_voter("admin", "alice")
        app.start_proposals_registration("admin")
        pid = app.submit_proposal("alice", "Build a park")
        app.end_proposals_registration("admin")
        app.start_voting_session("admin")
        app.cast_vote("alice", pid)
        app.end_voting_session("admin")
        app.tally_votes("admin")
        assert app.get_winner() == pid
    """

    def __init__(
        self,
        administrator: str,
        *,
        election_id: str = "election",
        specs: dict[WorkflowStatus, StatusSpec] | None = None,
        sinks: Iterable[EventSink] = (),
    ) -> None:
        self._state = ElectionState(election_id=election_id, administrator=administrator)
        self.controller = WorkflowController(self._state, specs=specs, sinks=sinks)
        self.registry = ProposalRegistry(self.controller)
        self.ballot_box = BallotBox(self.controller)

    @property
    def administrator(self) -> str:
        return self._state.administrator

    @property
    def state(self) -> ElectionState:
        """The live state record. Callers must not modify it."""
        return self._state

    # ── Workflow ──────────────────────────────────────────────────────────────

    def get_workflow_status(self) -> WorkflowStatus:
        return self.controller.get_workflow_status()

    @property
    def available_transitions(self) -> list[WorkflowStatus]:
        return self.controller.available_transitions

    def validate_advance(self, caller: str, to_status: WorkflowStatus) -> list[str]:
        return self.controller.validate_advance(caller, to_status)

    def advance(
        self,
        caller: str,
        to_status: WorkflowStatus,
        *,
        timestamp: datetime | None = None,
    ) -> TransitionRecord:
        """Move to to_status; VOTES_TALLIED is routed through tally_votes()."""
        if to_status == WorkflowStatus.VOTES_TALLIED:
            return self.ballot_box.tally_votes(caller, timestamp=timestamp)
        return self.controller.advance(caller, to_status, timestamp=timestamp)

    def start_proposals_registration(
        self, caller: str, *, timestamp: datetime | None = None
    ) -> TransitionRecord:
        return self.controller.start_proposals_registration(caller, timestamp=timestamp)

    def end_proposals_registration(
        self, caller: str, *, timestamp: datetime | None = None
    ) -> TransitionRecord:
        return self.controller.end_proposals_registration(caller, timestamp=timestamp)

    def start_voting_session(
        self, caller: str, *, timestamp: datetime | None = None
    ) -> TransitionRecord:
        return self.controller.start_voting_session(caller, timestamp=timestamp)

    def end_voting_session(
        self, caller: str, *, timestamp: datetime | None = None
    ) -> TransitionRecord:
        return self.controller.end_voting_session(caller, timestamp=timestamp)

    def tally_votes(
        self, caller: str, *, timestamp: datetime | None = None
    ) -> TransitionRecord:
        return self.ballot_box.tally_votes(caller, timestamp=timestamp)

    # ── Voters ────────────────────────────────────────────────────────────────

    def register_voter(self, caller: str, voter: str) -> None:
        self.controller.register_voter(caller, voter)

    def get_voter(self, address: str) -> Voter:
        return self.controller.get_voter(address)

    # ── Proposals ─────────────────────────────────────────────────────────────

    def submit_proposal(self, caller: str, description: str) -> int:
        return self.registry.submit_proposal(caller, description)

    def get_proposal(self, proposal_id: int) -> Proposal:
        return self.registry.get_proposal(proposal_id)

    @property
    def proposals(self) -> tuple[Proposal, ...]:
        return self.registry.proposals

    # ── Ballots ───────────────────────────────────────────────────────────────

    def cast_vote(self, caller: str, proposal_id: int) -> None:
        self.ballot_box.cast_vote(caller, proposal_id)

    def get_vote_count(self, proposal_id: int) -> int:
        return self.ballot_box.get_vote_count(proposal_id)

    def get_winner(self) -> int:
        return self.ballot_box.get_winner()

    def get_tally(self) -> Tally:
        return self.ballot_box.get_tally()
