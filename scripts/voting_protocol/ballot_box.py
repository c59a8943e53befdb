"""Ballot box and tally engine.

Records at most one ballot per registered voter while the voting session is
open, then computes the winner once the administrator tallies.

Tie-break: among proposals sharing the highest count, the lowest id wins.
"""

from __future__ import annotations

import logging
from datetime import datetime

from voting_protocol.errors import AlreadyVoted, InvalidPhase, NotFound
from voting_protocol.state_machine import (
    TransitionRecord,
    WorkflowController,
    only_administrator,
    only_registered_voter,
)
from voting_protocol.types import (
    MSG_ALREADY_VOTED,
    MSG_AFTER_VOTES_TALLIED,
    MSG_NO_PROPOSALS,
    MSG_PROPOSAL_NOT_FOUND,
    Tally,
    VotedEvent,
    VotesTalliedEvent,
    WorkflowStatus,
)

logger = logging.getLogger(__name__)


def pick_winner(vote_counts: list[int] | tuple[int, ...]) -> int | None:
    """Index of the strictly highest count; the lowest index wins ties."""
    winner: int | None = None
    for proposal_id, count in enumerate(vote_counts):
        if winner is None or count > vote_counts[winner]:
            winner = proposal_id
    return winner


class BallotBox:
    def __init__(self, controller: WorkflowController) -> None:
        self._controller = controller

    def cast_vote(self, caller: str, proposal_id: int) -> None:
        """Record caller's single ballot for proposal_id.

        Checks run in this order and all precede any mutation:
        InvalidPhase, Unauthorized, AlreadyVoted, NotFound.
        """
        with self._controller.serialized() as state:
            self._controller.require_status(WorkflowStatus.VOTING_SESSION_STARTED)
            voter = only_registered_voter(state, caller)
            if voter.has_voted:
                raise AlreadyVoted(MSG_ALREADY_VOTED)
            if not 0 <= proposal_id < len(state.proposals):
                raise NotFound(MSG_PROPOSAL_NOT_FOUND)

            voter.has_voted = True
            voter.voted_proposal_id = proposal_id
            state.vote_counts[proposal_id] += 1
            self._controller.emit(VotedEvent(voter=caller, proposal_id=proposal_id))
            logger.debug(
                "Ballot recorded: %s -> proposal %d (election=%s)",
                caller,
                proposal_id,
                state.election_id,
            )

    def tally_votes(
        self, caller: str, *, timestamp: datetime | None = None
    ) -> TransitionRecord:
        """Finalize the tally and move to VOTES_TALLIED. Administrator only."""
        with self._controller.serialized() as state:
            only_administrator(state, caller)
            self._controller.require_status(WorkflowStatus.VOTING_SESSION_ENDED)

            counts = tuple(state.vote_counts)
            tally = Tally(
                winning_proposal_id=pick_winner(counts),
                vote_counts=counts,
                total_votes=sum(counts),
            )
            state.tally = tally
            state.winning_proposal_id = tally.winning_proposal_id
            record = self._controller.commit_transition(
                WorkflowStatus.VOTES_TALLIED, triggered_by=caller, timestamp=timestamp
            )
            self._controller.emit(
                VotesTalliedEvent(
                    winning_proposal_id=tally.winning_proposal_id,
                    total_votes=tally.total_votes,
                )
            )
            logger.info(
                "Votes tallied: winner=%s with %d of %d ballots (election=%s)",
                tally.winning_proposal_id,
                counts[tally.winning_proposal_id] if tally.winning_proposal_id is not None else 0,
                tally.total_votes,
                state.election_id,
            )
            return record

    def get_winner(self) -> int:
        with self._controller.serialized() as state:
            if state.status != WorkflowStatus.VOTES_TALLIED:
                raise InvalidPhase(MSG_AFTER_VOTES_TALLIED)
            if state.winning_proposal_id is None:
                raise NotFound(MSG_NO_PROPOSALS)
            return state.winning_proposal_id

    def get_tally(self) -> Tally:
        with self._controller.serialized() as state:
            if state.tally is None:
                raise InvalidPhase(MSG_AFTER_VOTES_TALLIED)
            return state.tally

    def get_vote_count(self, proposal_id: int) -> int:
        with self._controller.serialized() as state:
            if not 0 <= proposal_id < len(state.vote_counts):
                raise NotFound(MSG_PROPOSAL_NOT_FOUND)
            return state.vote_counts[proposal_id]

    @property
    def ballot_count(self) -> int:
        """Number of distinct voters who have voted."""
        with self._controller.serialized() as state:
            return sum(1 for v in state.voters.values() if v.has_voted)
