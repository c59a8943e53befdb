"""Proposal registry: proposals may only be added during proposals registration."""

from __future__ import annotations

import logging

from voting_protocol.errors import InvalidInput, NotFound
from voting_protocol.state_machine import WorkflowController, only_registered_voter
from voting_protocol.types import (
    MSG_EMPTY_DESCRIPTION,
    MSG_PROPOSAL_NOT_FOUND,
    Proposal,
    ProposalRegisteredEvent,
    WorkflowStatus,
)

logger = logging.getLogger(__name__)


class ProposalRegistry:
    """Append-only list of proposals. Ids are list positions starting at 0."""

    def __init__(self, controller: WorkflowController) -> None:
        self._controller = controller

    def submit_proposal(self, caller: str, description: str) -> int:
        """Register a new proposal and return its id.

        Raises:
            Unauthorized: caller is not a registered voter.
            InvalidPhase: proposals registration is not open.
            InvalidInput: description is empty or whitespace.
        """
        with self._controller.serialized() as state:
            only_registered_voter(state, caller)
            self._controller.require_status(WorkflowStatus.PROPOSALS_REGISTRATION_STARTED)
            if not description or not description.strip():
                raise InvalidInput(MSG_EMPTY_DESCRIPTION)

            proposal = Proposal(id=len(state.proposals), description=description)
            state.proposals.append(proposal)
            state.vote_counts.append(0)
            self._controller.emit(ProposalRegisteredEvent(proposal_id=proposal.id))
            logger.info(
                "Proposal registered: id=%d by %s (election=%s)",
                proposal.id,
                caller,
                state.election_id,
            )
            return proposal.id

    def get_proposal(self, proposal_id: int) -> Proposal:
        with self._controller.serialized() as state:
            if not 0 <= proposal_id < len(state.proposals):
                raise NotFound(MSG_PROPOSAL_NOT_FOUND)
            return state.proposals[proposal_id]

    @property
    def proposals(self) -> tuple[Proposal, ...]:
        with self._controller.serialized() as state:
            return tuple(state.proposals)

    @property
    def proposal_count(self) -> int:
        with self._controller.serialized() as state:
            return len(state.proposals)
