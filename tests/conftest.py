"""Shared pytest fixtures for voting_protocol test suite.

Provides common VotingApp setup patterns used across multiple test files
to avoid repeated inline boilerplate and keep tests focused on behaviour.
"""

from __future__ import annotations

import pytest

from voting_protocol.app import VotingApp
from voting_protocol.types import WorkflowStatus

ADMIN = "0xadmin"
VOTERS = ("0xalice", "0xbob", "0xcarol")
OUTSIDER = "0xmallory"
DESCRIPTIONS = ("Build a park", "Repair the bridge", "Open a library")


def _make_app(election_id: str = "test-election") -> VotingApp:
    """Return a fresh VotingApp with VOTERS registered, still NOT_STARTED."""
    app = VotingApp(ADMIN, election_id=election_id)
    for voter in VOTERS:
        app.register_voter(ADMIN, voter)
    return app


def _advance_to(app: VotingApp, target: WorkflowStatus) -> None:
    """Advance app through every status up to target.

    Submits DESCRIPTIONS as proposals while registration is open so that the
    voting session has something to vote on.
    """
    while app.get_workflow_status() < target:
        current = app.get_workflow_status()
        if current == WorkflowStatus.PROPOSALS_REGISTRATION_STARTED and not app.proposals:
            for voter, description in zip(VOTERS, DESCRIPTIONS):
                app.submit_proposal(voter, description)
        app.advance(ADMIN, WorkflowStatus(current + 1))


@pytest.fixture
def app() -> VotingApp:
    return _make_app()


@pytest.fixture
def app_in_registration(app: VotingApp) -> VotingApp:
    """App with proposals registration open and no proposals yet."""
    app.start_proposals_registration(ADMIN)
    return app


@pytest.fixture
def app_in_voting(app: VotingApp) -> VotingApp:
    """App with 3 proposals (ids 0, 1, 2) and the voting session open."""
    _advance_to(app, WorkflowStatus.VOTING_SESSION_STARTED)
    return app
