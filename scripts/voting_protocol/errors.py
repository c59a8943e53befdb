"""Error taxonomy for the voting protocol.

Every error is a precondition failure detected before any mutation, so the
election state is unchanged whenever one is raised. The message is part of
the public contract and is returned verbatim by str().
"""

from __future__ import annotations


class VotingError(Exception):
    """Base class for all rejected voting operations.

    Attributes:
        message: the stable, human-readable reason
        violations: every reason found (dry-run validation may report more
            than one; raised errors carry at least the message itself)
    """

    def __init__(self, message: str, violations: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.violations = violations if violations is not None else [message]


class Unauthorized(VotingError):
    """The caller lacks the role the operation requires."""


class InvalidPhase(VotingError):
    """The operation was attempted outside its workflow status."""


class InvalidInput(VotingError):
    """An argument was malformed (e.g. empty proposal description)."""


class AlreadyVoted(VotingError):
    """The voter already cast a ballot."""


class NotFound(VotingError):
    """A referenced proposal or voter does not exist."""
