"""Submission outcome DTO."""

from chat_widget.application.dtos.base import DTO


class SubmissionResult(DTO):
    """Which collaborators accepted or rejected a submission."""

    accepted: list[str] = []
    failed: list[str] = []

    @property
    def ok(self) -> bool:
        """A submission succeeds when at least one collaborator accepted it."""
        return bool(self.accepted)
