"""Abstract repository interface for saved analyses."""

from abc import ABC, abstractmethod

from tubescout.models import Analysis


class AnalysisRepository(ABC):
    """Abstract base class defining the analysis history contract.

    Records are stored verbatim: whatever JSON value an analysis carries
    in ``data`` comes back unmodified.
    """

    @abstractmethod
    def save(self, analysis: Analysis) -> Analysis:
        """Persist a new analysis and return it with its assigned id."""

    @abstractmethod
    def get(self, analysis_id: int, user_id: str) -> Analysis | None:
        """Retrieve one of a user's analyses. Returns None if not found."""

    @abstractmethod
    def list_for_user(self, user_id: str, type: str | None = None) -> list[Analysis]:
        """List a user's analyses, newest first, optionally filtered by type."""

    @abstractmethod
    def delete(self, analysis_id: int, user_id: str) -> bool:
        """Remove one of a user's analyses. Returns False if nothing was deleted."""
