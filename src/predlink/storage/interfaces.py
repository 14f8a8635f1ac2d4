"""Prediction store interface."""

from abc import ABC, abstractmethod
from datetime import datetime

from predlink.storage.models import MatchLink, PredictionRecord


class IPredictionStore(ABC):
    """Persistence for predictions and their fixture links."""

    @abstractmethod
    def create_prediction(self, prediction: PredictionRecord) -> int:
        """Insert an unprocessed prediction.

        Returns:
            Database id of the prediction.
        """
        ...

    @abstractmethod
    def link_prediction(self, link: MatchLink) -> int:
        """Insert the link and mark the prediction processed, atomically.

        Returns:
            Database id of the link.
        """
        ...

    @abstractmethod
    def mark_unresolved(self, prediction_id: int, note: str) -> None:
        """Leave the prediction unprocessed and record why."""
        ...

    @abstractmethod
    def get_pending_predictions(
        self, since: datetime | None = None, limit: int = 50
    ) -> list[PredictionRecord]:
        """Unprocessed predictions received at or after `since`, oldest first."""
        ...

    @abstractmethod
    def get_prediction(self, prediction_id: int) -> PredictionRecord | None:
        ...

    @abstractmethod
    def get_prediction_by_external_id(self, external_id: str) -> PredictionRecord | None:
        ...

    @abstractmethod
    def get_unsettled_links(self, match_external_id: str | None = None) -> list[MatchLink]:
        """Links without an outcome, optionally for a single fixture."""
        ...

    @abstractmethod
    def record_settlement(self, links: list[MatchLink]) -> None:
        """Persist the settlement fields of `links` in one transaction."""
        ...
