"""Re-resolve predictions that did not link on ingestion."""

import time
from collections.abc import Callable

from predlink.common.config import BatchConfig
from predlink.common.logging import get_logger
from predlink.common.time_utils import days_ago
from predlink.ingestion.ingestor import IngestionResult, PredictionIngestor
from predlink.storage.interfaces import IPredictionStore
from predlink.storage.models import PredictionRecord

logger = get_logger(__name__)


class PendingMatcher:
    """Walks unprocessed predictions in small groups.

    Fixtures a prediction refers to may not be live in the registry yet
    when the prediction arrives, so unlinked predictions are retried.
    """

    def __init__(
        self,
        store: IPredictionStore,
        ingestor: PredictionIngestor,
        config: BatchConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.ingestor = ingestor
        self.config = config or BatchConfig()
        self._sleep = sleep

    def match_pending(self, limit: int | None = None) -> list[IngestionResult]:
        """Retry resolution for recent unprocessed predictions.

        Args:
            limit: Maximum predictions to read; defaults to the configured
                pending limit.

        Returns:
            One result per prediction, in processing order.
        """
        limit = limit if limit is not None else self.config.pending_limit
        pending = self.store.get_pending_predictions(
            since=days_ago(self.config.lookback_days), limit=limit
        )
        if not pending:
            logger.debug("no_pending_predictions")
            return []

        logger.info("pending_match_started", count=len(pending))
        results: list[IngestionResult] = []
        group_size = self.config.group_size

        for start in range(0, len(pending), group_size):
            if start > 0 and self.config.pause_seconds > 0:
                self._sleep(self.config.pause_seconds)
            for record in pending[start:start + group_size]:
                results.append(self._resolve_one(record))

        matched = sum(1 for result in results if result.match_found)
        failed = sum(1 for result in results if not result.success)
        logger.info(
            "pending_match_complete",
            total=len(results),
            matched=matched,
            failed=failed,
        )
        return results

    def match_by_external_id(self, external_id: str) -> IngestionResult:
        """Retry resolution for one prediction by its external id."""
        record = self.store.get_prediction_by_external_id(external_id)
        if record is None:
            return IngestionResult(
                success=False,
                external_id=external_id,
                error=f"Prediction not found: {external_id}",
            )
        if record.processed:
            return IngestionResult(
                success=True,
                prediction_id=record.id,
                external_id=external_id,
                match_found=True,
                note="already processed",
            )
        return self._resolve_one(record)

    def _resolve_one(self, record: PredictionRecord) -> IngestionResult:
        try:
            return self.ingestor.resolve(record)
        except Exception as e:
            logger.exception(
                "pending_match_failed",
                prediction_id=record.id,
                external_id=record.external_id,
            )
            return IngestionResult(
                success=False,
                prediction_id=record.id,
                external_id=record.external_id,
                error=str(e),
            )
