from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from typing import Protocol

from eco_rewards.core.errors import StorageBatchError
from eco_rewards.core.logger import get_logger
from eco_rewards.journeys.csv_stream import JourneyRow
from eco_rewards.journeys.factory import ValidatedJourney

logger = get_logger(__name__)

MIN_BATCH_SIZE = 1
MAX_BATCH_SIZE = 500


class JourneyBatchWriter(Protocol):
    def save_batch(self, journeys: Sequence[ValidatedJourney], *, source: str, created_by: int | None) -> list[int]:
        ...


class StorageSink:
    """Writes journeys in batches, one transaction per batch.

    A failing batch is retried `max_attempts` times with linear backoff, then
    reported as a `StorageBatchError` naming its row numbers. The writer must
    leave nothing behind when `save_batch` raises, so a retry stores each
    journey once.
    """

    def __init__(
        self,
        repository: JourneyBatchWriter,
        *,
        batch_size: int = 100,
        max_attempts: int = 3,
        backoff_seconds: float = 0.5,
        source: str = "csv",
        created_by: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.repository = repository
        self.batch_size = max(MIN_BATCH_SIZE, min(MAX_BATCH_SIZE, batch_size))
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self.source = source
        self.created_by = created_by
        self._sleep = sleep
        self.batches_written = 0

    def write(self, batch: Sequence[JourneyRow]) -> list[int]:
        """Persist one batch and return the new journey ids in input order."""
        if not batch:
            return []

        journeys = [item.journey for item in batch]
        last_error: Exception | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                ids = self.repository.save_batch(journeys, source=self.source, created_by=self.created_by)
            except Exception as exc:
                last_error = exc
                logger.warning(
                    "journey_batch_failed",
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    first_row=batch[0].row,
                    last_row=batch[-1].row,
                    error=str(exc),
                )
                if attempt < self.max_attempts:
                    self._sleep(self.backoff_seconds * attempt)
                continue

            self.batches_written += 1
            logger.info("journey_batch_written", size=len(ids), attempt=attempt)
            return list(ids)

        rows = [item.row for item in batch]
        logger.error("journey_batch_abandoned", rows=rows, error=str(last_error))
        raise StorageBatchError(
            f"Could not store journeys after {self.max_attempts} attempts: {last_error}",
            rows=rows,
            attempts=self.max_attempts,
        ) from last_error
