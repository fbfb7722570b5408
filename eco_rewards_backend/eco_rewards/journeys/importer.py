from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from eco_rewards.core.errors import CsvFormatError, ImportAbortedError
from eco_rewards.core.logger import get_logger
from eco_rewards.journeys.csv_stream import CsvJourneyStream, JourneyRow, RowError
from eco_rewards.journeys.factory import JourneyFactory
from eco_rewards.journeys.member_index import MemberIndex
from eco_rewards.journeys.reward_policy import RewardPolicy
from eco_rewards.journeys.sink import JourneyBatchWriter, StorageSink

logger = get_logger(__name__)


class MemberSource(Protocol):
    def get_indexed_by_id(self) -> Mapping[Any, Any]:
        ...


@dataclass
class ImportReport:
    imported: int = 0
    failed: int = 0
    errors: list[RowError] = field(default_factory=list)
    ids: list[int] = field(default_factory=list)
    cancelled: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "imported": self.imported,
            "failed": self.failed,
            "errors": [error.to_dict() for error in self.errors],
            "ids": list(self.ids),
            "cancelled": self.cancelled,
        }


class JourneyImporter:
    """Runs one CSV journey import: index members, parse, validate, store."""

    def __init__(
        self,
        members: MemberSource,
        journeys: JourneyBatchWriter,
        policy: RewardPolicy,
        *,
        batch_size: int = 100,
        max_attempts: int = 3,
        backoff_seconds: float = 0.5,
    ):
        self.members = members
        self.journeys = journeys
        self.policy = policy
        self.batch_size = batch_size
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds

    def build_factory(self) -> JourneyFactory:
        """Snapshot the current members into a fresh factory for one run."""
        index = MemberIndex.build(self.members.get_indexed_by_id().values())
        return JourneyFactory(index, self.policy)

    def run(
        self,
        lines: Iterable[str],
        submitted_by: int | None = None,
        cancel: threading.Event | None = None,
    ) -> ImportReport:
        """Import journeys from CSV `lines`.

        The next line is only read once the previous batch has been written,
        so a slow database slows parsing down instead of filling memory.

        `cancel` is checked before every write. Once it is set, rows parsed
        since the last written batch are dropped and the report is marked
        `cancelled`. The HTTP routes run an import to completion and never
        pass it; it is there for callers that run imports in the background.

        Raises:
            HeaderError: the header is unusable; nothing was written.
            CsvFormatError: the text became unreadable partway. Rows before
                the unreadable line are stored; its `report` says which.
            StorageBatchError: a batch failed every retry. Its `report`
                describes what was imported before the failure.
        """
        stream = CsvJourneyStream(self.build_factory())
        sink = StorageSink(
            self.journeys,
            batch_size=self.batch_size,
            max_attempts=self.max_attempts,
            backoff_seconds=self.backoff_seconds,
            source="csv",
            created_by=submitted_by,
        )
        report = ImportReport()

        try:
            self._store(stream.parse(lines), sink, report, cancel)
        except ImportAbortedError as exc:
            exc.report = self._finish(report, stream)
            raise

        report = self._finish(report, stream)
        logger.info(
            "journey_import_finished",
            imported=report.imported,
            failed=report.failed,
            batches=sink.batches_written,
            cancelled=report.cancelled,
        )
        return report

    @staticmethod
    def _store(
        journeys: Iterator[JourneyRow],
        sink: StorageSink,
        report: ImportReport,
        cancel: threading.Event | None,
    ) -> None:
        pending: list[JourneyRow] = []

        def flush() -> bool:
            if cancel is not None and cancel.is_set():
                report.cancelled = True
                return False
            report.ids.extend(sink.write(pending))
            pending.clear()
            return True

        try:
            for item in journeys:
                pending.append(item)
                if len(pending) >= sink.batch_size and not flush():
                    return
        except CsvFormatError:
            # Rows read before the unreadable line are valid; keep them.
            if pending:
                flush()
            raise

        if pending:
            flush()

    @staticmethod
    def _finish(report: ImportReport, stream: CsvJourneyStream) -> ImportReport:
        report.imported = len(report.ids)
        report.errors = list(stream.errors)
        report.failed = len(report.errors)
        return report
