from __future__ import annotations

import csv
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple

from eco_rewards.core.errors import CsvFormatError, HeaderError, JourneyValidationError
from eco_rewards.core.logger import get_logger
from eco_rewards.journeys.factory import JourneyFactory, ValidatedJourney

logger = get_logger(__name__)

# Normalised header name -> field slot.
HEADER_ALIASES: dict[str, str] = {
    "memberid": "member",
    "member": "member",
    "smartcard": "smartcard",
    "smartcardid": "smartcard",
    "date": "date",
    "traveldate": "date",
    "mode": "mode",
    "transportmode": "mode",
    "distance": "distance",
}

_HEADER_NOISE = re.compile(r"[\s_\-]+")


class StreamState(str, Enum):
    AWAITING_HEADER = "awaiting_header"
    READING_ROW = "reading_row"
    DRAINED = "drained"


@dataclass(frozen=True)
class RowError:
    row: int
    reasons: list[str] = field(default_factory=list)
    line: int | None = None

    def to_dict(self) -> dict:
        return {"row": self.row, "line": self.line, "reasons": list(self.reasons)}


class JourneyRow(NamedTuple):
    row: int
    journey: ValidatedJourney


def normalise_header(name: str) -> str:
    return _HEADER_NOISE.sub("", name.strip().lstrip("\ufeff")).lower()


class CsvJourneyStream:
    """Turns CSV lines into validated journeys, one row at a time.

    Iterating `parse(lines)` is lazy: the next line is only read when the
    consumer asks for the next journey. Rows that fail validation are kept in
    `errors` and never stop the stream. A bad header raises `HeaderError`
    before any row is yielded. Text that cannot be read as CSV (undecodable
    bytes, a quote left open, a record spanning several lines) raises
    `CsvFormatError` naming the row and physical line it stopped at.
    """

    def __init__(self, factory: JourneyFactory):
        self.factory = factory
        self.state = StreamState.AWAITING_HEADER
        self.errors: list[RowError] = []
        self.accepted = 0
        self._columns: dict[str, int] = {}
        self._sequence: dict[str, int] = {}

    @property
    def failed(self) -> int:
        return len(self.errors)

    def parse(self, lines: Iterable[str]) -> Iterator[JourneyRow]:
        reader = csv.reader(lines, strict=True)

        header = self._next_record(reader, row=None)
        self._read_header(header)
        self.state = StreamState.READING_ROW

        row_number = 0
        while True:
            line = reader.line_num + 1
            record = self._next_record(reader, row=row_number + 1)
            if record is None:
                break
            if not any(value.strip() for value in record):
                continue
            row_number += 1
            if reader.line_num != line:
                raise CsvFormatError(
                    f"Row {row_number} spans lines {line}-{reader.line_num}; check for an unclosed quote",
                    row=row_number,
                    line=line,
                )
            journey = self._read_row(row_number, line, [value.strip() for value in record])
            if journey is not None:
                yield JourneyRow(row_number, journey)

        self.state = StreamState.DRAINED
        logger.info("csv_stream_drained", accepted=self.accepted, failed=self.failed)

    @staticmethod
    def _next_record(reader: Any, row: int | None) -> list[str] | None:
        line = reader.line_num + 1
        try:
            return next(reader, None)
        except (UnicodeDecodeError, csv.Error) as exc:
            logger.warning("csv_stream_unreadable", row=row, line=line, error=str(exc))
            raise CsvFormatError(f"CSV is unreadable at line {line}: {exc}", row=row, line=line) from exc

    def _read_header(self, header: list[str] | None) -> None:
        if header is None or not any(name.strip() for name in header):
            raise HeaderError("CSV input is empty; expected a header row", missing=["memberId", "date"])

        columns: dict[str, int] = {}
        for position, name in enumerate(header):
            slot = HEADER_ALIASES.get(normalise_header(name))
            if slot is not None and slot not in columns:
                columns[slot] = position

        missing = []
        if "member" not in columns and "smartcard" not in columns:
            missing.append("memberId")
        if "date" not in columns:
            missing.append("date")
        if missing:
            raise HeaderError(f"CSV header is missing required columns: {', '.join(missing)}", missing=missing)

        self._columns = columns

    def _field(self, record: list[str], slot: str) -> str | None:
        position = self._columns.get(slot)
        if position is None or position >= len(record):
            return None
        return record[position] or None

    def _read_row(self, row_number: int, line: int, record: list[str]) -> ValidatedJourney | None:
        reference = self._field(record, "member")
        member = self.factory.resolve_member(reference)
        smartcard = self._field(record, "smartcard")
        if reference is None and smartcard is not None:
            member = self.factory.members.by_smartcard(smartcard)
            reference = str(member.id) if member is not None else smartcard
        key = str(member.id) if member is not None else None
        sequence_number = self._sequence.get(key, 0) + 1 if key is not None else 1

        fields = [reference, self._field(record, "date"), self._field(record, "mode"), self._field(record, "distance")]
        try:
            journey = self.factory.create(fields, sequence_number)
        except JourneyValidationError as exc:
            self.errors.append(RowError(row=row_number, reasons=exc.reasons, line=line))
            logger.debug("csv_row_rejected", row=row_number, line=line, reasons=exc.reasons)
            return None

        self._sequence[key] = sequence_number
        self.accepted += 1
        return journey
