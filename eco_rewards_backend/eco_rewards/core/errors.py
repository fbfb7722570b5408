from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

from fastapi import status

if TYPE_CHECKING:
    from eco_rewards.journeys.importer import ImportReport


class EcoRewardsError(Exception):
    """Base class for errors that map onto an HTTP response."""

    http_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def detail(self) -> Any:
        return self.message


class NotFoundError(EcoRewardsError):
    http_code = status.HTTP_404_NOT_FOUND


class ConflictError(EcoRewardsError):
    http_code = status.HTTP_409_CONFLICT


class AuthenticationError(EcoRewardsError):
    http_code = status.HTTP_401_UNAUTHORIZED


class JourneyValidationError(EcoRewardsError):
    """A journey's fields failed validation; `reasons` lists every problem."""

    http_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, reasons: Sequence[str]):
        super().__init__("; ".join(reasons))
        self.reasons = list(reasons)

    def detail(self) -> Any:
        return {"errors": self.reasons}


class HeaderError(EcoRewardsError):
    """The CSV header is missing required columns. Fatal for the whole import."""

    http_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, missing: Sequence[str] = ()):
        super().__init__(message)
        self.missing = list(missing)

    def detail(self) -> Any:
        return {"message": self.message, "missing": self.missing}


class ImportAbortedError(EcoRewardsError):
    """An import stopped partway through the file.

    Batches written before the stop stay committed. The importer attaches
    `report` (what was stored and which rows were rejected so far) before the
    error propagates.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.report: ImportReport | None = None

    def context(self) -> dict[str, Any]:
        return {}

    def detail(self) -> Any:
        detail: dict[str, Any] = {"message": self.message, **self.context()}
        if self.report is not None:
            detail["report"] = self.report.to_dict()
        return detail


class StorageBatchError(ImportAbortedError):
    """A batch of journeys could not be written after every retry.

    `rows` holds the row numbers of the failed batch so the caller can
    re-submit only those.
    """

    http_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str, rows: Sequence[int], attempts: int):
        super().__init__(message)
        self.rows = list(rows)
        self.attempts = attempts

    def context(self) -> dict[str, Any]:
        return {"rows": self.rows, "attempts": self.attempts}


class CsvFormatError(ImportAbortedError):
    """The CSV text could not be read past `line` (bad encoding or quoting).

    Every row before `row` has been handled; re-submit the file from `line`
    once it is fixed.
    """

    http_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, row: int | None, line: int):
        super().__init__(message)
        self.row = row
        self.line = line

    def context(self) -> dict[str, Any]:
        return {"row": self.row, "line": self.line}
