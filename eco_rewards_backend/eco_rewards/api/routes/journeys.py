from __future__ import annotations

import codecs
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status

from eco_rewards.api.csv_views import csv_response, wants_csv
from eco_rewards.api.deps import get_journey_importer, get_journey_repository, require_admin
from eco_rewards.core.logger import get_logger
from eco_rewards.db.models import AdminUser
from eco_rewards.journeys.importer import JourneyImporter
from eco_rewards.repositories.journeys import JourneyRepository
from eco_rewards.schemas.rewards import ImportReportRead, JourneyCreate, JourneyListResponse, JourneyRead

logger = get_logger(__name__)

router = APIRouter(prefix="/api/journeys", tags=["Journeys"])

JOURNEY_CSV_COLUMNS = (
    "id",
    "memberId",
    "travelDate",
    "mode",
    "distance",
    "sequenceNumber",
    "rewards",
    "carbonSaving",
    "source",
    "createdAt",
)


@router.get(
    "",
    response_model=JourneyListResponse,
    summary="List journeys",
    description=(
        "List journeys, most recent travel date first, optionally filtered by member. "
        "Send `Accept: text/csv` to download every matching journey as CSV instead."
    ),
    operation_id="list_journeys",
    dependencies=[Depends(require_admin)],
)
def list_journeys(
    request: Request,
    journeys: JourneyRepository = Depends(get_journey_repository),
    member_id: Optional[int] = Query(None, alias="memberId", description="Only journeys of this member"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of journeys to return"),
    offset: int = Query(0, ge=0, description="Number of journeys to skip"),
):
    if wants_csv(request):
        rows = [JourneyRead.model_validate(j) for j in journeys.list_journeys(member_id=member_id)]
        return csv_response(rows, JOURNEY_CSV_COLUMNS, "journeys.csv")

    total = journeys.count(member_id=member_id)
    items = journeys.list_journeys(member_id=member_id, limit=limit, offset=offset)
    return JourneyListResponse(total=total, limit=limit, offset=offset, items=items)


@router.post(
    "",
    response_model=JourneyRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit journey",
    description=(
        "Record one journey for a member (by id or smartcard). Mode and distance default to the "
        "member's own defaults. The member's rewards and carbon saving are credited immediately."
    ),
    operation_id="create_journey",
)
def create_journey(
    payload: JourneyCreate,
    importer: JourneyImporter = Depends(get_journey_importer),
    journeys: JourneyRepository = Depends(get_journey_repository),
    admin: AdminUser = Depends(require_admin),
) -> JourneyRead:
    """Submit a single journey.

    A single submission is its own run, so the journey always carries
    sequence number 1.

    Raises:
        JourneyValidationError: 400 listing every invalid field.
    """
    factory = importer.build_factory()
    journey = factory.create([payload.member_id, payload.date, payload.mode, payload.distance], 1)
    saved = journeys.save(journey, source="api", created_by=admin.id)
    logger.info("journey_created", journey_id=saved.id, member_id=saved.member_id, rewards=saved.rewards)
    return saved


@router.post(
    "/import",
    response_model=ImportReportRead,
    summary="Import journeys from CSV",
    description=(
        "Upload a CSV file with a header row containing `memberId` (or `smartcard`) and `date`, "
        "and optionally `mode` and `distance`. Invalid rows are reported and skipped; valid rows are "
        "stored in batches. Each rejected row carries its row and line number. If the file becomes "
        "unreadable partway (bad encoding or an unclosed quote), rows before that line are stored and "
        "the 400 response names the line to re-submit from."
    ),
    operation_id="import_journeys",
)
def import_journeys(
    file: UploadFile = File(..., description="CSV file of journeys"),
    importer: JourneyImporter = Depends(get_journey_importer),
    admin: AdminUser = Depends(require_admin),
) -> ImportReportRead:
    """Import a CSV file of journeys.

    Returns:
        ImportReportRead: Counts, per-row errors and the new journey ids.

    Raises:
        HeaderError: 400 if the header lacks required columns; nothing is stored.
        CsvFormatError: 400 if the file is unreadable from some line on; rows before it are stored.
        StorageBatchError: 503 if a batch could not be stored; earlier batches stay stored.
    """
    logger.info("journey_import_started", filename=file.filename, admin_id=admin.id)
    lines = codecs.iterdecode(file.file, "utf-8-sig")
    report = importer.run(lines, submitted_by=admin.id)
    return ImportReportRead.model_validate(report.to_dict())
