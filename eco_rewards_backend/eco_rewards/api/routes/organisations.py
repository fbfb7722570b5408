from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from eco_rewards.api.deps import require_admin
from eco_rewards.core.errors import NotFoundError
from eco_rewards.db.models import Organisation, Scheme
from eco_rewards.db.session import get_db
from eco_rewards.schemas.rewards import OrganisationCreate, OrganisationListResponse, OrganisationRead

router = APIRouter(prefix="/api/organisations", tags=["Organisations"], dependencies=[Depends(require_admin)])


def _get_organisation_or_404(db: Session, organisation_id: int) -> Organisation:
    """Fetch an organisation by id or raise 404."""
    organisation = db.get(Organisation, organisation_id)
    if organisation is None:
        raise NotFoundError("Organisation not found")
    return organisation


@router.get(
    "",
    response_model=OrganisationListResponse,
    summary="List organisations",
    description="List organisations with limit/offset pagination, optionally filtered by scheme.",
    operation_id="list_organisations",
)
def list_organisations(
    db: Session = Depends(get_db),
    scheme_id: Optional[int] = Query(None, alias="schemeId", description="Only organisations in this scheme"),
    limit: int = Query(50, ge=1, le=500, description="Maximum number of organisations to return"),
    offset: int = Query(0, ge=0, description="Number of organisations to skip"),
) -> OrganisationListResponse:
    """List organisations with pagination.

    Args:
        db: SQLAlchemy Session (FastAPI dependency).
        scheme_id: Optional scheme filter.
        limit: Page size.
        offset: Offset into result set.

    Returns:
        OrganisationListResponse: Paginated list including total count.
    """
    total_stmt = select(func.count()).select_from(Organisation)
    stmt = select(Organisation)
    if scheme_id is not None:
        total_stmt = total_stmt.where(Organisation.scheme_id == scheme_id)
        stmt = stmt.where(Organisation.scheme_id == scheme_id)

    total = db.execute(total_stmt).scalar_one()
    items = db.execute(stmt.order_by(Organisation.name.asc(), Organisation.id.asc()).limit(limit).offset(offset)).scalars().all()
    return OrganisationListResponse(total=total, limit=limit, offset=offset, items=items)


@router.post(
    "",
    response_model=OrganisationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create organisation",
    description="Create a new organisation inside an existing scheme.",
    operation_id="create_organisation",
)
def create_organisation(payload: OrganisationCreate, db: Session = Depends(get_db)) -> OrganisationRead:
    """Create an organisation.

    Raises:
        NotFoundError: 404 if the scheme does not exist.
    """
    if db.get(Scheme, payload.scheme_id) is None:
        raise NotFoundError("Scheme not found")

    organisation = Organisation(name=payload.name, scheme_id=payload.scheme_id)
    db.add(organisation)
    db.commit()
    db.refresh(organisation)
    return organisation


@router.get(
    "/{organisation_id}",
    response_model=OrganisationRead,
    summary="Get organisation",
    description="Get a single organisation by id.",
    operation_id="get_organisation",
)
def get_organisation(organisation_id: int, db: Session = Depends(get_db)) -> OrganisationRead:
    return _get_organisation_or_404(db, organisation_id)
