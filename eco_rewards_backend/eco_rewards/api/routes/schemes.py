from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from eco_rewards.api.deps import require_admin
from eco_rewards.core.errors import NotFoundError
from eco_rewards.db.models import Scheme
from eco_rewards.db.session import get_db
from eco_rewards.schemas.rewards import SchemeCreate, SchemeListResponse, SchemeRead

router = APIRouter(prefix="/api/schemes", tags=["Schemes"], dependencies=[Depends(require_admin)])


def _get_scheme_or_404(db: Session, scheme_id: int) -> Scheme:
    """Fetch a scheme by id or raise 404."""
    scheme = db.get(Scheme, scheme_id)
    if scheme is None:
        raise NotFoundError("Scheme not found")
    return scheme


@router.get(
    "",
    response_model=SchemeListResponse,
    summary="List schemes",
    description="List schemes with limit/offset pagination, ordered by name.",
    operation_id="list_schemes",
)
def list_schemes(
    db: Session = Depends(get_db),
    limit: int = Query(50, ge=1, le=500, description="Maximum number of schemes to return"),
    offset: int = Query(0, ge=0, description="Number of schemes to skip"),
) -> SchemeListResponse:
    """List schemes with pagination."""
    total = db.execute(select(func.count()).select_from(Scheme)).scalar_one()
    stmt = select(Scheme).order_by(Scheme.name.asc(), Scheme.id.asc()).limit(limit).offset(offset)
    items = db.execute(stmt).scalars().all()
    return SchemeListResponse(total=total, limit=limit, offset=offset, items=items)


@router.post(
    "",
    response_model=SchemeRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create scheme",
    description="Create a new scheme.",
    operation_id="create_scheme",
)
def create_scheme(payload: SchemeCreate, db: Session = Depends(get_db)) -> SchemeRead:
    """Create a scheme.

    Args:
        payload: SchemeCreate payload.
        db: SQLAlchemy Session (FastAPI dependency).

    Returns:
        SchemeRead: Created scheme.
    """
    scheme = Scheme(name=payload.name, vac_client_id=payload.vac_client_id)
    db.add(scheme)
    db.commit()
    db.refresh(scheme)
    return scheme


@router.get(
    "/{scheme_id}",
    response_model=SchemeRead,
    summary="Get scheme",
    description="Get a single scheme by id.",
    operation_id="get_scheme",
)
def get_scheme(scheme_id: int, db: Session = Depends(get_db)) -> SchemeRead:
    return _get_scheme_or_404(db, scheme_id)
