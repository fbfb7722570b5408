from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from eco_rewards.api.deps import require_admin
from eco_rewards.core.errors import NotFoundError
from eco_rewards.db.models import MemberGroup, Organisation
from eco_rewards.db.session import get_db
from eco_rewards.schemas.rewards import GroupCreate, GroupListResponse, GroupRead

router = APIRouter(prefix="/api/groups", tags=["Groups"], dependencies=[Depends(require_admin)])


@router.get(
    "",
    response_model=GroupListResponse,
    summary="List groups",
    description="List member groups with limit/offset pagination, optionally filtered by organisation.",
    operation_id="list_groups",
)
def list_groups(
    db: Session = Depends(get_db),
    organisation_id: Optional[int] = Query(None, alias="organisationId", description="Only groups in this organisation"),
    limit: int = Query(50, ge=1, le=500, description="Maximum number of groups to return"),
    offset: int = Query(0, ge=0, description="Number of groups to skip"),
) -> GroupListResponse:
    total_stmt = select(func.count()).select_from(MemberGroup)
    stmt = select(MemberGroup)
    if organisation_id is not None:
        total_stmt = total_stmt.where(MemberGroup.organisation_id == organisation_id)
        stmt = stmt.where(MemberGroup.organisation_id == organisation_id)

    total = db.execute(total_stmt).scalar_one()
    items = db.execute(stmt.order_by(MemberGroup.name.asc(), MemberGroup.id.asc()).limit(limit).offset(offset)).scalars().all()
    return GroupListResponse(total=total, limit=limit, offset=offset, items=items)


@router.post(
    "",
    response_model=GroupRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create group",
    description="Create a new member group inside an existing organisation.",
    operation_id="create_group",
)
def create_group(payload: GroupCreate, db: Session = Depends(get_db)) -> GroupRead:
    """Create a member group.

    Raises:
        NotFoundError: 404 if the organisation does not exist.
    """
    if db.get(Organisation, payload.organisation_id) is None:
        raise NotFoundError("Organisation not found")

    group = MemberGroup(name=payload.name, organisation_id=payload.organisation_id)
    db.add(group)
    db.commit()
    db.refresh(group)
    return group


@router.get(
    "/{group_id}",
    response_model=GroupRead,
    summary="Get group",
    description="Get a single member group by id.",
    operation_id="get_group",
)
def get_group(group_id: int, db: Session = Depends(get_db)) -> GroupRead:
    group = db.get(MemberGroup, group_id)
    if group is None:
        raise NotFoundError("Group not found")
    return group
