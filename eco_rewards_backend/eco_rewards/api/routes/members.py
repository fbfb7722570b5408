from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from eco_rewards.api.csv_views import csv_response, wants_csv
from eco_rewards.api.deps import get_member_repository, require_admin
from eco_rewards.core.logger import get_logger
from eco_rewards.db.models import Member
from eco_rewards.repositories.members import MemberRepository
from eco_rewards.schemas.rewards import MemberAccountCreate, MemberListResponse, MemberRead, MembersCreate

logger = get_logger(__name__)

router = APIRouter(prefix="/api/members", tags=["Members"], dependencies=[Depends(require_admin)])

MEMBER_CSV_COLUMNS = (
    "id",
    "group",
    "rewards",
    "carbonSaving",
    "defaultTransportMode",
    "defaultDistance",
    "smartcard",
)


@router.get(
    "",
    response_model=MemberListResponse,
    summary="List members",
    description=(
        "List members with limit/offset pagination, optionally filtered by group. "
        "Send `Accept: text/csv` to download every matching member as CSV instead."
    ),
    operation_id="list_members",
)
def list_members(
    request: Request,
    members: MemberRepository = Depends(get_member_repository),
    group_id: Optional[int] = Query(None, alias="group", description="Only members of this group"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of members to return"),
    offset: int = Query(0, ge=0, description="Number of members to skip"),
):
    """List members as a JSON page or as a CSV export.

    Args:
        request: Incoming request, used for content negotiation.
        members: Member repository (FastAPI dependency).
        group_id: Optional group filter.
        limit: Page size (JSON only).
        offset: Offset into result set (JSON only).

    Returns:
        MemberListResponse or a text/csv Response.
    """
    if wants_csv(request):
        rows = [MemberRead.model_validate(m) for m in members.list_members(group_id=group_id)]
        return csv_response(rows, MEMBER_CSV_COLUMNS, "members.csv")

    total = members.count(group_id=group_id)
    items = members.list_members(group_id=group_id, limit=limit, offset=offset)
    return MemberListResponse(total=total, limit=limit, offset=offset, items=items)


@router.post(
    "",
    response_model=list[MemberRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create members",
    description="Create `quantity` members in a group, all with the same default transport mode and distance.",
    operation_id="create_members",
)
def create_members(
    payload: MembersCreate,
    members: MemberRepository = Depends(get_member_repository),
) -> list[MemberRead]:
    """Bulk-create members.

    Args:
        payload: MembersCreate payload.
        members: Member repository (FastAPI dependency).

    Returns:
        list[MemberRead]: Created members, each with its own id.

    Raises:
        NotFoundError: 404 if the group does not exist.
    """
    created = members.insert_all(
        [
            Member(
                member_group_id=payload.group,
                rewards=0,
                carbon_saving=0.0,
                default_transport_mode=payload.default_transport_mode,
                default_distance=payload.default_distance,
                smartcard=None,
            )
            for _ in range(payload.quantity)
        ]
    )
    logger.info("members_created", group_id=payload.group, quantity=len(created))
    return created


@router.post(
    "/account",
    response_model=MemberRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create member account",
    description="Create a single member, optionally linked to a smartcard. Smartcards are unique.",
    operation_id="create_member_account",
)
def create_member_account(
    payload: MemberAccountCreate,
    members: MemberRepository = Depends(get_member_repository),
) -> MemberRead:
    """Create one member account.

    Raises:
        NotFoundError: 404 if the group does not exist.
        ConflictError: 409 if the smartcard already belongs to a member.
    """
    member = members.create(
        Member(
            member_group_id=payload.group,
            rewards=0,
            carbon_saving=0.0,
            default_transport_mode=payload.default_transport_mode,
            default_distance=payload.default_distance,
            smartcard=payload.smartcard,
        )
    )
    logger.info("member_account_created", member_id=member.id, has_smartcard=member.smartcard is not None)
    return member


@router.get(
    "/{member_id}",
    response_model=MemberRead,
    summary="Get member",
    description="Get a single member by id, including rewards and carbon saving so far.",
    operation_id="get_member",
)
def get_member(member_id: int, members: MemberRepository = Depends(get_member_repository)) -> MemberRead:
    return members.get(member_id)
