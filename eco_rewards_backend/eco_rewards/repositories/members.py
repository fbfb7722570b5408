from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eco_rewards.core.errors import ConflictError, NotFoundError
from eco_rewards.db.models import Member, MemberGroup


class MemberRepository:
    """Data access for members."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, member_id: int) -> Member:
        member = self.db.get(Member, member_id)
        if member is None:
            raise NotFoundError("Member not found")
        return member

    def get_indexed_by_id(self) -> dict[int, Member]:
        """Every member keyed by id."""
        members = self.db.execute(select(Member).order_by(Member.id.asc())).scalars().all()
        return {member.id: member for member in members}

    def count(self, group_id: int | None = None) -> int:
        stmt = select(func.count()).select_from(Member)
        if group_id is not None:
            stmt = stmt.where(Member.member_group_id == group_id)
        return self.db.execute(stmt).scalar_one()

    def list_members(self, *, group_id: int | None = None, limit: int | None = None, offset: int = 0) -> list[Member]:
        stmt = select(Member).order_by(Member.id.asc()).offset(offset)
        if group_id is not None:
            stmt = stmt.where(Member.member_group_id == group_id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def insert_all(self, members: Sequence[Member]) -> list[Member]:
        """Insert `members` in one transaction and return them with ids."""
        self._require_group({member.member_group_id for member in members})
        self.db.add_all(members)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("Smartcard is already registered to another member") from exc
        for member in members:
            self.db.refresh(member)
        return list(members)

    def create(self, member: Member) -> Member:
        if member.smartcard and self.get_by_smartcard(member.smartcard) is not None:
            raise ConflictError("Smartcard is already registered to another member")
        return self.insert_all([member])[0]

    def get_by_smartcard(self, smartcard: str) -> Member | None:
        stmt = select(Member).where(Member.smartcard == smartcard)
        return self.db.execute(stmt).scalars().first()

    def _require_group(self, group_ids: set[int]) -> None:
        for group_id in group_ids:
            if self.db.get(MemberGroup, group_id) is None:
                raise NotFoundError("Group not found")
