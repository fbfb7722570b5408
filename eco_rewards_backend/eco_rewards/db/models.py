from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import CheckConstraint, Date, DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eco_rewards.db.session import Base


class Scheme(Base):
    """ORM model for `schemes`."""

    __tablename__ = "schemes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    vac_client_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    organisations: Mapped[list["Organisation"]] = relationship(back_populates="scheme")


class Organisation(Base):
    """ORM model for `organisations`."""

    __tablename__ = "organisations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    scheme_id: Mapped[int] = mapped_column(ForeignKey("schemes.id"), nullable=False)

    scheme: Mapped["Scheme"] = relationship(back_populates="organisations")
    groups: Mapped[list["MemberGroup"]] = relationship(back_populates="organisation")


Index("idx_organisations_scheme", Organisation.scheme_id)


class MemberGroup(Base):
    """ORM model for `member_groups`."""

    __tablename__ = "member_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    organisation_id: Mapped[int] = mapped_column(ForeignKey("organisations.id"), nullable=False)

    organisation: Mapped["Organisation"] = relationship(back_populates="groups")
    members: Mapped[list["Member"]] = relationship(back_populates="group")


Index("idx_member_groups_organisation", MemberGroup.organisation_id)


class Member(Base):
    """ORM model for `members`.

    `rewards` and `carbon_saving` only ever grow, and only when a journey for
    the member is persisted.
    """

    __tablename__ = "members"
    __table_args__ = (
        CheckConstraint("rewards >= 0", name="ck_members_rewards_non_negative"),
        CheckConstraint("carbon_saving >= 0", name="ck_members_carbon_saving_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_group_id: Mapped[int] = mapped_column(ForeignKey("member_groups.id"), nullable=False)
    rewards: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    carbon_saving: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    default_transport_mode: Mapped[str | None] = mapped_column(String(50), nullable=True)
    default_distance: Mapped[float | None] = mapped_column(Float, nullable=True)
    smartcard: Mapped[str | None] = mapped_column(String(100), nullable=True, unique=True)

    group: Mapped["MemberGroup"] = relationship(back_populates="members")
    journeys: Mapped[list["Journey"]] = relationship(back_populates="member")


Index("idx_members_group", Member.member_group_id)


class Journey(Base):
    """ORM model for `journeys`."""

    __tablename__ = "journeys"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[int] = mapped_column(ForeignKey("members.id"), nullable=False)
    travel_date: Mapped[date] = mapped_column(Date, nullable=False)
    mode: Mapped[str] = mapped_column(String(50), nullable=False)
    distance: Mapped[float] = mapped_column(Float, nullable=False)
    sequence_number: Mapped[int] = mapped_column(Integer, nullable=False)
    rewards: Mapped[int] = mapped_column(Integer, nullable=False)
    carbon_saving: Mapped[float] = mapped_column(Float, nullable=False)
    source: Mapped[str] = mapped_column(String(20), nullable=False)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("admin_users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    member: Mapped["Member"] = relationship(back_populates="journeys")


Index("idx_journeys_member_date", Journey.member_id, Journey.travel_date)


class AdminUser(Base):
    """ORM model for `admin_users`."""

    __tablename__ = "admin_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
