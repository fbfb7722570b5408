from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from eco_rewards.core.errors import NotFoundError
from eco_rewards.db.models import Journey, Member
from eco_rewards.journeys.factory import ValidatedJourney


class JourneyRepository:
    """Data access for journeys.

    Saving journeys also credits their rewards and carbon saving to the
    members, in the same transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, journey_id: int) -> Journey:
        journey = self.db.get(Journey, journey_id)
        if journey is None:
            raise NotFoundError("Journey not found")
        return journey

    def count(self, member_id: int | None = None) -> int:
        stmt = select(func.count()).select_from(Journey)
        if member_id is not None:
            stmt = stmt.where(Journey.member_id == member_id)
        return self.db.execute(stmt).scalar_one()

    def list_journeys(self, *, member_id: int | None = None, limit: int | None = None, offset: int = 0) -> list[Journey]:
        stmt = select(Journey)
        if member_id is not None:
            stmt = stmt.where(Journey.member_id == member_id)
        stmt = stmt.order_by(Journey.travel_date.desc(), Journey.id.desc()).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def save(self, journey: ValidatedJourney, *, source: str = "api", created_by: int | None = None) -> Journey:
        journey_id = self.save_batch([journey], source=source, created_by=created_by)[0]
        return self.get(journey_id)

    def save_batch(
        self,
        journeys: Sequence[ValidatedJourney],
        *,
        source: str = "csv",
        created_by: int | None = None,
    ) -> list[int]:
        """Insert `journeys` and credit their members as one transaction.

        Ids are read after the flush, inside the transaction, so nothing that
        can fail runs after the commit. When this raises, nothing was stored.

        Returns:
            list[int]: New journey ids, in the order given.
        """
        now = datetime.now(timezone.utc)
        records = [
            Journey(
                member_id=int(journey.member_id),
                travel_date=journey.travel_date,
                mode=journey.mode,
                distance=journey.distance,
                sequence_number=journey.sequence_number,
                rewards=journey.rewards,
                carbon_saving=journey.carbon_saving,
                source=source,
                created_by=created_by,
                created_at=now,
            )
            for journey in journeys
        ]

        totals: dict[int, list[float]] = defaultdict(lambda: [0, 0.0])
        for journey in journeys:
            total = totals[int(journey.member_id)]
            total[0] += journey.rewards
            total[1] += journey.carbon_saving

        try:
            self.db.add_all(records)
            self.db.flush()
            ids = [record.id for record in records]
            for member_id, (rewards, carbon_saving) in totals.items():
                self.db.execute(
                    update(Member)
                    .where(Member.id == member_id)
                    .values(
                        rewards=Member.rewards + int(rewards),
                        carbon_saving=Member.carbon_saving + carbon_saving,
                    )
                    .execution_options(synchronize_session=False)
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return ids
