from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Sequence

from eco_rewards.core.errors import JourneyValidationError
from eco_rewards.journeys.member_index import MemberIndex, MemberRef
from eco_rewards.journeys.reward_policy import RewardPolicy

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class ValidatedJourney:
    """A journey that passed validation but has not been persisted yet."""

    member_id: Any
    travel_date: date
    mode: str
    distance: float
    sequence_number: int
    rewards: int
    carbon_saving: float


def parse_travel_date(value: str | None) -> date | None:
    """Parse a strict YYYY-MM-DD date, returning None for anything else."""
    if value is None or not _ISO_DATE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


class JourneyFactory:
    """Builds validated journeys from raw `(member, date, mode, distance)` fields."""

    def __init__(self, members: MemberIndex, policy: RewardPolicy, require_mode_and_distance: bool = True):
        self.members = members
        self.policy = policy
        self.require_mode_and_distance = require_mode_and_distance

    def resolve_member(self, reference: object) -> Optional[MemberRef]:
        if _blank(reference):
            return None
        return self.members.resolve(str(reference).strip())

    def create(self, fields: Sequence[object], sequence_number: int) -> ValidatedJourney:
        """Validate `fields` and compute the journey's rewards.

        Args:
            fields: `[member_ref, date, mode?, distance?]`. Missing trailing
                fields and blank strings count as absent.
            sequence_number: The member's 1-based journey count in this run.

        Returns:
            ValidatedJourney: With mode and distance filled from the member's
            defaults when absent.

        Raises:
            JourneyValidationError: listing every invalid field.
        """
        member_ref, raw_date, raw_mode, raw_distance = (list(fields) + [None] * 4)[:4]
        reasons: list[str] = []

        member = self.resolve_member(member_ref)
        if _blank(member_ref):
            reasons.append("member reference must be set")
        elif member is None:
            reasons.append("unknown member")

        travel_date = parse_travel_date(str(raw_date).strip() if raw_date is not None else None)
        if travel_date is None:
            reasons.append("invalid date")

        mode: str | None = None
        if not _blank(raw_mode):
            mode = str(raw_mode).strip().lower()
        elif member is not None and member.default_transport_mode:
            mode = member.default_transport_mode.strip().lower()
        elif self.require_mode_and_distance and member is not None:
            reasons.append("transport mode must be set")

        distance: float | None = None
        if not _blank(raw_distance):
            distance = self._parse_distance(raw_distance)
            if distance is None:
                reasons.append("invalid distance")
        elif member is not None and member.default_distance is not None:
            distance = float(member.default_distance)
        elif self.require_mode_and_distance and member is not None:
            reasons.append("distance must be set")

        if reasons:
            raise JourneyValidationError(reasons)

        assert member is not None and travel_date is not None
        mode = mode or ""
        distance = distance if distance is not None else 0.0
        delta = self.policy.calculate(mode, distance, sequence_number)

        return ValidatedJourney(
            member_id=member.id,
            travel_date=travel_date,
            mode=mode,
            distance=distance,
            sequence_number=sequence_number,
            rewards=delta.rewards,
            carbon_saving=delta.carbon_saving,
        )

    @staticmethod
    def _parse_distance(value: object) -> float | None:
        try:
            distance = float(str(value).strip())
        except ValueError:
            return None
        if not math.isfinite(distance) or distance < 0:
            return None
        return distance
