from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from eco_rewards.core.settings import Settings


@dataclass(frozen=True)
class RewardDelta:
    rewards: int
    carbon_saving: float


@dataclass(frozen=True)
class RewardPolicy:
    """Reward tiers and carbon factors for journeys.

    Every member's Nth journey in a run earns `bonus_points` on top of
    `points_per_journey` when N is a multiple of `bonus_every`. Carbon saving
    is kg CO2e per km for the mode, times distance.
    """

    points_per_journey: int = 1
    bonus_every: int = 10
    bonus_points: int = 5
    carbon_factors: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        normalised = {mode.strip().lower(): float(factor) for mode, factor in self.carbon_factors.items()}
        object.__setattr__(self, "carbon_factors", MappingProxyType(normalised))

    @classmethod
    def from_settings(cls, settings: Settings) -> "RewardPolicy":
        return cls(
            points_per_journey=settings.reward_points_per_journey,
            bonus_every=settings.reward_bonus_every,
            bonus_points=settings.reward_bonus_points,
            carbon_factors=settings.reward_carbon_factors,
        )

    def carbon_factor(self, mode: str) -> float:
        return self.carbon_factors.get(mode.strip().lower(), 0.0)

    def calculate(self, mode: str, distance: float, sequence_number: int) -> RewardDelta:
        """Return the rewards and carbon saving one journey earns. Pure."""
        rewards = self.points_per_journey
        if self.bonus_every > 0 and sequence_number > 0 and sequence_number % self.bonus_every == 0:
            rewards += self.bonus_points
        carbon_saving = round(distance * self.carbon_factor(mode), 4)
        return RewardDelta(rewards=rewards, carbon_saving=carbon_saving)
