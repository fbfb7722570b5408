from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class MemberRef:
    """Immutable snapshot of the member fields an import needs."""

    id: Any
    smartcard: str | None
    default_transport_mode: str | None
    default_distance: float | None

    @classmethod
    def from_member(cls, member: Any) -> "MemberRef":
        return cls(
            id=member.id,
            smartcard=member.smartcard or None,
            default_transport_mode=member.default_transport_mode,
            default_distance=member.default_distance,
        )


class MemberIndex:
    """Read-only lookup of members by identifier and by smartcard.

    Both views are built from the same snapshot, so a member found through
    either key is the same `MemberRef` object. Rebuild the index for each
    import run instead of updating it.
    """

    def __init__(self, by_id: Mapping[str, MemberRef], by_smartcard: Mapping[str, MemberRef]):
        self._by_id = MappingProxyType(dict(by_id))
        self._by_smartcard = MappingProxyType(dict(by_smartcard))

    @classmethod
    def build(cls, members: Iterable[Any]) -> "MemberIndex":
        """Snapshot `members` (ORM rows or anything with the same attributes)."""
        by_id: dict[str, MemberRef] = {}
        by_smartcard: dict[str, MemberRef] = {}
        for member in members:
            ref = member if isinstance(member, MemberRef) else MemberRef.from_member(member)
            by_id[str(ref.id)] = ref
            if ref.smartcard:
                by_smartcard[ref.smartcard] = ref
        return cls(by_id, by_smartcard)

    def __len__(self) -> int:
        return len(self._by_id)

    def by_id(self, member_id: object) -> MemberRef | None:
        return self._by_id.get(str(member_id))

    def by_smartcard(self, code: str) -> MemberRef | None:
        return self._by_smartcard.get(code)

    def resolve(self, reference: str) -> MemberRef | None:
        """Find a member by identifier first, then by smartcard."""
        return self.by_id(reference) or self.by_smartcard(reference)
