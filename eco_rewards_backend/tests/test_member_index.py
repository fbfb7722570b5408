import dataclasses

import pytest

from eco_rewards.journeys.member_index import MemberIndex, MemberRef


def test_lookup_by_id_and_smartcard_returns_same_object(make_member):
    index = MemberIndex.build([make_member(1, smartcard="SC-1"), make_member(2)])

    by_id = index.by_id(1)
    by_card = index.by_smartcard("SC-1")

    assert by_id is not None
    assert by_id is by_card
    assert len(index) == 2


def test_ids_match_as_strings(make_member):
    index = MemberIndex.build([make_member(7)])

    assert index.by_id("7") is index.by_id(7)


def test_absent_members_are_none(make_member):
    index = MemberIndex.build([make_member(1)])

    assert index.by_id(99) is None
    assert index.by_smartcard("nope") is None
    assert index.resolve("nope") is None


def test_members_without_smartcard_are_not_indexed_by_blank_code(make_member):
    index = MemberIndex.build([make_member(1, smartcard=""), make_member(2, smartcard=None)])

    assert index.by_smartcard("") is None


def test_resolve_prefers_identifier_over_smartcard(make_member):
    index = MemberIndex.build([make_member(1), make_member(2, smartcard="1")])

    assert index.resolve("1").id == 1
    assert index.resolve("2").id == 2


def test_snapshot_is_immutable(make_member):
    source = make_member(1, mode="bus")
    index = MemberIndex.build([source])

    source.default_transport_mode = "car"

    ref = index.by_id(1)
    assert ref.default_transport_mode == "bus"
    with pytest.raises(dataclasses.FrozenInstanceError):
        ref.default_distance = 1.0


def test_build_accepts_member_refs():
    ref = MemberRef(id=3, smartcard="X", default_transport_mode="walk", default_distance=1.0)

    index = MemberIndex.build([ref])

    assert index.by_id(3) is ref
