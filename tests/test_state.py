from __future__ import annotations

import random

import pytest

from alteredtcg.engine.errors import (
    EntityNotInZone,
    InsufficientCounters,
    InsufficientDeckSize,
    InvalidPhaseTransition,
)
from alteredtcg.engine.events import EventBus
from alteredtcg.engine.objects import DefinitionRef, GameObject, ObjectFactory
from alteredtcg.engine.state import GameStateManager
from alteredtcg.engine.types import CardDefinition, Statistics
from alteredtcg.engine.zones import ZoneRef

CHAR = CardDefinition(
    id="T-CHAR",
    name="Test Character",
    type="character",
    faction="axiom",
    rarity="common",
    hand_cost=1,
    reserve_cost=1,
    statistics=Statistics(1, 2, 3),
)
HERO = CardDefinition(
    id="T-HERO",
    name="Test Hero",
    type="hero",
    faction="axiom",
    rarity="common",
    hand_cost=0,
    reserve_cost=0,
    starting_counters=(("Boost", 1),),
)
TOKEN = CardDefinition(
    id="T-TOKEN",
    name="Test Token",
    type="token",
    faction="neutral",
    rarity="token",
    hand_cost=0,
    reserve_cost=0,
)


def _gsm(players: tuple[str, ...] = ("p1", "p2")) -> tuple[GameStateManager, list[object]]:
    bus = EventBus()
    events: list[object] = []
    bus.subscribe_all(events.append)
    gsm = GameStateManager(list(players), [CHAR, HERO, TOKEN], bus, rng=random.Random(7))
    return gsm, events


def _all_ids(gsm: GameStateManager) -> list[str]:
    return [eid for zone in gsm.all_zones() for eid in zone]


def test_construction_contract() -> None:
    with pytest.raises(ValueError):
        GameStateManager([], [CHAR], EventBus())
    with pytest.raises(ValueError):
        GameStateManager(["p1", "p1"], [CHAR], EventBus())


def test_initialize_board_forty_card_scenario() -> None:
    gsm, events = _gsm()
    decks = {"p1": [HERO] + [CHAR] * 40, "p2": [CHAR] * 40}
    gsm.initialize_board(decks, starting_hand_size=6, starting_mana_orbs=3)

    for pid in ("p1", "p2"):
        assert len(gsm.zone(ZoneRef.of(pid, "hand"))) == 6
        assert len(gsm.zone(ZoneRef.of(pid, "mana"))) == 3
        assert len(gsm.zone(ZoneRef.of(pid, "deck"))) == 34
        assert gsm.ready_mana_count(pid) == 3
        assert all(isinstance(e, GameObject) for e in gsm.entities_in(ZoneRef.of(pid, "hand")))
        assert all(isinstance(e, DefinitionRef) for e in gsm.entities_in(ZoneRef.of(pid, "deck")))

    hero = gsm.objects_in(ZoneRef.of("p1", "hero"))
    assert len(hero) == 1
    assert hero[0].counter("Boost") == 1
    assert hero[0].has("boosted")
    assert gsm.objects_in(ZoneRef.of("p2", "hero")) == []

    assert gsm.phase == "setup"
    assert gsm.day_number == 1
    assert gsm.first_player_id == "p1"
    assert gsm.current_player_id == "p1"
    # Hand draws are published; orb creation is not a move.
    moved = [e for e in events if getattr(e, "type", None) == "entityMoved"]
    assert len(moved) == 12

    ids = _all_ids(gsm)
    assert len(ids) == len(set(ids))


def test_factory_objects_start_blank_and_hero_counters_come_from_setup() -> None:
    obj = ObjectFactory().create_object_from_definition(HERO, "p1")
    assert dict(obj.counters) == {}
    assert obj.statuses == frozenset()

    gsm, events = _gsm()
    gsm.initialize_board({"p1": [HERO] + [CHAR] * 6, "p2": [CHAR] * 6}, 0, 0)
    hero = gsm.objects_in(ZoneRef.of("p1", "hero"))[0]
    assert [(e.type, e.object_id) for e in events] == [
        ("counterGained", hero.object_id),
        ("statusGained", hero.object_id),
    ]
    assert events[0].counter_type == "Boost"
    assert events[0].amount == 1


def test_initialize_board_twice_fails() -> None:
    gsm, _ = _gsm()
    gsm.initialize_board({"p1": [CHAR] * 6, "p2": [CHAR] * 6}, 6, 3)
    with pytest.raises(InvalidPhaseTransition):
        gsm.initialize_board({"p1": [CHAR] * 6, "p2": [CHAR] * 6}, 6, 3)


def test_insufficient_deck_size_mutates_nothing() -> None:
    gsm, events = _gsm()
    # The hero does not count towards the deck.
    decks = {"p1": [CHAR] * 10, "p2": [HERO] + [CHAR] * 5}
    with pytest.raises(InsufficientDeckSize):
        gsm.initialize_board(decks, starting_hand_size=6, starting_mana_orbs=3)
    assert not gsm.initialized
    assert _all_ids(gsm) == []
    assert events == []


def test_move_upgrades_and_degrades_explicitly() -> None:
    gsm, events = _gsm()
    gsm.initialize_board({"p1": [CHAR] * 8, "p2": [CHAR] * 8}, 2, 0)
    events.clear()

    hand = ZoneRef.of("p1", "hand")
    discard = ZoneRef.of("p1", "discard")
    card_id = gsm.zone(hand).ids[0]
    assert gsm.get_object(card_id) is not None

    # object -> untracked zone: a fresh reference, the object ceases to exist
    ref = gsm.move_entity(card_id, hand, discard)
    assert isinstance(ref, DefinitionRef)
    assert ref.instance_id != card_id
    assert gsm.get_object(card_id) is None
    assert gsm.get_entity(card_id) is None
    assert [e.type for e in events] == ["entityMoved", "entityCeasedToExist"]
    assert events[0].new_entity_id == ref.instance_id
    assert events[1].entity_id == card_id

    # ref -> tracked zone: a fresh object
    events.clear()
    obj = gsm.move_entity(ref.instance_id, discard, hand)
    assert isinstance(obj, GameObject)
    assert obj.object_id != ref.instance_id
    assert gsm.find_zone_of(obj.object_id) == hand
    assert [e.type for e in events] == ["entityMoved"]

    # object -> tracked zone keeps identity
    reserve = ZoneRef.of("p1", "reserve")
    same = gsm.move_entity(obj.object_id, hand, reserve)
    assert same is obj

    # ref -> untracked zone keeps the reference
    deck = ZoneRef.of("p1", "deck")
    top = gsm.zone(deck).ids[0]
    still = gsm.move_entity(top, deck, discard)
    assert isinstance(still, DefinitionRef)
    assert still.instance_id == top


def test_move_from_wrong_zone_fails_without_events() -> None:
    gsm, events = _gsm()
    gsm.initialize_board({"p1": [CHAR] * 8, "p2": [CHAR] * 8}, 2, 0)
    events.clear()
    card_id = gsm.zone(ZoneRef.of("p1", "hand")).ids[0]
    with pytest.raises(EntityNotInZone):
        gsm.move_entity(card_id, ZoneRef.of("p1", "reserve"), ZoneRef.of("p1", "expedition"))
    assert events == []
    assert gsm.find_zone_of(card_id) == ZoneRef.of("p1", "hand")


def test_leaving_play_drops_counters_and_entering_hand_clears_statuses() -> None:
    gsm, _ = _gsm()
    gsm.initialize_board({"p1": [CHAR] * 8, "p2": [CHAR] * 8}, 2, 0)
    hand = ZoneRef.of("p1", "hand")
    expedition = ZoneRef.of("p1", "expedition")
    reserve = ZoneRef.of("p1", "reserve")
    card_id = gsm.zone(hand).ids[0]
    gsm.move_entity(card_id, hand, expedition)
    gsm.add_counters(card_id, "Boost", 2)
    gsm.add_status(card_id, "exhausted")

    obj = gsm.move_entity(card_id, expedition, reserve)
    assert isinstance(obj, GameObject)
    assert dict(obj.counters) == {}
    assert not obj.has("boosted")
    assert obj.has("exhausted")

    gsm.move_entity(card_id, reserve, hand)
    assert obj.statuses == frozenset()


def test_token_leaving_play_ceases_to_exist() -> None:
    gsm, events = _gsm()
    gsm.initialize_board({"p1": [TOKEN] * 4, "p2": [CHAR] * 4}, 1, 0)
    hand = ZoneRef.of("p1", "hand")
    expedition = ZoneRef.of("p1", "expedition")
    token_id = gsm.zone(hand).ids[0]
    gsm.move_entity(token_id, hand, expedition)
    events.clear()

    assert gsm.move_entity(token_id, expedition, ZoneRef.of("p1", "reserve")) is None
    assert gsm.get_entity(token_id) is None
    assert token_id not in _all_ids(gsm)
    assert [e.type for e in events] == ["entityCeasedToExist"]


def test_counters_never_keep_zero_entries() -> None:
    gsm, events = _gsm()
    gsm.initialize_board({"p1": [CHAR] * 8, "p2": [CHAR] * 8}, 2, 0)
    card_id = gsm.zone(ZoneRef.of("p1", "hand")).ids[0]
    obj = gsm.get_object(card_id)
    assert obj is not None

    gsm.add_counters(card_id, "Boost", 2)
    assert obj.counter("Boost") == 2
    assert obj.has("boosted")

    events.clear()
    with pytest.raises(InsufficientCounters):
        gsm.remove_counters(card_id, "Boost", 3)
    assert obj.counter("Boost") == 2
    assert events == []

    gsm.remove_counters(card_id, "Boost", 2)
    assert "Boost" not in obj.counters
    assert not obj.has("boosted")
    assert [e.type for e in events] == ["countersRemoved", "statusLost"]

    with pytest.raises(ValueError):
        gsm.add_counters(card_id, "Boost", 0)


def test_modify_statistics_reports_current_values() -> None:
    gsm, events = _gsm()
    gsm.initialize_board({"p1": [CHAR] * 8, "p2": [CHAR] * 8}, 2, 0)
    card_id = gsm.zone(ZoneRef.of("p1", "hand")).ids[0]
    events.clear()
    gsm.modify_statistics(card_id, Statistics(forest=2))
    assert gsm.current_statistics(card_id) == Statistics(3, 2, 3)
    assert events[-1].type == "statisticsChanged"
    assert (events[-1].forest, events[-1].mountain, events[-1].water) == (3, 2, 3)


def test_draw_reshuffles_discard_into_empty_deck() -> None:
    gsm, events = _gsm()
    gsm.initialize_board({"p1": [CHAR] * 3, "p2": [CHAR] * 3}, 3, 0)
    hand = ZoneRef.of("p1", "hand")
    discard = ZoneRef.of("p1", "discard")
    for card_id in gsm.zone(hand).ids[:2]:
        gsm.move_entity(card_id, hand, discard)
    events.clear()

    drawn = gsm.draw_cards("p1", 2)
    assert len(drawn) == 2
    assert len(gsm.zone(discard)) == 0
    assert len(gsm.zone(ZoneRef.of("p1", "deck"))) == 0
    assert events[0].type == "deckReshuffled"
    assert events[0].count == 2

    # Nothing left anywhere: drawing stops quietly.
    assert gsm.draw_cards("p1", 1) == []


def test_exhaust_mana_picks_first_ready_orbs() -> None:
    gsm, events = _gsm()
    gsm.initialize_board({"p1": [CHAR] * 8, "p2": [CHAR] * 8}, 2, 4)
    orbs = gsm.zone(ZoneRef.of("p1", "mana")).ids
    gsm.add_status(orbs[0], "exhausted")
    events.clear()

    chosen = gsm.exhaust_mana("p1", 2)
    assert chosen == [orbs[1], orbs[2]]
    assert gsm.ready_mana_count("p1") == 1
    assert [e.type for e in events] == ["statusGained", "statusGained", "manaSpent"]


def test_object_factory_ids_are_monotonic_per_factory() -> None:
    a = ObjectFactory()
    b = ObjectFactory()
    first = a.create_object_from_definition(CHAR, "p1")
    second = a.create_object_from_definition(CHAR, "p1")
    assert (first.object_id, second.object_id) == ("obj-1", "obj-2")
    assert second.timestamp > first.timestamp
    assert b.create_object_from_definition(CHAR, "p2").object_id == "obj-1"
    assert a.create_reference(CHAR.id, "p1").instance_id == "ref-1"
    assert second.controller_id == "p1"
