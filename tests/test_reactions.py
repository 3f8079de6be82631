from __future__ import annotations

import random

import pytest

from alteredtcg.engine.actions import AdvancePhaseAction, ChooseReactionAction, PassAction, PlayCardAction
from alteredtcg.engine.effects import EffectResolver
from alteredtcg.engine.errors import UnknownReactionChoice
from alteredtcg.engine.events import EntityMoved, EventBus, PhaseChanged, ReactionResolved
from alteredtcg.engine.match import Match, MatchConfig, new_match, step
from alteredtcg.engine.objects import GameObject
from alteredtcg.engine.reactions import ReactionManager, trigger_matches
from alteredtcg.engine.state import GameStateManager
from alteredtcg.engine.types import Trigger
from alteredtcg.engine.zones import ZoneRef
from alteredtcg.paths import get_paths
from alteredtcg.services.content import ContentService


def _load_cards():
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    return content.load_cards_db()


def _match(p1_deck: list[str], *, orbs: int = 3) -> Match:
    decks = {"p1": p1_deck, "p2": ["LY-C-01"] * 40}
    return new_match(_load_cards(), decks, seed=3, config=MatchConfig(starting_mana_orbs=orbs))


def _hand(m: Match, pid: str) -> tuple[str, ...]:
    return m.gsm.zone(ZoneRef.of(pid, "hand")).ids


def test_single_reaction_resolves_without_a_choice() -> None:
    m = _match(["AX-C-03"] * 40)
    m.advance_to("afternoon")
    card = _hand(m, "p1")[0]

    res = step(m, PlayCardAction(player_id="p1", instance_id=card))
    assert res.ok
    types = [e.type for e in res.events]
    assert types.index("reactionTriggered") < types.index("reactionResolved") < types.index("turnAdvanced")

    bulwark = m.gsm.get_object(card)
    assert bulwark is not None and bulwark.has("anchored")
    assert m.reactions.phase == "done"
    assert m.gsm.pending_reactions() == []
    assert m.gsm.current_player_id == "p2"

    # Anchored characters stay through the Night and lose the status.
    assert step(m, PassAction(player_id="p2")).ok
    assert step(m, PassAction(player_id="p1")).ok
    m.advance_to("night")
    assert m.gsm.zone(ZoneRef.of("p1", "expedition")).ids == (card,)
    assert not bulwark.has("anchored")


def test_simultaneous_reactions_wait_for_a_choice() -> None:
    m = _match(["AX-H-01"] + ["AX-L-01"] * 40, orbs=4)
    m.advance_to("afternoon")
    assert step(m, PlayCardAction(player_id="p1", instance_id=_hand(m, "p1")[0])).ok
    assert step(m, PassAction(player_id="p2")).ok
    assert step(m, PlayCardAction(player_id="p1", instance_id=_hand(m, "p1")[0])).ok
    assert len(m.gsm.zone(ZoneRef.of("p1", "landmark"))) == 2
    assert step(m, PassAction(player_id="p1")).ok

    m.advance_to("morning")
    assert m.day_number == 2
    assert m.reactions.phase == "awaiting_choice"
    assert m.reactions.awaiting_player_id == "p1"
    pending = m.reactions.candidates("p1")
    assert len(pending) == 2
    assert len(m.gsm.zone(ZoneRef.shared("limbo"))) == 2

    res = step(m, AdvancePhaseAction())
    assert (res.ok, res.kind, res.category) == (False, "ReactionsPending", "turn")
    assert m.phase == "morning"

    res = step(m, ChooseReactionAction(player_id="p2", reaction_id=pending[0].object_id))
    assert (res.ok, res.kind) == (False, "UnknownReactionChoice")
    res = step(m, ChooseReactionAction(player_id="p1", reaction_id="obj-nope"))
    assert (res.ok, res.kind) == (False, "UnknownReactionChoice")

    res = step(m, ChooseReactionAction(player_id="p1", reaction_id=pending[1].object_id))
    assert res.ok
    assert [e.type for e in res.events].count("reactionResolved") == 2
    assert m.reactions.phase == "done"
    assert m.gsm.pending_reactions() == []

    hero = m.gsm.objects_in(ZoneRef.of("p1", "hero"))[0]
    assert hero.counter("Boost") == 2
    assert step(m, AdvancePhaseAction()).ok
    assert m.phase == "noon"


def test_reaction_in_reserve_after_rest() -> None:
    m = _match(["NE-C-01"] * 40)
    m.advance_to("afternoon")
    card = _hand(m, "p1")[0]
    assert step(m, PlayCardAction(player_id="p1", instance_id=card)).ok
    assert step(m, PassAction(player_id="p2")).ok
    assert step(m, PassAction(player_id="p1")).ok

    m.advance_to("night")
    assert m.gsm.zone(ZoneRef.of("p1", "reserve")).ids == (card,)
    porter = m.gsm.get_object(card)
    assert porter is not None
    assert porter.counter("Boost") == 1
    assert porter.has("boosted")


def test_choose_without_pending_choice_fails() -> None:
    bus = EventBus()
    gsm = GameStateManager(["p1", "p2"], [], bus, rng=random.Random(0))
    reactions = ReactionManager(gsm, EffectResolver(gsm), bus)
    assert reactions.phase == "done"
    assert reactions.awaiting_player_id is None
    with pytest.raises(UnknownReactionChoice):
        reactions.choose_reaction("obj-1")


def test_initiative_passes_over_a_player_without_reactions() -> None:
    decks = {"p1": ["AX-C-01"] * 40, "p2": ["LY-H-01"] + ["LY-C-01"] * 40}
    m = new_match(_load_cards(), decks, seed=3)
    m.advance_to("afternoon")
    assert step(m, PassAction(player_id="p1")).ok
    assert step(m, PassAction(player_id="p2")).ok

    # p1 holds the initiative at Dusk but only p2's hero reacts.
    assert m.phase == "dusk"
    assert m.gsm.first_player_id == "p1"
    assert m.reactions.phase == "done"
    assert m.gsm.pending_reactions() == []
    assert len(m.gsm.zone(ZoneRef.of("p2", "reserve"))) == 1
    resolved = [e for e in m.event_log if isinstance(e, ReactionResolved)]
    assert [e.controller_id for e in resolved] == ["p2"]


def test_limbo_evaluation_ends_when_every_player_passes() -> None:
    m = _match(["AX-C-01"] * 40)
    ability = m.cards.get("LY-H-01").ability("dusk-resupply")
    assert ability is not None
    # Nobody seated controls this reaction.
    source = GameObject(
        object_id="obj-x", definition_id="LY-H-01", owner_id="ghost", controller_id="ghost", timestamp=0
    )
    reaction = m.gsm.factory.create_reaction(ability, source, None)
    m.gsm.add_reaction(reaction)

    assert m.reactions.drain() == "done"
    assert m.gsm.pending_reactions() == [reaction]


def test_trigger_matching_filters() -> None:
    m = _match(["AX-C-01"] * 40)
    m.advance_to("morning")
    obj = m.gsm.get_object(_hand(m, "p1")[0])
    assert obj is not None

    phase = PhaseChanged(type="phaseChanged", phase="dusk")
    assert trigger_matches(Trigger(event="phaseChanged", phase="dusk"), phase, obj)
    assert not trigger_matches(Trigger(event="phaseChanged", phase="morning"), phase, obj)
    assert not trigger_matches(Trigger(event="entityMoved"), phase, obj)

    moved = EntityMoved(
        type="entityMoved",
        entity_id="ref-1",
        new_entity_id="obj-other",
        from_zone=ZoneRef.of("p1", "expedition"),
        to_zone=ZoneRef.of("p1", "reserve"),
    )
    assert not trigger_matches(Trigger(event="entityMoved"), moved, obj)
    assert trigger_matches(Trigger(event="entityMoved", self_only=False, to_zone="reserve"), moved, obj)
    assert not trigger_matches(
        Trigger(event="entityMoved", self_only=False, from_zone="hand"), moved, obj
    )
