from __future__ import annotations

import random

from alteredtcg.engine.actions import AdvancePhaseAction, PassAction, PlayCardAction
from alteredtcg.engine.ai import run_bots
from alteredtcg.engine.events import ExpeditionMoved, MatchWon, TiebreakerStarted
from alteredtcg.engine.match import Match, MatchConfig, new_match, step
from alteredtcg.engine.state import Player
from alteredtcg.engine.types import ADVENTURE_REGIONS, ExpeditionSide, Statistics
from alteredtcg.engine.zones import ZoneRef
from alteredtcg.paths import get_paths
from alteredtcg.services.content import ContentService


def _load_cards():
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    return content.load_cards_db()


def _match(p1_card: str, p2_card: str = "LY-C-01", *, orbs: int = 3, victory_threshold: int = 7) -> Match:
    decks = {"p1": [p1_card] * 40, "p2": [p2_card] * 40}
    config = MatchConfig(starting_mana_orbs=orbs, victory_threshold=victory_threshold)
    return new_match(_load_cards(), decks, seed=21, config=config)


def _ids(m: Match, pid: str, kind) -> tuple[str, ...]:
    return m.gsm.zone(ZoneRef.of(pid, kind)).ids


def _player(m: Match, pid: str) -> Player:
    player = m.gsm.get_player(pid)
    assert player is not None
    return player


def _play(m: Match, pid: str, expedition: ExpeditionSide = "hero") -> str:
    card = _ids(m, pid, "hand")[0]
    res = step(m, PlayCardAction(player_id=pid, instance_id=card, expedition=expedition))
    assert res.ok, res.error
    return card


def _pass_afternoon(m: Match) -> None:
    while m.phase == "afternoon":
        assert step(m, PassAction(player_id=m.gsm.current_player_id)).ok


def _walk(m: Match, pid: str, side: ExpeditionSide, regions: int) -> None:
    for _ in range(regions):
        m.gsm.move_expedition(pid, side)


def test_adventure_is_laid_out_at_setup() -> None:
    m = _match("AX-C-01")
    assert [r.id for r in m.gsm.regions()] == [r.id for r in ADVENTURE_REGIONS]
    hero_side = m.adventure.region_ahead("p1", "hero")
    companion_side = m.adventure.region_ahead("p1", "companion")
    assert hero_side is not None and hero_side.id == "hero-region"
    assert companion_side is not None and companion_side.id == "companion-region"
    for side in ("hero", "companion"):
        assert _player(m, "p2").expedition(side).position == 0


def test_progress_compares_every_expedition_before_moving() -> None:
    m = _match("AX-C-01", "LY-C-01")
    m.advance_to("afternoon")
    mine = _play(m, "p1")
    theirs = _play(m, "p2")
    assert m.adventure.expedition_statistics("p1", "hero") == Statistics(1, 1, 1)
    assert m.adventure.expedition_statistics("p2", "hero") == Statistics(1, 0, 2)

    _pass_afternoon(m)
    assert m.phase == "dusk"
    moved = [(e.player_id, e.side, e.position) for e in m.event_log if isinstance(e, ExpeditionMoved)]
    # Forest is a tie; p1 takes the mountain and p2 the water.
    assert moved == [("p1", "hero", 1), ("p2", "hero", 1)]
    assert not _player(m, "p1").expedition("companion").has_moved

    m.advance_to("night")
    assert _ids(m, "p1", "reserve") == (mine,)
    assert _ids(m, "p2", "reserve") == (theirs,)


def test_companion_expedition_walks_backwards() -> None:
    m = _match("AX-C-01")
    m.advance_to("afternoon")
    card = _play(m, "p1", expedition="companion")
    obj = m.gsm.get_object(card)
    assert obj is not None and obj.expedition == "companion"
    assert m.adventure.expedition_statistics("p1", "hero") == Statistics()

    _pass_afternoon(m)
    assert _player(m, "p1").expedition("companion").position == 1
    assert _player(m, "p1").expedition("hero").position == 0
    ahead = m.adventure.region_ahead("p1", "companion")
    assert ahead is not None and ahead.id == "tumult-3"

    m.advance_to("night")
    assert _ids(m, "p1", "reserve") == (card,)
    assert obj.expedition is None


def test_unknown_expedition_side_is_rejected() -> None:
    m = _match("AX-C-01")
    m.advance_to("afternoon")
    card = _ids(m, "p1", "hand")[0]
    res = step(m, PlayCardAction(player_id="p1", instance_id=card, expedition="sideways"))  # type: ignore[arg-type]
    assert (res.ok, res.kind) == (False, "InvalidTarget")
    assert m.gsm.ready_mana_count("p1") == 3


def test_idle_expedition_keeps_its_characters() -> None:
    m = _match("AX-C-01", "AX-C-04", orbs=4)
    m.advance_to("afternoon")
    mine = _play(m, "p1")
    _play(m, "p2")
    _pass_afternoon(m)
    # 1/1/1 against 3/4/4: p1 does not move.
    assert not _player(m, "p1").expedition("hero").has_moved
    assert _player(m, "p2").expedition("hero").has_moved

    m.advance_to("night")
    assert _ids(m, "p1", "expedition") == (mine,)
    assert _ids(m, "p2", "expedition") == ()


def test_defender_holds_its_expedition_back() -> None:
    m = _match("AX-C-05")
    m.advance_to("afternoon")
    sentinel = _play(m, "p1")
    _pass_afternoon(m)

    p1 = _player(m, "p1")
    assert m.adventure.defended_sides("p1") == {"hero"}
    assert not p1.expedition("hero").can_move
    assert p1.expedition("companion").can_move
    assert p1.expedition("hero").position == 0

    m.advance_to("night")
    assert _ids(m, "p1", "expedition") == (sentinel,)


def test_gigantic_character_is_in_both_expeditions() -> None:
    m = _match("NE-C-02", orbs=5)
    m.advance_to("afternoon")
    giant = _play(m, "p1")
    assert m.adventure.expedition_statistics("p1", "hero") == Statistics(3, 3, 3)
    assert m.adventure.expedition_statistics("p1", "companion") == Statistics(3, 3, 3)
    assert m.adventure.arena_statistics("p1") == Statistics(6, 6, 6)

    _pass_afternoon(m)
    assert _player(m, "p1").distance == 2
    m.advance_to("night")
    assert _ids(m, "p1", "reserve") == (giant,)


def test_eternal_character_stays_after_moving() -> None:
    m = _match("LY-C-05")
    m.advance_to("afternoon")
    dryad = _play(m, "p1")
    _pass_afternoon(m)
    assert _player(m, "p1").expedition("hero").has_moved
    m.advance_to("night")
    assert _ids(m, "p1", "expedition") == (dryad,)


def test_seasoned_character_keeps_boost_in_reserve() -> None:
    m = _match("NE-C-03")
    m.advance_to("afternoon")
    card = _play(m, "p1")
    # Boost counts on every terrain.
    assert m.adventure.expedition_statistics("p1", "hero") == Statistics(2, 2, 3)

    _pass_afternoon(m)
    m.advance_to("night")
    assert _ids(m, "p1", "reserve") == (card,)
    obj = m.gsm.get_object(card)
    assert obj is not None
    assert obj.counter("Boost") == 1
    assert obj.has("boosted")


def test_reaching_the_threshold_wins_and_ends_the_match() -> None:
    m = _match("AX-C-01")
    m.advance_to("morning")
    _walk(m, "p1", "hero", 4)
    _walk(m, "p1", "companion", 3)
    _walk(m, "p2", "hero", 5)
    assert _player(m, "p1").distance == 7

    assert m.adventure.check_victory() == "p1"
    assert m.winner_id == "p1"
    assert [e.player_id for e in m.event_log if isinstance(e, MatchWon)] == ["p1"]

    res = step(m, AdvancePhaseAction())
    assert (res.ok, res.kind) == (False, "InvalidPhaseTransition")
    assert m.phase == "morning"


def test_victory_is_checked_at_night() -> None:
    m = _match("AX-C-01", victory_threshold=1)
    m.advance_to("afternoon")
    _play(m, "p1")
    _pass_afternoon(m)
    assert _player(m, "p1").distance == 1
    assert m.winner_id is None

    m.advance_to("night")
    assert m.winner_id == "p1"
    assert run_bots(m, 1, random.Random(0)) == 0
    assert m.phase == "night"


def test_tied_leaders_settle_it_in_the_arena() -> None:
    m = _match("AX-C-01", "LY-C-01")
    m.advance_to("afternoon")
    _play(m, "p1")
    _play(m, "p2")
    _play(m, "p1")
    _walk(m, "p1", "hero", 4)
    _walk(m, "p1", "companion", 3)
    _walk(m, "p2", "hero", 5)
    _walk(m, "p2", "companion", 2)

    assert m.adventure.check_victory() is None
    assert m.gsm.tiebreaker_player_ids == ("p1", "p2")
    assert [e.player_ids for e in m.event_log if isinstance(e, TiebreakerStarted)] == [("p1", "p2")]

    _pass_afternoon(m)
    # Nobody moves during a tiebreaker.
    assert _player(m, "p1").distance == 7
    assert _player(m, "p2").distance == 7
    assert not _player(m, "p1").expedition("hero").has_moved

    # Forest 2-1 and mountain 2-0 for p1, water 2-2.
    assert m.adventure.arena_statistics("p1") == Statistics(2, 2, 2)
    assert m.adventure.arena_statistics("p2") == Statistics(1, 0, 2)
    m.advance_to("night")
    assert m.winner_id == "p1"
    assert len(_ids(m, "p1", "expedition")) == 2
