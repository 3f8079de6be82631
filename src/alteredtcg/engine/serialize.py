from __future__ import annotations

from dataclasses import asdict

from .actions import (
    Action,
    ActivateAbilityAction,
    AdvancePhaseAction,
    ChooseReactionAction,
    ExpandAction,
    PassAction,
    PlayCardAction,
    PlayFromReserveAction,
)
from .events import EntityMoved, Event
from .match import Match
from .objects import DefinitionRef, PendingReaction, ZoneEntity
from .types import EXPEDITION_SIDES, Statistics
from .zones import Zone, ZoneRef


def action_to_dict(a: Action) -> dict[str, object]:
    if isinstance(a, PlayCardAction):
        return {
            "type": "play",
            "player_id": a.player_id,
            "instance_id": a.instance_id,
            "target_zone": a.target_zone,
            "expedition": a.expedition,
        }
    if isinstance(a, PlayFromReserveAction):
        return {
            "type": "play_from_reserve",
            "player_id": a.player_id,
            "instance_id": a.instance_id,
            "target_zone": a.target_zone,
            "expedition": a.expedition,
        }
    if isinstance(a, ActivateAbilityAction):
        return {
            "type": "activate",
            "player_id": a.player_id,
            "object_id": a.object_id,
            "ability_id": a.ability_id,
        }
    if isinstance(a, ExpandAction):
        return {"type": "expand", "player_id": a.player_id, "instance_id": a.instance_id}
    if isinstance(a, PassAction):
        return {"type": "pass", "player_id": a.player_id}
    if isinstance(a, ChooseReactionAction):
        return {"type": "choose_reaction", "player_id": a.player_id, "reaction_id": a.reaction_id}
    if isinstance(a, AdvancePhaseAction):
        return {"type": "advance_phase"}
    # should be unreachable
    return {"type": "unknown"}


def event_to_dict(e: Event) -> dict[str, object]:
    """Flatten an event into its wire payload; zone refs become "owner-kind" strings."""
    if isinstance(e, EntityMoved):
        return {
            "type": e.type,
            "entity_id": e.entity_id,
            "new_entity_id": e.new_entity_id,
            "from_zone": str(e.from_zone),
            "to_zone": str(e.to_zone),
        }
    return asdict(e)


def _entity_to_dict(entity: ZoneEntity) -> dict[str, object]:
    if isinstance(entity, DefinitionRef):
        return {"id": entity.instance_id, "definition_id": entity.definition_id}
    out: dict[str, object] = {
        "id": entity.object_id,
        "definition_id": entity.definition_id,
        "controller_id": entity.controller_id,
        "statuses": sorted(entity.statuses),
        "counters": dict(sorted(entity.counters.items())),
    }
    modifier = entity.statistic_modifier
    if modifier != Statistics():
        out["modifier"] = [modifier.forest, modifier.mountain, modifier.water]
    if entity.expedition is not None:
        out["expedition"] = entity.expedition
    if isinstance(entity, PendingReaction):
        out["ability_id"] = entity.ability_id
        out["source_id"] = entity.source_id
    return out


def _zone_to_list(match: Match, zone: Zone) -> list[dict[str, object]]:
    out = []
    for eid in zone:
        entity = match.gsm.get_entity(eid)
        assert entity is not None
        out.append(_entity_to_dict(entity))
    return out


def snapshot(match: Match) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current match state."""
    gsm = match.gsm
    players: dict[str, object] = {}
    for player in gsm.players():
        players[player.id] = {
            "has_passed": player.has_passed,
            "can_expand": player.can_expand,
            "expeditions": {side: asdict(player.expedition(side)) for side in EXPEDITION_SIDES},
            "zones": {zone.kind: _zone_to_list(match, zone) for zone in player.zones()},
        }
    return {
        "seed": match.seed,
        "phase": gsm.phase,
        "day_number": gsm.day_number,
        "first_player_id": gsm.first_player_id,
        "current_player_id": gsm.current_player_id,
        "players": players,
        "limbo": _zone_to_list(match, gsm.zone(ZoneRef.shared("limbo"))),
        "adventure": [region.id for region in gsm.regions()],
        "winner_id": gsm.winner_id,
        "tiebreaker_player_ids": list(gsm.tiebreaker_player_ids),
        "action_log": [action_to_dict(a) for a in match.action_log],
    }