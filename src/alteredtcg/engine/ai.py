from __future__ import annotations

import random
from dataclasses import dataclass

from .actions import (
    Action,
    AdvancePhaseAction,
    ChooseReactionAction,
    ExpandAction,
    PassAction,
    PlayCardAction,
    PlayFromReserveAction,
)
from .match import Match, step
from .types import (
    EXPEDITION_SIDES,
    CardDefinition,
    ExpeditionSide,
    DrawEffect,
    GainCountersEffect,
    ModifyStatisticsEffect,
    ResupplyEffect,
    ZoneKind,
)
from .zones import ZoneRef


@dataclass(frozen=True)
class AISpec:
    """Simple AI tuning parameters.

    difficulty:
      0 = easy (makes mistakes)
      1 = normal
      2 = hard (plays greedier + fewer mistakes)
    """

    difficulty: int = 1
    # Expand in the Morning while holding at least this many cards.
    expand_hand_size: int = 4


def _card_value(card: CardDefinition) -> float:
    v = 0.0
    if card.statistics is not None:
        v += float(card.statistics.total())
    for ability in card.abilities:
        for eff in ability.effects:
            if isinstance(eff, DrawEffect):
                v += float(eff.count) * 1.4
            elif isinstance(eff, ResupplyEffect):
                v += float(eff.count) * 0.8
            elif isinstance(eff, GainCountersEffect):
                v += float(eff.amount) * 1.0
            elif isinstance(eff, ModifyStatisticsEffect):
                v += float(eff.delta.total()) * 0.9
            else:
                v += 0.5
    return v


def _pick_side(match: Match, player_id: str) -> ExpeditionSide:
    # Reinforce the weaker expedition; the hero side wins ties.
    return min(
        EXPEDITION_SIDES,
        key=lambda side: match.adventure.expedition_statistics(player_id, side).total(),
    )


def _pick_best_play(match: Match, player_id: str, spec: AISpec, rng: random.Random) -> Action | None:
    gsm = match.gsm
    mana = gsm.ready_mana_count(player_id)
    best: tuple[float, Action] | None = None

    origins: tuple[ZoneKind, ...] = ("hand", "reserve")
    for origin in origins:
        for obj in gsm.objects_in(ZoneRef.of(player_id, origin)):
            card = gsm.definition_of(obj)
            if card.type not in ("character", "spell", "permanent"):
                continue
            cost = card.hand_cost if origin == "hand" else card.reserve_cost
            if cost > mana or (origin == "reserve" and obj.has("exhausted")):
                continue
            # Cheaper plays win ties so mana goes further.
            score = _card_value(card) - 0.1 * cost
            cand: Action
            side = _pick_side(match, player_id)
            if origin == "hand":
                cand = PlayCardAction(player_id=player_id, instance_id=obj.object_id, expedition=side)
            else:
                cand = PlayFromReserveAction(player_id=player_id, instance_id=obj.object_id, expedition=side)
            if best is None or score > best[0]:
                best = (score, cand)

    if best is None:
        return None

    # Difficulty-based mistakes (easy AI sometimes skips best play)
    if spec.difficulty <= 0:
        if rng.random() < 0.35:
            return None
    elif spec.difficulty == 1:
        if rng.random() < 0.10:
            return None
    return best[1]


def _pick_expand(match: Match, player_id: str, spec: AISpec) -> ExpandAction | None:
    gsm = match.gsm
    player = gsm.get_player(player_id)
    if player is None or not player.can_expand:
        return None
    hand = gsm.objects_in(ZoneRef.of(player_id, "hand"))
    if len(hand) < spec.expand_hand_size:
        return None
    # Give up the least valuable card.
    worst = min(hand, key=lambda o: (_card_value(gsm.definition_of(o)), o.timestamp))
    return ExpandAction(player_id=player_id, instance_id=worst.object_id)


def choose_action(match: Match, rng: random.Random, spec: AISpec | None = None) -> Action:
    """Pick the next action for whoever has to act, always returning something legal-looking."""
    spec = spec or AISpec()
    gsm = match.gsm
    reactions = match.reactions

    chooser = reactions.awaiting_player_id
    if chooser is not None:
        candidates = reactions.candidates(chooser)
        pick = rng.choice(candidates) if spec.difficulty <= 0 else candidates[0]
        return ChooseReactionAction(player_id=chooser, reaction_id=pick.object_id)

    if gsm.phase == "morning":
        for pid in gsm.initiative_order(gsm.first_player_id):
            expand = _pick_expand(match, pid, spec)
            if expand is not None:
                return expand

    if gsm.phase == "afternoon":
        pid = gsm.current_player_id
        play = _pick_best_play(match, pid, spec, rng)
        if play is not None:
            return play
        return PassAction(player_id=pid)

    return AdvancePhaseAction()


def run_bots(match: Match, days: int, rng: random.Random, spec: AISpec | None = None) -> int:
    """Play bot-vs-bot until ``days`` full days have gone by or someone wins.

    Returns the number of actions taken.

    Bots draw from their own ``rng`` so the engine's shuffle stream (and
    therefore replay) does not depend on how they think.
    """
    target = match.gsm.day_number + days
    taken = 0
    while match.gsm.day_number < target and match.gsm.winner_id is None:
        action = choose_action(match, rng, spec)
        result = step(match, action)
        taken += 1
        if result.ok:
            continue
        # A rejected play is answered with a pass so the loop always progresses.
        if isinstance(action, (PlayCardAction, PlayFromReserveAction)):
            step(match, PassAction(player_id=action.player_id))
            taken += 1
        else:
            raise RuntimeError(f"Bot action {action!r} failed: {result.error}")
    return taken
