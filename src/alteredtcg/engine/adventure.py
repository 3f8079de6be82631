"""Dusk Progress and the Night victory check.

Hero expeditions walk the Adventure from the hero region forwards, companion
expeditions from the companion region backwards. An expedition's position is
the number of regions it has cleared.
"""

from __future__ import annotations

from .objects import GameObject
from .state import GameStateManager
from .types import (
    BOOST,
    EXPEDITION_SIDES,
    TERRAINS,
    CardDefinition,
    ExpeditionSide,
    Statistics,
    Terrain,
)
from .zones import ZoneRef

VICTORY_THRESHOLD = 7


def _beats(ours: Statistics, rivals: list[Statistics], terrain: Terrain) -> bool:
    value = ours.of(terrain)
    return value > 0 and all(value > r.of(terrain) for r in rivals)


class AdventureManager:
    def __init__(self, gsm: GameStateManager, *, victory_threshold: int = VICTORY_THRESHOLD) -> None:
        self._gsm = gsm
        self._threshold = victory_threshold

    # ------------------------------------------------------------------
    # Read side

    def characters(self, player_id: str) -> list[GameObject]:
        """Awake characters in the player's expeditions."""
        gsm = self._gsm
        return [
            o
            for o in gsm.objects_in(ZoneRef.of(player_id, "expedition"))
            if gsm.definition_of(o).type in ("character", "token") and not o.has("asleep")
        ]

    def strength(self, obj: GameObject) -> Statistics:
        """Current statistics plus one on every terrain per Boost."""
        boost = obj.counter(BOOST)
        return self._gsm.current_statistics(obj.object_id) + Statistics(boost, boost, boost)

    def expedition_statistics(self, player_id: str, side: ExpeditionSide) -> Statistics:
        # Gigantic characters are in both expeditions at once.
        total = Statistics()
        for obj in self.characters(player_id):
            if obj.expedition == side or self._gsm.definition_of(obj).has_keyword("gigantic"):
                total = total + self.strength(obj)
        return total

    def arena_statistics(self, player_id: str) -> Statistics:
        """Statistics of both expeditions together; Gigantic characters count twice."""
        total = Statistics()
        for obj in self.characters(player_id):
            factor = 2 if self._gsm.definition_of(obj).has_keyword("gigantic") else 1
            total = total + self.strength(obj).scaled(factor)
        return total

    def defended_sides(self, player_id: str) -> set[ExpeditionSide]:
        """Expeditions held back by a Defender; a Gigantic Defender holds both."""
        gsm = self._gsm
        blocked: set[ExpeditionSide] = set()
        for obj in gsm.objects_in(ZoneRef.of(player_id, "expedition")):
            definition = gsm.definition_of(obj)
            if not definition.has_keyword("defender"):
                continue
            if definition.has_keyword("gigantic"):
                blocked.update(EXPEDITION_SIDES)
            elif obj.expedition is not None:
                blocked.add(obj.expedition)
        return blocked

    def region_ahead(self, player_id: str, side: ExpeditionSide) -> CardDefinition | None:
        gsm = self._gsm
        player = gsm.get_player(player_id)
        if player is None:
            return None
        regions = gsm.regions()
        position = player.expedition(side).position
        if position >= len(regions):
            return None
        if side == "hero":
            return regions[position]
        return regions[len(regions) - 1 - position]

    # ------------------------------------------------------------------
    # Dusk and Night

    def progress(self) -> list[tuple[str, ExpeditionSide]]:
        """Move forward every expedition that outmatches its rivals in the region ahead.

        An expedition moves when, on at least one terrain of that region, its
        statistic is positive and greater than every opponent's expedition on
        the same side. All comparisons happen before anything moves. No
        expedition moves during a tiebreaker.
        """
        gsm = self._gsm
        order = gsm.initiative_order(gsm.first_player_id)
        for pid in order:
            blocked = self.defended_sides(pid)
            for side in EXPEDITION_SIDES:
                gsm.reset_expedition(pid, side, can_move=side not in blocked)
        if gsm.tiebreaker_player_ids or gsm.winner_id is not None:
            return []

        totals = {(pid, side): self.expedition_statistics(pid, side) for pid in order for side in EXPEDITION_SIDES}
        moving: list[tuple[str, ExpeditionSide]] = []
        for pid in order:
            player = gsm.get_player(pid)
            assert player is not None
            for side in EXPEDITION_SIDES:
                if not player.expedition(side).can_move:
                    continue
                region = self.region_ahead(pid, side)
                if region is None:
                    continue
                rivals = [totals[(other, side)] for other in order if other != pid]
                if any(_beats(totals[(pid, side)], rivals, t) for t in region.terrains):
                    moving.append((pid, side))

        for pid, side in moving:
            gsm.move_expedition(pid, side)
        return moving

    def check_victory(self) -> str | None:
        """Declare a winner if there is one and return it.

        The single player furthest along with at least the threshold distance
        wins. Players tied at the top enter a tiebreaker, settled on later
        Nights in the Arena.
        """
        gsm = self._gsm
        if gsm.winner_id is not None:
            return gsm.winner_id
        if gsm.tiebreaker_player_ids:
            winner = self._arena_winner(gsm.tiebreaker_player_ids)
        else:
            distances = {p.id: p.distance for p in gsm.players()}
            best = max(distances.values())
            if best < self._threshold:
                return None
            leaders = [pid for pid in gsm.player_ids if distances[pid] == best]
            if len(leaders) > 1:
                gsm.start_tiebreaker(leaders)
                return None
            winner = leaders[0]
        if winner is not None:
            gsm.declare_winner(winner)
        return winner

    def _arena_winner(self, tied: tuple[str, ...]) -> str | None:
        stats = {pid: self.arena_statistics(pid) for pid in tied}
        wins = dict.fromkeys(tied, 0)
        for terrain in TERRAINS:
            top = max(stats[pid].of(terrain) for pid in tied)
            holders = [pid for pid in tied if stats[pid].of(terrain) == top]
            if top > 0 and len(holders) == 1:
                wins[holders[0]] += 1
        most = max(wins.values())
        leaders = [pid for pid in tied if wins[pid] == most]
        if most > 0 and len(leaders) == 1:
            return leaders[0]
        return None
