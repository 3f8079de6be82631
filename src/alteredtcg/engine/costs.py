from __future__ import annotations

from .errors import (
    EngineError,
    EntityNotFound,
    InsufficientCounters,
    InsufficientMana,
    SourceAlreadyExhausted,
)
from .state import GameStateManager
from .types import Cost


class CostProcessor:
    """Validates and pays costs.

    Payment is two-phase: every clause is checked against the current state
    first, and only when all of them pass are mana orbs exhausted, the source
    exhausted and counters spent. A failed payment mutates nothing.
    """

    def __init__(self, gsm: GameStateManager) -> None:
        self._gsm = gsm

    def can_pay(self, player_id: str, cost: Cost, source_object_id: str | None = None) -> bool:
        return self.check(player_id, cost, source_object_id) is None

    def check(self, player_id: str, cost: Cost, source_object_id: str | None = None) -> EngineError | None:
        """Return the first clause that cannot be paid, or None."""
        gsm = self._gsm
        if cost.mana > 0:
            if gsm.get_player(player_id) is None:
                return EntityNotFound(f"Unknown player {player_id}.")
            ready = gsm.ready_mana_count(player_id)
            if ready < cost.mana:
                return InsufficientMana(f"Needs {cost.mana} mana, only {ready} ready.")

        if not cost.needs_source:
            return None
        source = gsm.get_object(source_object_id) if source_object_id else None
        if source is None:
            return EntityNotFound("This cost needs a source object.")
        if cost.exhaust_self and source.has("exhausted"):
            return SourceAlreadyExhausted(f"{source.object_id} is already exhausted.")
        spend = cost.spend_counters
        if spend is not None and source.counter(spend.counter_type) < spend.amount:
            return InsufficientCounters(
                f"Needs {spend.amount} {spend.counter_type} counters, "
                f"{source.object_id} has {source.counter(spend.counter_type)}."
            )
        return None

    def pay(self, player_id: str, cost: Cost, source_object_id: str | None = None) -> None:
        failure = self.check(player_id, cost, source_object_id)
        if failure is not None:
            raise failure

        if cost.mana > 0:
            self._gsm.exhaust_mana(player_id, cost.mana)
        if source_object_id is None:
            return
        if cost.exhaust_self:
            self._gsm.add_status(source_object_id, "exhausted")
        spend = cost.spend_counters
        if spend is not None and spend.amount > 0:
            self._gsm.spend_counters(source_object_id, spend.counter_type, spend.amount)
