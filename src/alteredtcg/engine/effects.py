from __future__ import annotations

from collections.abc import Iterable

from .objects import GameObject
from .state import GameStateManager
from .types import (
    DrawEffect,
    Effect,
    EffectTarget,
    GainCountersEffect,
    GainStatusEffect,
    LoseCountersEffect,
    LoseStatusEffect,
    ModifyStatisticsEffect,
    MoveEffect,
    ResupplyEffect,
)
from .zones import SHARED_ZONES, ZoneRef


class EffectResolver:
    """Applies structured effects to the match through the GSM.

    Costs and triggering are handled elsewhere; a target that no longer exists
    simply resolves to nothing.
    """

    def __init__(self, gsm: GameStateManager) -> None:
        self._gsm = gsm

    def resolve_effects(
        self,
        effects: Iterable[Effect],
        controller_id: str,
        *,
        source_id: str | None = None,
        subject_id: str | None = None,
    ) -> None:
        for effect in effects:
            self.resolve_effect(effect, controller_id, source_id=source_id, subject_id=subject_id)

    def resolve_effect(
        self,
        effect: Effect,
        controller_id: str,
        *,
        source_id: str | None = None,
        subject_id: str | None = None,
    ) -> None:
        gsm = self._gsm
        if isinstance(effect, DrawEffect):
            gsm.draw_cards(controller_id, effect.count)
            return
        if isinstance(effect, ResupplyEffect):
            for _ in range(max(0, effect.count)):
                gsm.resupply(controller_id)
            return

        for target in self._targets(effect.target, controller_id, source_id, subject_id):
            if isinstance(effect, MoveEffect):
                here = gsm.find_zone_of(target.object_id)
                if here is None:
                    continue
                owner = None if effect.to_zone in SHARED_ZONES else target.owner_id
                gsm.move_entity(target.object_id, here, ZoneRef(kind=effect.to_zone, owner=owner))
            elif isinstance(effect, GainStatusEffect):
                gsm.add_status(target.object_id, effect.status)
            elif isinstance(effect, LoseStatusEffect):
                gsm.remove_status(target.object_id, effect.status)
            elif isinstance(effect, GainCountersEffect):
                if effect.amount > 0:
                    gsm.add_counters(target.object_id, effect.counter_type, effect.amount)
            elif isinstance(effect, LoseCountersEffect):
                # Losing more than held removes what is there.
                amount = min(effect.amount, target.counter(effect.counter_type))
                if amount > 0:
                    gsm.remove_counters(target.object_id, effect.counter_type, amount)
            elif isinstance(effect, ModifyStatisticsEffect):
                gsm.modify_statistics(target.object_id, effect.delta)
            else:
                raise TypeError(f"Unknown effect: {effect!r}")

    def _targets(
        self,
        target: EffectTarget,
        controller_id: str,
        source_id: str | None,
        subject_id: str | None,
    ) -> list[GameObject]:
        gsm = self._gsm
        if target == "self":
            obj = gsm.get_object(source_id) if source_id else None
            return [obj] if obj is not None else []
        if target == "trigger_subject":
            obj = gsm.get_object(subject_id) if subject_id else None
            return [obj] if obj is not None else []
        if target == "controller_hero":
            if gsm.get_player(controller_id) is None:
                return []
            return [
                o
                for o in gsm.objects_in(ZoneRef.of(controller_id, "hero"))
                if gsm.definition_of(o).is_hero
            ]
        raise ValueError(f"Unknown effect target: {target}")
