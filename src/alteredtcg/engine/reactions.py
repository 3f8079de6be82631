from __future__ import annotations

from typing import Literal

from .effects import EffectResolver
from .errors import UnknownReactionChoice
from .events import (
    CounterGained,
    EntityMoved,
    Event,
    EventBus,
    EventType,
    PhaseChanged,
    StatusGained,
)
from .objects import GameObject, PendingReaction
from .state import GameStateManager
from .types import Trigger, ZoneKind
from .zones import ZoneRef

ReactionPhase = Literal["evaluating_limbo", "awaiting_choice", "resolving", "done"]

# Zones whose objects' reaction abilities are live.
REACTIVE_ZONES: tuple[ZoneKind, ...] = ("expedition", "landmark", "hero", "reserve")

TRIGGER_EVENTS: tuple[EventType, ...] = ("entityMoved", "statusGained", "counterGained", "phaseChanged")


def _subject_of(event: Event) -> str | None:
    if isinstance(event, EntityMoved):
        return event.new_entity_id
    if isinstance(event, (StatusGained, CounterGained)):
        return event.object_id
    return None


def trigger_matches(trigger: Trigger, event: Event, obj: GameObject) -> bool:
    if trigger.event != event.type:
        return False
    subject = _subject_of(event)
    if trigger.self_only and subject is not None and subject != obj.object_id:
        return False
    if isinstance(event, EntityMoved):
        if trigger.from_zone is not None and event.from_zone.kind != trigger.from_zone:
            return False
        if trigger.to_zone is not None and event.to_zone.kind != trigger.to_zone:
            return False
    elif isinstance(event, StatusGained):
        if trigger.status is not None and event.status != trigger.status:
            return False
    elif isinstance(event, CounterGained):
        if trigger.counter_type is not None and event.counter_type != trigger.counter_type:
            return False
    elif isinstance(event, PhaseChanged):
        if trigger.phase is not None and event.phase != trigger.phase:
            return False
    return True


class ReactionManager:
    """Queues triggered reactions in limbo and runs the priority protocol.

    Draining is a small state machine:

    - ``evaluating_limbo``: look at the initiative player's reactions. One
      resolves on its own; several wait for that player's choice; none hands
      initiative to the next player and counts a pass.
    - ``awaiting_choice``: stopped until ``choose_reaction`` names one of the
      initiative player's candidates.
    - ``resolving``: effects of the chosen reaction are applied, then it
      leaves limbo and evaluation restarts with the same initiative player.
    - ``done``: limbo is empty, or every player was passed over in a row.
    """

    def __init__(
        self,
        gsm: GameStateManager,
        resolver: EffectResolver,
        bus: EventBus,
    ) -> None:
        self._gsm = gsm
        self._resolver = resolver
        self._phase: ReactionPhase = "done"
        self._initiative: str | None = None
        self._passes = 0
        for event_type in TRIGGER_EVENTS:
            bus.subscribe(event_type, self.check_for_triggers)

    @property
    def phase(self) -> ReactionPhase:
        return self._phase

    @property
    def awaiting_player_id(self) -> str | None:
        return self._initiative if self._phase == "awaiting_choice" else None

    def candidates(self, player_id: str) -> list[PendingReaction]:
        return [r for r in self._gsm.pending_reactions() if r.controller_id == player_id]

    def check_for_triggers(self, event: Event) -> None:
        gsm = self._gsm
        if not gsm.initialized:
            return
        subject = _subject_of(event)
        for player in gsm.players():
            for kind in REACTIVE_ZONES:
                for obj in gsm.objects_in(ZoneRef.of(player.id, kind)):
                    for ability in gsm.definition_of(obj).abilities_of("reaction"):
                        if ability.trigger is None or not trigger_matches(ability.trigger, event, obj):
                            continue
                        gsm.add_reaction(gsm.factory.create_reaction(ability, obj, subject))

    def drain(self) -> ReactionPhase:
        if self._phase == "awaiting_choice":
            return self._phase
        gsm = self._gsm
        self._initiative = gsm.current_player_id if gsm.phase == "afternoon" else gsm.first_player_id
        self._passes = 0
        return self._run()

    def choose_reaction(self, reaction_id: str) -> ReactionPhase:
        if self._phase != "awaiting_choice" or self._initiative is None:
            raise UnknownReactionChoice("No reaction choice is pending.")
        for reaction in self.candidates(self._initiative):
            if reaction.object_id == reaction_id:
                self._resolve(reaction)
                return self._run()
        raise UnknownReactionChoice(f"{reaction_id} is not a reaction {self._initiative} can resolve now.")

    def _run(self) -> ReactionPhase:
        gsm = self._gsm
        self._phase = "evaluating_limbo"
        player_count = len(gsm.player_ids)
        while self._phase == "evaluating_limbo":
            assert self._initiative is not None
            if not gsm.pending_reactions() or self._passes >= player_count:
                self._phase = "done"
                break
            candidates = self.candidates(self._initiative)
            if len(candidates) == 1:
                self._resolve(candidates[0])
            elif candidates:
                self._phase = "awaiting_choice"
            else:
                self._initiative = gsm.next_player_id(self._initiative)
                self._passes += 1
        return self._phase

    def _resolve(self, reaction: PendingReaction) -> None:
        self._phase = "resolving"
        self._resolver.resolve_effects(
            reaction.effects,
            reaction.controller_id,
            source_id=reaction.source_id,
            subject_id=reaction.subject_id,
        )
        self._gsm.remove_reaction(reaction.object_id)
        self._phase = "evaluating_limbo"
        self._passes = 0
