from __future__ import annotations

from dataclasses import dataclass, field

from .costs import CostProcessor
from .effects import EffectResolver
from .errors import (
    CardNotInHand,
    CardNotInReserve,
    EngineError,
    EntityNotFound,
    ErrorCategory,
    ExpandNotAllowed,
    InvalidPhaseTransition,
    InvalidTarget,
    NotPlayersTurn,
    ReactionsPending,
    UnknownReactionChoice,
)
from .events import Event, EventBus
from .objects import GameObject
from .phases import PhaseManager
from .reactions import ReactionManager
from .state import GameStateManager
from .turns import TurnManager
from .types import EXPEDITION_SIDES, CardDefinition, Cost, ExpeditionSide, ZoneKind
from .zones import ZoneRef


@dataclass(frozen=True)
class PlayCardAction:
    player_id: str
    instance_id: str
    target_zone: ZoneKind | None = None
    expedition: ExpeditionSide = "hero"


@dataclass(frozen=True)
class PlayFromReserveAction:
    player_id: str
    instance_id: str
    target_zone: ZoneKind | None = None
    expedition: ExpeditionSide = "hero"


@dataclass(frozen=True)
class ActivateAbilityAction:
    player_id: str
    object_id: str
    ability_id: str


@dataclass(frozen=True)
class ExpandAction:
    player_id: str
    instance_id: str


@dataclass(frozen=True)
class PassAction:
    player_id: str


@dataclass(frozen=True)
class ChooseReactionAction:
    player_id: str
    reaction_id: str


@dataclass(frozen=True)
class AdvancePhaseAction:
    pass


Action = (
    PlayCardAction
    | PlayFromReserveAction
    | ActivateAbilityAction
    | ExpandAction
    | PassAction
    | ChooseReactionAction
    | AdvancePhaseAction
)

# Zones a quick action can be used from.
ACTIVE_ZONES: tuple[ZoneKind, ...] = ("expedition", "landmark", "hero")


@dataclass
class StepResult:
    ok: bool
    events: list[Event] = field(default_factory=list)
    error: str | None = None
    category: ErrorCategory | None = None
    kind: str | None = None


class ActionHandler:
    """Single entry point for player intents.

    The ``try_*`` methods validate everything before the first mutation and
    raise an ``EngineError`` subclass on failure; ``step`` wraps them for
    action records and turns failures into a ``StepResult``.
    """

    def __init__(
        self,
        gsm: GameStateManager,
        costs: CostProcessor,
        effects: EffectResolver,
        reactions: ReactionManager,
        turns: TurnManager,
        phases: PhaseManager,
        bus: EventBus,
    ) -> None:
        self._gsm = gsm
        self._costs = costs
        self._effects = effects
        self._reactions = reactions
        self._turns = turns
        self._phases = phases
        # Turn hand-off waiting on a reaction choice.
        self._turn_pending = False
        self._recording: list[Event] | None = None
        bus.subscribe_all(self._record)

    def _record(self, event: Event) -> None:
        if self._recording is not None:
            self._recording.append(event)

    # ------------------------------------------------------------------
    # Playing cards

    def try_play_card_from_hand(
        self,
        player_id: str,
        instance_id: str,
        target_zone: ZoneKind | None = None,
        expedition: ExpeditionSide = "hero",
    ) -> None:
        self._check_turn(player_id)
        hand = ZoneRef.of(player_id, "hand")
        if instance_id not in self._gsm.zone(hand):
            raise CardNotInHand(f"{instance_id} is not in {player_id}'s hand.")
        obj = self._gsm.get_object(instance_id)
        if obj is None:
            raise CardNotInHand(f"{instance_id} is not in {player_id}'s hand.")
        definition = self._gsm.definition_of(obj)
        self._play(player_id, instance_id, hand, definition, definition.hand_cost, target_zone, expedition)

    def try_play_card_from_reserve(
        self,
        player_id: str,
        instance_id: str,
        target_zone: ZoneKind | None = None,
        expedition: ExpeditionSide = "hero",
    ) -> None:
        self._check_turn(player_id)
        reserve = ZoneRef.of(player_id, "reserve")
        if instance_id not in self._gsm.zone(reserve):
            raise CardNotInReserve(f"{instance_id} is not in {player_id}'s reserve.")
        obj = self._gsm.get_object(instance_id)
        if obj is None:
            raise CardNotInReserve(f"{instance_id} is not in {player_id}'s reserve.")
        if obj.has("exhausted"):
            raise InvalidTarget(f"{instance_id} is exhausted and cannot be played.")
        definition = self._gsm.definition_of(obj)
        self._play(player_id, instance_id, reserve, definition, definition.reserve_cost, target_zone, expedition)

    def _play(
        self,
        player_id: str,
        instance_id: str,
        origin: ZoneRef,
        definition: CardDefinition,
        mana: int,
        target_zone: ZoneKind | None,
        expedition: ExpeditionSide,
    ) -> None:
        gsm = self._gsm
        destination = self._destination_for(definition, target_zone)
        if expedition not in EXPEDITION_SIDES:
            raise InvalidTarget(f"There is no {expedition} expedition.")
        # Raises before anything is exhausted when the cost cannot be met.
        self._costs.pay(player_id, Cost(mana=mana))
        on_play = [e for a in definition.abilities_of("on_play") for e in a.effects]
        if definition.type == "spell":
            self._effects.resolve_effects(on_play, player_id, source_id=instance_id)
            here = gsm.find_zone_of(instance_id)
            if here is not None:
                gsm.move_entity(instance_id, here, ZoneRef.of(player_id, "discard"))
        else:
            assert destination is not None
            arrived = gsm.move_entity(instance_id, origin, ZoneRef.of(player_id, destination), side=expedition)
            source_id = arrived.object_id if isinstance(arrived, GameObject) else None
            if source_id is not None and origin.kind == "reserve" and destination == "expedition":
                gsm.add_status(source_id, "fleeting")
            self._effects.resolve_effects(on_play, player_id, source_id=source_id)
        self._finish_turn_action()

    def _destination_for(self, definition: CardDefinition, target_zone: ZoneKind | None) -> ZoneKind | None:
        if definition.type == "spell":
            expected: ZoneKind | None = None
        elif definition.type == "character":
            expected = "expedition"
        elif definition.type == "permanent":
            expected = definition.permanent_kind or "expedition"
        else:
            raise InvalidTarget(f"{definition.name} cannot be played.")
        if target_zone is not None and target_zone != expected:
            raise InvalidTarget(f"{definition.name} cannot be played to {target_zone}.")
        return expected

    # ------------------------------------------------------------------
    # Other intents

    def try_activate_ability(self, player_id: str, object_id: str, ability_id: str) -> None:
        self._check_turn(player_id)
        gsm = self._gsm
        obj = gsm.get_object(object_id)
        if obj is None:
            raise EntityNotFound(f"No game object {object_id}.")
        where = gsm.find_zone_of(object_id)
        if obj.controller_id != player_id or where is None or where.kind not in ACTIVE_ZONES:
            raise InvalidTarget(f"{player_id} cannot use abilities of {object_id}.")
        ability = gsm.definition_of(obj).ability(ability_id)
        if ability is None or ability.kind != "quick_action":
            raise InvalidTarget(f"{ability_id} is not a quick action of {object_id}.")

        cost = ability.cost or Cost()
        self._costs.pay(player_id, cost, object_id)
        self._effects.resolve_effects(ability.effects, player_id, source_id=object_id)
        self._reactions.drain()

    def try_expand(self, player_id: str, instance_id: str) -> None:
        gsm = self._gsm
        self._check_reactions()
        player = gsm.get_player(player_id)
        if player is None:
            raise NotPlayersTurn(f"Unknown player {player_id}.")
        if gsm.phase != "morning":
            raise ExpandNotAllowed("Expand is only possible during the Morning.")
        if not player.can_expand:
            raise ExpandNotAllowed(f"{player_id} cannot expand again today.")
        if instance_id not in gsm.zone(ZoneRef.of(player_id, "hand")):
            raise CardNotInHand(f"{instance_id} is not in {player_id}'s hand.")
        gsm.expand(player_id, instance_id)
        gsm.set_can_expand(player_id, False)
        self._reactions.drain()

    def try_pass(self, player_id: str) -> None:
        self._check_reactions()
        self._turns.player_passes(player_id)

    def try_choose_reaction(self, player_id: str, reaction_id: str) -> None:
        if self._reactions.awaiting_player_id != player_id:
            raise UnknownReactionChoice(f"{player_id} has no reaction choice to make.")
        outcome = self._reactions.choose_reaction(reaction_id)
        if outcome == "done" and self._turn_pending:
            self._turn_pending = False
            self._turns.advance_turn()

    def try_advance_phase(self) -> None:
        self._check_reactions()
        if self._gsm.phase == "afternoon":
            raise InvalidPhaseTransition("The Afternoon ends once every player has passed.")
        self._phases.advance_phase()

    # ------------------------------------------------------------------

    def step(self, action: Action) -> StepResult:
        self._recording = []
        try:
            self._dispatch(action)
        except EngineError as exc:
            return StepResult(ok=False, events=[], error=exc.message, category=exc.category, kind=exc.kind)
        else:
            return StepResult(ok=True, events=self._recording)
        finally:
            self._recording = None

    def _dispatch(self, action: Action) -> None:
        if isinstance(action, PlayCardAction):
            self.try_play_card_from_hand(
                action.player_id, action.instance_id, action.target_zone, action.expedition
            )
        elif isinstance(action, PlayFromReserveAction):
            self.try_play_card_from_reserve(
                action.player_id, action.instance_id, action.target_zone, action.expedition
            )
        elif isinstance(action, ActivateAbilityAction):
            self.try_activate_ability(action.player_id, action.object_id, action.ability_id)
        elif isinstance(action, ExpandAction):
            self.try_expand(action.player_id, action.instance_id)
        elif isinstance(action, PassAction):
            self.try_pass(action.player_id)
        elif isinstance(action, ChooseReactionAction):
            self.try_choose_reaction(action.player_id, action.reaction_id)
        elif isinstance(action, AdvancePhaseAction):
            self.try_advance_phase()
        else:
            raise TypeError(f"Unknown action: {action!r}")

    def _check_reactions(self) -> None:
        if self._reactions.phase == "awaiting_choice":
            raise ReactionsPending(f"{self._reactions.awaiting_player_id} must choose a reaction first.")

    def _check_turn(self, player_id: str) -> None:
        self._check_reactions()
        gsm = self._gsm
        if gsm.phase != "afternoon":
            raise NotPlayersTurn("Cards are played during the Afternoon.")
        if gsm.get_player(player_id) is None or gsm.current_player_id != player_id:
            raise NotPlayersTurn(f"It is {gsm.current_player_id}'s turn.")

    def _finish_turn_action(self) -> None:
        if self._reactions.drain() == "awaiting_choice":
            self._turn_pending = True
        else:
            self._turns.advance_turn()
