from __future__ import annotations

import random
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field, replace

from .errors import (
    EntityNotFound,
    EntityNotInZone,
    InsufficientCounters,
    InsufficientDeckSize,
    InsufficientMana,
    InvalidPhaseTransition,
    InvalidTarget,
)
from .events import (
    CounterGained,
    CountersRemoved,
    CountersSpent,
    DayAdvanced,
    DeckReshuffled,
    EntityCeasedToExist,
    EntityMoved,
    EventBus,
    ExpeditionMoved,
    ManaExpanded,
    ManaSpent,
    MatchWon,
    PhaseChanged,
    ReactionResolved,
    ReactionTriggered,
    StatisticsChanged,
    StatusGained,
    StatusLost,
    TiebreakerStarted,
    TurnAdvanced,
)
from .objects import DefinitionRef, GameObject, ObjectFactory, PendingReaction, ZoneEntity
from .objects import entity_id as id_of
from .types import (
    ADVENTURE_REGIONS,
    BOOST,
    EXPEDITION_SIDES,
    MANA_ORB_DEFINITION,
    CardDefinition,
    CounterType,
    ExpeditionSide,
    Phase,
    Statistics,
    Status,
    ZoneKind,
)
from .zones import OWNER_ZONES, PLAY_ZONES, PLAYER_ZONES, SHARED_ZONES, Zone, ZoneRef


@dataclass(frozen=True)
class Expedition:
    """Progress of one of a player's two expeditions along the Adventure."""

    position: int = 0
    can_move: bool = True
    has_moved: bool = False


class Player:
    def __init__(self, player_id: str) -> None:
        self.id = player_id
        self._zones: dict[ZoneKind, Zone] = {
            kind: Zone(ZoneRef.of(player_id, kind)) for kind in PLAYER_ZONES
        }
        self._expeditions: dict[ExpeditionSide, Expedition] = {side: Expedition() for side in EXPEDITION_SIDES}
        self._has_passed = False
        self._can_expand = False

    @property
    def has_passed(self) -> bool:
        return self._has_passed

    @property
    def can_expand(self) -> bool:
        return self._can_expand

    def expedition(self, side: ExpeditionSide) -> Expedition:
        return self._expeditions[side]

    @property
    def distance(self) -> int:
        """Regions travelled by both expeditions together."""
        return sum(e.position for e in self._expeditions.values())

    def zone(self, kind: ZoneKind) -> Zone:
        return self._zones[kind]

    def zones(self) -> Iterator[Zone]:
        return iter(self._zones.values())

    def __repr__(self) -> str:
        return f"Player({self.id!r})"


@dataclass
class MatchState:
    players: dict[str, Player]
    shared_zones: dict[ZoneKind, Zone]
    first_player_id: str
    current_player_id: str
    phase: Phase = "setup"
    day_number: int = 1
    initialized: bool = False
    turn_order: list[str] = field(default_factory=list)
    winner_id: str | None = None
    # Players tied at the victory threshold, compared in the Arena each Night.
    tiebreaker_player_ids: tuple[str, ...] = ()


class GameStateManager:
    """Aggregate root of a match and its single writer.

    Entities live in an id -> entity arena; zones hold ids only. Every zone,
    status, counter and match-state mutation goes through this class and
    publishes its event on the bus.
    """

    def __init__(
        self,
        player_ids: Sequence[str],
        card_definitions: Iterable[CardDefinition],
        event_bus: EventBus,
        *,
        rng: random.Random | None = None,
        regions: Sequence[CardDefinition] = ADVENTURE_REGIONS,
    ) -> None:
        ids = list(player_ids)
        if not ids:
            raise ValueError("A match needs at least one player.")
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate player ids: {ids}")

        self.event_bus = event_bus
        self.factory = ObjectFactory()
        self._rng = rng or random.Random()
        self._definitions: dict[str, CardDefinition] = {MANA_ORB_DEFINITION.id: MANA_ORB_DEFINITION}
        self._regions = tuple(regions)
        for region in self._regions:
            self._definitions[region.id] = region
        for definition in card_definitions:
            self._definitions[definition.id] = definition

        self._entities: dict[str, ZoneEntity] = {}
        self._locations: dict[str, ZoneRef] = {}
        self._state = MatchState(
            players={pid: Player(pid) for pid in ids},
            shared_zones={kind: Zone(ZoneRef.shared(kind)) for kind in SHARED_ZONES},
            first_player_id=ids[0],
            current_player_id=ids[0],
            turn_order=ids,
        )

    # ------------------------------------------------------------------
    # Read side

    @property
    def state(self) -> MatchState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def day_number(self) -> int:
        return self._state.day_number

    @property
    def current_player_id(self) -> str:
        return self._state.current_player_id

    @property
    def first_player_id(self) -> str:
        return self._state.first_player_id

    @property
    def initialized(self) -> bool:
        return self._state.initialized

    @property
    def winner_id(self) -> str | None:
        return self._state.winner_id

    @property
    def tiebreaker_player_ids(self) -> tuple[str, ...]:
        return self._state.tiebreaker_player_ids

    @property
    def player_ids(self) -> tuple[str, ...]:
        return tuple(self._state.turn_order)

    def get_player(self, player_id: str) -> Player | None:
        return self._state.players.get(player_id)

    def players(self) -> list[Player]:
        return [self._state.players[pid] for pid in self._state.turn_order]

    def next_player_id(self, player_id: str) -> str:
        order = self._state.turn_order
        return order[(order.index(player_id) + 1) % len(order)]

    def initiative_order(self, start_player_id: str) -> list[str]:
        order = self._state.turn_order
        i = order.index(start_player_id)
        return order[i:] + order[:i]

    def get_card_definition(self, definition_id: str) -> CardDefinition | None:
        return self._definitions.get(definition_id)

    def definition_of(self, entity: ZoneEntity) -> CardDefinition:
        definition = self._definitions.get(entity.definition_id)
        if definition is None:
            raise KeyError(f"Card definition not found: {entity.definition_id}")
        return definition

    def get_entity(self, entity_id: str) -> ZoneEntity | None:
        return self._entities.get(entity_id)

    def get_object(self, object_id: str) -> GameObject | None:
        entity = self._entities.get(object_id)
        if isinstance(entity, GameObject):
            return entity
        return None

    def find_zone_of(self, entity_id: str) -> ZoneRef | None:
        return self._locations.get(entity_id)

    def zone(self, ref: ZoneRef) -> Zone:
        if ref.owner is None:
            shared = self._state.shared_zones.get(ref.kind)
            if shared is None:
                raise InvalidTarget(f"{ref.kind} is not a shared zone.")
            return shared
        player = self._state.players.get(ref.owner)
        if player is None or ref.kind not in PLAYER_ZONES:
            raise InvalidTarget(f"Unknown zone {ref}.")
        return player.zone(ref.kind)

    def all_zones(self) -> Iterator[Zone]:
        for player in self.players():
            yield from player.zones()
        yield from self._state.shared_zones.values()

    def entities_in(self, ref: ZoneRef) -> list[ZoneEntity]:
        return [self._entities[i] for i in self.zone(ref)]

    def objects_in(self, ref: ZoneRef) -> list[GameObject]:
        return [e for e in self.entities_in(ref) if isinstance(e, GameObject)]

    def current_statistics(self, object_id: str) -> Statistics:
        obj = self._require_object(object_id)
        base = self.definition_of(obj).statistics or Statistics()
        return base + obj.statistic_modifier

    def regions(self) -> list[CardDefinition]:
        """Regions of the Adventure, hero region first."""
        out = []
        for entity in self.entities_in(ZoneRef.shared("adventure")):
            definition = self.definition_of(entity)
            if definition.type == "region":
                out.append(definition)
        return out

    def ready_mana_count(self, player_id: str) -> int:
        return len(self._ready_orbs(player_id))

    def pending_reactions(self) -> list[PendingReaction]:
        limbo = self._state.shared_zones["limbo"]
        return [e for e in (self._entities[i] for i in limbo) if isinstance(e, PendingReaction)]

    # ------------------------------------------------------------------
    # Setup

    def initialize_board(
        self,
        decks_by_player: Mapping[str, Sequence[CardDefinition]],
        starting_hand_size: int,
        starting_mana_orbs: int,
    ) -> None:
        if self._state.initialized:
            raise InvalidPhaseTransition("The board is already initialized.")

        # Validate every deck before touching any zone.
        prepared: dict[str, tuple[CardDefinition | None, list[CardDefinition]]] = {}
        for pid in self._state.turn_order:
            if pid not in decks_by_player:
                raise ValueError(f"No deck supplied for player {pid}.")
            hero: CardDefinition | None = None
            cards: list[CardDefinition] = []
            for definition in decks_by_player[pid]:
                if definition.id not in self._definitions:
                    raise ValueError(f"Card definition not in catalog: {definition.id}")
                if definition.is_hero and hero is None:
                    hero = definition
                else:
                    cards.append(definition)
            if len(cards) < starting_hand_size:
                raise InsufficientDeckSize(
                    f"Player {pid} has {len(cards)} cards in deck, needs {starting_hand_size}."
                )
            prepared[pid] = (hero, cards)

        for pid, (hero, cards) in prepared.items():
            deck = ZoneRef.of(pid, "deck")
            for definition in cards:
                self._place(self.factory.create_reference(definition.id, pid), deck)
            self.zone(deck)._shuffle(self._rng)
            if hero is not None:
                placed = self.factory.create_object_from_definition(hero, pid)
                self._place(placed, ZoneRef.of(pid, "hero"))
                for counter_type, amount in hero.starting_counters:
                    if amount > 0:
                        self.add_counters(placed.object_id, counter_type, amount)
            for _ in range(starting_mana_orbs):
                orb = self.factory.create_object_from_definition(MANA_ORB_DEFINITION, pid)
                self._place(orb, ZoneRef.of(pid, "mana"))

        # Regions belong to no player.
        for region in self._regions:
            self._place(self.factory.create_reference(region.id, ""), ZoneRef.shared("adventure"))

        first = self._state.turn_order[0]
        self._state.phase = "setup"
        self._state.day_number = 1
        self._state.first_player_id = first
        self._state.current_player_id = first
        self._state.initialized = True

        for pid in self._state.turn_order:
            self.draw_cards(pid, starting_hand_size)

    # ------------------------------------------------------------------
    # Zone moves

    def move_entity(
        self,
        entity_id: str,
        from_ref: ZoneRef,
        to_ref: ZoneRef,
        *,
        side: ExpeditionSide | None = None,
    ) -> ZoneEntity | None:
        """Move an entity between zones and return what arrived.

        A bare reference entering a tracked zone becomes a fresh GameObject; a
        GameObject entering an untracked zone (deck, discard) becomes a fresh
        reference and the object ceases to exist. Object-to-object moves keep
        the instance. Tokens leaving play cease to exist and return None.
        Objects entering an expedition zone join ``side`` (the hero
        expedition unless told otherwise).
        """
        source = self.zone(from_ref)
        if entity_id not in source:
            raise EntityNotInZone(f"{entity_id} is not in {from_ref}.")
        entity = self._entities[entity_id]
        if isinstance(entity, PendingReaction):
            raise InvalidTarget("Pending reactions cannot be moved.")
        definition = self.definition_of(entity)

        if to_ref.kind in OWNER_ZONES and to_ref.owner is not None and to_ref.owner != entity.owner_id:
            to_ref = ZoneRef.of(entity.owner_id, to_ref.kind)
        destination = self.zone(to_ref)

        if definition.type == "token" and from_ref.kind in PLAY_ZONES and to_ref.kind not in PLAY_ZONES:
            self._unplace(entity_id)
            self.event_bus.publish(EntityCeasedToExist(type="entityCeasedToExist", entity_id=entity_id))
            return None

        ceased: str | None = None
        arrived: ZoneEntity
        if isinstance(entity, DefinitionRef):
            if destination.tracks_objects:
                arrived = self.factory.create_object_from_definition(definition, entity.owner_id)
            else:
                arrived = entity
        elif isinstance(entity, GameObject):
            if destination.tracks_objects:
                arrived = entity
                if from_ref.kind in PLAY_ZONES and to_ref.kind not in PLAY_ZONES:
                    # Seasoned characters keep their Boost on the way to Reserve.
                    kept = 0
                    if definition.has_keyword("seasoned") and to_ref.kind == "reserve":
                        kept = entity.counter(BOOST)
                    entity._counters.clear()
                    if kept:
                        entity._counters[BOOST] = kept
                    else:
                        entity._statuses.discard("boosted")
                if to_ref.kind in ("hand", "mana"):
                    entity._statuses.clear()
                    entity._counters.clear()
                    entity._modifier = Statistics()
                entity.timestamp = self.factory.next_timestamp()
            else:
                arrived = self.factory.create_reference(entity.definition_id, entity.owner_id)
                ceased = entity.object_id
        else:
            raise TypeError(f"Not a zone entity: {entity!r}")

        if isinstance(arrived, GameObject):
            arrived._expedition = (side or "hero") if to_ref.kind == "expedition" else None
        self._unplace(entity_id)
        self._place(arrived, to_ref)
        self.event_bus.publish(
            EntityMoved(
                type="entityMoved",
                entity_id=entity_id,
                new_entity_id=id_of(arrived),
                from_zone=from_ref,
                to_zone=to_ref,
            )
        )
        if ceased is not None:
            self.event_bus.publish(EntityCeasedToExist(type="entityCeasedToExist", entity_id=ceased))
        return arrived

    def draw_cards(self, player_id: str, count: int) -> list[GameObject]:
        drawn: list[GameObject] = []
        for _ in range(max(0, count)):
            top = self._top_of_deck(player_id)
            if top is None:
                break
            arrived = self.move_entity(top, ZoneRef.of(player_id, "deck"), ZoneRef.of(player_id, "hand"))
            if isinstance(arrived, GameObject):
                drawn.append(arrived)
        return drawn

    def resupply(self, player_id: str) -> GameObject | None:
        top = self._top_of_deck(player_id)
        if top is None:
            return None
        arrived = self.move_entity(top, ZoneRef.of(player_id, "deck"), ZoneRef.of(player_id, "reserve"))
        return arrived if isinstance(arrived, GameObject) else None

    def expand(self, player_id: str, instance_id: str) -> GameObject:
        arrived = self.move_entity(instance_id, ZoneRef.of(player_id, "hand"), ZoneRef.of(player_id, "mana"))
        if not isinstance(arrived, GameObject):
            raise TypeError("Mana zone must hold objects.")
        self.event_bus.publish(ManaExpanded(type="manaExpanded", player_id=player_id, object_id=arrived.object_id))
        return arrived

    def _top_of_deck(self, player_id: str) -> str | None:
        deck = self.zone(ZoneRef.of(player_id, "deck"))
        if len(deck) == 0:
            self._reshuffle_discard(player_id)
        return deck.top()

    def _reshuffle_discard(self, player_id: str) -> None:
        discard = self.zone(ZoneRef.of(player_id, "discard"))
        if len(discard) == 0:
            return
        deck_ref = ZoneRef.of(player_id, "deck")
        moved = 0
        for eid in discard:
            entity = self._entities[eid]
            self._unplace(eid)
            self._place(entity, deck_ref)
            moved += 1
        self.zone(deck_ref)._shuffle(self._rng)
        self.event_bus.publish(DeckReshuffled(type="deckReshuffled", player_id=player_id, count=moved))

    # ------------------------------------------------------------------
    # Statuses, counters, statistics

    def add_status(self, object_id: str, status: Status) -> None:
        obj = self._require_object(object_id)
        if status in obj._statuses:
            return
        obj._statuses.add(status)
        self.event_bus.publish(StatusGained(type="statusGained", object_id=object_id, status=status))

    def remove_status(self, object_id: str, status: Status) -> None:
        obj = self._require_object(object_id)
        if status not in obj._statuses:
            return
        obj._statuses.discard(status)
        self.event_bus.publish(StatusLost(type="statusLost", object_id=object_id, status=status))

    def add_counters(self, object_id: str, counter_type: CounterType, amount: int) -> None:
        if amount <= 0:
            raise ValueError(f"Counter amount must be positive, got {amount}.")
        obj = self._require_object(object_id)
        obj._counters[counter_type] = obj._counters.get(counter_type, 0) + amount
        self.event_bus.publish(
            CounterGained(type="counterGained", object_id=object_id, counter_type=counter_type, amount=amount)
        )
        if counter_type == BOOST:
            self.add_status(object_id, "boosted")

    def remove_counters(self, object_id: str, counter_type: CounterType, amount: int) -> None:
        self._take_counters(object_id, counter_type, amount)
        self.event_bus.publish(
            CountersRemoved(type="countersRemoved", object_id=object_id, counter_type=counter_type, amount=amount)
        )
        self._sync_boosted(object_id, counter_type)

    def spend_counters(self, source_id: str, counter_type: CounterType, amount: int) -> None:
        self._take_counters(source_id, counter_type, amount)
        self.event_bus.publish(
            CountersSpent(type="countersSpent", source_id=source_id, counter_type=counter_type, amount=amount)
        )
        self._sync_boosted(source_id, counter_type)

    def _take_counters(self, object_id: str, counter_type: CounterType, amount: int) -> None:
        if amount <= 0:
            raise ValueError(f"Counter amount must be positive, got {amount}.")
        obj = self._require_object(object_id)
        held = obj._counters.get(counter_type, 0)
        if held < amount:
            raise InsufficientCounters(f"{object_id} has {held} {counter_type} counters, needs {amount}.")
        if held == amount:
            del obj._counters[counter_type]
        else:
            obj._counters[counter_type] = held - amount

    def _sync_boosted(self, object_id: str, counter_type: CounterType) -> None:
        if counter_type == BOOST and self._require_object(object_id).counter(BOOST) == 0:
            self.remove_status(object_id, "boosted")

    def modify_statistics(self, object_id: str, delta: Statistics) -> None:
        obj = self._require_object(object_id)
        obj._modifier = obj._modifier + delta
        current = self.current_statistics(object_id)
        self.event_bus.publish(
            StatisticsChanged(
                type="statisticsChanged",
                object_id=object_id,
                forest=current.forest,
                mountain=current.mountain,
                water=current.water,
            )
        )

    def exhaust_mana(self, player_id: str, amount: int) -> list[str]:
        """Exhaust the first ``amount`` ready orbs in mana-zone order."""
        ready = self._ready_orbs(player_id)
        if len(ready) < amount:
            raise InsufficientMana(f"{player_id} has {len(ready)} ready mana, needs {amount}.")
        chosen = [orb.object_id for orb in ready[:amount]]
        for orb_id in chosen:
            self.add_status(orb_id, "exhausted")
        self.event_bus.publish(ManaSpent(type="manaSpent", player_id=player_id, amount=amount))
        return chosen

    def _ready_orbs(self, player_id: str) -> list[GameObject]:
        if player_id not in self._state.players:
            return []
        return [o for o in self.objects_in(ZoneRef.of(player_id, "mana")) if not o.has("exhausted")]

    # ------------------------------------------------------------------
    # Daily effects

    def ready_all(self) -> None:
        for zone in list(self.all_zones()):
            for eid in zone:
                entity = self._entities[eid]
                if isinstance(entity, GameObject) and entity.has("exhausted"):
                    self.remove_status(eid, "exhausted")

    def rest(self) -> None:
        """Characters of expeditions that moved forward go to Reserve.

        Fleeting ones go to discard instead. A Gigantic character goes if
        either of its controller's expeditions moved. Anchored, asleep and
        Eternal characters stay; every expedition character loses Anchored
        and Asleep.
        """
        for player in self.players():
            moved = {side for side in EXPEDITION_SIDES if player.expedition(side).has_moved}
            expedition = ZoneRef.of(player.id, "expedition")
            for obj in self.objects_in(expedition):
                definition = self.definition_of(obj)
                if definition.type not in ("character", "token"):
                    continue
                held = obj.has("anchored") or obj.has("asleep")
                self.remove_status(obj.object_id, "anchored")
                self.remove_status(obj.object_id, "asleep")
                if definition.has_keyword("gigantic"):
                    affected = bool(moved)
                else:
                    affected = obj.expedition in moved
                if held or not affected or definition.has_keyword("eternal"):
                    continue
                kind: ZoneKind = "discard" if obj.has("fleeting") else "reserve"
                self.move_entity(obj.object_id, expedition, ZoneRef.of(obj.owner_id, kind))

    def clean_up(self, default_reserve_limit: int, default_landmark_limit: int) -> None:
        """Discard the oldest Reserve / Landmark objects above the hero's limits."""
        for pid in self.initiative_order(self._state.first_player_id):
            heroes = [
                o for o in self.objects_in(ZoneRef.of(pid, "hero")) if self.definition_of(o).is_hero
            ]
            hero_def = self.definition_of(heroes[0]) if heroes else None
            reserve_limit = default_reserve_limit
            landmark_limit = default_landmark_limit
            if hero_def is not None and hero_def.reserve_limit is not None:
                reserve_limit = hero_def.reserve_limit
            if hero_def is not None and hero_def.landmark_limit is not None:
                landmark_limit = hero_def.landmark_limit
            limits: tuple[tuple[ZoneKind, int], ...] = (
                ("reserve", reserve_limit),
                ("landmark", landmark_limit),
            )
            for kind, limit in limits:
                ref = ZoneRef.of(pid, kind)
                objs = sorted(self.objects_in(ref), key=lambda o: o.timestamp)
                for obj in objs[: max(0, len(objs) - limit)]:
                    self.move_entity(obj.object_id, ref, ZoneRef.of(pid, "discard"))

    # ------------------------------------------------------------------
    # Adventure

    def reset_expedition(self, player_id: str, side: ExpeditionSide, *, can_move: bool) -> None:
        """Start a new Progress: the expedition has not moved yet today."""
        player = self._require_player(player_id)
        player._expeditions[side] = replace(player._expeditions[side], can_move=can_move, has_moved=False)

    def move_expedition(self, player_id: str, side: ExpeditionSide) -> None:
        player = self._require_player(player_id)
        current = player._expeditions[side]
        if not current.can_move:
            raise InvalidTarget(f"The {side} expedition of {player_id} cannot move.")
        player._expeditions[side] = replace(current, position=current.position + 1, has_moved=True)
        self.event_bus.publish(
            ExpeditionMoved(type="expeditionMoved", player_id=player_id, side=side, position=current.position + 1)
        )

    def start_tiebreaker(self, player_ids: Sequence[str]) -> None:
        tied = tuple(player_ids)
        for pid in tied:
            self._require_player(pid)
        self._state.tiebreaker_player_ids = tied
        self.event_bus.publish(TiebreakerStarted(type="tiebreakerStarted", player_ids=tied))

    def declare_winner(self, player_id: str) -> None:
        self._require_player(player_id)
        if self._state.winner_id is not None:
            raise InvalidPhaseTransition(f"The match was already won by {self._state.winner_id}.")
        self._state.winner_id = player_id
        self.event_bus.publish(MatchWon(type="matchWon", player_id=player_id))

    # ------------------------------------------------------------------
    # Match state

    def set_phase(self, phase: Phase) -> None:
        self._state.phase = phase
        self.event_bus.publish(PhaseChanged(type="phaseChanged", phase=phase))

    def advance_day(self) -> None:
        self._state.day_number += 1
        self.event_bus.publish(DayAdvanced(type="dayAdvanced", day_number=self._state.day_number))

    def set_current_player(self, player_id: str) -> None:
        self._require_player(player_id)
        self._state.current_player_id = player_id
        self.event_bus.publish(TurnAdvanced(type="turnAdvanced", current_player_id=player_id))

    def set_first_player(self, player_id: str) -> None:
        self._require_player(player_id)
        self._state.first_player_id = player_id

    def set_passed(self, player_id: str, passed: bool) -> None:
        self._require_player(player_id)._has_passed = passed

    def reset_passed(self) -> None:
        for player in self.players():
            player._has_passed = False

    def set_can_expand(self, player_id: str, allowed: bool) -> None:
        self._require_player(player_id)._can_expand = allowed

    # ------------------------------------------------------------------
    # Limbo

    def add_reaction(self, reaction: PendingReaction) -> None:
        self._place(reaction, ZoneRef.shared("limbo"))
        self.event_bus.publish(
            ReactionTriggered(
                type="reactionTriggered",
                reaction_id=reaction.object_id,
                controller_id=reaction.controller_id,
                ability_id=reaction.ability_id,
            )
        )

    def remove_reaction(self, reaction_id: str) -> None:
        entity = self._entities.get(reaction_id)
        if not isinstance(entity, PendingReaction):
            raise EntityNotFound(f"No pending reaction {reaction_id}.")
        self._unplace(reaction_id)
        self.event_bus.publish(
            ReactionResolved(type="reactionResolved", reaction_id=reaction_id, controller_id=entity.controller_id)
        )

    # ------------------------------------------------------------------
    # Arena bookkeeping

    def _place(self, entity: ZoneEntity, ref: ZoneRef) -> None:
        eid = id_of(entity)
        if eid in self._locations:
            raise RuntimeError(f"{eid} is already in {self._locations[eid]}")
        self._entities[eid] = entity
        self._locations[eid] = ref
        self.zone(ref)._insert(eid)

    def _unplace(self, eid: str) -> None:
        ref = self._locations.pop(eid)
        self.zone(ref)._remove(eid)
        del self._entities[eid]

    def _require_object(self, object_id: str) -> GameObject:
        obj = self.get_object(object_id)
        if obj is None:
            raise EntityNotFound(f"No game object {object_id}.")
        return obj

    def _require_player(self, player_id: str) -> Player:
        player = self._state.players.get(player_id)
        if player is None:
            raise ValueError(f"Unknown player {player_id}.")
        return player
