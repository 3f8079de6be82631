"""Typed in-process event bus.

Observers (UI, telemetry, the reaction trigger scan) subscribe per event
type. Delivery is synchronous and in subscription order; a handler that
raises propagates to whoever published. The bus holds no game state.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal, get_args

from .types import CounterType, ExpeditionSide, Phase, Status
from .zones import ZoneRef

EventType = Literal[
    "phaseChanged",
    "dayAdvanced",
    "turnAdvanced",
    "entityMoved",
    "entityCeasedToExist",
    "manaSpent",
    "statusGained",
    "statusLost",
    "counterGained",
    "countersSpent",
    "countersRemoved",
    "statisticsChanged",
    "reactionTriggered",
    "reactionResolved",
    "manaExpanded",
    "deckReshuffled",
    "expeditionMoved",
    "tiebreakerStarted",
    "matchWon",
]

EVENT_TYPES: tuple[EventType, ...] = get_args(EventType)


@dataclass(frozen=True)
class PhaseChanged:
    type: Literal["phaseChanged"]
    phase: Phase


@dataclass(frozen=True)
class DayAdvanced:
    type: Literal["dayAdvanced"]
    day_number: int


@dataclass(frozen=True)
class TurnAdvanced:
    type: Literal["turnAdvanced"]
    current_player_id: str


@dataclass(frozen=True)
class EntityMoved:
    type: Literal["entityMoved"]
    entity_id: str
    # Id at the destination; differs from entity_id when the move upgraded a
    # bare reference into an object or degraded an object into a reference.
    new_entity_id: str
    from_zone: ZoneRef
    to_zone: ZoneRef


@dataclass(frozen=True)
class EntityCeasedToExist:
    type: Literal["entityCeasedToExist"]
    entity_id: str


@dataclass(frozen=True)
class ManaSpent:
    type: Literal["manaSpent"]
    player_id: str
    amount: int


@dataclass(frozen=True)
class StatusGained:
    type: Literal["statusGained"]
    object_id: str
    status: Status


@dataclass(frozen=True)
class StatusLost:
    type: Literal["statusLost"]
    object_id: str
    status: Status


@dataclass(frozen=True)
class CounterGained:
    type: Literal["counterGained"]
    object_id: str
    counter_type: CounterType
    amount: int


@dataclass(frozen=True)
class CountersSpent:
    type: Literal["countersSpent"]
    source_id: str
    counter_type: CounterType
    amount: int


@dataclass(frozen=True)
class CountersRemoved:
    type: Literal["countersRemoved"]
    object_id: str
    counter_type: CounterType
    amount: int


@dataclass(frozen=True)
class StatisticsChanged:
    type: Literal["statisticsChanged"]
    object_id: str
    forest: int
    mountain: int
    water: int


@dataclass(frozen=True)
class ReactionTriggered:
    type: Literal["reactionTriggered"]
    reaction_id: str
    controller_id: str
    ability_id: str


@dataclass(frozen=True)
class ReactionResolved:
    type: Literal["reactionResolved"]
    reaction_id: str
    controller_id: str


@dataclass(frozen=True)
class ManaExpanded:
    type: Literal["manaExpanded"]
    player_id: str
    object_id: str


@dataclass(frozen=True)
class DeckReshuffled:
    type: Literal["deckReshuffled"]
    player_id: str
    count: int


@dataclass(frozen=True)
class ExpeditionMoved:
    type: Literal["expeditionMoved"]
    player_id: str
    side: ExpeditionSide
    position: int


@dataclass(frozen=True)
class TiebreakerStarted:
    type: Literal["tiebreakerStarted"]
    player_ids: tuple[str, ...]


@dataclass(frozen=True)
class MatchWon:
    type: Literal["matchWon"]
    player_id: str


Event = (
    PhaseChanged
    | DayAdvanced
    | TurnAdvanced
    | EntityMoved
    | EntityCeasedToExist
    | ManaSpent
    | StatusGained
    | StatusLost
    | CounterGained
    | CountersSpent
    | CountersRemoved
    | StatisticsChanged
    | ReactionTriggered
    | ReactionResolved
    | ManaExpanded
    | DeckReshuffled
    | ExpeditionMoved
    | TiebreakerStarted
    | MatchWon
)

Handler = Callable[[Event], None]


class EventBus:
    def __init__(self) -> None:
        self._subscribers: dict[str, list[Handler]] = {}

    def subscribe(self, event_type: EventType, handler: Handler) -> None:
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {event_type}")
        self._subscribers.setdefault(event_type, []).append(handler)

    def subscribe_all(self, handler: Handler) -> None:
        for event_type in EVENT_TYPES:
            self.subscribe(event_type, handler)

    def unsubscribe(self, event_type: EventType, handler: Handler) -> None:
        handlers = self._subscribers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: Event) -> None:
        # Copy so a handler subscribing during delivery only sees later events.
        for handler in list(self._subscribers.get(event.type, ())):
            handler(event)
