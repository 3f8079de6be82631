from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

CardType = Literal["character", "hero", "spell", "permanent", "mana_orb", "token", "region"]
PermanentKind = Literal["expedition", "landmark"]
Faction = Literal["axiom", "bravos", "lyra", "muna", "ordis", "yzmir", "neutral"]
Rarity = Literal["common", "rare", "unique", "token"]

Phase = Literal["setup", "morning", "noon", "afternoon", "dusk", "night"]

ZoneKind = Literal[
    "deck",
    "hand",
    "discard",
    "mana",
    "hero",
    "reserve",
    "expedition",
    "landmark",
    "limbo",
    "adventure",
]

Status = Literal["exhausted", "anchored", "asleep", "boosted", "fleeting"]

Terrain = Literal["forest", "mountain", "water"]
TERRAINS: tuple[Terrain, ...] = ("forest", "mountain", "water")

ExpeditionSide = Literal["hero", "companion"]
EXPEDITION_SIDES: tuple[ExpeditionSide, ...] = ("hero", "companion")

Keyword = Literal["defender", "gigantic", "eternal", "seasoned"]

# Counter types are open-ended strings in card data; Boost is the one the rules know about.
CounterType = str
BOOST: CounterType = "Boost"

AbilityKind = Literal["on_play", "reaction", "quick_action"]
EffectTarget = Literal["self", "trigger_subject", "controller_hero"]
TriggerEvent = Literal["entityMoved", "statusGained", "counterGained", "phaseChanged"]

PHASE_ORDER: tuple[Phase, ...] = ("morning", "noon", "afternoon", "dusk", "night")


@dataclass(frozen=True)
class Statistics:
    """Forest, mountain and water region values of a character."""

    forest: int = 0
    mountain: int = 0
    water: int = 0

    def __add__(self, other: Statistics) -> Statistics:
        return Statistics(
            forest=self.forest + other.forest,
            mountain=self.mountain + other.mountain,
            water=self.water + other.water,
        )

    def total(self) -> int:
        return self.forest + self.mountain + self.water

    def of(self, terrain: Terrain) -> int:
        return int(getattr(self, terrain))

    def scaled(self, factor: int) -> Statistics:
        return Statistics(self.forest * factor, self.mountain * factor, self.water * factor)


@dataclass(frozen=True)
class CounterSpend:
    counter_type: CounterType
    amount: int


@dataclass(frozen=True)
class Cost:
    mana: int = 0
    exhaust_self: bool = False
    spend_counters: CounterSpend | None = None

    @property
    def needs_source(self) -> bool:
        return self.exhaust_self or self.spend_counters is not None


@dataclass(frozen=True)
class MoveEffect:
    type: Literal["move"]
    target: EffectTarget
    to_zone: ZoneKind


@dataclass(frozen=True)
class GainStatusEffect:
    type: Literal["gain_status"]
    target: EffectTarget
    status: Status


@dataclass(frozen=True)
class LoseStatusEffect:
    type: Literal["lose_status"]
    target: EffectTarget
    status: Status


@dataclass(frozen=True)
class GainCountersEffect:
    type: Literal["gain_counters"]
    target: EffectTarget
    counter_type: CounterType
    amount: int


@dataclass(frozen=True)
class LoseCountersEffect:
    type: Literal["lose_counters"]
    target: EffectTarget
    counter_type: CounterType
    amount: int


@dataclass(frozen=True)
class ModifyStatisticsEffect:
    type: Literal["modify_statistics"]
    target: EffectTarget
    delta: Statistics


@dataclass(frozen=True)
class DrawEffect:
    type: Literal["draw"]
    count: int


@dataclass(frozen=True)
class ResupplyEffect:
    type: Literal["resupply"]
    count: int


Effect = (
    MoveEffect
    | GainStatusEffect
    | LoseStatusEffect
    | GainCountersEffect
    | LoseCountersEffect
    | ModifyStatisticsEffect
    | DrawEffect
    | ResupplyEffect
)


@dataclass(frozen=True)
class Trigger:
    """Structured trigger condition of a reaction ability.

    Fields left as None match anything. ``self_only`` restricts object events
    to ones whose subject is the object carrying the ability.
    """

    event: TriggerEvent
    self_only: bool = True
    from_zone: ZoneKind | None = None
    to_zone: ZoneKind | None = None
    status: Status | None = None
    counter_type: CounterType | None = None
    phase: Phase | None = None


@dataclass(frozen=True)
class Ability:
    id: str
    kind: AbilityKind
    text: str
    effects: tuple[Effect, ...]
    cost: Cost | None = None
    trigger: Trigger | None = None


@dataclass(frozen=True)
class CardDefinition:
    id: str
    name: str
    type: CardType
    faction: Faction
    rarity: Rarity
    hand_cost: int
    reserve_cost: int
    statistics: Statistics | None = None
    abilities: tuple[Ability, ...] = ()
    rules_text: str = ""
    permanent_kind: PermanentKind | None = None
    keywords: tuple[Keyword, ...] = ()
    # region only
    terrains: tuple[Terrain, ...] = ()
    # hero only
    reserve_limit: int | None = None
    landmark_limit: int | None = None
    starting_counters: tuple[tuple[CounterType, int], ...] = ()

    @property
    def is_hero(self) -> bool:
        return self.type == "hero"

    def has_keyword(self, keyword: Keyword) -> bool:
        return keyword in self.keywords

    def abilities_of(self, kind: AbilityKind) -> tuple[Ability, ...]:
        return tuple(a for a in self.abilities if a.kind == kind)

    def ability(self, ability_id: str) -> Ability | None:
        for a in self.abilities:
            if a.id == ability_id:
                return a
        return None


MANA_ORB_DEFINITION = CardDefinition(
    id="mana-orb",
    name="Mana Orb",
    type="mana_orb",
    faction="neutral",
    rarity="token",
    hand_cost=0,
    reserve_cost=0,
)


def _region(region_id: str, name: str, *terrains: Terrain) -> CardDefinition:
    return CardDefinition(
        id=region_id,
        name=name,
        type="region",
        faction="neutral",
        rarity="token",
        hand_cost=0,
        reserve_cost=0,
        terrains=terrains,
    )


# The Adventure, from the hero region to the companion region. Hero
# expeditions walk it front to back, companion expeditions back to front.
ADVENTURE_REGIONS: tuple[CardDefinition, ...] = (
    _region("hero-region", "Hero Region", "forest", "mountain", "water"),
    _region("tumult-1", "Tumult: Thornwood Pass", "forest", "mountain"),
    _region("tumult-2", "Tumult: Drowned Cliffs", "mountain", "water"),
    _region("tumult-3", "Tumult: Mirror Fens", "water", "forest"),
    _region("companion-region", "Companion Region", "forest", "mountain", "water"),
)


@dataclass(frozen=True)
class CardDatabase:
    """Immutable card database used by the engine."""

    cards: dict[str, CardDefinition]

    def get(self, card_id: str) -> CardDefinition:
        return self.cards[card_id]

    def all_ids(self) -> Sequence[str]:
        return list(self.cards.keys())

    def definitions(self) -> Sequence[CardDefinition]:
        return list(self.cards.values())

    def __contains__(self, card_id: object) -> bool:
        return card_id in self.cards
