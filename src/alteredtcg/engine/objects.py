from __future__ import annotations

import itertools
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .types import Ability, CardDefinition, CounterType, Effect, ExpeditionSide, Statistics, Status


@dataclass(frozen=True)
class DefinitionRef:
    """Bare card reference, used in zones that keep no per-instance state."""

    instance_id: str
    definition_id: str
    owner_id: str

    @property
    def id(self) -> str:
        return self.instance_id


@dataclass(eq=False)
class GameObject:
    """Live instance of a card definition.

    Statuses and counters are exposed read-only; the GameStateManager is the
    only writer of the underscored fields.
    """

    object_id: str
    definition_id: str
    owner_id: str
    controller_id: str
    timestamp: int
    _statuses: set[Status] = field(default_factory=set, repr=False)
    _counters: dict[CounterType, int] = field(default_factory=dict, repr=False)
    _modifier: Statistics = field(default_factory=Statistics, repr=False)
    _expedition: ExpeditionSide | None = field(default=None, repr=False)

    @property
    def id(self) -> str:
        return self.object_id

    @property
    def statuses(self) -> frozenset[Status]:
        return frozenset(self._statuses)

    @property
    def counters(self) -> Mapping[CounterType, int]:
        return MappingProxyType(self._counters)

    @property
    def statistic_modifier(self) -> Statistics:
        return self._modifier

    @property
    def expedition(self) -> ExpeditionSide | None:
        """Side this object was sent to while it is in an expedition zone."""
        return self._expedition

    def has(self, status: Status) -> bool:
        return status in self._statuses

    def counter(self, counter_type: CounterType) -> int:
        return self._counters.get(counter_type, 0)


@dataclass(eq=False)
class PendingReaction(GameObject):
    """Triggered reaction waiting in limbo, bound to its effects and trigger subject."""

    ability_id: str = ""
    text: str = ""
    effects: tuple[Effect, ...] = ()
    source_id: str | None = None
    subject_id: str | None = None


ZoneEntity = DefinitionRef | GameObject


def entity_id(entity: ZoneEntity) -> str:
    if isinstance(entity, GameObject):
        return entity.object_id
    if isinstance(entity, DefinitionRef):
        return entity.instance_id
    raise TypeError(f"Not a zone entity: {entity!r}")


class ObjectFactory:
    """Allocates identifiers and builds entities; never touches existing ones.

    Ids come from per-factory monotonic counters, so a replay of the same
    match allocates the same ids.
    """

    def __init__(self) -> None:
        self._object_ids = itertools.count(1)
        self._ref_ids = itertools.count(1)
        self._timestamps = itertools.count(1)

    def next_timestamp(self) -> int:
        return next(self._timestamps)

    def create_object_from_definition(
        self,
        definition: CardDefinition,
        owner_id: str,
        controller_id: str | None = None,
    ) -> GameObject:
        return GameObject(
            object_id=f"obj-{next(self._object_ids)}",
            definition_id=definition.id,
            owner_id=owner_id,
            controller_id=controller_id or owner_id,
            timestamp=self.next_timestamp(),
        )

    def create_reference(self, definition_id: str, owner_id: str) -> DefinitionRef:
        return DefinitionRef(
            instance_id=f"ref-{next(self._ref_ids)}",
            definition_id=definition_id,
            owner_id=owner_id,
        )

    def create_reaction(
        self, ability: Ability, source: GameObject, subject_id: str | None
    ) -> PendingReaction:
        return PendingReaction(
            object_id=f"obj-{next(self._object_ids)}",
            definition_id=source.definition_id,
            owner_id=source.owner_id,
            controller_id=source.controller_id,
            timestamp=self.next_timestamp(),
            ability_id=ability.id,
            text=ability.text,
            effects=ability.effects,
            source_id=source.object_id,
            subject_id=subject_id,
        )
