from __future__ import annotations

import random
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Literal

from .types import ZoneKind

Visibility = Literal["hidden", "visible"]

PLAYER_ZONES: tuple[ZoneKind, ...] = (
    "deck",
    "hand",
    "discard",
    "mana",
    "hero",
    "reserve",
    "expedition",
    "landmark",
)
SHARED_ZONES: tuple[ZoneKind, ...] = ("limbo", "adventure")

# Zones whose entities keep per-instance state (statuses, counters).
TRACKED_ZONES: frozenset[ZoneKind] = frozenset(
    {"hand", "mana", "hero", "reserve", "expedition", "landmark", "limbo"}
)
PLAY_ZONES: frozenset[ZoneKind] = frozenset({"expedition", "landmark"})
HIDDEN_ZONES: frozenset[ZoneKind] = frozenset({"deck", "hand"})
# Personal zones an entity always lands in on its owner's side.
OWNER_ZONES: frozenset[ZoneKind] = frozenset({"deck", "hand", "discard", "reserve"})


@dataclass(frozen=True)
class ZoneRef:
    kind: ZoneKind
    owner: str | None = None

    @staticmethod
    def of(owner: str, kind: ZoneKind) -> "ZoneRef":
        return ZoneRef(kind=kind, owner=owner)

    @staticmethod
    def shared(kind: ZoneKind) -> "ZoneRef":
        return ZoneRef(kind=kind, owner=None)

    def __str__(self) -> str:
        return f"{self.owner or 'shared'}-{self.kind}"


class Zone:
    """Ordered container of entity ids.

    Zones never hold entities themselves: the GameStateManager keeps the
    id -> entity table and is the only caller of the underscored mutators.
    Index 0 is the top of the zone (the next card drawn from a deck).
    """

    def __init__(self, ref: ZoneRef) -> None:
        self.ref = ref
        self._ids: list[str] = []

    @property
    def kind(self) -> ZoneKind:
        return self.ref.kind

    @property
    def owner(self) -> str | None:
        return self.ref.owner

    @property
    def visibility(self) -> Visibility:
        return "hidden" if self.ref.kind in HIDDEN_ZONES else "visible"

    @property
    def tracks_objects(self) -> bool:
        return self.ref.kind in TRACKED_ZONES

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(self._ids)

    def top(self) -> str | None:
        return self._ids[0] if self._ids else None

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._ids))

    def _insert(self, entity_id: str) -> None:
        self._ids.append(entity_id)

    def _remove(self, entity_id: str) -> None:
        self._ids.remove(entity_id)

    def _shuffle(self, rng: random.Random) -> None:
        rng.shuffle(self._ids)

    def __repr__(self) -> str:
        return f"Zone({self.ref}, {len(self._ids)} entities)"
