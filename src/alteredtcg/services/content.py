from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

from jsonschema import Draft202012Validator

from alteredtcg.engine.types import (
    Ability,
    CardDatabase,
    CardDefinition,
    Cost,
    CounterSpend,
    DrawEffect,
    Effect,
    GainCountersEffect,
    GainStatusEffect,
    Keyword,
    LoseCountersEffect,
    LoseStatusEffect,
    ModifyStatisticsEffect,
    MoveEffect,
    ResupplyEffect,
    Statistics,
    Trigger,
)


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.absolute_path))
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


def _optional_str(obj: Mapping[str, object], key: str) -> str | None:
    v = obj.get(key)
    if v is None:
        return None
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _optional_int(obj: Mapping[str, object], key: str) -> int | None:
    v = obj.get(key)
    if v is None:
        return None
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


def _parse_power(raw: object) -> Statistics:
    if not isinstance(raw, dict):
        raise ContentError("power must be an object")
    # f / m / o are the forest / mountain / ocean (water) axes.
    return Statistics(
        forest=int(raw.get("f", 0)),
        mountain=int(raw.get("m", 0)),
        water=int(raw.get("o", 0)),
    )


def _parse_keywords(raw: object) -> tuple[Keyword, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ContentError("keywords must be a list")
    # Values are restricted by the schema.
    return tuple(raw)


def _parse_effect(raw: Mapping[str, object]) -> Effect:
    t = raw.get("type")
    if not isinstance(t, str):
        raise ContentError("Effect missing type")
    # Enumerated values (targets, zones, statuses) are restricted by the schema.
    if t == "move":
        return MoveEffect(
            type="move",
            target=_require_str(raw, "target"),  # type: ignore[arg-type]
            to_zone=_require_str(raw, "to_zone"),  # type: ignore[arg-type]
        )
    if t == "gain_status":
        return GainStatusEffect(
            type="gain_status",
            target=_require_str(raw, "target"),  # type: ignore[arg-type]
            status=_require_str(raw, "status"),  # type: ignore[arg-type]
        )
    if t == "lose_status":
        return LoseStatusEffect(
            type="lose_status",
            target=_require_str(raw, "target"),  # type: ignore[arg-type]
            status=_require_str(raw, "status"),  # type: ignore[arg-type]
        )
    if t == "gain_counters":
        return GainCountersEffect(
            type="gain_counters",
            target=_require_str(raw, "target"),  # type: ignore[arg-type]
            counter_type=_require_str(raw, "counter_type"),
            amount=_require_int(raw, "amount"),
        )
    if t == "lose_counters":
        return LoseCountersEffect(
            type="lose_counters",
            target=_require_str(raw, "target"),  # type: ignore[arg-type]
            counter_type=_require_str(raw, "counter_type"),
            amount=_require_int(raw, "amount"),
        )
    if t == "modify_statistics":
        return ModifyStatisticsEffect(
            type="modify_statistics",
            target=_require_str(raw, "target"),  # type: ignore[arg-type]
            delta=_parse_power(raw.get("delta")),
        )
    if t == "draw":
        return DrawEffect(type="draw", count=_require_int(raw, "count"))
    if t == "resupply":
        return ResupplyEffect(type="resupply", count=_require_int(raw, "count"))
    raise ContentError(f"Unknown effect type: {t}")


def _parse_cost(raw: object) -> Cost | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ContentError("cost must be an object")
    spend: CounterSpend | None = None
    raw_spend = raw.get("spend_counters")
    if isinstance(raw_spend, dict):
        spend = CounterSpend(counter_type=_require_str(raw_spend, "type"), amount=_require_int(raw_spend, "amount"))
    return Cost(
        mana=int(raw.get("mana", 0)),
        exhaust_self=bool(raw.get("exhaust_self", False)),
        spend_counters=spend,
    )


def _parse_trigger(raw: object) -> Trigger | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ContentError("trigger must be an object")
    return Trigger(
        event=_require_str(raw, "event"),  # type: ignore[arg-type]
        self_only=bool(raw.get("self_only", True)),
        from_zone=_optional_str(raw, "from_zone"),  # type: ignore[arg-type]
        to_zone=_optional_str(raw, "to_zone"),  # type: ignore[arg-type]
        status=_optional_str(raw, "status"),  # type: ignore[arg-type]
        counter_type=_optional_str(raw, "counter_type"),
        phase=_optional_str(raw, "phase"),  # type: ignore[arg-type]
    )


def _parse_ability(raw: Mapping[str, object]) -> Ability:
    effects_raw = raw.get("effects", [])
    effects: list[Effect] = []
    if isinstance(effects_raw, list):
        for eff in effects_raw:
            if isinstance(eff, dict):
                effects.append(_parse_effect(eff))
    return Ability(
        id=_require_str(raw, "id"),
        kind=_require_str(raw, "kind"),  # type: ignore[arg-type]
        text=_require_str(raw, "text"),
        effects=tuple(effects),
        cost=_parse_cost(raw.get("cost")),
        trigger=_parse_trigger(raw.get("trigger")),
    )


@dataclass(frozen=True)
class LookupTables:
    """Code -> name tables shipped with the catalog (faction, rarity, card type)."""

    factions: dict[str, str]
    faction_colors: dict[str, str]
    rarities: dict[str, str]
    # type code -> (card type, permanent kind)
    card_types: dict[str, tuple[str, str | None]]


def _parse_lookup_tables(raw: object) -> LookupTables:
    if not isinstance(raw, dict):
        raise ContentError("lookup_tables must be an object")
    factions: dict[str, str] = {}
    colors: dict[str, str] = {}
    for code, info in dict(raw.get("factions", {})).items():
        factions[code] = _require_str(info, "name")
        color = _optional_str(info, "color")
        if color is not None:
            colors[code] = color
    rarities = {code: _require_str(info, "name") for code, info in dict(raw.get("rarities", {})).items()}
    card_types = {
        code: (_require_str(info, "name"), _optional_str(info, "permanent_kind"))
        for code, info in dict(raw.get("card_types", {})).items()
    }
    return LookupTables(factions=factions, faction_colors=colors, rarities=rarities, card_types=card_types)


def _check_code(table: Mapping[str, object], code: str, what: str, card_id: str) -> str:
    if code not in table:
        raise ContentError(f"Card {card_id}: unknown {what} code {code!r}")
    return code


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_raw_cards(self) -> dict[str, object]:
        cards_path = self._data_dir / "cards.json"
        raw = _load_json(cards_path)
        schema = _load_json(self._schema_dir / "cards.schema.json")
        validate_json(raw, schema, context=str(cards_path))
        if not isinstance(raw, dict):
            raise ContentError("cards.json must be an object")
        return raw

    def load_lookup_tables(self) -> LookupTables:
        return _parse_lookup_tables(self.load_raw_cards().get("lookup_tables"))

    def load_cards_db(self) -> CardDatabase:
        raw = self.load_raw_cards()
        tables = _parse_lookup_tables(raw.get("lookup_tables"))
        raw_cards = raw.get("cards")
        if not isinstance(raw_cards, list):
            raise ContentError("cards.json.cards must be a list")

        cards: dict[str, CardDefinition] = {}
        for item in raw_cards:
            if not isinstance(item, dict):
                continue
            card_id = _require_str(item, "id")
            if card_id in cards:
                raise ContentError(f"Duplicate card id: {card_id}")
            type_ref = _check_code(tables.card_types, _require_str(item, "type_ref"), "type", card_id)
            ctype, permanent_kind = tables.card_types[type_ref]
            faction_ref = _check_code(tables.factions, _optional_str(item, "faction_ref") or "NE", "faction", card_id)
            rarity_ref = _check_code(tables.rarities, _require_str(item, "rarity_ref"), "rarity", card_id)

            abilities_raw = item.get("abilities", [])
            abilities: list[Ability] = []
            if isinstance(abilities_raw, list):
                for ab in abilities_raw:
                    if isinstance(ab, dict):
                        abilities.append(_parse_ability(ab))

            hero = item.get("hero")
            reserve_limit = landmark_limit = None
            starting: tuple[tuple[str, int], ...] = ()
            if isinstance(hero, dict):
                reserve_limit = _optional_int(hero, "reserve_limit")
                landmark_limit = _optional_int(hero, "landmark_limit")
                raw_counters = hero.get("starting_counters", {})
                if isinstance(raw_counters, dict):
                    starting = tuple(sorted((str(k), int(v)) for k, v in raw_counters.items()))

            power = item.get("power")
            card = CardDefinition(
                id=card_id,
                name=_require_str(item, "name"),
                type=ctype,  # type: ignore[arg-type]
                faction=tables.factions[faction_ref],  # type: ignore[arg-type]
                rarity=tables.rarities[rarity_ref],  # type: ignore[arg-type]
                hand_cost=_require_int(item, "main_cost"),
                reserve_cost=_require_int(item, "recall_cost"),
                statistics=_parse_power(power) if power is not None else None,
                abilities=tuple(abilities),
                rules_text=_optional_str(item, "rules_text") or "",
                permanent_kind=permanent_kind,  # type: ignore[arg-type]
                keywords=_parse_keywords(item.get("keywords")),
                reserve_limit=reserve_limit,
                landmark_limit=landmark_limit,
                starting_counters=starting,
            )
            cards[card.id] = card
        return CardDatabase(cards=cards)

    def resolve_deck(self, db: CardDatabase, card_ids: Sequence[str]) -> list[CardDefinition]:
        missing = sorted({cid for cid in card_ids if cid not in db})
        if missing:
            raise ContentError(f"Unknown card ids in deck: {', '.join(missing)}")
        return [db.get(cid) for cid in card_ids]

    def starter_deck(self, db: CardDatabase, faction: str, size: int = 40) -> list[str]:
        """Hero of ``faction`` plus ``size`` cards cycling through its (and neutral) playables."""
        heroes = sorted(c.id for c in db.definitions() if c.is_hero and c.faction == faction)
        pool = sorted(
            c.id for c in db.definitions() if not c.is_hero and c.faction in (faction, "neutral")
        )
        if not heroes or not pool:
            raise ContentError(f"No starter deck available for faction {faction}")
        return [heroes[0]] + [pool[i % len(pool)] for i in range(size)]

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_cards_db()
