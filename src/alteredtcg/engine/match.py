from __future__ import annotations

import random
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from .actions import Action, ActionHandler, StepResult
from .adventure import VICTORY_THRESHOLD, AdventureManager
from .costs import CostProcessor
from .effects import EffectResolver
from .errors import InvalidPhaseTransition
from .events import Event, EventBus
from .phases import PhaseManager
from .reactions import ReactionManager
from .state import GameStateManager
from .turns import TurnManager
from .types import PHASE_ORDER, CardDatabase, CardDefinition, Phase


@dataclass(frozen=True)
class MatchConfig:
    starting_hand: int = 6
    starting_mana_orbs: int = 3
    morning_draw: int = 2
    # Used when a hero does not set its own limits.
    reserve_limit: int = 2
    landmark_limit: int = 2
    min_deck_size: int = 0
    # Combined expedition distance needed to win at Night.
    victory_threshold: int = VICTORY_THRESHOLD


@dataclass
class Match:
    cards: CardDatabase
    config: MatchConfig
    seed: int
    decks: dict[str, tuple[str, ...]]
    bus: EventBus
    gsm: GameStateManager
    costs: CostProcessor
    effects: EffectResolver
    reactions: ReactionManager
    adventure: AdventureManager
    turns: TurnManager
    phases: PhaseManager
    actions: ActionHandler
    action_log: list[Action] = field(default_factory=list)
    event_log: list[Event] = field(default_factory=list)

    @property
    def phase(self) -> Phase:
        return self.gsm.phase

    @property
    def day_number(self) -> int:
        return self.gsm.day_number

    @property
    def winner_id(self) -> str | None:
        return self.gsm.winner_id

    def advance_to(self, phase: Phase) -> None:
        """Advance phases (outside the Afternoon) until ``phase`` is reached."""
        for _ in range(len(PHASE_ORDER) + 1):
            if self.gsm.phase == phase:
                return
            self.actions.try_advance_phase()
        raise InvalidPhaseTransition(f"Could not reach {phase} from {self.gsm.phase}.")


def _resolve_decks(
    cards: CardDatabase, decks: Mapping[str, Sequence[str]], config: MatchConfig
) -> dict[str, list[CardDefinition]]:
    resolved: dict[str, list[CardDefinition]] = {}
    for player_id, card_ids in decks.items():
        unknown = [cid for cid in card_ids if cid not in cards]
        if unknown:
            raise ValueError(f"Deck of {player_id} has unknown cards: {', '.join(sorted(set(unknown)))}")
        if len(card_ids) < config.min_deck_size:
            raise ValueError(f"Deck of {player_id} must have at least {config.min_deck_size} cards.")
        resolved[player_id] = [cards.get(cid) for cid in card_ids]
    return resolved


def new_match(
    cards: CardDatabase,
    decks: Mapping[str, Sequence[str]],
    seed: int,
    config: MatchConfig | None = None,
) -> Match:
    """Build and deal a match. Player order follows the order of ``decks``.

    The match is left in Setup; the first advance enters the first Morning.
    """
    cfg = config or MatchConfig()
    resolved = _resolve_decks(cards, decks, cfg)

    bus = EventBus()
    event_log: list[Event] = []
    bus.subscribe_all(event_log.append)

    gsm = GameStateManager(list(decks.keys()), cards.definitions(), bus, rng=random.Random(seed))
    costs = CostProcessor(gsm)
    effects = EffectResolver(gsm)
    reactions = ReactionManager(gsm, effects, bus)
    adventure = AdventureManager(gsm, victory_threshold=cfg.victory_threshold)
    turns = TurnManager(gsm)
    phases = PhaseManager(
        gsm,
        turns,
        reactions=reactions,
        adventure=adventure,
        morning_draw=cfg.morning_draw,
        reserve_limit=cfg.reserve_limit,
        landmark_limit=cfg.landmark_limit,
    )
    handler = ActionHandler(gsm, costs, effects, reactions, turns, phases, bus)

    gsm.initialize_board(resolved, cfg.starting_hand, cfg.starting_mana_orbs)

    return Match(
        cards=cards,
        config=cfg,
        seed=seed,
        decks={pid: tuple(ids) for pid, ids in decks.items()},
        bus=bus,
        gsm=gsm,
        costs=costs,
        effects=effects,
        reactions=reactions,
        adventure=adventure,
        turns=turns,
        phases=phases,
        actions=handler,
        event_log=event_log,
    )


def step(match: Match, action: Action) -> StepResult:
    """Apply a single action to the match.

    This mutates ``match`` in place but remains deterministic for a given
    (seed, decks, action sequence).
    """
    # Log first, so replay has a full record of attempted actions.
    match.action_log.append(action)
    return match.actions.step(action)


def replay(
    cards: CardDatabase,
    decks: Mapping[str, Sequence[str]],
    seed: int,
    actions: Iterable[Action],
    config: MatchConfig | None = None,
) -> Match:
    match = new_match(cards, decks, seed, config)
    for a in actions:
        step(match, a)
    return match
