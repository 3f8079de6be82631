"""Deterministic, headless rules engine for alteredtcg.

IMPORTANT: This package must never print, log or touch the filesystem;
observers listen on the EventBus instead.
"""

from .actions import (
    ActionHandler,
    ActivateAbilityAction,
    AdvancePhaseAction,
    ChooseReactionAction,
    ExpandAction,
    PassAction,
    PlayCardAction,
    PlayFromReserveAction,
    StepResult,
)
from .errors import EngineError
from .events import EventBus
from .match import Match, MatchConfig, new_match, replay, step
from .state import GameStateManager
from .types import CardDatabase, CardDefinition, CardType, Faction, Phase, Rarity

__all__ = [
    "ActionHandler",
    "ActivateAbilityAction",
    "AdvancePhaseAction",
    "CardDatabase",
    "CardDefinition",
    "CardType",
    "ChooseReactionAction",
    "EngineError",
    "EventBus",
    "ExpandAction",
    "Faction",
    "GameStateManager",
    "Match",
    "MatchConfig",
    "PassAction",
    "Phase",
    "PlayCardAction",
    "PlayFromReserveAction",
    "Rarity",
    "StepResult",
    "new_match",
    "replay",
    "step",
]
