from __future__ import annotations

from typing import Literal

# "turn" -> not your turn, "cost" -> cannot afford this, "target" -> invalid target,
# "state" -> the match is not in a state that allows the request.
ErrorCategory = Literal["turn", "cost", "target", "state"]


class EngineError(RuntimeError):
    """Recoverable rules failure reported to the caller; state is left unchanged."""

    category: ErrorCategory = "state"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        return type(self).__name__


class NotPlayersTurn(EngineError):
    category = "turn"


class ReactionsPending(NotPlayersTurn):
    pass


class ExpandNotAllowed(NotPlayersTurn):
    pass


class CardNotInHand(EngineError):
    category = "target"


class CardNotInReserve(EngineError):
    category = "target"


class EntityNotInZone(EngineError):
    category = "target"


class EntityNotFound(EngineError):
    category = "target"


class InvalidTarget(EngineError):
    category = "target"


class UnknownReactionChoice(EngineError):
    category = "target"


class CostNotPayable(EngineError):
    category = "cost"


class InsufficientMana(CostNotPayable):
    pass


class InsufficientCounters(CostNotPayable):
    pass


class SourceAlreadyExhausted(CostNotPayable):
    pass


class InvalidPhaseTransition(EngineError):
    pass


class InsufficientDeckSize(EngineError):
    pass
