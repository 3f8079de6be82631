from __future__ import annotations

from .adventure import AdventureManager
from .errors import InvalidPhaseTransition, ReactionsPending
from .reactions import ReactionManager
from .state import GameStateManager
from .turns import TurnManager
from .types import PHASE_ORDER, Phase


class PhaseManager:
    """Drives the day: Morning, Noon, Afternoon, Dusk, Night, then Morning again.

    Each call to ``advance_phase`` makes exactly one transition and applies
    the entry effects of the phase entered before returning.
    """

    def __init__(
        self,
        gsm: GameStateManager,
        turns: TurnManager,
        *,
        reactions: ReactionManager | None = None,
        adventure: AdventureManager | None = None,
        morning_draw: int = 2,
        reserve_limit: int = 2,
        landmark_limit: int = 2,
    ) -> None:
        self._gsm = gsm
        self._turns = turns
        self._reactions = reactions
        self._adventure = adventure
        self._morning_draw = morning_draw
        self._reserve_limit = reserve_limit
        self._landmark_limit = landmark_limit
        turns.attach_phase_manager(self)

    def next_phase(self, phase: Phase) -> Phase:
        if phase == "setup":
            return "morning"
        i = PHASE_ORDER.index(phase)
        return PHASE_ORDER[(i + 1) % len(PHASE_ORDER)]

    def check_can_advance(self) -> None:
        """Raise if a transition is not possible right now."""
        if not self._gsm.initialized:
            raise InvalidPhaseTransition("The board has not been initialized.")
        if self._gsm.winner_id is not None:
            raise InvalidPhaseTransition(f"The match is over; {self._gsm.winner_id} won.")
        if self._reactions is not None and self._reactions.phase == "awaiting_choice":
            raise ReactionsPending("A reaction must be chosen first.")

    def advance_phase(self) -> Phase:
        gsm = self._gsm
        self.check_can_advance()

        previous = gsm.phase
        phase = self.next_phase(previous)
        if previous == "morning":
            for pid in gsm.player_ids:
                gsm.set_can_expand(pid, False)
        if previous == "night":
            gsm.advance_day()
        gsm.set_phase(phase)

        if phase == "morning" and previous == "night":
            self._morning()
        elif phase == "morning":
            # First Morning: hands were dealt at setup, only Expand opens.
            self._open_expand()
        elif phase == "afternoon":
            self._turns.start_afternoon()
        elif phase == "dusk":
            if self._adventure is not None:
                self._adventure.progress()
        elif phase == "night":
            gsm.rest()
            gsm.clean_up(self._reserve_limit, self._landmark_limit)
            if self._adventure is not None:
                self._adventure.check_victory()

        if self._reactions is not None:
            self._reactions.drain()
        return phase

    def _morning(self) -> None:
        gsm = self._gsm
        self._turns.succeed()
        gsm.ready_all()
        for pid in gsm.initiative_order(gsm.first_player_id):
            gsm.draw_cards(pid, self._morning_draw)
        self._open_expand()

    def _open_expand(self) -> None:
        for pid in self._gsm.player_ids:
            self._gsm.set_can_expand(pid, True)
