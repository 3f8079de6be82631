from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import NotPlayersTurn
from .state import GameStateManager

if TYPE_CHECKING:
    from .phases import PhaseManager


class TurnManager:
    """Afternoon turn order: players alternate actions until all have passed."""

    def __init__(self, gsm: GameStateManager) -> None:
        self._gsm = gsm
        self._phases: PhaseManager | None = None

    def attach_phase_manager(self, phases: PhaseManager) -> None:
        self._phases = phases

    def start_afternoon(self) -> None:
        self._gsm.reset_passed()
        self._gsm.set_current_player(self._gsm.first_player_id)

    def player_passes(self, player_id: str) -> None:
        gsm = self._gsm
        player = gsm.get_player(player_id)
        if gsm.phase != "afternoon" or player is None:
            raise NotPlayersTurn("Passing is only possible during the Afternoon.")
        if player.has_passed:
            return
        if gsm.current_player_id != player_id:
            raise NotPlayersTurn(f"It is {gsm.current_player_id}'s turn.")
        if self._phases is not None:
            # A pass can end the Afternoon; refuse before flagging anything.
            self._phases.check_can_advance()
        gsm.set_passed(player_id, True)
        self.advance_turn()

    def advance_turn(self) -> None:
        """Hand the turn to the next player who has not passed.

        When everyone has passed the Afternoon is over.
        """
        gsm = self._gsm
        start = gsm.next_player_id(gsm.current_player_id)
        for pid in gsm.initiative_order(start):
            player = gsm.get_player(pid)
            if player is not None and not player.has_passed:
                gsm.set_current_player(pid)
                return
        if self._phases is None:
            raise RuntimeError("TurnManager has no PhaseManager attached.")
        self._phases.advance_phase()

    def succeed(self) -> None:
        """Pass the first-player marker on."""
        gsm = self._gsm
        gsm.set_first_player(gsm.next_player_id(gsm.first_player_id))
