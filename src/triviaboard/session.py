"""
Game Session - owns the board on display and discards stale assemblies
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

from .errors import BoardUnavailable, NoActiveBoardError, StaleAssemblyError
from .models import Board, RevealOutcome
from .monitors import AssemblyMonitor
from .orchestrator import BoardOrchestrator
from .reveal import ClueRevealMachine

logger = logging.getLogger(__name__)


class BoardRenderer:
    """Receives everything a front end needs to draw. Defaults do nothing."""

    def show_loading(self):
        pass

    def show_board(self, board: Board):
        pass

    def show_reveal(self, outcome: RevealOutcome):
        pass

    def show_unavailable(self, message: str):
        pass


class GameSession:
    """One player's game: the current board, its reveal state, and restarts.

    Every ``start_game`` call gets a generation number. Only the newest
    generation is allowed to publish a board or a failure; anything an
    older assembly produces is dropped.
    """

    def __init__(self, orchestrator: BoardOrchestrator,
                 renderer: Optional[BoardRenderer] = None,
                 reveal_machine: Optional[ClueRevealMachine] = None,
                 monitor: Optional[AssemblyMonitor] = None):
        self.orchestrator = orchestrator
        self.renderer = renderer or BoardRenderer()
        self.reveal_machine = reveal_machine or ClueRevealMachine()
        self.monitor = monitor or AssemblyMonitor()

        self.generation = 0
        self.board: Optional[Board] = None
        self.status = "idle"
        self.message: Optional[str] = None
        self._task: Optional[asyncio.Task] = None

    async def start_game(self) -> Optional[Board]:
        """Discard the current board and assemble a new one.

        Returns the new board, or None if a later ``start_game`` superseded
        this one. Raises ``BoardUnavailable`` if assembly failed for good.
        """
        self.generation += 1
        generation = self.generation
        start_time = time.time()

        if self._task is not None and not self._task.done():
            logger.info(f"Cancelling assembly superseded by generation {generation}")
            self._task.cancel()

        self.board = None
        self.status = "loading"
        self.message = None
        self.renderer.show_loading()

        def is_current() -> bool:
            return generation == self.generation

        task = asyncio.ensure_future(self.orchestrator.assemble_board(is_current=is_current))
        self._task = task

        try:
            board = await task
        except (asyncio.CancelledError, StaleAssemblyError):
            if is_current():
                raise
            return self._drop_stale(generation, start_time)
        except BoardUnavailable as e:
            if not is_current():
                return self._drop_stale(generation, start_time)
            self.status = "unavailable"
            self.message = e.message
            self.monitor.record_assembly("unavailable", time.time() - start_time, generation)
            self.monitor.add_alert("error", e.message, component="orchestrator")
            self.renderer.show_unavailable(e.message)
            raise

        if not is_current():
            return self._drop_stale(generation, start_time)

        self.board = board
        self.status = "ready"
        self.monitor.record_assembly("ready", time.time() - start_time, generation)
        self.renderer.show_board(board)
        logger.info(f"Generation {generation} board on display")
        return board

    def _drop_stale(self, generation: int, start_time: float) -> None:
        logger.info(f"Dropping result of stale generation {generation}")
        self.monitor.record_assembly("stale", time.time() - start_time, generation)
        return None

    def reveal(self, category_index: int, clue_index: int) -> RevealOutcome:
        """Advance one cell of the board on display"""
        if self.board is None:
            raise NoActiveBoardError(f"No board on display (status: {self.status})")

        outcome = self.reveal_machine.reveal(self.board, category_index, clue_index)
        if outcome.changed:
            self.monitor.increment(f"reveals_{outcome.state.value}")
            self.renderer.show_reveal(outcome)
        return outcome

    def get_state(self) -> Dict[str, Any]:
        """Snapshot for the front end"""
        return {
            "generation": self.generation,
            "status": self.status,
            "message": self.message,
            "board": self.board.to_dict() if self.board else None
        }
