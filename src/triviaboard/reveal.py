"""
Clue Reveal Machine - two-stage reveal of a board cell
"""

import logging

from .errors import InvalidInteractionError
from .models import NEXT_STATE, Board, Clue, RevealOutcome, RevealState

logger = logging.getLogger(__name__)


class ClueRevealMachine:
    """Applies one reveal step to one clue and reports what to display.

    Hidden -> question -> answer; further reveals on an answer are no-ops.
    The machine knows nothing about how the cell is drawn.
    """

    def reveal(self, board: Board, category_index: int, clue_index: int) -> RevealOutcome:
        clue = self._locate(board, category_index, clue_index)

        while True:
            current = clue.reveal_state
            target = NEXT_STATE[current]
            if target is current:
                changed = False
                break
            if clue.compare_and_set(current, target):
                changed = True
                break
            # Lost a race with a concurrent reveal, re-read and step from there

        if changed:
            logger.debug(f"Clue ({category_index}, {clue_index}) -> {target.name}")

        return RevealOutcome(
            category_index=category_index,
            clue_index=clue_index,
            state=target,
            text=clue.question if target is RevealState.SHOWING_QUESTION else clue.answer,
            changed=changed,
        )

    @staticmethod
    def _locate(board: Board, category_index: int, clue_index: int) -> Clue:
        if not 0 <= category_index < len(board.categories):
            raise InvalidInteractionError(
                f"Category index {category_index} out of range 0..{len(board.categories) - 1}"
            )
        clues = board.categories[category_index].clues
        if not 0 <= clue_index < len(clues):
            raise InvalidInteractionError(
                f"Clue index {clue_index} out of range 0..{len(clues) - 1}"
            )
        return clues[clue_index]
