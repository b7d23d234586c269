"""
Trivia Board - random trivia boards with two-stage clue reveal

Samples categories and questions from a trivia source, guarantees a
fixed-shape board with no repeated questions in a column, and tracks the
hidden / question / answer state of every cell.
"""

__version__ = "1.0.0"

from .settings import Settings
from .models import Board, Category, Clue, RevealState
from .orchestrator import BoardOrchestrator
from .reveal import ClueRevealMachine
from .session import GameSession
from .server import app

__all__ = [
    "app", "Settings", "Board", "Category", "Clue", "RevealState",
    "BoardOrchestrator", "ClueRevealMachine", "GameSession",
]
