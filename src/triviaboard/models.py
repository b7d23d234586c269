"""
Board data model - clues, categories, boards and acquisition results
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from .decoding import normalize


class RevealState(str, Enum):
    """Two-stage reveal progression of a single board cell"""
    HIDDEN = "hidden"
    SHOWING_QUESTION = "question"
    SHOWING_ANSWER = "answer"


# Hidden -> ShowingQuestion -> ShowingAnswer, and ShowingAnswer stays put
NEXT_STATE = {
    RevealState.HIDDEN: RevealState.SHOWING_QUESTION,
    RevealState.SHOWING_QUESTION: RevealState.SHOWING_ANSWER,
    RevealState.SHOWING_ANSWER: RevealState.SHOWING_ANSWER,
}


@dataclass(frozen=True)
class CategoryRef:
    """Catalog entry as supplied by the trivia source"""
    id: int
    name: str


@dataclass(frozen=True)
class RawRecord:
    """One question as supplied by the trivia source, possibly entity-escaped"""
    question: str
    answer: str


class Clue:
    """A question/answer pair plus its reveal state.

    Question and answer are fixed at creation; the reveal state is the only
    thing that changes, and only through ``compare_and_set``.
    """

    __slots__ = ("_question", "_answer", "_state", "_lock")

    def __init__(self, question: str, answer: str,
                 reveal_state: RevealState = RevealState.HIDDEN):
        self._question = question
        self._answer = answer
        self._state = reveal_state
        self._lock = threading.Lock()

    @property
    def question(self) -> str:
        return self._question

    @property
    def answer(self) -> str:
        return self._answer

    @property
    def reveal_state(self) -> RevealState:
        return self._state

    def compare_and_set(self, expected: RevealState, new: RevealState) -> bool:
        """Move to ``new`` only if the state is still ``expected``"""
        with self._lock:
            if self._state is not expected:
                return False
            self._state = new
            return True

    def visible_text(self) -> Optional[str]:
        """Text a renderer should show for the current state (None = hidden)"""
        if self._state is RevealState.SHOWING_QUESTION:
            return self._question
        if self._state is RevealState.SHOWING_ANSWER:
            return self._answer
        return None

    def __repr__(self) -> str:
        return f"Clue(question={self._question!r}, answer={self._answer!r}, reveal_state={self._state.name})"


@dataclass(frozen=True)
class Category:
    title: str
    clues: Tuple[Clue, ...]


@dataclass(frozen=True)
class Board:
    """The full grid handed to the renderer: K categories of N clues each"""
    categories: Tuple[Category, ...]

    @classmethod
    def build(cls, categories: Iterable[Category], num_categories: int,
              clues_per_category: int) -> "Board":
        """Construct a board, refusing anything that is not exactly K x N or
        that repeats a question within a category"""
        categories = tuple(categories)
        if len(categories) != num_categories:
            raise ValueError(
                f"Board needs {num_categories} categories, got {len(categories)}"
            )
        for category in categories:
            if len(category.clues) != clues_per_category:
                raise ValueError(
                    f"Category {category.title!r} needs {clues_per_category} clues, "
                    f"got {len(category.clues)}"
                )
            questions = {normalize(clue.question) for clue in category.clues}
            if len(questions) != len(category.clues):
                raise ValueError(f"Category {category.title!r} repeats a question")
        return cls(categories=categories)

    def to_dict(self, hidden_text: str = "?") -> Dict[str, Any]:
        """Renderer-facing view; unrevealed cells only show ``hidden_text``"""
        return {
            "categories": [
                {
                    "title": category.title,
                    "clues": [
                        {
                            "state": clue.reveal_state.value,
                            "text": clue.visible_text() or hidden_text,
                        }
                        for clue in category.clues
                    ],
                }
                for category in self.categories
            ]
        }


@dataclass(frozen=True)
class Acquired:
    """A category that yielded enough unique clues"""
    category: Category


@dataclass(frozen=True)
class Invalid:
    """A category that could not fill its column"""
    ref: CategoryRef
    reason: str


AcquireResult = Union[Acquired, Invalid]


@dataclass(frozen=True)
class RevealOutcome:
    """What a cell should display after a reveal"""
    category_index: int
    clue_index: int
    state: RevealState
    text: str
    changed: bool
