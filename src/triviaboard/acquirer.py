"""
Category Acquirer - fill one board column from the trivia source
"""

import logging
from typing import Optional

from .decoding import decode
from .dedupe import Insufficient, dedupe_take
from .errors import SourceError, SourceUnavailableError
from .models import AcquireResult, Acquired, Category, CategoryRef, Clue, Invalid
from .settings import settings
from .trivia_source import TriviaSource

logger = logging.getLogger(__name__)


class CategoryAcquirer:
    """Fetches, deduplicates and decodes one category's worth of clues.

    Shortfalls are reported as ``Invalid`` rather than retried here; a retry
    needs a fresh category sample, which is the orchestrator's job.
    """

    def __init__(self, source: TriviaSource, clues_per_category: Optional[int] = None,
                 overfetch_factor: Optional[int] = None,
                 question_type: Optional[str] = None):
        self.source = source
        self.clues_per_category = clues_per_category or settings.clues_per_category
        self.overfetch_factor = max(2, overfetch_factor or settings.overfetch_factor)
        self.question_type = settings.question_type if question_type is None else question_type

    async def acquire(self, ref: CategoryRef, overfetch_factor: Optional[int] = None) -> AcquireResult:
        """Return ``Acquired`` with exactly N unique clues, or ``Invalid``.

        ``SourceUnavailableError`` is allowed through so the caller can give
        up on the whole attempt.
        """
        required = self.clues_per_category
        factor = max(2, overfetch_factor or self.overfetch_factor)

        try:
            records = await self.source.fetch_questions(
                ref.id, required * factor, self.question_type or None
            )
        except SourceUnavailableError:
            raise
        except SourceError as e:
            logger.warning(f"Category {ref.name!r} fetch failed: {e}")
            return Invalid(ref, f"fetch failed: {e}")

        if len(records) < required:
            logger.warning(
                f"Category {ref.name!r} returned {len(records)} records, need {required}"
            )
            return Invalid(ref, f"only {len(records)} records returned")

        unique = dedupe_take(records, required)
        if isinstance(unique, Insufficient):
            logger.warning(
                f"Category {ref.name!r} has {unique.found} unique questions, need {required}"
            )
            return Invalid(ref, f"only {unique.found} unique questions")

        clues = tuple(
            Clue(question=decode(record.question), answer=decode(record.answer))
            for record in unique
        )
        return Acquired(Category(title=decode(ref.name), clues=clues))
