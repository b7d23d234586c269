"""
Board Orchestrator - sample categories, validate them, retry on shortfall
"""

import asyncio
import logging
import random
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .acquirer import CategoryAcquirer
from .errors import BoardUnavailable, SourceError, StaleAssemblyError
from .models import Acquired, Board, Category, CategoryRef
from .settings import settings
from .trivia_source import TriviaSource

logger = logging.getLogger(__name__)


class BoardOrchestrator:
    """Assembles a full K x N board, or fails with ``BoardUnavailable``.

    Each attempt draws a fresh random sample of K categories and acquires
    them one at a time. Anything short of K validated categories discards
    the whole attempt; there is no merging across attempts.
    """

    def __init__(self, source: TriviaSource,
                 acquirer: Optional[CategoryAcquirer] = None,
                 num_categories: Optional[int] = None,
                 clues_per_category: Optional[int] = None,
                 max_attempts: Optional[int] = None,
                 retry_delay: Optional[float] = None,
                 overfetch_escalation: Optional[int] = None,
                 rng: Optional[random.Random] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.source = source
        self.num_categories = num_categories or settings.num_categories
        self.clues_per_category = clues_per_category or settings.clues_per_category
        self.acquirer = acquirer or CategoryAcquirer(
            source, clues_per_category=self.clues_per_category
        )
        self.max_attempts = max_attempts or settings.max_attempts
        self.retry_delay = settings.retry_delay if retry_delay is None else retry_delay
        self.overfetch_escalation = (
            settings.overfetch_escalation if overfetch_escalation is None
            else overfetch_escalation
        )
        self.rng = rng or random.Random()
        self.sleep = sleep

        self.assembly_count = 0
        self.attempt_count = 0
        self.shortfall_count = 0
        self.boards_built = 0
        self.failure_count = 0
        self.total_processing_time = 0.0

    async def assemble_board(self, is_current: Optional[Callable[[], bool]] = None) -> Board:
        """Build a fresh board.

        ``is_current`` is polled between suspend points; once it returns
        False the assembly stops with ``StaleAssemblyError``.
        """
        start_time = time.time()
        self.assembly_count += 1
        logger.info(
            f"Assembling board {self.assembly_count}: "
            f"{self.num_categories} categories x {self.clues_per_category} clues"
        )

        try:
            for attempt in range(1, self.max_attempts + 1):
                self._ensure_current(is_current)
                self.attempt_count += 1

                factor = self.acquirer.overfetch_factor + self.overfetch_escalation * (attempt - 1)
                try:
                    validated = await self._run_attempt(attempt, factor, is_current)
                except SourceError as e:
                    logger.warning(f"Attempt {attempt} abandoned, source unavailable: {e}")
                    validated = []

                if len(validated) == self.num_categories:
                    board = Board.build(validated, self.num_categories, self.clues_per_category)
                    self.boards_built += 1
                    logger.info(f"Board assembled on attempt {attempt}/{self.max_attempts}")
                    return board

                self.shortfall_count += 1
                logger.warning(
                    f"Attempt {attempt}/{self.max_attempts} short: "
                    f"{len(validated)}/{self.num_categories} categories validated"
                )
                if attempt < self.max_attempts:
                    await self.sleep(self.retry_delay)

            self.failure_count += 1
            message = (
                f"Could not assemble a board of {self.num_categories} categories "
                f"after {self.max_attempts} attempts"
            )
            logger.error(message)
            raise BoardUnavailable(message, attempts=self.max_attempts)
        finally:
            self.total_processing_time += time.time() - start_time

    async def _run_attempt(self, attempt: int, overfetch_factor: int,
                           is_current: Optional[Callable[[], bool]]) -> List[Category]:
        """One cycle: sample K categories and keep the ones that validate"""
        candidates = await self._sample_categories(attempt)
        logger.info(f"Attempt {attempt}: candidates {[ref.name for ref in candidates]}")

        validated: List[Category] = []
        for ref in candidates:
            self._ensure_current(is_current)
            result = await self.acquirer.acquire(ref, overfetch_factor=overfetch_factor)
            if isinstance(result, Acquired):
                validated.append(result.category)
            else:
                logger.info(f"Skipping category {ref.name!r}: {result.reason}")
        self._ensure_current(is_current)
        return validated

    async def _sample_categories(self, attempt: int) -> List[CategoryRef]:
        """Uniform sample of K catalog entries, without replacement"""
        catalog = await self.source.list_categories()
        if len(catalog) < self.num_categories:
            self.failure_count += 1
            raise BoardUnavailable(
                f"Catalog only has {len(catalog)} categories, "
                f"need {self.num_categories}",
                attempts=attempt,
            )
        return self.rng.sample(catalog, self.num_categories)

    @staticmethod
    def _ensure_current(is_current: Optional[Callable[[], bool]]):
        if is_current is not None and not is_current():
            raise StaleAssemblyError("A newer game superseded this assembly")

    def get_stats(self) -> Dict[str, Any]:
        """Get orchestrator statistics"""
        avg_processing_time = (
            self.total_processing_time / self.assembly_count
            if self.assembly_count > 0 else 0
        )

        return {
            "assembly_count": self.assembly_count,
            "attempt_count": self.attempt_count,
            "shortfall_count": self.shortfall_count,
            "boards_built": self.boards_built,
            "failure_count": self.failure_count,
            "total_processing_time": self.total_processing_time,
            "average_processing_time": avg_processing_time,
            "source_stats": self.source.get_stats()
        }
