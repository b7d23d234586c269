"""
Tests for board orchestration
"""

import random
from unittest.mock import AsyncMock, Mock

import pytest

from triviaboard.errors import BoardUnavailable, SourceUnavailableError, StaleAssemblyError
from triviaboard.models import CategoryRef, RawRecord
from triviaboard.orchestrator import BoardOrchestrator
from triviaboard.trivia_source import MockTriviaSource


def unique_records(prefix, count):
    return [RawRecord(f"{prefix} question {i}", f"{prefix} answer {i}") for i in range(count)]


def make_catalog(good, thin=()):
    """``good`` categories have 12 unique questions, ``thin`` ones only 4"""
    catalog = {}
    for i, name in enumerate(good):
        catalog[CategoryRef(100 + i, name)] = unique_records(name, 12)
    for i, name in enumerate(thin):
        records = unique_records(name, 4)
        catalog[CategoryRef(200 + i, name)] = (records * 3)[:10]
    return catalog


def refs_named(source, names):
    by_name = {ref.name: ref for ref in source.catalog}
    return [by_name[name] for name in names]


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.mark.asyncio
async def test_assemble_full_board(sleep):
    """Test that a healthy source yields a K x N board on the first attempt"""
    source = MockTriviaSource(make_catalog([f"Cat{i}" for i in range(10)]))
    orchestrator = BoardOrchestrator(source, num_categories=6, clues_per_category=5,
                                     rng=random.Random(7), sleep=sleep)
    
    board = await orchestrator.assemble_board()
    
    assert len(board.categories) == 6
    assert len({c.title for c in board.categories}) == 6
    for category in board.categories:
        assert len(category.clues) == 5
        assert len({clue.question.lower() for clue in category.clues}) == 5
    sleep.assert_not_awaited()
    assert orchestrator.get_stats()["boards_built"] == 1


@pytest.mark.asyncio
async def test_always_one_short_exhausts_budget(sleep):
    """Test a supplier that always yields one category short of K"""
    good = [f"Cat{i}" for i in range(5)]
    source = MockTriviaSource(make_catalog(good, thin=["Thin"]))
    orchestrator = BoardOrchestrator(source, num_categories=6, clues_per_category=5,
                                     max_attempts=5, retry_delay=1.0, sleep=sleep)
    
    with pytest.raises(BoardUnavailable) as excinfo:
        await orchestrator.assemble_board()
    
    assert excinfo.value.attempts == 5
    assert sleep.await_count == 4
    sleep.assert_awaited_with(1.0)
    
    stats = orchestrator.get_stats()
    assert stats["attempt_count"] == 5
    assert stats["shortfall_count"] == 5
    assert stats["boards_built"] == 0
    assert stats["failure_count"] == 1


@pytest.mark.asyncio
async def test_shortfall_retries_with_fresh_sample(sleep):
    """Test K=6, N=5 where one sampled category has only 4 unique questions"""
    good = [f"Cat{i}" for i in range(6)]
    source = MockTriviaSource(make_catalog(good, thin=["Thin"]))
    first = refs_named(source, ["Cat0", "Cat1", "Thin", "Cat2", "Cat3", "Cat4"])
    second = refs_named(source, ["Cat5", "Cat4", "Cat3", "Cat2", "Cat1", "Cat0"])
    rng = Mock()
    rng.sample.side_effect = [first, second]
    
    orchestrator = BoardOrchestrator(source, num_categories=6, clues_per_category=5,
                                     rng=rng, sleep=sleep)
    board = await orchestrator.assemble_board()
    
    assert rng.sample.call_count == 2
    sleep.assert_awaited_once()
    # Nothing from the first attempt survives into the board
    assert [c.title for c in board.categories] == [ref.name for ref in second]


@pytest.mark.asyncio
async def test_catalog_smaller_than_board_fails_immediately(sleep):
    source = MockTriviaSource(make_catalog(["Only", "Two"]))
    orchestrator = BoardOrchestrator(source, num_categories=6, clues_per_category=5,
                                     sleep=sleep)
    
    with pytest.raises(BoardUnavailable) as excinfo:
        await orchestrator.assemble_board()
    
    assert excinfo.value.attempts == 1
    sleep.assert_not_awaited()
    assert orchestrator.get_stats()["attempt_count"] == 1


class FlakySource(MockTriviaSource):
    """Unreachable for the first ``outages`` catalog requests"""
    
    def __init__(self, catalog, outages):
        super().__init__(catalog)
        self.outages = outages
    
    async def list_categories(self):
        if self.outages:
            self.outages -= 1
            raise SourceUnavailableError("connection refused")
        return await super().list_categories()


@pytest.mark.asyncio
async def test_unavailable_source_fails_attempt_then_recovers(sleep):
    """Test that an outage costs one attempt rather than the whole assembly"""
    source = FlakySource(make_catalog([f"Cat{i}" for i in range(8)]), outages=2)
    orchestrator = BoardOrchestrator(source, num_categories=6, clues_per_category=5,
                                     sleep=sleep)
    
    board = await orchestrator.assemble_board()
    
    assert len(board.categories) == 6
    assert sleep.await_count == 2


@pytest.mark.asyncio
async def test_unavailable_during_questions_abandons_attempt(sleep):
    """Test that the attempt stops at the first unreachable question fetch"""
    source = MockTriviaSource(make_catalog([f"Cat{i}" for i in range(8)]))
    source.fetch_questions = AsyncMock(side_effect=SourceUnavailableError("down"))
    orchestrator = BoardOrchestrator(source, num_categories=6, clues_per_category=5,
                                     max_attempts=2, sleep=sleep)
    
    with pytest.raises(BoardUnavailable):
        await orchestrator.assemble_board()
    
    assert source.fetch_questions.await_count == 2


@pytest.mark.asyncio
async def test_overfetch_escalates_per_attempt(sleep):
    """Test that each retry asks for more raw records per category"""
    source = MockTriviaSource(make_catalog([f"Cat{i}" for i in range(5)], thin=["Thin"]))
    orchestrator = BoardOrchestrator(source, num_categories=6, clues_per_category=5,
                                     max_attempts=3, overfetch_escalation=1, sleep=sleep)
    
    with pytest.raises(BoardUnavailable):
        await orchestrator.assemble_board()
    
    assert sorted(set(source.requested_counts)) == [10, 15, 20]


@pytest.mark.asyncio
async def test_stale_assembly_stops(sleep):
    """Test that assembly stops once it is no longer current"""
    source = MockTriviaSource(make_catalog([f"Cat{i}" for i in range(8)]))
    orchestrator = BoardOrchestrator(source, num_categories=6, clues_per_category=5,
                                     sleep=sleep)
    checks = iter([True, True, False])
    
    with pytest.raises(StaleAssemblyError):
        await orchestrator.assemble_board(is_current=lambda: next(checks, False))
    
    assert len(source.requested_counts) == 1


def test_get_stats_initially_empty():
    """Test orchestrator statistics"""
    orchestrator = BoardOrchestrator(MockTriviaSource())
    stats = orchestrator.get_stats()
    
    assert stats["assembly_count"] == 0
    assert stats["total_processing_time"] == 0.0
    assert stats["average_processing_time"] == 0
    assert "source_stats" in stats
