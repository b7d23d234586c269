"""
Trivia sources - category catalog and question suppliers
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from .errors import SourceError, SourceUnavailableError
from .models import CategoryRef, RawRecord
from .settings import Settings, settings

logger = logging.getLogger(__name__)

# Open Trivia DB refuses to hand out more than this many questions per call
OPENTDB_MAX_AMOUNT = 50

OPENTDB_RESPONSE_CODES = {
    0: "success",
    1: "no results",
    2: "invalid parameter",
    3: "token not found",
    4: "token empty",
    5: "rate limit",
}


class TriviaSource(ABC):
    """Abstract base class for trivia sources"""

    def __init__(self, name: str):
        self.name = name
        self.is_available = True
        self.total_requests = 0
        self.total_records = 0
        self.error_count = 0
        self.last_request_time = 0.0

    @abstractmethod
    async def list_categories(self) -> List[CategoryRef]:
        """Return the full category catalog"""
        pass

    @abstractmethod
    async def fetch_questions(self, category_id: int, count: int,
                              question_type: Optional[str] = None) -> List[RawRecord]:
        """Return up to ``count`` raw records for one category.

        The result may be shorter than requested and may contain duplicates.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the source is reachable"""
        pass

    async def cleanup(self):
        """Release any held resources"""
        pass

    def get_stats(self) -> Dict[str, Any]:
        """Get source statistics"""
        return {
            "name": self.name,
            "is_available": self.is_available,
            "total_requests": self.total_requests,
            "total_records": self.total_records,
            "error_count": self.error_count,
            "last_request_time": self.last_request_time
        }

    def _record_request(self, records: int = 0):
        self.total_requests += 1
        self.total_records += records
        self.last_request_time = time.time()


def _default_catalog() -> Dict[CategoryRef, List[RawRecord]]:
    """Small offline catalog with enough unique questions per category"""
    topics = [
        "General Knowledge", "Books", "Film", "Music", "Science &amp; Nature",
        "Computers", "Mathematics", "Mythology", "Sports", "Geography",
        "History", "Art",
    ]
    catalog = {}
    for offset, topic in enumerate(topics):
        ref = CategoryRef(id=9 + offset, name=topic)
        catalog[ref] = [
            RawRecord(
                question=f"{topic} question #{i + 1}: what is &quot;{topic}&quot; item {i + 1}?",
                answer=f"{topic} answer {i + 1}",
            )
            for i in range(12)
        ]
    return catalog


class MockTriviaSource(TriviaSource):
    """In-memory source for tests and offline play"""

    def __init__(self, catalog: Optional[Dict[CategoryRef, List[RawRecord]]] = None,
                 name: str = "mock"):
        super().__init__(name)
        self.catalog = catalog if catalog is not None else _default_catalog()
        self.requested_counts: List[int] = []

    async def list_categories(self) -> List[CategoryRef]:
        self._record_request()
        return list(self.catalog.keys())

    async def fetch_questions(self, category_id: int, count: int,
                              question_type: Optional[str] = None) -> List[RawRecord]:
        self.requested_counts.append(count)

        records: List[RawRecord] = []
        for ref, questions in self.catalog.items():
            if ref.id == category_id:
                records = list(questions[:count])
                break

        self._record_request(len(records))
        return records

    async def health_check(self) -> bool:
        """Mock health check always returns True"""
        return True


class OpenTriviaSource(TriviaSource):
    """Open Trivia DB (https://opentdb.com) over HTTP"""

    def __init__(self, base_url: str = "https://opentdb.com", timeout: float = 10.0,
                 min_request_interval: float = 5.0):
        super().__init__("opentdb")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # Open Trivia DB answers response_code 5 to a second request from the
        # same IP within 5 seconds
        self.min_request_interval = min_request_interval
        self.client: Optional[httpx.AsyncClient] = None
        self._pacing_lock: Optional[asyncio.Lock] = None
        self._last_response_at: Optional[float] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Lazy initialization of the HTTP client"""
        if self.client is None:
            self.client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        return self.client

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if self._pacing_lock is None:
            self._pacing_lock = asyncio.Lock()
        async with self._pacing_lock:
            await self._wait_for_slot()
            try:
                return await self._send(path, params)
            finally:
                self._last_response_at = time.monotonic()

    async def _wait_for_slot(self):
        """Sleep until min_request_interval has passed since the last response"""
        if self._last_response_at is None or self.min_request_interval <= 0:
            return
        remaining = self._last_response_at + self.min_request_interval - time.monotonic()
        if remaining > 0:
            logger.debug(f"Pacing request to {self.base_url}: waiting {remaining:.2f}s")
            await asyncio.sleep(remaining)

    async def _send(self, path: str, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        client = self._get_client()
        try:
            response = await client.get(path, params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            self.error_count += 1
            self.is_available = False
            raise SourceUnavailableError(f"Cannot reach {self.base_url}: {e}") from e
        except httpx.HTTPError as e:
            self.error_count += 1
            raise SourceError(f"Request to {path} failed: {e}") from e
        except ValueError as e:
            self.error_count += 1
            raise SourceError(f"Malformed JSON from {path}: {e}") from e

        self.is_available = True
        if not isinstance(data, dict):
            raise SourceError(f"Unexpected payload from {path}: {type(data).__name__}")
        return data

    async def list_categories(self) -> List[CategoryRef]:
        data = await self._get_json("/api_category.php")
        try:
            categories = [
                CategoryRef(id=int(item["id"]), name=str(item["name"]))
                for item in data.get("trivia_categories", [])
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise SourceError(f"Malformed category catalog: {e}") from e

        self._record_request(len(categories))
        logger.info(f"Fetched {len(categories)} categories from {self.base_url}")
        return categories

    async def fetch_questions(self, category_id: int, count: int,
                              question_type: Optional[str] = None) -> List[RawRecord]:
        params: Dict[str, Any] = {
            "amount": max(1, min(count, OPENTDB_MAX_AMOUNT)),
            "category": category_id,
        }
        if question_type:
            params["type"] = question_type

        data = await self._get_json("/api.php", params=params)
        code = data.get("response_code", 0)
        if code == 1:
            # Not enough questions in this category for the requested amount
            self._record_request()
            return []
        if code != 0:
            self.error_count += 1
            reason = OPENTDB_RESPONSE_CODES.get(code, "unknown")
            raise SourceError(f"Open Trivia DB returned code {code} ({reason})")

        try:
            records = [
                RawRecord(question=item["question"], answer=item["correct_answer"])
                for item in data.get("results") or []
            ]
        except (KeyError, TypeError) as e:
            raise SourceError(f"Malformed question record: {e}") from e

        self._record_request(len(records))
        return records

    async def health_check(self) -> bool:
        """Check that the category endpoint answers"""
        try:
            await self.list_categories()
            return True
        except SourceError as e:
            logger.error(f"Open Trivia DB health check failed: {e}")
            return False

    async def cleanup(self):
        if self.client is not None:
            await self.client.aclose()
            self.client = None


def create_source(config: Optional[Settings] = None) -> TriviaSource:
    """Build the source the configuration asks for"""
    config = config or settings
    if config.use_real_source:
        logger.info(f"Using Open Trivia DB at {config.source_base_url}")
        return OpenTriviaSource(
            config.source_base_url,
            timeout=config.request_timeout,
            min_request_interval=config.min_request_interval,
        )
    logger.info("Using mock trivia source")
    return MockTriviaSource()
