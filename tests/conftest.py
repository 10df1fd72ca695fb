"""
Pytest configuration and shared fixtures.
"""

import pytest
from typing import Any, Dict, List
from unittest.mock import Mock

from regionest.cache import ResultCache
from regionest.logger import StructuredLogger
from regionest.models import CandidateRow
from regionest.sparql import SparqlClient


def binding(**fields: Any) -> Dict[str, Dict[str, str]]:
    """Build a SPARQL JSON binding from plain keyword values."""
    return {k: {"type": "literal", "value": str(v)} for k, v in fields.items() if v is not None}


class FakeClock:
    """Manually advanced time source (epoch seconds)."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, json_error: Exception = None):
        self.status_code = status_code
        self._payload = payload
        self._json_error = json_error

    def json(self):
        if self._json_error is not None:
            raise self._json_error
        return self._payload


class FakeClient:
    """Stands in for SparqlClient at the fetch_candidates seam."""

    def __init__(self, rows: Any = ()):
        self.rows = rows
        self.calls: List[Any] = []

    def fetch_candidates(self, query):
        self.calls.append(query)
        if isinstance(self.rows, Exception):
            raise self.rows
        return self.rows


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def quiet_logger() -> StructuredLogger:
    return StructuredLogger(name="regionest-test", enable_console=False, enable_file=False)


@pytest.fixture
def memory_cache(clock) -> ResultCache:
    return ResultCache(clock=clock)


@pytest.fixture
def shibuya_bindings() -> List[Dict[str, Any]]:
    """Two rows for the same name: the Tokyo ward and an unrelated entity."""
    return [
        binding(
            item="http://www.wikidata.org/entity/Q193638",
            itemLabel="渋谷区",
            prefLabel="東京都",
            male="80000",
            total="160000",
            maleTime="2020-10-01T00:00:00Z",
            popTime="2020-10-01T00:00:00Z",
            area="15.11",
            areaUnit="http://www.wikidata.org/entity/Q712226",
        ),
        binding(
            item="http://www.wikidata.org/entity/Q99999999",
            itemLabel="渋谷",
            prefLabel="神奈川県",
            total="5000",
        ),
    ]


@pytest.fixture
def shibuya_rows(shibuya_bindings) -> List[CandidateRow]:
    return [CandidateRow.from_binding(b) for b in shibuya_bindings]


@pytest.fixture
def mock_session():
    """requests.Session stand-in whose .get returns queued FakeResponses."""
    session = Mock()
    session.get = Mock()
    return session


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def make_client(mock_session, sleeps):
    def factory(**kwargs) -> SparqlClient:
        kwargs.setdefault("session", mock_session)
        kwargs.setdefault("sleep", sleeps.append)
        return SparqlClient(**kwargs)

    return factory
