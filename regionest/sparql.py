"""Wikidata SPARQL client and candidate query builder."""

import re
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from .logger import get_logger
from .models import CandidateRow, NormalizedQuery
from .retry import RetryError, call_with_retry, should_retry_http_status

logger = get_logger()

DEFAULT_ENDPOINT = "https://query.wikidata.org/sparql"
DEFAULT_USER_AGENT = "regionest/0.1 (https://github.com/regionest/regionest)"
SPARQL_JSON = "application/sparql-results+json"

# Returned by SparqlClient.query when every attempt failed.
UNAVAILABLE = None

CANDIDATE_LIMIT = 20

MUNICIPALITY_CLASSES = (
    "wd:Q515",       # city
    "wd:Q532",       # special ward of Tokyo
    "wd:Q30335059",  # ward of Japan
    "wd:Q1012369",   # town
    "wd:Q5322507",   # village
    "wd:Q15284",     # municipality
)

_REGEX_META_RE = re.compile(r"([.*+?^${}()|\[\]\\])")


def escape_regex(text: str) -> str:
    """Backslash-escape regex metacharacters so text matches literally."""
    return _REGEX_META_RE.sub(r"\\\1", text)


def sparql_literal(text: str) -> str:
    """Escape text for use inside a double-quoted SPARQL string literal."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


def build_candidate_query(query: NormalizedQuery, limit: int = CANDIDATE_LIMIT) -> str:
    """Build the SELECT query matching any of the query's name variants."""
    pattern = sparql_literal("|".join(escape_regex(v) for v in query.variants))
    classes = " ".join(MUNICIPALITY_CLASSES)
    return f"""
SELECT ?item ?itemLabel ?prefLabel ?male ?female ?total ?area ?areaUnit ?maleTime ?femaleTime ?popTime WHERE {{
  VALUES ?class {{ {classes} }}
  ?item wdt:P17 wd:Q17 .
  ?item wdt:P31 ?class .

  OPTIONAL {{ ?item wdt:P131 ?pref . ?pref rdfs:label ?prefLabel . FILTER(LANG(?prefLabel) = "ja") }}

  OPTIONAL {{ ?item p:P1540 ?mStmt . ?mStmt ps:P1540 ?male . OPTIONAL {{ ?mStmt pq:P585 ?maleTime }} }}
  OPTIONAL {{ ?item p:P1539 ?fStmt . ?fStmt ps:P1539 ?female . OPTIONAL {{ ?fStmt pq:P585 ?femaleTime }} }}
  OPTIONAL {{ ?item p:P1082 ?tStmt . ?tStmt ps:P1082 ?total . OPTIONAL {{ ?tStmt pq:P585 ?popTime }} }}

  OPTIONAL {{
    ?item p:P2046 ?aStmt . ?aStmt psv:P2046 ?aValue .
    ?aValue wikibase:quantityAmount ?area .
    OPTIONAL {{ ?aValue wikibase:quantityUnit ?areaUnit }}
  }}

  ?item rdfs:label ?itemLabel .
  FILTER (LANG(?itemLabel) = "ja" || LANG(?itemLabel) = "en")
  OPTIONAL {{ ?item skos:altLabel ?alt . FILTER (LANG(?alt) = "ja") }}

  FILTER (
    regex(str(?itemLabel), "^({pattern})$", "i") ||
    regex(str(?alt), "^({pattern})$", "i") ||
    regex(str(?itemLabel), "({pattern})", "i")
  )
}}
ORDER BY DESC(?popTime) DESC(?maleTime) DESC(?total)
LIMIT {int(limit)}
""".strip()


class KnowledgeSourceError(Exception):
    """A single failed attempt against the knowledge source."""


class SparqlClient:
    """
    GET-based SPARQL client with a bounded retry loop.

    ``query`` never raises: transport errors, timeouts, non-2xx statuses
    and malformed envelopes are retried, and exhaustion yields UNAVAILABLE.

    ``timeout`` bounds the connect and each socket read separately; it is
    not a deadline on the whole response body.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 5.0,
        max_retries: int = 2,
        base_delay: float = 0.3,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.endpoint = endpoint
        self.user_agent = user_agent
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.session = session or requests.Session()
        self.sleep = sleep

    @property
    def headers(self) -> Dict[str, str]:
        return {"Accept": SPARQL_JSON, "User-Agent": self.user_agent}

    def _fetch_once(self, sparql: str) -> List[Dict[str, Any]]:
        logger.record_api_call()
        resp = self.session.get(
            self.endpoint,
            params={"query": sparql, "format": "json"},
            headers=self.headers,
            timeout=(self.timeout, self.timeout),
        )
        if should_retry_http_status(resp.status_code):
            raise KnowledgeSourceError(f"HTTP {resp.status_code}")
        data = resp.json()
        results = data.get("results") if isinstance(data, dict) else None
        bindings = results.get("bindings") if isinstance(results, dict) else None
        if not isinstance(bindings, list):
            raise KnowledgeSourceError("Response has no results.bindings")
        return bindings

    def _on_retry(self, attempt: int, exc: Exception, delay: float) -> None:
        logger.warning(
            "Knowledge source attempt failed, retrying",
            attempt=attempt,
            error=type(exc).__name__,
            detail=str(exc),
            delay=delay,
        )

    def query(self, sparql: str) -> Optional[List[Dict[str, Any]]]:
        """Run a query; return binding rows, or UNAVAILABLE after exhausting retries."""
        logger.record_query_attempt()
        try:
            rows = call_with_retry(
                self._fetch_once,
                sparql,
                max_retries=self.max_retries,
                base_delay=self.base_delay,
                exceptions=(requests.exceptions.RequestException, KnowledgeSourceError, ValueError),
                on_retry=self._on_retry,
                sleep=self.sleep,
            )
        except RetryError as e:
            error_type = type(e.last_exception).__name__ if e.last_exception else "RetryError"
            logger.record_query_failure(error_type)
            logger.error(
                "Knowledge source unavailable",
                endpoint=self.endpoint,
                attempts=e.attempts,
                error=error_type,
            )
            return UNAVAILABLE

        logger.record_query_success()
        logger.debug("Knowledge source returned rows", count=len(rows))
        return rows

    def fetch_candidates(self, query: NormalizedQuery) -> Optional[List[CandidateRow]]:
        """Fetch raw candidate rows for a normalized query.

        Returns an empty list when nothing matched and UNAVAILABLE when the
        source could not be reached.
        """
        if query.is_empty:
            return []
        rows = self.query(build_candidate_query(query))
        if rows is UNAVAILABLE:
            return UNAVAILABLE
        return [CandidateRow.from_binding(b) for b in rows]
