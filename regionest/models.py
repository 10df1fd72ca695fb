"""
Value types shared across the resolution pipeline.

Every field read from the knowledge source is optional. The conversion
helpers here turn loosely-typed SPARQL bindings into numbers and
timestamps, returning None for anything absent or malformed instead of
raising.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

_NON_NUMERIC_RE = re.compile(r"[^0-9.eE+\-]")


def parse_number(value: Any) -> Optional[float]:
    """Parse a loosely formatted number ("+123,456", "5.0E6") or return None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    cleaned = _NON_NUMERIC_RE.sub("", str(value))
    if not cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_timestamp(value: Any) -> Optional[float]:
    """Parse an ISO-8601 instant into epoch seconds, or return None.

    Naive values are taken as UTC, matching the knowledge source's
    xsd:dateTime output.
    """
    if not value:
        return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def binding_value(binding: Dict[str, Any], name: str) -> Optional[str]:
    """Return ``binding[name]["value"]`` if present, else None."""
    if not isinstance(binding, dict):
        return None
    cell = binding.get(name)
    if not isinstance(cell, dict):
        return None
    value = cell.get("value")
    return value if isinstance(value, str) else None


@dataclass(frozen=True)
class NormalizedQuery:
    canonical_name: str
    variants: Tuple[str, ...]
    region_hint: Optional[str] = None
    suffix: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.variants


@dataclass(frozen=True)
class CandidateRow:
    """One knowledge-source entity as returned, before any reconciliation."""

    item: str = ""
    label: str = ""
    parent_label: str = ""
    male: Optional[float] = None
    female: Optional[float] = None
    total: Optional[float] = None
    male_time: Optional[float] = None
    female_time: Optional[float] = None
    total_time: Optional[float] = None
    area_amount: Optional[float] = None
    area_unit: Optional[str] = None

    @classmethod
    def from_binding(cls, binding: Dict[str, Any]) -> "CandidateRow":
        return cls(
            item=binding_value(binding, "item") or "",
            label=binding_value(binding, "itemLabel") or "",
            parent_label=binding_value(binding, "prefLabel") or "",
            male=parse_number(binding_value(binding, "male")),
            female=parse_number(binding_value(binding, "female")),
            total=parse_number(binding_value(binding, "total")),
            male_time=parse_timestamp(binding_value(binding, "maleTime")),
            female_time=parse_timestamp(binding_value(binding, "femaleTime")),
            total_time=parse_timestamp(binding_value(binding, "popTime")),
            area_amount=parse_number(binding_value(binding, "area")),
            area_unit=binding_value(binding, "areaUnit"),
        )

    @property
    def display_name(self) -> str:
        """Label, with the administrative parent in full-width parentheses."""
        if self.parent_label:
            return f"{self.label}（{self.parent_label}）"
        return self.label


@dataclass(frozen=True)
class ScoredCandidate:
    row: CandidateRow
    score: float

    def sort_key(self) -> tuple:
        # highest score first; identifier breaks ties
        return (-self.score, self.row.item, self.row.label, self.row.parent_label)


@dataclass(frozen=True)
class PopulationSnapshot:
    male: int = 0
    total: int = 0
    area_km2: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"male": self.male, "total": self.total, "areaKm2": self.area_km2}


@dataclass(frozen=True)
class AgeBand:
    start: int
    end: int
    share: float

    @property
    def width(self) -> int:
        return self.end - self.start + 1


@dataclass(frozen=True)
class EstimateResult:
    """
    Outcome of one estimate request.

    ``upper_tail`` is None when no hensachi was given (or on the
    backend-fallback path); ``note`` marks a not-found resolution and
    ``error`` marks an internal failure.
    """

    region: str
    male_in_range: int = 0
    population: PopulationSnapshot = field(default_factory=PopulationSnapshot)
    upper_tail: Optional[float] = None
    prefecture: Optional[str] = None
    note: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"region": self.region}
        if self.prefecture is not None:
            data["prefecture"] = self.prefecture
        data["maleInRange"] = self.male_in_range
        data["population"] = self.population.to_dict()
        data["model"] = {"upperTail": self.upper_tail} if self.upper_tail is not None else None
        if self.note is not None:
            data["note"] = self.note
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EstimateResult":
        population = data.get("population") or {}
        model = data.get("model") or {}
        return cls(
            region=data.get("region", ""),
            male_in_range=int(data.get("maleInRange", 0)),
            population=PopulationSnapshot(
                male=int(population.get("male", 0)),
                total=int(population.get("total", 0)),
                area_km2=population.get("areaKm2"),
            ),
            upper_tail=model.get("upperTail"),
            prefecture=data.get("prefecture"),
            note=data.get("note"),
            error=data.get("error"),
        )
