"""
Record types shared by the loaders, KPI engine and transforms.

All records are frozen dataclasses: a parse call builds them once and every
downstream step treats them as read-only.
"""

import math
from dataclasses import dataclass, field
from enum import Enum


class AlertType(str, Enum):
    CRITICAL = "Critical"
    CAPACITY = "Capacity"
    SUPPORTING = "Supporting"
    GENERAL = "General"


@dataclass(frozen=True)
class Observation:
    """One numeric measurement for a (category, week, scenario)."""

    category: str
    week: str
    value: float
    scenario: str

    def __post_init__(self):
        if not self.category:
            raise ValueError("Observation category must be non-empty")
        if not math.isfinite(self.value):
            raise ValueError(f"Observation value must be finite, got {self.value!r}")

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "week": self.week,
            "value": self.value,
            "scenario": self.scenario,
        }


@dataclass(frozen=True)
class AlertRecord:
    """Count of flagged conditions of one severity for a scenario."""

    type: AlertType
    count: int
    scenario: str

    def __post_init__(self):
        if self.count < 0:
            raise ValueError(f"Alert count must be >= 0, got {self.count}")

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "count": self.count,
            "scenario": self.scenario,
        }


@dataclass(frozen=True)
class Scenario:
    name: str
    description: str
    color: str


@dataclass(frozen=True)
class KPIDefinition:
    """How to summarise one category's observations per scenario.

    aggregation: one of "average", "sum", "last", "min", "max".
    format: str.format template applied to the KPI value for display.
    sign_convention: "up" (higher is better), "down" (lower is better)
        or "balanced" (small moves either way are fine).
    """

    name: str
    source_category: str
    aggregation: str
    format: str = "{:,.0f}"
    sign_convention: str = "balanced"
    description: str = ""


@dataclass(frozen=True)
class RatioKPIDefinition:
    """Derived KPI: mean(numerator category) / mean(denominator category)."""

    name: str
    numerator_category: str
    denominator_category: str
    format: str = "{:.2f}"
    sign_convention: str = "up"
    description: str = ""


@dataclass(frozen=True)
class ParseResult:
    """Output of one parse call for one scenario."""

    scenario: str
    observations: tuple[Observation, ...] = field(default_factory=tuple)
    alerts: tuple[AlertRecord, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        """True when a header was found but nothing usable was extracted."""
        return not self.observations and not self.alerts

    @property
    def categories(self) -> list[str]:
        return list(dict.fromkeys(obs.category for obs in self.observations))
