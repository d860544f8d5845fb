"""
AQI Categories

Maps a normalized AQI value onto the banded categories shown to
operators. Bands follow the common Indian/US-style breakpoints:

- Good (0-50): Minimal impact
- Moderate (51-100): Acceptable, sensitive groups take care
- Poor (101-200): Breathing discomfort for most people
- Very Poor (201-300): Respiratory illness on prolonged exposure
- Severe (>300): Affects healthy people, serious impact on others
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class AQICategory(Enum):
    """AQI categories for easy interpretation."""
    GOOD = "good"
    MODERATE = "moderate"
    POOR = "poor"
    VERY_POOR = "very_poor"
    SEVERE = "severe"


# Upper bound (inclusive) of each band; anything above VERY_POOR is SEVERE
CATEGORY_UPPER_BOUNDS = (
    (50.0, AQICategory.GOOD),
    (100.0, AQICategory.MODERATE),
    (200.0, AQICategory.POOR),
    (300.0, AQICategory.VERY_POOR),
)

ADVISORIES: Dict[AQICategory, str] = {
    AQICategory.GOOD: "Air quality is satisfactory.",
    AQICategory.MODERATE: "Acceptable; unusually sensitive people should limit prolonged exertion.",
    AQICategory.POOR: "Breathing discomfort likely for most people on prolonged exposure.",
    AQICategory.VERY_POOR: "Respiratory illness likely on prolonged exposure. Reduce outdoor activity.",
    AQICategory.SEVERE: "Serious health impact. Avoid outdoor activity.",
}


@dataclass(frozen=True)
class AQIAssessment:
    """Category and advisory for a single AQI value."""
    value: float
    category: AQICategory
    advisory: str

    def to_dict(self) -> Dict:
        return {
            "value": self.value,
            "category": self.category.value,
            "advisory": self.advisory,
        }


def classify_aqi(value: float) -> AQICategory:
    """Return the category band containing ``value``."""
    for upper, category in CATEGORY_UPPER_BOUNDS:
        if value <= upper:
            return category
    return AQICategory.SEVERE


def assess_aqi(value: float) -> AQIAssessment:
    """Classify a value and attach the advisory message."""
    category = classify_aqi(value)
    return AQIAssessment(value=value, category=category, advisory=ADVISORIES[category])
