"""
Valuation Engine

Deterministic pricing model for Spanish residential property: zone base
price per m², multiplicative adjustments, ±10% range and a completeness
based confidence score.
"""

from .models import (
    FinishQuality,
    PropertyAttributes,
    ValuationResult,
    ZoneEntry,
    ZoneTier,
)
from .zones import ZoneDefaults, ZonePriceTable, get_zone_table
from .adjustments import (
    EXTRA_VALUES,
    MAX_EXTRAS_ADJUSTMENT,
    age_adjustment,
    extras_adjustment,
    finish_quality_adjustment,
    rooms_adjustment,
    size_adjustment,
)
from .engine import ValuationEngine, calculate_valuation

__all__ = [
    # Models
    "FinishQuality",
    "PropertyAttributes",
    "ValuationResult",
    "ZoneEntry",
    "ZoneTier",
    # Reference data
    "ZoneDefaults",
    "ZonePriceTable",
    "get_zone_table",
    # Adjustments
    "EXTRA_VALUES",
    "MAX_EXTRAS_ADJUSTMENT",
    "age_adjustment",
    "extras_adjustment",
    "finish_quality_adjustment",
    "rooms_adjustment",
    "size_adjustment",
    # Engine
    "ValuationEngine",
    "calculate_valuation",
]
