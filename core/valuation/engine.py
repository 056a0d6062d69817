"""
Valuation Engine

Turns a (possibly partial) PropertyAttributes snapshot into a three-point
price estimate with a confidence score.

Pipeline:
1. BASE PRICE - zone table lookup (postal code / city / province / Spain)
2. ADJUST - 1 + sum of age, extras, finish, size and room adjustments
3. VALUE - adjusted price per m² x surface
4. RANGE - fixed ±10% band
5. CONFIDENCE - data completeness score, capped at 95

The engine is pure and total: missing data degrades to defaults, it never
raises.
"""

import math
from datetime import date
from typing import Final, Optional

from .adjustments import (
    age_adjustment,
    extras_adjustment,
    finish_quality_adjustment,
    rooms_adjustment,
    size_adjustment,
)
from .models import PropertyAttributes, ValuationResult
from .zones import ZonePriceTable, get_zone_table


# =============================================================================
# Configuration Constants
# =============================================================================

DEFAULT_SURFACE: Final[float] = 100
MARGIN_PERCENT: Final[float] = 0.10

# Confidence scoring
BASE_CONFIDENCE: Final[int] = 50
MAX_CONFIDENCE: Final[int] = 95  # never report full certainty

CONFIDENCE_EXACT_ZONE: Final[int] = 15
CONFIDENCE_ANY_POSTAL_CODE: Final[int] = 5
CONFIDENCE_CITY: Final[int] = 5
CONFIDENCE_COORDINATES: Final[int] = 5
CONFIDENCE_SURFACE: Final[int] = 5
CONFIDENCE_YEAR: Final[int] = 5
CONFIDENCE_CADASTRAL_REFERENCE: Final[int] = 5
CONFIDENCE_BEDROOMS: Final[int] = 3
CONFIDENCE_BATHROOMS: Final[int] = 2
CONFIDENCE_EXTRAS: Final[int] = 3
CONFIDENCE_FINISH_QUALITY: Final[int] = 2


def usable_surface(surface: Optional[float]) -> Optional[float]:
    """Surface if it is a positive finite number, else None."""
    if surface and math.isfinite(surface) and surface > 0:
        return surface
    return None


def round_amount(value: float) -> int:
    """Round to the nearest whole unit, halves up."""
    return int(math.floor(value + 0.5))


class ValuationEngine:
    """
    Deterministic pricing model for Spanish residential property.

    Safe to call repeatedly with any snapshot; identical inputs always give
    identical results.
    """

    def __init__(
        self,
        zone_table: Optional[ZonePriceTable] = None,
        reference_year: Optional[int] = None,
    ):
        """
        Initialize valuation engine.

        Args:
            zone_table: Reference prices (default: bundled table)
            reference_year: Year used for building age (default: current year)
        """
        self._zones = zone_table or get_zone_table()
        self._reference_year = reference_year or date.today().year

    @property
    def zone_table(self) -> ZonePriceTable:
        return self._zones

    @property
    def reference_year(self) -> int:
        return self._reference_year

    def compute(self, attributes: Optional[PropertyAttributes] = None) -> ValuationResult:
        """
        Value a property.

        Args:
            attributes: Snapshot collected so far (any field may be missing)

        Returns:
            ValuationResult with rounded amounts and confidence
        """
        attributes = attributes or PropertyAttributes()

        # Step 1: Base price per m² for the zone
        base_price = self._zones.lookup(attributes.postal_code, attributes.city)

        # Step 2: Total adjustment factor (no overall clamp)
        total_adjustment = self.total_adjustment(attributes)

        # Step 3: Adjusted price per m²
        adjusted_price = base_price * total_adjustment

        # Step 4: Estimated value
        surface = usable_surface(attributes.surface) or DEFAULT_SURFACE
        estimated = adjusted_price * surface

        # Step 5: Range
        conservative = estimated * (1 - MARGIN_PERCENT)
        optimistic = estimated * (1 + MARGIN_PERCENT)

        # Step 6: Confidence
        confidence = self.confidence(attributes)

        return ValuationResult(
            conservative=round_amount(conservative),
            estimated=round_amount(estimated),
            optimistic=round_amount(optimistic),
            price_per_area=round_amount(adjusted_price),
            confidence=confidence,
        )

    def total_adjustment(self, attributes: PropertyAttributes) -> float:
        """1 + the sum of all five adjustments."""
        surface = usable_surface(attributes.surface) or DEFAULT_SURFACE
        return (
            1
            + age_adjustment(attributes.construction_year, self._reference_year)
            + extras_adjustment(attributes.extras)
            + finish_quality_adjustment(attributes.finish_quality)
            + size_adjustment(surface)
            + rooms_adjustment(
                attributes.bedrooms, attributes.bathrooms, usable_surface(attributes.surface)
            )
        )

    def confidence(self, attributes: PropertyAttributes) -> int:
        """
        Rate estimate reliability from data completeness.

        Base 50 plus bonuses for each piece of data present, capped at 95.
        """
        score = BASE_CONFIDENCE

        # Location data
        if attributes.postal_code:
            if self._zones.is_exact_match(attributes.postal_code):
                score += CONFIDENCE_EXACT_ZONE
            else:
                score += CONFIDENCE_ANY_POSTAL_CODE
        if attributes.city:
            score += CONFIDENCE_CITY
        if attributes.has_coordinates:
            score += CONFIDENCE_COORDINATES

        # Property characteristics
        if usable_surface(attributes.surface):
            score += CONFIDENCE_SURFACE
        if attributes.construction_year:
            score += CONFIDENCE_YEAR
        if attributes.cadastral_reference:
            score += CONFIDENCE_CADASTRAL_REFERENCE

        # Additional details
        if attributes.bedrooms:
            score += CONFIDENCE_BEDROOMS
        if attributes.bathrooms:
            score += CONFIDENCE_BATHROOMS
        if attributes.extras:
            score += CONFIDENCE_EXTRAS
        if attributes.finish_quality is not None:
            score += CONFIDENCE_FINISH_QUALITY

        return min(score, MAX_CONFIDENCE)


def calculate_valuation(attributes: Optional[PropertyAttributes] = None) -> ValuationResult:
    """Value a property with a default engine (bundled zones, current year)."""
    return ValuationEngine().compute(attributes)
