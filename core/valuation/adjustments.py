"""
Adjustment Calculators

Each calculator maps one property attribute to a signed fractional
adjustment applied to the base price per m². All are pure and total:
missing input means no adjustment.
"""

from typing import Final, Iterable, Optional

from .models import FinishQuality


# =============================================================================
# Age
# =============================================================================

# (max age in years, adjustment) - first matching band wins
AGE_BANDS: Final[list[tuple[int, float]]] = [
    (0, 0.15),    # obra nueva
    (5, 0.10),
    (10, 0.05),
    (20, 0.0),
    (40, -0.05),
    (60, -0.10),
]
AGE_OLDEST_ADJUSTMENT: Final[float] = -0.12


def age_adjustment(construction_year: Optional[int], current_year: int) -> float:
    """
    Newer buildings command higher prices.

    Args:
        construction_year: Year the building was completed
        current_year: Reference year for the age calculation

    Returns:
        Adjustment between -0.12 and +0.15 (0 if year unknown)
    """
    if not construction_year:
        return 0.0

    age = current_year - construction_year
    for max_age, adjustment in AGE_BANDS:
        if age <= max_age:
            return adjustment
    return AGE_OLDEST_ADJUSTMENT


# =============================================================================
# Extras
# =============================================================================

EXTRA_VALUES: Final[dict[str, float]] = {
    "Terraza": 0.05,
    "Amueblado": 0.02,
    "Trastero": 0.02,
    "Piscina": 0.04,
    "Parking": 0.05,
    "Jardín": 0.04,
    "Cerca ciudad": 0.02,
    "Com. cerrada": 0.03,
    "Buenas vistas": 0.04,
    "Seguridad": 0.02,
    "Deportes": 0.02,
    "Portero": 0.02,
    "Aire A/C": 0.02,
    "Calefacción": 0.02,
    "Domótica": 0.03,
    "Ascensor": 0.02,
    "Balcón": 0.02,
}
UNKNOWN_EXTRA_VALUE: Final[float] = 0.01
MAX_EXTRAS_ADJUSTMENT: Final[float] = 0.25


def extras_adjustment(extras: Optional[Iterable[str]]) -> float:
    """
    Sum of per-extra values, capped at +25%.

    Unrecognised tags still count for +1% each.
    """
    total = 0.0
    for extra in extras or ():
        total += EXTRA_VALUES.get(extra, UNKNOWN_EXTRA_VALUE)
    return min(total, MAX_EXTRAS_ADJUSTMENT)


# =============================================================================
# Finish Quality
# =============================================================================

FINISH_QUALITY_VALUES: Final[dict[FinishQuality, float]] = {
    FinishQuality.DESIGN: 0.15,
    FinishQuality.GOOD: 0.05,
    FinishQuality.ACCEPTABLE: 0.0,
    FinishQuality.SMALL_REFORM: -0.10,
    FinishQuality.FULL_REFORM: -0.20,
}


def finish_quality_adjustment(quality: Optional[FinishQuality]) -> float:
    if quality is None:
        return 0.0
    return FINISH_QUALITY_VALUES.get(quality, 0.0)


# =============================================================================
# Size
# =============================================================================

# (surface upper bound in m², adjustment); larger homes have lower price/m²
SIZE_BANDS: Final[list[tuple[float, float]]] = [
    (50, 0.10),
    (80, 0.05),
    (120, 0.0),
    (180, -0.03),
    (250, -0.05),
]
SIZE_LARGEST_ADJUSTMENT: Final[float] = -0.08


def size_adjustment(surface: float) -> float:
    for upper_bound, adjustment in SIZE_BANDS:
        if surface < upper_bound:
            return adjustment
    return SIZE_LARGEST_ADJUSTMENT


# =============================================================================
# Room Density
# =============================================================================

CRAMPED_AREA_PER_BEDROOM: Final[float] = 15
SPARSE_AREA_PER_BEDROOM: Final[float] = 50


def rooms_adjustment(
    bedrooms: Optional[int],
    bathrooms: Optional[int],
    surface: Optional[float],
) -> float:
    """
    Penalise cramped or under-partitioned layouts.

    A second bathroom in a home of 100 m² or more earns +2% when the
    bedroom density is otherwise reasonable.
    """
    if not bedrooms or not surface:
        return 0.0

    area_per_bedroom = surface / bedrooms

    if area_per_bedroom < CRAMPED_AREA_PER_BEDROOM:
        return -0.05
    if area_per_bedroom > SPARSE_AREA_PER_BEDROOM:
        return -0.02

    if bathrooms and bathrooms >= 2 and surface >= 100:
        return 0.02

    return 0.0
