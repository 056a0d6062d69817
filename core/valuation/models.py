"""
Data models for the Valuation Engine.

Defines the attribute snapshot collected by the wizard, the zone reference
data and the valuation result.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional


class FinishQuality(Enum):
    """
    Interior finish / renovation state.

    Ordered by value-add, best first:
    design > good > acceptable > small_reform > full_reform
    """
    DESIGN = "design"
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    SMALL_REFORM = "small_reform"
    FULL_REFORM = "full_reform"

    @property
    def label(self) -> str:
        """Display label shown to the lead."""
        return _FINISH_LABELS[self]

    @classmethod
    def from_string(cls, value: Optional[str]) -> Optional["FinishQuality"]:
        """Convert string to FinishQuality, case-insensitive."""
        if not value:
            return None
        normalised = str(value).lower().strip().replace("-", "_")
        for member in cls:
            if member.value == normalised:
                return member
        return None


_FINISH_LABELS = {
    FinishQuality.DESIGN: "Acabados de diseño",
    FinishQuality.GOOD: "Buenos acabados",
    FinishQuality.ACCEPTABLE: "Buen estado",
    FinishQuality.SMALL_REFORM: "Pequeña reforma",
    FinishQuality.FULL_REFORM: "Reforma completa",
}


class ZoneTier(Enum):
    """
    Qualitative price bracket attached to a zone.

    Ordered: low < medium < high < premium < luxury
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    PREMIUM = "premium"
    LUXURY = "luxury"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)

    def __lt__(self, other: "ZoneTier") -> bool:
        if not isinstance(other, ZoneTier):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: "ZoneTier") -> bool:
        if not isinstance(other, ZoneTier):
            return NotImplemented
        return self.rank <= other.rank


_TIER_ORDER = [
    ZoneTier.LOW,
    ZoneTier.MEDIUM,
    ZoneTier.HIGH,
    ZoneTier.PREMIUM,
    ZoneTier.LUXURY,
]


@dataclass(frozen=True)
class ZoneEntry:
    """A pricing zone keyed by postal code in the reference table."""
    postal_code: str
    city: str
    zone: str
    price_per_area: float  # EUR per m²
    tier: ZoneTier

    def to_dict(self) -> dict:
        return {
            "postal_code": self.postal_code,
            "city": self.city,
            "zone": self.zone,
            "price_per_area": self.price_per_area,
            "tier": self.tier.value,
        }


# Wizard (camelCase) key -> snapshot field
_FIELD_ALIASES = {
    "postalCode": "postal_code",
    "cadastralReference": "cadastral_reference",
    "constructionYear": "construction_year",
    "propertyType": "property_type",
    "buildingType": "building_type",
    "finishQuality": "finish_quality",
    "streetViewUrl": "street_view_url",
}

_FLOAT_FIELDS = ("surface", "latitude", "longitude")
_INT_FIELDS = ("construction_year", "bedrooms", "bathrooms")
_STR_FIELDS = (
    "address",
    "city",
    "postal_code",
    "cadastral_reference",
    "property_type",
    "building_type",
    "street_view_url",
)


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(str(value).replace(",", "."))
    except (TypeError, ValueError):
        return None
    # "nan" and "inf" parse as floats but are never usable measurements
    return number if math.isfinite(number) else None


def _to_int(value: Any) -> Optional[int]:
    number = _to_float(value)
    if number is None:
        return None
    return int(number)


@dataclass(frozen=True)
class PropertyAttributes:
    """
    Immutable snapshot of the property attributes collected by the wizard.

    Every field is optional: the wizard builds the record incrementally and
    the Valuation Engine substitutes defaults for anything missing.
    """
    # Location
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    # Identity
    cadastral_reference: Optional[str] = None

    # Physical
    surface: Optional[float] = None  # m²
    construction_year: Optional[int] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None

    # Classification
    property_type: Optional[str] = None  # e.g. "Residencial"
    building_type: Optional[str] = None  # "Plurifamiliar" / "Unifamiliar"

    # Enrichments
    extras: tuple[str, ...] = field(default_factory=tuple)
    finish_quality: Optional[FinishQuality] = None

    street_view_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "PropertyAttributes":
        """
        Build a snapshot from wizard data.

        Accepts both snake_case and camelCase keys. Values that cannot be
        parsed are treated as absent rather than rejected.
        """
        if not data:
            return cls()

        values: dict[str, Any] = {}
        for key, value in data.items():
            name = _FIELD_ALIASES.get(key, key)
            if name in _FLOAT_FIELDS:
                values[name] = _to_float(value)
            elif name in _INT_FIELDS:
                values[name] = _to_int(value)
            elif name in _STR_FIELDS:
                values[name] = str(value) if value not in (None, "") else None
            elif name == "extras":
                values[name] = tuple(str(e) for e in (value or []))
            elif name == "finish_quality":
                values[name] = (
                    value if isinstance(value, FinishQuality)
                    else FinishQuality.from_string(value)
                )

        return cls(**values)

    def with_updates(self, **changes: Any) -> "PropertyAttributes":
        """Return a new snapshot with the given fields replaced."""
        if "extras" in changes and changes["extras"] is not None:
            changes["extras"] = tuple(changes["extras"])
        if "finish_quality" in changes and isinstance(changes["finish_quality"], str):
            changes["finish_quality"] = FinishQuality.from_string(changes["finish_quality"])
        return replace(self, **changes)

    @property
    def has_coordinates(self) -> bool:
        return bool(self.latitude and self.longitude)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "address": self.address,
            "city": self.city,
            "postal_code": self.postal_code,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "cadastral_reference": self.cadastral_reference,
            "surface": self.surface,
            "construction_year": self.construction_year,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "property_type": self.property_type,
            "building_type": self.building_type,
            "extras": list(self.extras),
            "finish_quality": self.finish_quality.value if self.finish_quality else None,
            "street_view_url": self.street_view_url,
        }


@dataclass(frozen=True)
class ValuationResult:
    """
    Three-point price estimate for a property.

    conservative <= estimated <= optimistic holds by construction
    (fixed ±10% band around the estimate).
    """
    conservative: int
    estimated: int
    optimistic: int
    price_per_area: int  # EUR per m², after adjustments
    confidence: int  # 0-95

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "conservative": self.conservative,
            "estimated": self.estimated,
            "optimistic": self.optimistic,
            "price_per_area": self.price_per_area,
            "confidence": self.confidence,
        }
