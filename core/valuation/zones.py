"""
Zone Price Table

Static reference data mapping Spanish postal codes to a price-per-m²
baseline, plus nationwide fallback constants.

Lookup precedence:
1. Exact postal code
2. Any zone in the same city (case-insensitive)
3. Any zone sharing the 3-digit province prefix, discounted 15%
4. Spain average
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Final, Mapping, Optional, Union

from .models import ZoneEntry, ZoneTier


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Constants
# =============================================================================

DEFAULT_PRICES_PATH: Final = Path(__file__).parent / "data" / "prices_by_zone.json"

PROVINCE_PREFIX_LENGTH: Final[int] = 3
PREFIX_MATCH_DISCOUNT: Final[float] = 0.85


@dataclass(frozen=True)
class ZoneDefaults:
    """
    Nationwide fallback constants.

    coastal_premium and island_premium are part of the reference data but
    are not applied by the pricing algorithm.
    """
    spain_average: float
    capital_average: float
    coastal_premium: float
    island_premium: float


class ZonePriceTable:
    """
    Read-only postal code -> price-per-m² table.

    Loaded once; lookups never raise and never mutate the table.
    """

    def __init__(
        self,
        zones: Mapping[str, ZoneEntry],
        defaults: ZoneDefaults,
        metadata: Optional[dict] = None,
    ):
        self._zones = MappingProxyType(dict(zones))
        self._defaults = defaults
        self._metadata = dict(metadata or {})

    @classmethod
    def from_dict(cls, data: dict) -> "ZonePriceTable":
        """Build a table from the JSON reference document."""
        zones = {}
        for postal_code, raw in data.get("zones", {}).items():
            zones[postal_code] = ZoneEntry(
                postal_code=postal_code,
                city=raw["city"],
                zone=raw.get("zone", ""),
                price_per_area=float(raw["pricePerSqm"]),
                tier=ZoneTier(raw.get("tier", "medium")),
            )

        raw_defaults = data.get("defaults", {})
        defaults = ZoneDefaults(
            spain_average=float(raw_defaults["spain_average"]),
            capital_average=float(raw_defaults.get("capital_average", 0)),
            coastal_premium=float(raw_defaults.get("coastal_premium", 0)),
            island_premium=float(raw_defaults.get("island_premium", 0)),
        )
        return cls(zones, defaults, data.get("metadata"))

    @classmethod
    def load(cls, path: Union[str, Path, None] = None) -> "ZonePriceTable":
        """Load the table from a JSON file (defaults to the bundled data)."""
        source = Path(path) if path else DEFAULT_PRICES_PATH
        table = cls.from_dict(json.loads(source.read_text(encoding="utf-8")))
        logger.info("Loaded %d pricing zones from %s", len(table), source)
        return table

    def __len__(self) -> int:
        return len(self._zones)

    def __contains__(self, postal_code: object) -> bool:
        return postal_code in self._zones

    @property
    def defaults(self) -> ZoneDefaults:
        return self._defaults

    @property
    def metadata(self) -> dict:
        return dict(self._metadata)

    def all_zones(self) -> Mapping[str, ZoneEntry]:
        """All zones keyed by postal code (read-only view)."""
        return self._zones

    def get_zone_info(self, postal_code: Optional[str]) -> Optional[ZoneEntry]:
        """Zone for an exact postal code, or None."""
        if not postal_code:
            return None
        return self._zones.get(postal_code)

    def is_exact_match(self, postal_code: Optional[str]) -> bool:
        return bool(postal_code) and postal_code in self._zones

    def lookup(
        self,
        postal_code: Optional[str] = None,
        city: Optional[str] = None,
    ) -> float:
        """
        Best-available price per m² for a postal code and/or city.

        Args:
            postal_code: Spanish postal code (5 digits)
            city: City name, matched case-insensitively

        Returns:
            Price per m² in EUR. Always returns a value.
        """
        # 1. Exact postal code
        if postal_code and postal_code in self._zones:
            return self._zones[postal_code].price_per_area

        # 2. Any zone in the same city
        if city:
            city_lower = city.lower()
            for entry in self._zones.values():
                if entry.city.lower() == city_lower:
                    return entry.price_per_area

        # 3. Province prefix, discounted for the inexact match
        if postal_code:
            prefix = postal_code[:PROVINCE_PREFIX_LENGTH]
            for code, entry in self._zones.items():
                if code.startswith(prefix):
                    return entry.price_per_area * PREFIX_MATCH_DISCOUNT

        # 4. Nationwide average
        return self._defaults.spain_average


# Singleton instance for the application
_zone_table: Optional[ZonePriceTable] = None


def get_zone_table() -> ZonePriceTable:
    """Get the zone price table singleton (loaded on first use)."""
    global _zone_table
    if _zone_table is None:
        _zone_table = ZonePriceTable.load()
    return _zone_table
