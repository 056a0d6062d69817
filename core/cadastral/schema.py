"""
Cadastral Schema - Canonical Registry Records

CadastralRecord is the ONLY shape that leaves the normalization boundary.
However the registry reports a property (flat or nested fields, string or
structured reference, one unit or many), callers always receive these
fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Optional


# =============================================================================
# Land-Use Codes
# =============================================================================

# Registry land-use code -> human label
USE_CODE_LABELS: Final[dict[str, str]] = {
    "V": "Residencial",
    "I": "Industrial",
    "O": "Oficinas",
    "C": "Comercial",
    "K": "Deportivo",
    "T": "Espectáculos",
    "G": "Ocio y Hostelería",
    "Y": "Sanidad y Beneficencia",
    "E": "Educación",
    "R": "Religioso",
    "M": "Obras de urbanización",
    "P": "Edificio singular",
    "B": "Almacén-Estacionamiento",
    "A": "Almacén agrario",
    "J": "Industrial agrario",
    "Z": "Agrario",
}

DEFAULT_USE_CODE: Final[str] = "V"
DEFAULT_USE_LABEL: Final[str] = "Residencial"

# Use label or code -> display icon for the unit picker
USE_ICONS: Final[dict[str, str]] = {
    "Residencial": "home",
    "Comercial": "storefront",
    "Industrial": "factory",
    "Oficinas": "business",
    "Almacén-Estacionamiento": "local_parking",
    "V": "home",
    "C": "storefront",
    "I": "factory",
    "O": "business",
    "B": "local_parking",
}
DEFAULT_USE_ICON: Final[str] = "apartment"

# Building types
MULTI_UNIT_BUILDING: Final[str] = "Plurifamiliar"
SINGLE_UNIT_BUILDING: Final[str] = "Unifamiliar"

# Parts of a structured reference, in concatenation order
REFERENCE_PARTS: Final[tuple[str, ...]] = ("pc1", "pc2", "car", "cc1", "cc2")

# Parcel part of a reference (first 14 characters) identifies the building
BUILDING_REFERENCE_LENGTH: Final[int] = 14

DEFAULT_SURFACE: Final[int] = 100
DEFAULT_CONSTRUCTION_YEAR: Final[int] = 2000


def use_label(code: Optional[str]) -> str:
    """Translate a land-use code; unknown codes pass through unchanged."""
    if not code:
        return DEFAULT_USE_LABEL
    return USE_CODE_LABELS.get(code, code) or DEFAULT_USE_LABEL


def use_icon(use: Optional[str]) -> str:
    return USE_ICONS.get(use or "", DEFAULT_USE_ICON)


@dataclass(frozen=True)
class CadastralRecord:
    """
    Canonical normalised registry record for one property.

    Invariants:
        - cadastral_reference is always a flat string (possibly empty)
        - surface and construction_year always hold a usable number
    """

    cadastral_reference: str
    address: str
    postal_code: str
    municipality: str
    province: str
    property_type: str  # Residencial, Comercial, Industrial, ...
    building_type: str  # Plurifamiliar, Unifamiliar, ...
    surface: int  # Built surface in m²
    construction_year: int

    floors: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def building_reference(self) -> str:
        """Parcel part of the reference shared by every unit in the building."""
        return self.cadastral_reference[:BUILDING_REFERENCE_LENGTH]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "cadastral_reference": self.cadastral_reference,
            "address": self.address,
            "postal_code": self.postal_code,
            "municipality": self.municipality,
            "province": self.province,
            "property_type": self.property_type,
            "building_type": self.building_type,
            "surface": self.surface,
            "construction_year": self.construction_year,
            "floors": self.floors,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }


@dataclass(frozen=True)
class BuildingUnit:
    """
    One registrable unit inside a multi-unit building.

    Transient: built from a raw registry listing for the unit picker and
    never persisted. Selecting a unit promotes it to a CadastralRecord.
    """

    index: int
    cadastral_reference: str
    floor: str  # raw floor as reported
    floor_label: str  # "Bajo", "1º", "2º", ...
    door: str
    surface: int  # 0 when unknown
    use: str  # raw use code or label as reported
    construction_year: int  # 0 when unknown
    icon: str
    postal_code: str = ""

    @property
    def display_name(self) -> str:
        if self.door:
            return f"{self.floor_label} - Puerta {self.door}"
        return self.floor_label

    @property
    def summary(self) -> str:
        """Secondary line for the picker: surface · use · year."""
        parts = []
        if self.surface > 0:
            parts.append(f"{self.surface} m²")
        if self.use:
            parts.append(self.use)
        if self.construction_year > 0:
            parts.append(str(self.construction_year))
        return " · ".join(parts)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "index": self.index,
            "cadastral_reference": self.cadastral_reference,
            "floor": self.floor,
            "floor_label": self.floor_label,
            "door": self.door,
            "surface": self.surface,
            "use": self.use,
            "construction_year": self.construction_year,
            "icon": self.icon,
            "postal_code": self.postal_code,
            "display_name": self.display_name,
            "summary": self.summary,
        }
