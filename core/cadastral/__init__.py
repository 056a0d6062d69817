"""
Cadastral Layer

Canonical CadastralRecord / BuildingUnit schema, the normalizer that maps
every known registry response shape onto it, and the registry HTTP client.

All registry data entering the valuation pipeline passes through
normalize_cadastral_response or select_unit.
"""

from core.cadastral.schema import (
    USE_CODE_LABELS,
    BuildingUnit,
    CadastralRecord,
    use_icon,
    use_label,
)
from core.cadastral.normalizer import (
    building_reference,
    extract_reference,
    flatten_reference,
    format_floor,
    is_multi_unit,
    normalize_cadastral_response,
    resolve_building_units,
    select_unit,
)
from core.cadastral.client import (
    CatastroClient,
    placeholder_by_coordinates,
    placeholder_by_reference,
)

__all__ = [
    # Schema
    "USE_CODE_LABELS",
    "BuildingUnit",
    "CadastralRecord",
    "use_icon",
    "use_label",
    # Normalizer
    "building_reference",
    "extract_reference",
    "flatten_reference",
    "format_floor",
    "is_multi_unit",
    "normalize_cadastral_response",
    "resolve_building_units",
    "select_unit",
    # Client
    "CatastroClient",
    "placeholder_by_coordinates",
    "placeholder_by_reference",
]
