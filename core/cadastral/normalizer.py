"""
Cadastral Normalizer - Single Boundary for Registry Response Shapes

The registry API is uncontrolled and reports the same property in many
shapes: fields top-level or nested under "datosEconomicos" / "direccion",
the reference as a string or as its component parts, accented and
unaccented key variants, one unit or a list of units.

Each canonical field is resolved here with an explicit precedence list.
Nothing in this module raises on malformed input: every field degrades to
its documented default.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import replace
from typing import Any, Final, Optional, Sequence

from core.cadastral.schema import (
    BUILDING_REFERENCE_LENGTH,
    DEFAULT_CONSTRUCTION_YEAR,
    DEFAULT_SURFACE,
    DEFAULT_USE_CODE,
    MULTI_UNIT_BUILDING,
    REFERENCE_PARTS,
    SINGLE_UNIT_BUILDING,
    BuildingUnit,
    CadastralRecord,
    use_icon,
    use_label,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Field Precedence
# =============================================================================

REFERENCE_KEYS: Final = ("rc", "referenciaCatastral", "refCatastral")
POSTAL_CODE_KEYS: Final = ("codigoPostal", "cp")
MUNICIPALITY_KEYS: Final = ("nombreMunicipio", "municipio")
PROVINCE_KEYS: Final = ("nombreProvincia", "provincia")
USE_KEYS: Final = ("uso", "usoPrincipal")
SURFACE_KEYS: Final = ("superficieConstruida", "superficie")
YEAR_KEYS: Final = ("añoConstruccion", "anoConstruccion", "ano")
FLOOR_KEYS: Final = ("planta", "piso")
DOOR_KEYS: Final = ("puerta", "letra")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+))")


# =============================================================================
# Tolerant Parsing Helpers
# =============================================================================


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _first(sources: Sequence[dict], keys: Sequence[str]) -> Any:
    """First truthy value for any key, searching sources in order."""
    for source in sources:
        for key in keys:
            value = source.get(key)
            if value:
                return value
    return None


def parse_int(value: Any) -> Optional[int]:
    """
    Extract a leading integer from a number or string.

    Decimal commas are read as decimal points and the fraction dropped:
    "85,40" -> 85, "1995 " -> 1995, "abc" -> None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    match = _LEADING_INT.match(str(value).replace(",", "."))
    return int(match.group(1)) if match else None


def parse_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _LEADING_FLOAT.match(str(value).replace(",", "."))
    return float(match.group(1)) if match else None


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


# =============================================================================
# Reference Resolution
# =============================================================================


def flatten_reference(value: Any) -> str:
    """
    Flatten a cadastral reference to a single string.

    Accepts the plain string form or the structured form, which either
    embeds the full string under "referenciaCatastral" or carries the parts
    pc1, pc2, car, cc1, cc2 (concatenated in that order).
    """
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        embedded = value.get("referenciaCatastral")
        if isinstance(embedded, str) and embedded:
            return embedded
        return "".join(_text(value.get(part)) for part in REFERENCE_PARTS)
    return ""


def building_reference(reference: str) -> str:
    """Parcel part of a reference (first 14 characters)."""
    return (reference or "")[:BUILDING_REFERENCE_LENGTH]


def extract_reference(response: Any) -> str:
    """
    Reference from a coordinates lookup response.

    Known shapes:
        {"referencias": [{"rc": ...}], "numeroReferencias": 1}
        {"coordenadas": [{"referenciaCatastral": ...}]}
        {"rc": ...}
    """
    data = _as_dict(response)

    referencias = data.get("referencias")
    coordenadas = data.get("coordenadas")
    if isinstance(referencias, list) and referencias:
        candidate = _first([_as_dict(referencias[0])], REFERENCE_KEYS)
    elif isinstance(coordenadas, list) and coordenadas:
        candidate = _first(
            [_as_dict(coordenadas[0])], ("referenciaCatastral", "rc")
        )
    else:
        candidate = _first([data], REFERENCE_KEYS)

    return flatten_reference(candidate)


# =============================================================================
# Single-Record Normalization
# =============================================================================


def is_multi_unit(response: Any) -> bool:
    """Whether the registry reports more than one unit at this reference."""
    count = parse_int(_as_dict(response).get("numeroInmuebles"))
    return bool(count and count > 1)


def _representative_unit(data: dict) -> dict:
    units = data.get("inmuebles")
    if isinstance(units, list) and units and isinstance(units[0], dict):
        return units[0]
    return data


def normalize_cadastral_response(response: Any) -> Optional[CadastralRecord]:
    """
    Convert one raw registry response into a CadastralRecord.

    Args:
        response: Decoded JSON from the registry (any known shape)

    Returns:
        CadastralRecord, or None only when the response is empty/absent
    """
    if not response or not isinstance(response, dict):
        return None

    data = response
    unit = _representative_unit(data)

    economicos = _as_dict(unit.get("datosEconomicos"))
    raw_direccion = unit.get("direccion")
    direccion = _as_dict(raw_direccion)

    # Reference: explicit unit fields first, then the top-level rc
    reference = flatten_reference(
        unit.get("rc") or unit.get("referenciaCatastral") or data.get("rc")
    )

    # Address: plain string, or the "valor" of a structured address
    if isinstance(raw_direccion, str):
        address = raw_direccion
    else:
        address = _text(direccion.get("valor") or unit.get("domicilio"))

    postal_code = _text(_first([direccion, unit], POSTAL_CODE_KEYS))
    municipality = _text(_first([direccion, unit], MUNICIPALITY_KEYS))
    province = _text(_first([direccion, unit], PROVINCE_KEYS))

    use_code = _text(_first([economicos, unit], USE_KEYS)) or DEFAULT_USE_CODE

    surface = parse_int(_first([economicos, unit], SURFACE_KEYS))
    if not surface or surface <= 0:
        surface = DEFAULT_SURFACE

    year = parse_int(_first([economicos, unit], YEAR_KEYS))
    if not year:
        year = DEFAULT_CONSTRUCTION_YEAR

    explicit_type = unit.get("tipoInmueble")
    if isinstance(explicit_type, str) and explicit_type:
        building_type = explicit_type
    elif is_multi_unit(data):
        building_type = MULTI_UNIT_BUILDING
    else:
        building_type = SINGLE_UNIT_BUILDING

    floors = parse_int(unit.get("plantas")) if unit.get("plantas") else None
    latitude = parse_float(unit.get("lat")) if unit.get("lat") else None
    longitude = parse_float(unit.get("lng")) if unit.get("lng") else None

    record = CadastralRecord(
        cadastral_reference=reference,
        address=address,
        postal_code=postal_code,
        municipality=municipality,
        province=province,
        property_type=use_label(use_code),
        building_type=building_type,
        surface=surface,
        construction_year=year,
        floors=floors,
        latitude=latitude,
        longitude=longitude,
    )
    logger.debug("Normalised cadastral record %s", record.cadastral_reference)
    return record


# =============================================================================
# Multi-Unit Resolution
# =============================================================================


def format_floor(floor: Any) -> str:
    """
    Display label for a floor.

    Ground floor, empty or unparseable -> "Bajo"; otherwise "Nº".
    """
    number = parse_int(floor)
    if not number:
        return "Bajo"
    return f"{number}º"


def raw_units(response: Any) -> list[dict]:
    """Unit listing from a registry response, or the list itself."""
    if isinstance(response, list):
        units = response
    else:
        units = _as_dict(response).get("inmuebles")
    if not isinstance(units, list):
        return []
    return [u for u in units if isinstance(u, dict)]


def _building_unit(index: int, unit: dict) -> BuildingUnit:
    direccion = _as_dict(unit.get("direccion"))
    economicos = _as_dict(unit.get("datosEconomicos"))

    floor = _text(_first([direccion], FLOOR_KEYS))
    door = _text(_first([direccion], DOOR_KEYS))
    use = _text(_first([economicos, unit], USE_KEYS)) or use_label(None)
    surface = parse_int(_first([economicos, unit], SURFACE_KEYS)) or 0
    year = parse_int(_first([economicos, unit], YEAR_KEYS)) or 0

    return BuildingUnit(
        index=index,
        cadastral_reference=flatten_reference(
            unit.get("referenciaCatastral") or unit.get("rc")
        ),
        floor=floor,
        floor_label=format_floor(floor),
        door=door,
        surface=max(surface, 0),
        use=use,
        construction_year=max(year, 0),
        icon=use_icon(use),
        postal_code=_text(_first([direccion, unit], POSTAL_CODE_KEYS)),
    )


def resolve_building_units(response: Any) -> list[BuildingUnit]:
    """
    Expose every unit of a multi-unit building for a picker.

    Args:
        response: Registry response with "inmuebles", or the raw unit list

    Returns:
        One BuildingUnit per raw unit, in registry order (empty if none)
    """
    return [_building_unit(i, unit) for i, unit in enumerate(raw_units(response))]


def select_unit(
    response: Any,
    index: int,
    fallback_postal_code: str = "",
) -> Optional[CadastralRecord]:
    """
    Promote one unit of a building to a canonical CadastralRecord.

    The unit is normalised exactly like a single-unit response, with the
    building's unit count preserved so the building type stays correct.

    Args:
        response: Registry response with "inmuebles", or the raw unit list
        index: Position of the chosen unit
        fallback_postal_code: Used when the unit reports no postal code

    Returns:
        CadastralRecord, or None if the index is out of range
    """
    units = raw_units(response)
    if not 0 <= index < len(units):
        logger.warning("Unit index %s out of range (%d units)", index, len(units))
        return None

    record = normalize_cadastral_response(
        {"inmuebles": [units[index]], "numeroInmuebles": len(units)}
    )
    if record is not None and not record.postal_code and fallback_postal_code:
        record = replace(record, postal_code=fallback_postal_code)
    return record
