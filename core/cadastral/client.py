"""
Cadastral Registry Client

HTTP client for catastro-api.es. Every call is a single-shot request:
failures are logged and degrade to a synthesized placeholder record (or an
empty unit list) so the wizard can always continue with some data.

The client only fetches; all shape handling is delegated to the
normalizer.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Final, Optional

import requests

from core.cadastral.normalizer import (
    extract_reference,
    normalize_cadastral_response,
    parse_int,
    raw_units,
)
from core.cadastral.schema import MULTI_UNIT_BUILDING, CadastralRecord


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

DEFAULT_API_BASE: Final[str] = "https://api.catastro-api.es"
REQUEST_TIMEOUT_SECONDS: Final[int] = 15

COORDINATES_PATH: Final[str] = "/api/coordenadas/rc-por-coordenadas"
REFERENCE_PATH: Final[str] = "/api/callejero/inmueble-rc"
ADDRESS_SEARCH_PATH: Final[str] = "/callejero/inmuebles"

# Approximate bounding boxes used to place a placeholder record:
# (city, province, postal code, lat_min, lat_max, lng_min, lng_max)
PLACEHOLDER_CITIES: Final[list[tuple[str, str, str, float, float, float, float]]] = [
    ("Barcelona", "Barcelona", "08001", 41.3, 41.5, 2.0, 2.3),
    ("Sevilla", "Sevilla", "41001", 37.3, 37.5, -6.0, -5.8),
    ("Valencia", "Valencia", "46001", 39.4, 39.5, -0.4, -0.3),
]
PLACEHOLDER_ADDRESS: Final[str] = "Calle de Alcalá, 42"


# =============================================================================
# Placeholder Records
# =============================================================================


def placeholder_by_coordinates(latitude: float, longitude: float) -> CadastralRecord:
    """
    Deterministic stand-in record for a location.

    Used when the registry is unreachable or not configured. The same
    coordinates always produce the same record.
    """
    coord_hash = abs(
        math.floor(math.fmod(latitude * 10000 + longitude * 10000, 10_000_000))
    )
    reference = f"{coord_hash:07d}VH5797S0001WX"

    city, province, postal_code = "Madrid", "Madrid", "28001"
    for name, prov, code, lat_min, lat_max, lng_min, lng_max in PLACEHOLDER_CITIES:
        if lat_min < latitude < lat_max and lng_min < longitude < lng_max:
            city, province, postal_code = name, prov, code
            break

    return CadastralRecord(
        cadastral_reference=reference,
        address=PLACEHOLDER_ADDRESS,
        postal_code=postal_code,
        municipality=city,
        province=province,
        property_type="Residencial",
        building_type=MULTI_UNIT_BUILDING,
        surface=95 + coord_hash % 61,
        construction_year=1980 + coord_hash % 41,
        latitude=latitude,
        longitude=longitude,
    )


def placeholder_by_reference(reference: str) -> CadastralRecord:
    """Stand-in record for a known reference."""
    return CadastralRecord(
        cadastral_reference=reference,
        address=PLACEHOLDER_ADDRESS,
        postal_code="28014",
        municipality="Madrid",
        province="Madrid",
        property_type="Residencial",
        building_type=MULTI_UNIT_BUILDING,
        surface=120,
        construction_year=1995,
    )


def placeholder_search_results() -> list[CadastralRecord]:
    return [
        CadastralRecord(
            cadastral_reference="9872023VH5797S0001WX",
            address="Calle de Alcalá, 42, Piso 1º",
            postal_code="28014",
            municipality="Madrid",
            province="Madrid",
            property_type="Residencial",
            building_type=MULTI_UNIT_BUILDING,
            surface=120,
            construction_year=1995,
        ),
        CadastralRecord(
            cadastral_reference="9872023VH5797S0002AB",
            address="Calle de Alcalá, 42, Piso 2º",
            postal_code="28014",
            municipality="Madrid",
            province="Madrid",
            property_type="Residencial",
            building_type=MULTI_UNIT_BUILDING,
            surface=115,
            construction_year=1995,
        ),
    ]


# =============================================================================
# Client
# =============================================================================


class CatastroClient:
    """
    Client for the cadastral registry API.

    Features:
    - API key header authentication
    - Per-request timeout
    - Degrades to placeholder data on any failure
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_base: str = DEFAULT_API_BASE,
        timeout: int = REQUEST_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self._api_key = api_key
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        if api_key:
            self._session.headers.update({"x-api-key": api_key})

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _get(self, path: str, params: dict) -> Any:
        """
        GET a registry endpoint and decode the JSON body.

        Raises:
            requests.RequestException: On network errors or non-2xx status.
            ValueError: On an undecodable body.
        """
        response = self._session.get(
            f"{self._api_base}{path}",
            params=params,
            timeout=self._timeout,
        )
        response.raise_for_status()
        return response.json()

    def reference_by_coordinates(self, latitude: float, longitude: float) -> str:
        """
        Cadastral reference at a location ("" when none found).

        Raises:
            requests.RequestException: On network errors.
        """
        # The API takes x = longitude, y = latitude
        data = self._get(COORDINATES_PATH, {"x": longitude, "y": latitude})
        return extract_reference(data)

    def fetch_by_coordinates(
        self,
        latitude: float,
        longitude: float,
    ) -> CadastralRecord:
        """
        Registry record for the property at a location.

        Returns:
            Normalised record, or a placeholder if the lookup fails
        """
        if not self.configured:
            logger.warning("Catastro API key not configured, using placeholder data")
            return placeholder_by_coordinates(latitude, longitude)

        try:
            reference = self.reference_by_coordinates(latitude, longitude)
        except (requests.RequestException, ValueError) as e:
            logger.error("Error fetching cadastral reference by coordinates: %s", e)
            return placeholder_by_coordinates(latitude, longitude)

        if not reference:
            logger.warning(
                "No cadastral reference found at %s,%s", latitude, longitude
            )
            return placeholder_by_coordinates(latitude, longitude)

        return self.fetch_by_reference(reference)

    def fetch_raw(self, reference: str) -> Any:
        """
        Raw registry response for a reference.

        Raises:
            requests.RequestException: On network errors.
        """
        return self._get(REFERENCE_PATH, {"rc": reference})

    def fetch_by_reference(self, reference: str) -> CadastralRecord:
        """
        Registry record for a cadastral reference.

        Returns:
            Normalised record, or a placeholder if the lookup fails
        """
        if not self.configured:
            logger.warning("Catastro API key not configured, using placeholder data")
            return placeholder_by_reference(reference)

        try:
            data = self.fetch_raw(reference)
        except (requests.RequestException, ValueError) as e:
            logger.error("Error fetching cadastral data for %s: %s", reference, e)
            return placeholder_by_reference(reference)

        record = normalize_cadastral_response(data)
        if record is None:
            logger.warning("Empty cadastral response for %s", reference)
            return placeholder_by_reference(reference)
        return record

    def fetch_building_units(self, reference: str) -> tuple[list[dict], int]:
        """
        Raw unit listing for a building.

        Args:
            reference: Full or 14-character building reference

        Returns:
            Tuple of (raw units, reported unit count); ([], 0) on failure
        """
        if not self.configured:
            logger.warning("Catastro API key not configured, no unit listing")
            return [], 0

        try:
            data = self.fetch_raw(reference)
        except (requests.RequestException, ValueError) as e:
            logger.error("Error fetching building units for %s: %s", reference, e)
            return [], 0

        units = raw_units(data)
        count = parse_int(data.get("numeroInmuebles")) if isinstance(data, dict) else None
        return units, count or 0

    def search_by_address(
        self,
        province: str,
        municipality: str,
        street: str,
        number: str,
    ) -> list[CadastralRecord]:
        """Properties registered at a street address."""
        if not self.configured:
            logger.warning("Catastro API key not configured, using placeholder data")
            return placeholder_search_results()

        params = {
            "provincia": province,
            "municipio": municipality,
            "via": street,
            "numero": number,
        }
        try:
            data = self._get(ADDRESS_SEARCH_PATH, params)
        except (requests.RequestException, ValueError) as e:
            logger.error("Error searching cadastral data by address: %s", e)
            return placeholder_search_results()

        records = []
        for unit in raw_units(data):
            record = normalize_cadastral_response(unit)
            if record is not None:
                records.append(record)
        return records

    def close(self) -> None:
        """Close the session."""
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
