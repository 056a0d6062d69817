"""
Tests for the Cadastral Normalizer

Tests covering:
1. Structured and flat references flatten to one string
2. Field precedence across nested and top-level shapes
3. Accented / unaccented keys and decimal commas
4. Defaults for missing surface, year and use
5. Multi-unit resolution, floor labels and unit selection
6. Nothing raises on malformed input
"""

import pytest

from core.cadastral import (
    BuildingUnit,
    CadastralRecord,
    building_reference,
    extract_reference,
    flatten_reference,
    format_floor,
    is_multi_unit,
    normalize_cadastral_response,
    resolve_building_units,
    select_unit,
    use_icon,
    use_label,
)
from core.cadastral.normalizer import parse_int


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def single_unit_response():
    """Typical single-unit registry response with nested blocks."""
    return {
        "numeroInmuebles": 1,
        "inmuebles": [{
            "rc": "9872023VH5797S0001WX",
            "direccion": {
                "valor": "CL ALCALA 42",
                "codigoPostal": "28014",
                "nombreMunicipio": "MADRID",
                "nombreProvincia": "MADRID",
            },
            "datosEconomicos": {
                "uso": "V",
                "superficieConstruida": "85,40",
                "añoConstruccion": "1995",
            },
        }],
    }


@pytest.fixture
def building_response():
    """Multi-unit building listing."""
    return {
        "numeroInmuebles": 3,
        "inmuebles": [
            {
                "rc": {"pc1": "98", "pc2": "72023", "car": "VH", "cc1": "57", "cc2": "97"},
                "direccion": {"planta": "00", "puerta": "A", "codigoPostal": "28014"},
                "datosEconomicos": {"uso": "C", "superficieConstruida": 120, "anoConstruccion": 1995},
            },
            {
                "rc": "9872023VH5797S0002AB",
                "direccion": {"planta": "03", "puerta": "B"},
                "datosEconomicos": {"uso": "V", "superficie": "92", "ano": "1995"},
            },
            {
                "referenciaCatastral": "9872023VH5797S0003CD",
                "direccion": {"planta": "", "puerta": ""},
            },
        ],
    }


# =============================================================================
# Reference Tests
# =============================================================================

class TestReferenceFlattening:
    """Reference is always a single flat string."""

    def test_structured_reference_parts(self):
        """Parts join in pc1, pc2, car, cc1, cc2 order."""
        response = {
            "referenciaCatastral": {"pc1": "98", "pc2": "72023", "car": "VH", "cc1": "57", "cc2": "97"},
        }
        record = normalize_cadastral_response(response)
        assert record.cadastral_reference == "9872023VH5797"

    def test_embedded_full_reference_wins(self):
        value = {"referenciaCatastral": "9872023VH5797S0001WX", "pc1": "11"}
        assert flatten_reference(value) == "9872023VH5797S0001WX"

    def test_flat_string_passes_through(self):
        assert flatten_reference("9872023VH5797S0001WX") == "9872023VH5797S0001WX"

    def test_missing_parts_are_skipped(self):
        assert flatten_reference({"pc1": "98", "pc2": "72023"}) == "9872023"

    def test_unusable_reference_is_empty(self):
        assert flatten_reference(None) == ""
        assert flatten_reference(42.5) == ""

    def test_top_level_rc_used_when_unit_has_none(self):
        record = normalize_cadastral_response({"rc": "1234567AB1234C0001XY", "inmuebles": [{}]})
        assert record.cadastral_reference == "1234567AB1234C0001XY"

    def test_building_reference(self):
        assert building_reference("9872023VH5797S0001WX") == "9872023VH5797S"
        assert building_reference("") == ""

    @pytest.mark.parametrize("response,expected", [
        ({"referencias": [{"rc": "A1"}], "numeroReferencias": 1}, "A1"),
        ({"coordenadas": [{"referenciaCatastral": {"pc1": "98", "pc2": "72023"}}]}, "9872023"),
        ({"rc": "B2"}, "B2"),
        ({}, ""),
        ([], ""),
    ])
    def test_extract_reference_shapes(self, response, expected):
        assert extract_reference(response) == expected


# =============================================================================
# Field Resolution Tests
# =============================================================================

class TestFieldResolution:
    """Canonical fields from heterogeneous shapes."""

    def test_nested_single_unit(self, single_unit_response):
        record = normalize_cadastral_response(single_unit_response)

        assert isinstance(record, CadastralRecord)
        assert record.cadastral_reference == "9872023VH5797S0001WX"
        assert record.address == "CL ALCALA 42"
        assert record.postal_code == "28014"
        assert record.municipality == "MADRID"
        assert record.province == "MADRID"
        assert record.property_type == "Residencial"
        assert record.surface == 85
        assert record.construction_year == 1995
        assert record.building_type == "Unifamiliar"

    def test_top_level_fields(self):
        record = normalize_cadastral_response({
            "rc": "1111111AA1111A0001AA",
            "direccion": "Calle Mayor 1",
            "cp": "46001",
            "municipio": "Valencia",
            "provincia": "Valencia",
            "usoPrincipal": "O",
            "superficie": 240,
            "anoConstruccion": 1970,
        })
        assert record.address == "Calle Mayor 1"
        assert record.postal_code == "46001"
        assert record.municipality == "Valencia"
        assert record.property_type == "Oficinas"
        assert record.surface == 240
        assert record.construction_year == 1970

    def test_nested_values_take_precedence(self):
        record = normalize_cadastral_response({
            "datosEconomicos": {"superficieConstruida": 90},
            "superficie": 300,
        })
        assert record.surface == 90

    def test_accented_and_unaccented_year(self):
        accented = normalize_cadastral_response({"añoConstruccion": 1980})
        plain = normalize_cadastral_response({"anoConstruccion": 1981})
        short = normalize_cadastral_response({"ano": "1982"})
        assert accented.construction_year == 1980
        assert plain.construction_year == 1981
        assert short.construction_year == 1982

    def test_unknown_use_code_passes_through(self):
        record = normalize_cadastral_response({"uso": "X9"})
        assert record.property_type == "X9"

    def test_explicit_building_type(self):
        record = normalize_cadastral_response({"tipoInmueble": "Adosado", "numeroInmuebles": 4})
        assert record.building_type == "Adosado"

    def test_multi_unit_building_type(self):
        record = normalize_cadastral_response({"numeroInmuebles": "4", "inmuebles": [{}]})
        assert record.building_type == "Plurifamiliar"

    def test_optional_location_fields(self):
        record = normalize_cadastral_response({"plantas": "6", "lat": "40,42", "lng": -3.69})
        assert record.floors == 6
        assert record.latitude == pytest.approx(40.42)
        assert record.longitude == pytest.approx(-3.69)


# =============================================================================
# Default Tests
# =============================================================================

class TestDefaults:
    """Missing or unusable values degrade to defaults."""

    def test_minimal_response(self):
        record = normalize_cadastral_response({"foo": "bar"})
        assert record.cadastral_reference == ""
        assert record.surface == 100
        assert record.construction_year == 2000
        assert record.property_type == "Residencial"
        assert record.building_type == "Unifamiliar"
        assert record.floors is None

    @pytest.mark.parametrize("surface", [0, -20, "abc", "", None])
    def test_unusable_surface(self, surface):
        record = normalize_cadastral_response({"superficie": surface, "uso": "V"})
        assert record.surface == 100

    @pytest.mark.parametrize("response", [None, {}, [], "", 0])
    def test_empty_response_is_none(self, response):
        assert normalize_cadastral_response(response) is None

    def test_malformed_blocks_do_not_raise(self):
        record = normalize_cadastral_response({
            "inmuebles": ["not a dict"],
            "datosEconomicos": "nope",
            "direccion": 12,
        })
        assert record is not None


class TestParseInt:

    @pytest.mark.parametrize("value,expected", [
        ("85,40", 85),
        ("1995 ", 1995),
        (" 42m2", 42),
        (120.9, 120),
        ("-1", -1),
        ("abc", None),
        (None, None),
        (True, None),
        (float("nan"), None),
    ])
    def test_values(self, value, expected):
        assert parse_int(value) == expected


# =============================================================================
# Use Label Tests
# =============================================================================

class TestUseLabels:

    def test_known_codes(self):
        assert use_label("V") == "Residencial"
        assert use_label("C") == "Comercial"
        assert use_label("Z") == "Agrario"

    def test_empty_code(self):
        assert use_label("") == "Residencial"
        assert use_label(None) == "Residencial"

    def test_icons(self):
        assert use_icon("V") == "home"
        assert use_icon("Comercial") == "storefront"
        assert use_icon("Religioso") == "apartment"


# =============================================================================
# Multi-Unit Tests
# =============================================================================

class TestFloorFormat:

    @pytest.mark.parametrize("floor,expected", [
        ("", "Bajo"),
        ("0", "Bajo"),
        ("00", "Bajo"),
        ("BJ", "Bajo"),
        (None, "Bajo"),
        ("03", "3º"),
        ("1", "1º"),
        (12, "12º"),
        ("-1", "-1º"),
    ])
    def test_floor_labels(self, floor, expected):
        assert format_floor(floor) == expected


class TestBuildingUnits:
    """Exposing and selecting units of a building."""

    def test_multi_unit_detection(self, building_response, single_unit_response):
        assert is_multi_unit(building_response)
        assert not is_multi_unit(single_unit_response)
        assert not is_multi_unit(None)

    def test_units_resolved_in_order(self, building_response):
        units = resolve_building_units(building_response)

        assert len(units) == 3
        assert all(isinstance(u, BuildingUnit) for u in units)
        assert [u.index for u in units] == [0, 1, 2]

    def test_unit_fields(self, building_response):
        ground, third, unknown = resolve_building_units(building_response)

        assert ground.cadastral_reference == "9872023VH5797"
        assert ground.floor_label == "Bajo"
        assert ground.door == "A"
        assert ground.surface == 120
        assert ground.use == "C"
        assert ground.icon == "storefront"
        assert ground.construction_year == 1995
        assert ground.postal_code == "28014"

        assert third.floor_label == "3º"
        assert third.display_name == "3º - Puerta B"
        assert third.surface == 92
        assert third.summary == "92 m² · V · 1995"

        assert unknown.cadastral_reference == "9872023VH5797S0003CD"
        assert unknown.display_name == "Bajo"
        assert unknown.surface == 0
        assert unknown.construction_year == 0
        assert unknown.use == "Residencial"
        assert unknown.icon == "home"

    def test_raw_unit_list_accepted(self, building_response):
        units = resolve_building_units(building_response["inmuebles"])
        assert len(units) == 3

    def test_no_units(self):
        assert resolve_building_units({}) == []
        assert resolve_building_units(None) == []
        assert resolve_building_units({"inmuebles": "x"}) == []

    def test_select_unit_yields_canonical_record(self, building_response):
        record = select_unit(building_response, 1)

        assert isinstance(record, CadastralRecord)
        assert record.cadastral_reference == "9872023VH5797S0002AB"
        assert record.surface == 92
        assert record.construction_year == 1995
        assert record.building_type == "Plurifamiliar"

    def test_select_unit_matches_single_unit_normalisation(self, building_response):
        """Selecting a unit gives the same shape as normalising it alone."""
        selected = select_unit(building_response, 0)
        alone = normalize_cadastral_response({
            "inmuebles": [building_response["inmuebles"][0]],
            "numeroInmuebles": 3,
        })
        assert selected == alone
        assert selected.property_type == "Comercial"

    def test_select_unit_postal_code_fallback(self, building_response):
        record = select_unit(building_response, 1, fallback_postal_code="28014")
        assert record.postal_code == "28014"

        own = select_unit(building_response, 0, fallback_postal_code="99999")
        assert own.postal_code == "28014"

    @pytest.mark.parametrize("index", [-1, 3, 100])
    def test_select_unit_out_of_range(self, building_response, index):
        assert select_unit(building_response, index) is None
