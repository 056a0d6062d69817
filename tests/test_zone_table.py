"""
Tests for the Zone Price Table

Tests covering:
1. Bundled reference data loads with defaults
2. Lookup precedence: exact code, city, province prefix, Spain average
3. Tier ordering
4. Table is read-only
"""

import json

import pytest

from core.valuation import ZonePriceTable, ZoneTier, get_zone_table
from core.valuation.zones import PREFIX_MATCH_DISCOUNT


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def table():
    return get_zone_table()


@pytest.fixture
def small_table():
    """Two-zone table with known defaults."""
    return ZonePriceTable.from_dict({
        "zones": {
            "28014": {"city": "Madrid", "zone": "Retiro", "pricePerSqm": 7800, "tier": "premium"},
            "28041": {"city": "Madrid", "zone": "Usera", "pricePerSqm": 2500, "tier": "low"},
        },
        "defaults": {
            "spain_average": 2000,
            "capital_average": 4000,
            "coastal_premium": 0.15,
            "island_premium": 0.2,
        },
    })


# =============================================================================
# Loading Tests
# =============================================================================

class TestLoading:
    """Reference data loading."""

    def test_bundled_table_loads(self, table):
        assert len(table) > 30
        assert "28014" in table
        assert table.defaults.spain_average == 2100
        assert table.defaults.capital_average == 4500

    def test_premiums_are_loaded(self, table):
        """Coastal and island premiums are carried as reference data."""
        assert table.defaults.coastal_premium == 0.15
        assert table.defaults.island_premium == 0.2

    def test_load_from_custom_path(self, tmp_path):
        path = tmp_path / "zones.json"
        path.write_text(json.dumps({
            "zones": {"46001": {"city": "Valencia", "pricePerSqm": 3300}},
            "defaults": {"spain_average": 1900},
        }), encoding="utf-8")

        table = ZonePriceTable.load(path)

        assert len(table) == 1
        entry = table.get_zone_info("46001")
        assert entry.price_per_area == 3300
        assert entry.tier is ZoneTier.MEDIUM
        assert table.defaults.spain_average == 1900

    def test_zone_info(self, table):
        entry = table.get_zone_info("28014")
        assert entry.city == "Madrid"
        assert entry.zone == "Retiro - Jerónimos"
        assert entry.price_per_area == 7800
        assert entry.tier is ZoneTier.PREMIUM

    def test_unknown_zone_info_is_none(self, table):
        assert table.get_zone_info("99999") is None
        assert table.get_zone_info(None) is None


# =============================================================================
# Lookup Precedence Tests
# =============================================================================

class TestLookup:
    """Four-step lookup precedence."""

    def test_exact_postal_code(self, small_table):
        assert small_table.lookup("28041", "Madrid") == 2500

    def test_city_match_is_case_insensitive(self, small_table):
        """First zone of the city in table order."""
        assert small_table.lookup("28999", "MADRID") == 7800

    def test_city_beats_prefix(self, table):
        assert table.lookup("28190", "Valencia") == 3300

    def test_province_prefix_is_discounted(self, table):
        """28190 shares the 281 prefix with Alcobendas (28100)."""
        assert table.lookup("28190") == pytest.approx(3900 * PREFIX_MATCH_DISCOUNT)

    def test_spain_average_fallback(self, small_table):
        assert small_table.lookup("99999", "Atlantis") == 2000
        assert small_table.lookup() == 2000

    def test_lookup_always_positive(self, table):
        for code in ("", "0", "abcde", "28014", "07999"):
            assert table.lookup(code) > 0

    def test_exact_match_flag(self, table):
        assert table.is_exact_match("28014")
        assert not table.is_exact_match("28999")
        assert not table.is_exact_match(None)

    @pytest.mark.parametrize("postal_code,city", [
        ("28014", None),
        ("28999", "Madrid"),
        ("28190", None),
        ("99999", "Atlantis"),
        (None, None),
    ])
    def test_repeated_lookup_is_stable(self, table, postal_code, city):
        first = table.lookup(postal_code, city)
        assert table.lookup(postal_code, city) == first
        assert table.lookup(postal_code, city) == first


# =============================================================================
# Tier and Immutability Tests
# =============================================================================

class TestTiers:

    def test_tier_ordering(self):
        assert ZoneTier.LOW < ZoneTier.MEDIUM < ZoneTier.HIGH < ZoneTier.PREMIUM < ZoneTier.LUXURY
        assert ZoneTier.HIGH <= ZoneTier.HIGH
        assert not ZoneTier.LUXURY < ZoneTier.LOW

    def test_zones_view_is_read_only(self, table):
        zones = table.all_zones()
        with pytest.raises(TypeError):
            zones["00000"] = zones["28014"]
