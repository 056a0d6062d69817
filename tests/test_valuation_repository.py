"""
Tests for the Record Store

Tests covering:
1. Saved valuations carry a unique URL-safe report token
2. Lookup by token and by client (newest first)
3. JSON persistence round-trip
4. Invalid records and leads are rejected
5. Agency clients by id and slug
"""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from core.storage import (
    AgencyClient,
    ClientRepository,
    LeadData,
    SavedValuation,
    ValuationRepository,
)
from core.valuation import FinishQuality, PropertyAttributes, ValuationEngine


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def temp_persist_path(tmp_path):
    return tmp_path / "data" / "valuations.json"


@pytest.fixture
def repository(temp_persist_path):
    return ValuationRepository(persist_path=str(temp_persist_path))


@pytest.fixture
def lead():
    return LeadData(name="Lucía Martín", email="lucia@example.com", phone="600123123")


@pytest.fixture
def attributes():
    return PropertyAttributes(
        address="Calle de Alcalá, 42",
        city="Madrid",
        postal_code="28014",
        latitude=40.4203,
        longitude=-3.6883,
        surface=95,
        construction_year=1995,
        bedrooms=3,
        bathrooms=2,
        extras=("Terraza", "Ascensor"),
        finish_quality=FinishQuality.GOOD,
        cadastral_reference="9872023VH5797S0001WX",
    )


@pytest.fixture
def result(attributes):
    return ValuationEngine(reference_year=2025).compute(attributes)


# =============================================================================
# Lead Validation
# =============================================================================


class TestLeadData:

    def test_valid_lead(self, lead):
        assert lead.email == "lucia@example.com"

    @pytest.mark.parametrize("email", ["", "lucia", "lucia@", "@example.com", "lu cia@example.com"])
    def test_invalid_email(self, email):
        with pytest.raises(ValueError):
            LeadData(name="Lucía", email=email)

    def test_blank_name(self):
        with pytest.raises(ValueError):
            LeadData(name="  ", email="lucia@example.com")


# =============================================================================
# Saved Valuations
# =============================================================================


class TestSaveValuation:

    def test_save_maps_result_fields(self, repository, lead, attributes, result):
        saved = repository.save("client-1", lead, attributes, result)

        assert saved.client_id == "client-1"
        assert saved.lead_name == "Lucía Martín"
        assert saved.address == "Calle de Alcalá, 42"
        assert saved.estimated_value_min == result.conservative
        assert saved.estimated_value_max == result.optimistic
        assert saved.estimated_value_recommended == result.estimated
        assert saved.price_per_m2 == result.price_per_area
        assert saved.result == result

    def test_tokens_are_unique_and_url_safe(self, repository, lead, attributes, result):
        tokens = {repository.save("client-1", lead, attributes, result).report_token for _ in range(20)}

        assert len(tokens) == 20
        for token in tokens:
            assert len(token) >= 20
            assert all(c.isalnum() or c in "-_" for c in token)

    def test_get_by_token(self, repository, lead, attributes, result):
        saved = repository.save("client-1", lead, attributes, result)

        assert repository.get_by_token(saved.report_token) == saved
        assert repository.get(saved.id) == saved
        assert repository.get_by_token("missing") is None

    def test_list_by_client_newest_first(self, repository, lead, attributes, result):
        first = repository.save("client-1", lead, attributes, result)
        second = repository.save("client-1", lead, attributes, result)
        repository.save("client-2", lead, attributes, result)

        listed = repository.list_by_client("client-1")

        assert {v.id for v in listed} == {first.id, second.id}
        created = [v.created_at for v in listed]
        assert created == sorted(created, reverse=True)
        assert all(v.client_id == "client-1" for v in listed)
        assert repository.list_by_client("nobody") == []
        assert repository.count() == 3


class TestPersistence:

    def test_round_trip(self, temp_persist_path, lead, attributes, result):
        original = ValuationRepository(persist_path=str(temp_persist_path))
        saved = original.save("client-1", lead, attributes, result, street_view_url="https://img.test/1.jpg")

        reloaded = ValuationRepository(persist_path=str(temp_persist_path))
        restored = reloaded.get_by_token(saved.report_token)

        assert restored == saved
        assert restored.attributes.finish_quality is FinishQuality.GOOD
        assert restored.attributes.extras == ("Terraza", "Ascensor")
        assert restored.street_view_url == "https://img.test/1.jpg"

    def test_file_keeps_accents(self, temp_persist_path, lead, attributes, result):
        ValuationRepository(persist_path=str(temp_persist_path)).save("client-1", lead, attributes, result)
        assert "Alcalá" in temp_persist_path.read_text(encoding="utf-8")

    def test_corrupt_file_starts_empty(self, temp_persist_path):
        temp_persist_path.parent.mkdir(parents=True)
        temp_persist_path.write_text("{not json", encoding="utf-8")

        repository = ValuationRepository(persist_path=str(temp_persist_path))

        assert repository.count() == 0

    def test_in_memory_only(self, lead, attributes, result):
        repository = ValuationRepository()
        repository.save("client-1", lead, attributes, result)
        assert repository.count() == 1


class TestSavedValuationInvariants:

    def test_inconsistent_range_rejected(self, attributes):
        with pytest.raises(ValueError):
            SavedValuation(
                id="v1",
                report_token="tok",
                created_at=datetime(2025, 1, 1),
                client_id="client-1",
                lead_name="Lucía",
                lead_email="lucia@example.com",
                lead_phone=None,
                address="",
                attributes=attributes,
                estimated_value_min=300_000,
                estimated_value_max=200_000,
                estimated_value_recommended=250_000,
                price_per_m2=2_500,
            )

    def test_to_dict_flattens_attributes(self, lead, attributes, result):
        saved = SavedValuation.create("client-1", lead, attributes, result)
        data = saved.to_dict()

        assert data["postal_code"] == "28014"
        assert data["finish_quality"] == "good"
        assert data["extras"] == ["Terraza", "Ascensor"]
        assert data["estimated_value_recommended"] == result.estimated
        assert SavedValuation.from_dict(data) == saved

    def test_created_at_is_recent(self, lead, attributes, result):
        saved = SavedValuation.create("client-1", lead, attributes, result)
        assert datetime.utcnow() - saved.created_at < timedelta(minutes=1)


# =============================================================================
# Agency Clients
# =============================================================================


class TestClientRepository:

    @pytest.fixture
    def agency(self):
        return AgencyClient(
            id="client-1",
            slug="inmobiliaria-sol",
            agent_name="Carmen Ruiz",
            agency_name="Inmobiliaria Sol",
            primary_color="#1273d4",
        )

    def test_lookup_by_id_and_slug(self, tmp_path, agency):
        repository = ClientRepository(persist_path=str(tmp_path / "clients.json"))
        repository.add(agency)

        assert repository.get_by_id("client-1") == agency
        assert repository.get_by_slug("inmobiliaria-sol") == agency
        assert repository.get_by_slug("other") is None

    def test_persistence(self, tmp_path, agency):
        path = str(tmp_path / "clients.json")
        ClientRepository(persist_path=path).add(agency)

        assert ClientRepository(persist_path=path).get_by_slug("inmobiliaria-sol") == agency

    def test_duplicate_slug_rejected(self, agency):
        repository = ClientRepository()
        repository.add(agency)

        with pytest.raises(ValueError):
            repository.add(AgencyClient(id="client-2", slug="inmobiliaria-sol", agent_name="", agency_name=""))

    def test_spanish_aliases(self):
        client = AgencyClient.from_dict({"id": "c", "slug": "s", "nombre": "Sol", "telefono": "910000000"})
        assert client.name == "Sol"
        assert client.phone == "910000000"

    def test_slug_required(self):
        with pytest.raises(ValueError):
            AgencyClient(id="c", slug="", agent_name="", agency_name="")
