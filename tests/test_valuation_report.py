"""
Tests for the Valuation PDF Report

Tests covering:
1. PDF bytes are produced for complete and sparse records
2. Reports are written to the output directory under the token name
3. Agency colour falls back to the default accent when invalid
4. Command line entry points
"""

import json

import pytest
from reportlab.lib import colors

from core.storage import AgencyClient, LeadData, ValuationRepository
from core.valuation import FinishQuality, PropertyAttributes, ValuationEngine
from reporting import Palette, ReportSuccess, ValuationReportGenerator, generate_report, report_filename
from reporting.cli import main
from reporting.valuation_report import accent_color


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def lead():
    return LeadData(name="Lucía Martín", email="lucia@example.com")


@pytest.fixture
def agency():
    return AgencyClient(
        id="client-1",
        slug="inmobiliaria-sol",
        agent_name="Carmen Ruiz",
        agency_name="Inmobiliaria Sol & Asociados",
        primary_color="#0f766e",
        phone="910000000",
    )


@pytest.fixture
def saved(lead):
    attributes = PropertyAttributes(
        address="Calle de Alcalá, 42 <3ºB>",
        city="Madrid",
        postal_code="28014",
        surface=95,
        construction_year=1995,
        bedrooms=3,
        bathrooms=2,
        extras=("Terraza", "Ascensor"),
        finish_quality=FinishQuality.GOOD,
        cadastral_reference="9872023VH5797S0001WX",
    )
    result = ValuationEngine(reference_year=2025).compute(attributes)
    return ValuationRepository().save("client-1", lead, attributes, result)


@pytest.fixture
def sparse(lead):
    attributes = PropertyAttributes()
    result = ValuationEngine(reference_year=2025).compute(attributes)
    return ValuationRepository().save("client-1", lead, attributes, result)


# =============================================================================
# Generation
# =============================================================================


class TestGenerateToBuffer:

    def test_pdf_bytes(self, saved, agency):
        pdf = ValuationReportGenerator().generate_to_buffer(saved, agency)
        assert pdf.startswith(b"%PDF")

    def test_without_agency(self, saved):
        pdf = ValuationReportGenerator().generate_to_buffer(saved)
        assert pdf.startswith(b"%PDF")

    def test_sparse_record(self, sparse):
        """Missing attributes render as dashes instead of failing."""
        pdf = ValuationReportGenerator().generate_to_buffer(sparse)
        assert pdf.startswith(b"%PDF")


class TestGenerateReport:

    def test_written_under_token_name(self, saved, agency, tmp_path):
        result = generate_report(saved, agency, output_dir=tmp_path)

        assert isinstance(result, ReportSuccess)
        assert result.path == tmp_path / f"valoracion-{saved.report_token}.pdf"
        assert result.path.exists()
        assert result.size_bytes == result.path.stat().st_size
        assert report_filename(saved) == result.path.name

    def test_output_dir_created(self, saved, tmp_path):
        output_dir = tmp_path / "nested" / "reports"
        result = ValuationReportGenerator(output_dir=output_dir).generate_report(saved)
        assert result.path.parent == output_dir


class TestAccentColor:

    def test_agency_colour(self, agency):
        assert accent_color(agency) == colors.HexColor("#0f766e")

    @pytest.mark.parametrize("primary_color", [None, "", "not-a-colour"])
    def test_fallback(self, primary_color):
        client = AgencyClient(
            id="c", slug="s", agent_name="", agency_name="", primary_color=primary_color
        )
        assert accent_color(client) == Palette.ACCENT

    def test_no_client(self):
        assert accent_color(None) == Palette.ACCENT


# =============================================================================
# Command Line
# =============================================================================


class TestCli:

    def test_value_json(self, tmp_path, capsys):
        path = tmp_path / "piso.json"
        path.write_text(json.dumps({
            "postalCode": "28014",
            "surface": 100,
            "constructionYear": 2000,
            "finishQuality": "acceptable",
        }), encoding="utf-8")

        exit_code = main(["value", str(path), "--year", "2015", "--json"])

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["estimated"] == 780_000

    def test_value_missing_file(self, tmp_path):
        assert main(["value", str(tmp_path / "missing.json")]) == 1

    def test_report_unknown_token(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        assert main(["report", "missing-token", "--output-dir", str(tmp_path)]) == 1
