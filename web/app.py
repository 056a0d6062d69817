"""
FastAPI application for the Valorador Online API and public report pages.

Production deployment configuration via environment variables.
"""

import logging
import os
from pathlib import Path
from typing import Any, List, Optional

from fastapi import Body, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, Response
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.cadastral import (
    is_multi_unit,
    normalize_cadastral_response,
    resolve_building_units,
)
from core.storage import LeadData
from core.storage.schema import EMAIL_REGEX
from core.valuation import PropertyAttributes
from core.valuation_service import ValuationService, get_valuation_service
from reporting import ValuationReportGenerator, report_filename
from utils.formatting import format_area, format_price, format_price_range


logger = logging.getLogger(__name__)


# =============================================================================
# Environment Configuration
# =============================================================================

IS_PRODUCTION = os.getenv("PRODUCTION", "").lower() == "true"

# The wizard is embedded on agency sites; list their origins here
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "").split(",") if os.getenv("ALLOWED_ORIGINS") else []
if not ALLOWED_ORIGINS and not IS_PRODUCTION:
    ALLOWED_ORIGINS = ["http://localhost:5173", "http://localhost:8000", "http://127.0.0.1:8000"]

DEBUG_MODE = os.getenv("DEBUG", "false").lower() == "true" and not IS_PRODUCTION

# Paths
BASE_DIR = Path(__file__).parent
TEMPLATES_DIR = BASE_DIR / "templates"


# =============================================================================
# API Request Models
# =============================================================================

class AttributesInput(BaseModel):
    """Property attributes as sent by the wizard (camelCase or snake_case)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90, allow_inf_nan=False)
    longitude: Optional[float] = Field(None, ge=-180, le=180, allow_inf_nan=False)
    cadastral_reference: Optional[str] = None
    surface: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    construction_year: Optional[int] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    property_type: Optional[str] = None
    building_type: Optional[str] = None
    extras: List[str] = []
    finish_quality: Optional[str] = None
    street_view_url: Optional[str] = None

    def to_attributes(self) -> PropertyAttributes:
        return PropertyAttributes.from_dict(self.model_dump())


class LeadInput(BaseModel):
    """Contact details captured before the result is shown."""
    name: str = Field(min_length=1)
    email: str = Field(pattern=EMAIL_REGEX.pattern)
    phone: Optional[str] = None


class SaveValuationRequest(BaseModel):
    """Request body for saving a completed wizard run."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    client_id: str = Field(min_length=1)
    lead: LeadInput
    attributes: AttributesInput


def _formatted(result) -> dict:
    return {
        "estimated": format_price(result.estimated),
        "range": format_price_range(result.conservative, result.optimistic),
        "price_per_area": f"{format_price(result.price_per_area)}/m²",
    }


def create_app(service: Optional[ValuationService] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        service: Valuation service (default: process-wide singleton)
    """
    app = FastAPI(
        title="Valorador Online",
        description="Instant property valuation for Spanish residential property",
        version="0.1.0",
        docs_url=None if IS_PRODUCTION else "/docs",
        redoc_url=None if IS_PRODUCTION else "/redoc",
        openapi_url=None if IS_PRODUCTION else "/openapi.json",
        debug=DEBUG_MODE,
    )

    # Healthchecks first: no dependencies, no IO
    @app.get("/", include_in_schema=False)
    def root():
        return {"status": "ok"}

    @app.get("/health", include_in_schema=False)
    def health():
        return {"status": "healthy"}

    if ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=ALLOWED_ORIGINS,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    templates = Jinja2Templates(directory=TEMPLATES_DIR)
    templates.env.filters["price"] = format_price
    templates.env.filters["area"] = format_area

    svc = service or get_valuation_service()
    report_generator = ValuationReportGenerator()

    # =========================================================================
    # Valuation
    # =========================================================================

    @app.post("/api/valuation")
    def value_property(attributes: AttributesInput):
        """Value a (possibly partial) attribute set without saving it."""
        snapshot = attributes.to_attributes()
        result = svc.value(snapshot)
        zone = svc.engine.zone_table.get_zone_info(snapshot.postal_code)
        return {
            "result": result.to_dict(),
            "formatted": _formatted(result),
            "zone": zone.to_dict() if zone else None,
        }

    @app.get("/api/zones/{postal_code}")
    def zone_info(postal_code: str):
        zone = svc.engine.zone_table.get_zone_info(postal_code)
        if zone is None:
            raise HTTPException(status_code=404, detail=f"Unknown postal code: {postal_code}")
        return zone.to_dict()

    # =========================================================================
    # Cadastral registry
    # =========================================================================

    @app.post("/api/cadastral/normalize")
    def normalize(payload: Any = Body(...)):
        """Normalise a raw registry response into a CadastralRecord."""
        record = normalize_cadastral_response(payload)
        if record is None:
            raise HTTPException(status_code=404, detail="Empty cadastral response")
        return record.to_dict()

    @app.post("/api/cadastral/units")
    def units(payload: Any = Body(...)):
        """Units of a building from a raw response or unit list."""
        resolved = resolve_building_units(payload)
        return {
            "multi_unit": is_multi_unit(payload) or len(resolved) > 1,
            "count": len(resolved),
            "units": [u.to_dict() for u in resolved],
        }

    @app.get("/api/cadastral/lookup")
    def lookup(
        lat: float = Query(..., ge=-90, le=90),
        lng: float = Query(..., ge=-180, le=180),
    ):
        """Registry record at a location, with the unit picker if needed."""
        found = svc.lookup_by_coordinates(lat, lng)
        return {
            "record": found.record.to_dict(),
            "needs_unit_selection": found.needs_unit_selection,
            "units": [u.to_dict() for u in found.units],
        }

    @app.get("/api/cadastral/reference/{reference}")
    def lookup_reference(reference: str):
        return svc.lookup_by_reference(reference).to_dict()

    @app.get("/api/cadastral/search")
    def search_address(
        province: str = Query(..., min_length=1),
        municipality: str = Query(..., min_length=1),
        street: str = Query(..., min_length=1),
        number: str = "",
    ):
        """Registered properties at a street address."""
        records = svc.search_by_address(province, municipality, street, number)
        return {
            "count": len(records),
            "records": [r.to_dict() for r in records],
        }

    @app.get("/api/cadastral/building/{reference}/units")
    def building_units(reference: str):
        resolved = svc.building_units(reference)
        return {
            "count": len(resolved),
            "units": [u.to_dict() for u in resolved],
        }

    @app.get("/api/cadastral/building/{reference}/units/{index}")
    def choose_unit(reference: str, index: int, postal_code: str = ""):
        """Canonical record for one unit of a building."""
        record = svc.choose_unit(reference, index, postal_code)
        if record is None:
            raise HTTPException(status_code=404, detail=f"Unit {index} not found")
        return record.to_dict()

    # =========================================================================
    # Saved valuations
    # =========================================================================

    @app.post("/api/valuations", status_code=201)
    def save_valuation(request_data: SaveValuationRequest):
        """Value, save and email a completed wizard run."""
        try:
            lead = LeadData(
                name=request_data.lead.name,
                email=request_data.lead.email,
                phone=request_data.lead.phone,
            )
        except ValueError as e:
            logger.warning("Rejected lead data for client %s: %s", request_data.client_id, e)
            raise HTTPException(status_code=422, detail=str(e))

        submission = svc.submit(
            request_data.client_id,
            lead,
            request_data.attributes.to_attributes(),
        )
        return {
            "valuation": submission.valuation.to_dict(),
            "report_url": submission.report_url,
            "email_sent": submission.email_sent,
        }

    @app.get("/api/valuations/{token}")
    def get_valuation(token: str):
        valuation = svc.get_report(token)
        if valuation is None:
            raise HTTPException(status_code=404, detail="Valuation not found")
        return valuation.to_dict()

    @app.get("/api/clients/{client_ref}/valuations")
    def client_valuations(client_ref: str):
        """Saved valuations for an agency client, newest first."""
        records = svc.list_client_valuations(client_ref)
        return {
            "count": len(records),
            "valuations": [v.to_dict() for v in records],
        }

    # =========================================================================
    # Public report
    # =========================================================================

    @app.get("/v/{token}", response_class=HTMLResponse)
    def report_page(request: Request, token: str):
        valuation = svc.get_report(token)
        client = svc.clients.get_by_id(valuation.client_id) if valuation else None
        return templates.TemplateResponse(
            request=request,
            name="report.html",
            context={
                "title": "Informe de valoración",
                "valuation": valuation,
                "attributes": valuation.attributes if valuation else None,
                "client": client,
                "token": token,
            },
            status_code=200 if valuation else 404,
        )

    @app.get("/v/{token}/pdf")
    def report_pdf(token: str):
        valuation = svc.get_report(token)
        if valuation is None:
            raise HTTPException(status_code=404, detail="Valuation not found")
        client = svc.clients.get_by_id(valuation.client_id)
        pdf_bytes = report_generator.generate_to_buffer(valuation, client)
        return Response(
            content=pdf_bytes,
            media_type="application/pdf",
            headers={"Content-Disposition": f'inline; filename="{report_filename(valuation)}"'},
        )

    return app


# Create app instance for uvicorn
app = create_app()
