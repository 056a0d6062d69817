"""
Valuation Service - Wizard Pipeline

Ties the pieces of one wizard run together:

1. LOOKUP - registry record by coordinates or reference, unit picker for
   multi-unit buildings
2. MERGE - registry data folded into the attribute snapshot
3. VALUE - Valuation Engine
4. SAVE - persisted SavedValuation with a public report token
5. NOTIFY - report email through the email function

Every step degrades rather than fails: a registry outage yields placeholder
data and an email failure still returns the saved valuation.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from core.cadastral import (
    BuildingUnit,
    CadastralRecord,
    CatastroClient,
    building_reference,
    resolve_building_units,
    select_unit,
)
from core.imagery import street_view_url, street_view_url_by_address
from core.storage import (
    AgencyClient,
    ClientRepository,
    LeadData,
    SavedValuation,
    ValuationEmailNotifier,
    ValuationRepository,
    get_client_repository,
    get_valuation_repository,
)
from core.valuation import PropertyAttributes, ValuationEngine, ValuationResult
from utils.config import Config


logger = logging.getLogger(__name__)


# =============================================================================
# Record Merge
# =============================================================================


def attributes_from_record(
    record: CadastralRecord,
    attributes: Optional[PropertyAttributes] = None,
) -> PropertyAttributes:
    """
    Fold a registry record into an attribute snapshot.

    Registry facts (reference, surface, year, classification) replace what
    the snapshot holds. Location text only fills gaps, so an address the
    user picked from autocomplete is kept. Rooms, extras and finish quality
    are never touched.
    """
    attributes = attributes or PropertyAttributes()

    changes = {
        "cadastral_reference": record.cadastral_reference or attributes.cadastral_reference,
        "surface": record.surface,
        "construction_year": record.construction_year,
        "property_type": record.property_type,
        "building_type": record.building_type,
        "address": attributes.address or record.address,
        "city": attributes.city or record.municipality,
        "postal_code": attributes.postal_code or record.postal_code,
    }
    if not attributes.has_coordinates and record.latitude and record.longitude:
        changes["latitude"] = record.latitude
        changes["longitude"] = record.longitude

    return attributes.with_updates(**changes)


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class SubmissionSuccess:
    """Returned when a valuation has been computed and saved."""
    valuation: SavedValuation
    report_url: str
    email_sent: bool

    @property
    def result(self) -> ValuationResult:
        return self.valuation.result


@dataclass
class CadastralLookup:
    """Registry record plus, for multi-unit buildings, the unit picker."""
    record: CadastralRecord
    units: list

    @property
    def needs_unit_selection(self) -> bool:
        return len(self.units) > 1


# =============================================================================
# Service
# =============================================================================


class ValuationService:
    """
    Orchestrates lookup, valuation, persistence and email for the wizard.

    All collaborators are injectable; defaults come from Config.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        engine: Optional[ValuationEngine] = None,
        catastro: Optional[CatastroClient] = None,
        valuations: Optional[ValuationRepository] = None,
        clients: Optional[ClientRepository] = None,
        notifier: Optional[ValuationEmailNotifier] = None,
    ):
        self._config = config or Config.load()
        self._engine = engine or ValuationEngine()
        self._catastro = catastro or CatastroClient(
            api_key=self._config.catastro_api_key,
            api_base=self._config.catastro_api_base,
            timeout=self._config.request_timeout,
        )
        self._valuations = valuations or get_valuation_repository(
            self._config.valuations_path
        )
        self._clients = clients or get_client_repository(self._config.clients_path)
        self._notifier = notifier or ValuationEmailNotifier(
            function_url=self._config.email_function_url,
            function_key=self._config.email_function_key,
        )

    @property
    def engine(self) -> ValuationEngine:
        return self._engine

    @property
    def catastro(self) -> CatastroClient:
        return self._catastro

    @property
    def valuations(self) -> ValuationRepository:
        return self._valuations

    @property
    def clients(self) -> ClientRepository:
        return self._clients

    # =========================================================================
    # Registry
    # =========================================================================

    def lookup_by_coordinates(self, latitude: float, longitude: float) -> CadastralLookup:
        """
        Registry record at a location, with units when the building has several.
        """
        record = self._catastro.fetch_by_coordinates(latitude, longitude)
        units = []
        if record.cadastral_reference:
            units = self.building_units(record.cadastral_reference)
        return CadastralLookup(record=record, units=units)

    def lookup_by_reference(self, reference: str) -> CadastralRecord:
        return self._catastro.fetch_by_reference(reference)

    def building_units(self, reference: str) -> list[BuildingUnit]:
        """Units of the building a reference belongs to (empty if unknown)."""
        raw, count = self._catastro.fetch_building_units(building_reference(reference))
        if count <= 1 and len(raw) <= 1:
            return []
        return resolve_building_units(raw)

    def choose_unit(
        self,
        reference: str,
        index: int,
        fallback_postal_code: str = "",
    ) -> Optional[CadastralRecord]:
        """
        Canonical record for the unit picked from a building listing.

        Returns:
            CadastralRecord, or None if the index is out of range
        """
        raw, _ = self._catastro.fetch_building_units(building_reference(reference))
        return select_unit(raw, index, fallback_postal_code)

    def search_by_address(
        self,
        province: str,
        municipality: str,
        street: str,
        number: str,
    ) -> list[CadastralRecord]:
        return self._catastro.search_by_address(province, municipality, street, number)

    # =========================================================================
    # Valuation
    # =========================================================================

    def street_view_for(self, attributes: PropertyAttributes) -> Optional[str]:
        """
        Street View image for a snapshot: by coordinates, else by address.

        Returns:
            Image URL, or None when there is neither location nor address
        """
        api_key = self._config.google_maps_api_key
        if attributes.has_coordinates:
            return street_view_url(attributes.latitude, attributes.longitude, api_key)
        if attributes.address:
            location = ", ".join(
                part for part in (attributes.address, attributes.postal_code, attributes.city)
                if part
            )
            return street_view_url_by_address(location, api_key)
        return None

    def value(self, attributes: Optional[PropertyAttributes] = None) -> ValuationResult:
        return self._engine.compute(attributes)

    def resolve_client(self, client_ref: str) -> Optional[AgencyClient]:
        """Agency client by id, falling back to slug."""
        return self._clients.get_by_id(client_ref) or self._clients.get_by_slug(client_ref)

    def submit(
        self,
        client_ref: str,
        lead: LeadData,
        attributes: PropertyAttributes,
    ) -> SubmissionSuccess:
        """
        Value, save and email a completed wizard run.

        Args:
            client_ref: Agency client id or slug
            lead: Validated contact details
            attributes: Final attribute snapshot

        Returns:
            SubmissionSuccess with the saved record and its public report URL
        """
        client = self.resolve_client(client_ref)
        client_id = client.id if client else client_ref
        if client is None:
            logger.warning("Unknown agency client %s, saving without branding", client_ref)

        if not attributes.street_view_url:
            attributes = attributes.with_updates(
                street_view_url=self.street_view_for(attributes)
            )

        result = self._engine.compute(attributes)
        saved = self._valuations.save(
            client_id=client_id,
            lead=lead,
            attributes=attributes,
            result=result,
        )

        report_url = self._config.report_url(saved.report_token)
        email_sent = self._notifier.send(saved, report_url, client)

        return SubmissionSuccess(
            valuation=saved,
            report_url=report_url,
            email_sent=email_sent,
        )

    def get_report(self, token: str) -> Optional[SavedValuation]:
        return self._valuations.get_by_token(token)

    def list_client_valuations(self, client_ref: str) -> list[SavedValuation]:
        """Saved valuations for a client (id or slug), newest first."""
        client = self.resolve_client(client_ref)
        return self._valuations.list_by_client(client.id if client else client_ref)


# =============================================================================
# Singleton
# =============================================================================

_valuation_service: Optional[ValuationService] = None


def get_valuation_service() -> ValuationService:
    """Get the valuation service singleton."""
    global _valuation_service
    if _valuation_service is None:
        _valuation_service = ValuationService()
    return _valuation_service
