"""
Valorador Online - Core Business Logic

This module provides the property valuation pipeline:
1. Zone Price Table (postal code -> price per m²)
2. Cadastral Normalizer (registry response -> CadastralRecord / BuildingUnit)
3. Adjustment Calculators (age, extras, finish, size, rooms)
4. Valuation Engine (three-point estimate + confidence)
5. Record Store (saved valuations, report tokens, email)
"""

from .valuation import (
    FinishQuality,
    PropertyAttributes,
    ValuationResult,
    ZoneEntry,
    ZoneTier,
    ZonePriceTable,
    ValuationEngine,
    calculate_valuation,
    get_zone_table,
)

# Cadastral registry
from .cadastral import (
    BuildingUnit,
    CadastralRecord,
    CatastroClient,
    normalize_cadastral_response,
    resolve_building_units,
    select_unit,
)

# Record store
from .storage import (
    AgencyClient,
    LeadData,
    SavedValuation,
    get_client_repository,
    get_valuation_repository,
)

# Wizard pipeline
from .valuation_service import (
    SubmissionSuccess,
    ValuationService,
    attributes_from_record,
    get_valuation_service,
)

__all__ = [
    # Valuation Engine
    "FinishQuality",
    "PropertyAttributes",
    "ValuationResult",
    "ZoneEntry",
    "ZoneTier",
    "ZonePriceTable",
    "ValuationEngine",
    "calculate_valuation",
    "get_zone_table",
    # Cadastral registry
    "BuildingUnit",
    "CadastralRecord",
    "CatastroClient",
    "normalize_cadastral_response",
    "resolve_building_units",
    "select_unit",
    # Record store
    "AgencyClient",
    "LeadData",
    "SavedValuation",
    "get_client_repository",
    "get_valuation_repository",
    # Wizard pipeline
    "SubmissionSuccess",
    "ValuationService",
    "attributes_from_record",
    "get_valuation_service",
]
