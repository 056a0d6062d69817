"""
Record Store

Saved valuations and agency clients, JSON-file persistence, report tokens
and the email notifier.
"""

from typing import Optional

from core.storage.schema import (
    AgencyClient,
    LeadData,
    SavedValuation,
    generate_report_token,
)
from core.storage.repository import ClientRepository, ValuationRepository
from core.storage.notifier import ValuationEmailNotifier, build_email_payload


# =============================================================================
# Singletons
# =============================================================================

_valuation_repository: Optional[ValuationRepository] = None
_client_repository: Optional[ClientRepository] = None


def get_valuation_repository(persist_path: Optional[str] = None) -> ValuationRepository:
    """
    Get the valuation repository singleton.

    Args:
        persist_path: Optional path for persistence (only used on first call)
    """
    global _valuation_repository
    if _valuation_repository is None:
        _valuation_repository = ValuationRepository(persist_path=persist_path)
    return _valuation_repository


def get_client_repository(persist_path: Optional[str] = None) -> ClientRepository:
    """Get the agency client repository singleton."""
    global _client_repository
    if _client_repository is None:
        _client_repository = ClientRepository(persist_path=persist_path)
    return _client_repository


__all__ = [
    # Schema
    "AgencyClient",
    "LeadData",
    "SavedValuation",
    "generate_report_token",
    # Repositories
    "ClientRepository",
    "ValuationRepository",
    "get_client_repository",
    "get_valuation_repository",
    # Email
    "ValuationEmailNotifier",
    "build_email_payload",
]
