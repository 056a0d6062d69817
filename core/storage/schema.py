"""
Storage Schema - Saved Valuations and Agency Clients

A SavedValuation is the persisted snapshot of one completed wizard run:
the lead's contact details, the property attributes and the valuation
range. It is addressed publicly by its report token.
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Final, Optional
from uuid import uuid4

from core.valuation.models import PropertyAttributes, ValuationResult


# =============================================================================
# Constants
# =============================================================================

# Token length in bytes (produces ~22 URL-safe characters)
REPORT_TOKEN_BYTES: Final[int] = 16

EMAIL_REGEX: Final = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def generate_report_token() -> str:
    """URL-safe random token for the public report link."""
    return secrets.token_urlsafe(REPORT_TOKEN_BYTES)


# =============================================================================
# Agency Clients
# =============================================================================


@dataclass(frozen=True)
class AgencyClient:
    """
    Real-estate agency that embeds the wizard.

    Branding fields are used in the report page and the email.
    """

    id: str
    slug: str
    agent_name: str
    agency_name: str
    name: Optional[str] = None
    agent_photo_url: Optional[str] = None
    agency_logo_url: Optional[str] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("id is required")
        if not self.slug:
            raise ValueError("slug is required")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "slug": self.slug,
            "agent_name": self.agent_name,
            "agency_name": self.agency_name,
            "name": self.name,
            "agent_photo_url": self.agent_photo_url,
            "agency_logo_url": self.agency_logo_url,
            "logo_url": self.logo_url,
            "primary_color": self.primary_color,
            "phone": self.phone,
            "email": self.email,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AgencyClient":
        return cls(
            id=data["id"],
            slug=data["slug"],
            agent_name=data.get("agent_name", ""),
            agency_name=data.get("agency_name", ""),
            name=data.get("name") or data.get("nombre"),
            agent_photo_url=data.get("agent_photo_url"),
            agency_logo_url=data.get("agency_logo_url"),
            logo_url=data.get("logo_url"),
            primary_color=data.get("primary_color"),
            phone=data.get("phone") or data.get("telefono"),
            email=data.get("email"),
        )


# =============================================================================
# Leads
# =============================================================================


@dataclass(frozen=True)
class LeadData:
    """Contact details captured before the result is shown."""

    name: str
    email: str
    phone: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("name is required")
        if not self.email or not EMAIL_REGEX.match(self.email.strip()):
            raise ValueError(f"Invalid email address: {self.email}")


# =============================================================================
# Saved Valuation
# =============================================================================


@dataclass(frozen=True)
class SavedValuation:
    """
    Persisted valuation report.

    Invariants:
        - report_token is unique and URL-safe
        - estimated_value_min <= estimated_value_recommended <= estimated_value_max
    """

    id: str
    report_token: str
    created_at: datetime
    client_id: str

    # Lead
    lead_name: str
    lead_email: str
    lead_phone: Optional[str]

    # Property
    address: str
    attributes: PropertyAttributes

    # Valuation
    estimated_value_min: int
    estimated_value_max: int
    estimated_value_recommended: int
    price_per_m2: int
    confidence: int = 0

    street_view_url: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("id is required")
        if not self.report_token:
            raise ValueError("report_token is required")
        if not self.client_id:
            raise ValueError("client_id is required")
        if not (
            self.estimated_value_min
            <= self.estimated_value_recommended
            <= self.estimated_value_max
        ):
            raise ValueError("valuation range is inconsistent")

    @classmethod
    def create(
        cls,
        client_id: str,
        lead: LeadData,
        attributes: PropertyAttributes,
        result: ValuationResult,
        street_view_url: Optional[str] = None,
    ) -> "SavedValuation":
        """Create a new record with a fresh id, token and timestamp."""
        street_view_url = street_view_url or attributes.street_view_url
        if street_view_url != attributes.street_view_url:
            attributes = attributes.with_updates(street_view_url=street_view_url)

        return cls(
            id=str(uuid4()),
            report_token=generate_report_token(),
            created_at=datetime.utcnow(),
            client_id=client_id,
            lead_name=lead.name.strip(),
            lead_email=lead.email.strip(),
            lead_phone=lead.phone,
            address=attributes.address or "",
            attributes=attributes,
            estimated_value_min=result.conservative,
            estimated_value_max=result.optimistic,
            estimated_value_recommended=result.estimated,
            price_per_m2=result.price_per_area,
            confidence=result.confidence,
            street_view_url=street_view_url,
        )

    @property
    def result(self) -> ValuationResult:
        """The valuation range as a ValuationResult."""
        return ValuationResult(
            conservative=self.estimated_value_min,
            estimated=self.estimated_value_recommended,
            optimistic=self.estimated_value_max,
            price_per_area=self.price_per_m2,
            confidence=self.confidence,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        attrs = self.attributes.to_dict()
        return {
            "id": self.id,
            "report_token": self.report_token,
            "created_at": self.created_at.isoformat(),
            "client_id": self.client_id,
            "lead_name": self.lead_name,
            "lead_email": self.lead_email,
            "lead_phone": self.lead_phone,
            "address": self.address,
            "city": attrs["city"],
            "postal_code": attrs["postal_code"],
            "latitude": attrs["latitude"],
            "longitude": attrs["longitude"],
            "surface": attrs["surface"],
            "construction_year": attrs["construction_year"],
            "bedrooms": attrs["bedrooms"],
            "bathrooms": attrs["bathrooms"],
            "extras": attrs["extras"],
            "finish_quality": attrs["finish_quality"],
            "property_type": attrs["property_type"],
            "building_type": attrs["building_type"],
            "cadastral_reference": attrs["cadastral_reference"],
            "estimated_value_min": self.estimated_value_min,
            "estimated_value_max": self.estimated_value_max,
            "estimated_value_recommended": self.estimated_value_recommended,
            "price_per_m2": self.price_per_m2,
            "confidence": self.confidence,
            "street_view_url": self.street_view_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SavedValuation":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            report_token=data["report_token"],
            created_at=datetime.fromisoformat(data["created_at"]),
            client_id=data["client_id"],
            lead_name=data.get("lead_name", ""),
            lead_email=data.get("lead_email", ""),
            lead_phone=data.get("lead_phone"),
            address=data.get("address", ""),
            attributes=PropertyAttributes.from_dict(data),
            estimated_value_min=int(data["estimated_value_min"]),
            estimated_value_max=int(data["estimated_value_max"]),
            estimated_value_recommended=int(data["estimated_value_recommended"]),
            price_per_m2=int(data.get("price_per_m2", 0)),
            confidence=int(data.get("confidence", 0)),
            street_view_url=data.get("street_view_url"),
        )
