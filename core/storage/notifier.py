"""
Valuation Email Notifier

Posts the report email request to the configured email function. The
function renders and sends the message; this side only builds the payload.
Delivery is best-effort: failures are logged and reported as False.
"""

from __future__ import annotations

import logging
from typing import Optional

import requests

from core.storage.schema import AgencyClient, SavedValuation


logger = logging.getLogger(__name__)


EMAIL_TIMEOUT_SECONDS = 10


def build_email_payload(
    valuation: SavedValuation,
    report_url: str,
    client: Optional[AgencyClient] = None,
) -> dict:
    """
    Body for the email function.

    Keys follow the function's camelCase contract.
    """
    attrs = valuation.attributes
    payload = {
        "leadName": valuation.lead_name,
        "leadEmail": valuation.lead_email,
        "address": valuation.address,
        "city": attrs.city,
        "postalCode": attrs.postal_code,
        "estimatedValue": valuation.estimated_value_recommended,
        "estimatedValueMin": valuation.estimated_value_min,
        "estimatedValueMax": valuation.estimated_value_max,
        "pricePerM2": valuation.price_per_m2,
        "surface": attrs.surface,
        "bedrooms": attrs.bedrooms,
        "bathrooms": attrs.bathrooms,
        "constructionYear": attrs.construction_year,
        "finishQuality": attrs.finish_quality.value if attrs.finish_quality else None,
        "extras": list(attrs.extras),
        "cadastralReference": attrs.cadastral_reference,
        "streetViewUrl": valuation.street_view_url,
        "reportUrl": report_url,
    }

    if client is not None:
        payload.update({
            "agentName": client.agent_name,
            "agencyName": client.agency_name,
            "agentPhotoUrl": client.agent_photo_url,
            "agencyLogoUrl": client.agency_logo_url,
        })

    # The function treats missing and null alike; keep the body small
    return {k: v for k, v in payload.items() if v is not None}


class ValuationEmailNotifier:
    """
    Sends the "your valuation is ready" email through an HTTP function.

    Without a configured endpoint every send is skipped and returns False.
    """

    def __init__(
        self,
        function_url: Optional[str] = None,
        function_key: Optional[str] = None,
        timeout: int = EMAIL_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self._function_url = function_url
        self._timeout = timeout
        self._session = session or requests.Session()
        if function_key:
            self._session.headers.update({"Authorization": f"Bearer {function_key}"})

    @property
    def configured(self) -> bool:
        return bool(self._function_url)

    def send(
        self,
        valuation: SavedValuation,
        report_url: str,
        client: Optional[AgencyClient] = None,
    ) -> bool:
        """
        Request the valuation email for a saved record.

        Returns:
            True if the function accepted the request
        """
        if not self.configured:
            logger.warning("Email function not configured, skipping email for %s", valuation.id)
            return False

        payload = build_email_payload(valuation, report_url, client)
        try:
            response = self._session.post(
                self._function_url,
                json=payload,
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error("Error sending valuation email for %s: %s", valuation.id, e)
            return False

        logger.info("Valuation email sent for %s", valuation.id)
        return True

    def close(self) -> None:
        self._session.close()
