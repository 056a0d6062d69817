"""
Valuation Repository - Opaque Record Store for Saved Valuations

In-memory storage with optional JSON file persistence, swappable for a
database later. Records are looked up by report token (public link) and
by agency client.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Optional

from core.storage.schema import (
    AgencyClient,
    LeadData,
    SavedValuation,
    generate_report_token,
)
from core.valuation.models import PropertyAttributes, ValuationResult


logger = logging.getLogger(__name__)


# =============================================================================
# Saved Valuations
# =============================================================================


class ValuationRepository:
    """
    Repository for saved valuation reports.

    Thread-safe: FastAPI runs sync endpoints in a worker pool.
    """

    def __init__(self, persist_path: Optional[str] = None):
        """
        Initialise repository.

        Args:
            persist_path: Optional path to persist data to JSON file
        """
        self._valuations: dict[str, SavedValuation] = {}  # id -> record
        self._token_index: dict[str, str] = {}  # report_token -> id
        self._persist_path = Path(persist_path) if persist_path else None
        self._lock = threading.Lock()

        if self._persist_path and self._persist_path.exists():
            self._load_from_file()

    def _save_to_file(self) -> None:
        """Persist data to file."""
        if not self._persist_path:
            return

        data = {
            "valuations": {vid: v.to_dict() for vid, v in self._valuations.items()},
            "saved_at": datetime.utcnow().isoformat(),
        }

        self._persist_path.parent.mkdir(parents=True, exist_ok=True)
        self._persist_path.write_text(
            json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8"
        )

    def _load_from_file(self) -> None:
        """Load data from file."""
        try:
            data = json.loads(self._persist_path.read_text(encoding="utf-8"))
            for vid, record_data in data.get("valuations", {}).items():
                record = SavedValuation.from_dict(record_data)
                self._valuations[vid] = record
                self._token_index[record.report_token] = vid
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            # Start fresh rather than refuse to serve
            logger.warning("Could not load valuation data from %s: %s", self._persist_path, e)

    # =========================================================================
    # CRUD Operations
    # =========================================================================

    def save(
        self,
        client_id: str,
        lead: LeadData,
        attributes: PropertyAttributes,
        result: ValuationResult,
        street_view_url: Optional[str] = None,
    ) -> SavedValuation:
        """
        Store a completed valuation.

        Returns:
            The SavedValuation, carrying its report token
        """
        record = SavedValuation.create(
            client_id=client_id,
            lead=lead,
            attributes=attributes,
            result=result,
            street_view_url=street_view_url,
        )

        with self._lock:
            # Ensure report_token is unique (extremely unlikely collision)
            while record.report_token in self._token_index:
                record = replace(record, report_token=generate_report_token())

            self._valuations[record.id] = record
            self._token_index[record.report_token] = record.id
            self._save_to_file()

        logger.info("Saved valuation %s for client %s", record.id, client_id)
        return record

    def get(self, valuation_id: str) -> Optional[SavedValuation]:
        return self._valuations.get(valuation_id)

    def get_by_token(self, token: str) -> Optional[SavedValuation]:
        """Saved valuation for a public report token, or None."""
        valuation_id = self._token_index.get(token)
        if valuation_id is None:
            return None
        return self._valuations.get(valuation_id)

    def list_by_client(self, client_id: str) -> list[SavedValuation]:
        """All valuations for a client, newest first."""
        records = [v for v in self._valuations.values() if v.client_id == client_id]
        return sorted(records, key=lambda v: v.created_at, reverse=True)

    def count(self) -> int:
        return len(self._valuations)


# =============================================================================
# Agency Clients
# =============================================================================


class ClientRepository:
    """
    Read-mostly store of agency clients, keyed by id and by slug.
    """

    def __init__(self, persist_path: Optional[str] = None):
        self._clients: dict[str, AgencyClient] = {}
        self._slug_index: dict[str, str] = {}
        self._persist_path = Path(persist_path) if persist_path else None

        if self._persist_path and self._persist_path.exists():
            self._load_from_file()

    def _load_from_file(self) -> None:
        try:
            data = json.loads(self._persist_path.read_text(encoding="utf-8"))
            for client_data in data.get("clients", []):
                self._index(AgencyClient.from_dict(client_data))
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            logger.warning("Could not load client data from %s: %s", self._persist_path, e)

    def _save_to_file(self) -> None:
        if not self._persist_path:
            return
        data = {"clients": [c.to_dict() for c in self._clients.values()]}
        self._persist_path.parent.mkdir(parents=True, exist_ok=True)
        self._persist_path.write_text(
            json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8"
        )

    def _index(self, client: AgencyClient) -> None:
        self._clients[client.id] = client
        self._slug_index[client.slug] = client.id

    def add(self, client: AgencyClient) -> AgencyClient:
        """
        Register a client.

        Raises:
            ValueError: If the slug is already taken by another client
        """
        existing = self._slug_index.get(client.slug)
        if existing is not None and existing != client.id:
            raise ValueError(f"Client slug already registered: {client.slug}")
        self._index(client)
        self._save_to_file()
        return client

    def get_by_id(self, client_id: str) -> Optional[AgencyClient]:
        return self._clients.get(client_id)

    def get_by_slug(self, slug: str) -> Optional[AgencyClient]:
        client_id = self._slug_index.get(slug)
        return self._clients.get(client_id) if client_id else None
