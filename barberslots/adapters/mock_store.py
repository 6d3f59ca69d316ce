"""
Mock booking store for running without Supabase credentials.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..domain.exceptions import BarberNotFoundError
from ..domain.models import Appointment, Barber, Service, WorkingHourRule
from .supabase_client import is_uuid, parse_rows

logger = logging.getLogger(__name__)


DEFAULT_DATA_FILE = Path(__file__).parent / "mock_booking_data.json"


class MockStoreClient:
    """
    Mock client that answers store queries from a JSON file.

    The file mirrors the store tables (``barbers``, ``services``,
    ``working_hours``, ``appointments``) and is filtered the same way the
    REST client filters on the server, so the rest of the application can
    be exercised offline.
    """

    def __init__(self, data_file: Optional[Path] = None):
        """
        Initialize the mock client.

        Args:
            data_file: Optional path to a JSON fixture; defaults to the bundled data
        """
        self.data_file = data_file or DEFAULT_DATA_FILE
        self._tables = self._load_tables()

    def _load_tables(self) -> Dict[str, List[Dict[str, Any]]]:
        """Load mock tables from the JSON file."""
        if not self.data_file.exists():
            logger.warning("Mock data file %s not found; using empty tables", self.data_file)
            return {}

        with open(self.data_file, "r", encoding="utf-8") as f:
            return json.load(f)

    def _rows(self, table: str) -> List[Dict[str, Any]]:
        return self._tables.get(table, [])

    async def get_barber(self, identifier: str) -> Barber:
        """Find an active barber by id, employee name or profile name."""
        active = [row for row in self._rows("barbers") if row.get("is_active", True)]

        if is_uuid(identifier):
            matches = [row for row in active if row.get("id") == identifier]
        else:
            needle = identifier.lower()
            matches = [
                row for row in active
                if needle in (row.get("employee_name") or "").lower()
            ]
            if not matches:
                matches = [
                    row for row in active
                    if needle in ((row.get("profiles") or {}).get("name") or "").lower()
                ]

        if not matches:
            raise BarberNotFoundError(f"No active barber found for '{identifier}'")

        return Barber.from_row(matches[0])

    async def get_services(self, barber_id: str) -> List[Service]:
        """Return the barber's services ordered by name."""
        rows = [row for row in self._rows("services") if row.get("barber_id") == barber_id]
        services = parse_rows(rows, Service.from_row, "service")
        return sorted(services, key=lambda s: s.name)

    async def get_working_hours(self, barber_id: str) -> List[WorkingHourRule]:
        """Return the barber's working-hour rules ordered by weekday."""
        rows = [row for row in self._rows("working_hours") if row.get("barber_id") == barber_id]
        rules = parse_rows(rows, WorkingHourRule.from_row, "working-hour rule")
        return sorted(rules, key=lambda r: r.day_of_week)

    async def get_appointments(self, barber_id: str, day: date) -> List[Appointment]:
        """Return the barber's non-cancelled appointments for one date."""
        wanted_date = day.isoformat()
        rows = [
            row for row in self._rows("appointments")
            if row.get("barber_id") == barber_id
            and row.get("appointment_date") == wanted_date
            and row.get("status") != "cancelled"
        ]
        return parse_rows(rows, Appointment.from_row, "appointment")
