"""
Supabase (PostgREST) client for reading booking data.

Only reads are performed. Row-level security on the hosted store decides
which rows the configured key can see.
"""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import date
from typing import Any, Callable, Dict, List, TypeVar

import requests

from ..domain.exceptions import BarberNotFoundError, DataStoreError
from ..domain.models import Appointment, Barber, Service, WorkingHourRule

logger = logging.getLogger(__name__)

T = TypeVar("T")

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

PROFILE_COLUMNS = "id,name,phone,email"


def is_uuid(value: str) -> bool:
    """Check whether an identifier looks like a row id rather than a name."""
    return bool(UUID_PATTERN.match(value))


def parse_rows(
    rows: List[Dict[str, Any]],
    parser: Callable[[Dict[str, Any]], T],
    kind: str,
) -> List[T]:
    """Parse rows into domain models, skipping the ones that do not fit."""
    parsed: List[T] = []

    for row in rows:
        try:
            parsed.append(parser(row))
        except (KeyError, TypeError, ValueError) as exc:
            row_id = row.get("id") if isinstance(row, dict) else row
            logger.warning("Skipping malformed %s row %r: %s", kind, row_id, exc)

    return parsed


class SupabaseStoreClient:
    """
    Client for the Supabase REST API.

    Blocking HTTP calls run in a worker thread so the async service layer can
    fetch working hours, services and appointments concurrently.
    """

    REST_PATH = "/rest/v1"

    def __init__(self, base_url: str, api_key: str, timeout: int = 30):
        """
        Initialize the REST client.

        Args:
            base_url: Project URL, e.g. https://xyz.supabase.co
            api_key: Anon (or service) key sent as ``apikey`` and bearer token
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        })

    async def get_barber(self, identifier: str) -> Barber:
        """
        Find an active barber by id or by name.

        Names are matched case-insensitively against the employee name first,
        then against the owner's profile name.

        Raises:
            BarberNotFoundError: If no active barber matches
            DataStoreError: If the request fails
        """
        return await asyncio.to_thread(self._find_barber, identifier)

    async def get_services(self, barber_id: str) -> List[Service]:
        """Return the barber's services ordered by name."""
        rows = await asyncio.to_thread(
            self._get,
            "services",
            {"select": "*", "barber_id": f"eq.{barber_id}", "order": "name"},
        )
        return parse_rows(rows, Service.from_row, "service")

    async def get_working_hours(self, barber_id: str) -> List[WorkingHourRule]:
        """Return the barber's working-hour rules ordered by weekday."""
        rows = await asyncio.to_thread(
            self._get,
            "working_hours",
            {"select": "*", "barber_id": f"eq.{barber_id}", "order": "day_of_week"},
        )
        return parse_rows(rows, WorkingHourRule.from_row, "working-hour rule")

    async def get_appointments(self, barber_id: str, day: date) -> List[Appointment]:
        """Return the barber's non-cancelled appointments for one date."""
        rows = await asyncio.to_thread(
            self._get,
            "appointments",
            {
                "select": "*",
                "barber_id": f"eq.{barber_id}",
                "appointment_date": f"eq.{day.isoformat()}",
                "status": "neq.cancelled",
            },
        )
        return parse_rows(rows, Appointment.from_row, "appointment")

    def _find_barber(self, identifier: str) -> Barber:
        if is_uuid(identifier):
            rows = self._get(
                "barbers",
                {
                    "select": f"*,profiles({PROFILE_COLUMNS})",
                    "id": f"eq.{identifier}",
                    "is_active": "eq.true",
                },
            )
        else:
            pattern = f"*{identifier}*"
            rows = self._get(
                "barbers",
                {
                    "select": f"*,profiles({PROFILE_COLUMNS})",
                    "employee_name": f"ilike.{pattern}",
                    "is_active": "eq.true",
                },
            )
            if not rows:
                logger.debug("No barber with employee name like %r, trying profile names", identifier)
                rows = self._get(
                    "barbers",
                    {
                        "select": f"*,profiles!inner({PROFILE_COLUMNS})",
                        "profiles.name": f"ilike.{pattern}",
                        "is_active": "eq.true",
                    },
                )

        barbers = parse_rows(rows, Barber.from_row, "barber")
        if not barbers:
            raise BarberNotFoundError(f"No active barber found for '{identifier}'")

        return barbers[0]

    def _get(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        """
        Perform a GET against a table endpoint.

        Raises:
            DataStoreError: On network errors, HTTP errors or a non-list payload
        """
        url = f"{self.base_url}{self.REST_PATH}/{table}"

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as exc:
            raise DataStoreError(f"Failed to fetch {table} from Supabase: {exc}") from exc
        except ValueError as exc:
            raise DataStoreError(f"Invalid JSON in {table} response: {exc}") from exc

        if not isinstance(data, list):
            raise DataStoreError(f"Unexpected {table} response: expected a list of rows")

        logger.debug("Fetched %d row(s) from %s", len(data), table)
        return data
