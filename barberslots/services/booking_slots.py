"""
Application services for finding bookable appointment slots.

The service coordinates fetching booking data via a store adapter and
delegates the actual availability calculation to the domain-level
``SlotCalculator``. This keeps the CLI thin and allows the store dependency
to be replaced by a stub in tests via a simple protocol.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Tuple

import pendulum
from pendulum import DateTime

from ..domain.exceptions import ServiceNotFoundError
from ..domain.models import (
    Appointment,
    Barber,
    DaySlots,
    ExistingAppointment,
    Service,
    WorkingHourRule,
    parse_clock_time,
)
from ..domain.slot_calculator import SlotCalculator, resolve_existing_appointments

logger = logging.getLogger(__name__)


class BookingStoreProtocol(Protocol):
    """Protocol describing the store reads needed by the service."""

    async def get_barber(self, identifier: str) -> Barber:
        """Return the active barber matching an id or name."""

    async def get_services(self, barber_id: str) -> List[Service]:
        """Return the services offered by a barber."""

    async def get_working_hours(self, barber_id: str) -> List[WorkingHourRule]:
        """Return a barber's weekly working-hour rules."""

    async def get_appointments(self, barber_id: str, day: date) -> List[Appointment]:
        """Return a barber's non-cancelled appointments on a date."""


class BookingSlotService:
    """
    Orchestrates booking-data retrieval and slot calculation.

    An optional minimum lead time hides today's slots that start too soon.
    That policy lives here, not in the calculator.
    """

    def __init__(
        self,
        store: BookingStoreProtocol,
        slot_calculator: SlotCalculator,
        *,
        timezone: str = "America/Sao_Paulo",
        min_lead_minutes: int = 0,
        now: Optional[Callable[[], DateTime]] = None,
    ) -> None:
        self._store = store
        self._slot_calculator = slot_calculator
        self._timezone = timezone
        self._min_lead_minutes = min_lead_minutes
        self._now = now or (lambda: pendulum.now(self._timezone))

    async def find_slots(
        self,
        *,
        barber_id: str,
        service_id: str,
        day: date,
    ) -> List[str]:
        """
        Fetch the barber's data for ``day`` and compute bookable start times.

        Raises:
            ServiceNotFoundError: If the barber does not offer ``service_id``
        """
        services, working_hours, appointments = await self.fetch_booking_inputs(
            barber_id=barber_id,
            day=day,
        )
        service = self._select_service(services, service_id)

        slots = self.calculate_slots(
            service=service,
            day=day,
            working_hours=working_hours,
            appointments=appointments,
            services=services,
        )
        return self._apply_lead_time(day, slots)

    async def find_slots_in_range(
        self,
        *,
        barber_id: str,
        service_id: str,
        start_date: date,
        days: int,
    ) -> List[DaySlots]:
        """Compute slots for ``days`` consecutive dates, skipping days without any."""
        dates = [start_date + timedelta(days=offset) for offset in range(max(days, 0))]

        services, working_hours, *appointments_per_day = await asyncio.gather(
            self._store.get_services(barber_id),
            self._store.get_working_hours(barber_id),
            *(self._store.get_appointments(barber_id, day) for day in dates),
        )
        service = self._select_service(services, service_id)

        appointments_by_date: Dict[date, List[ExistingAppointment]] = {
            day: resolve_existing_appointments(appointments, services)
            for day, appointments in zip(dates, appointments_per_day)
        }

        results = self._slot_calculator.compute_slots_for_range(
            service.duration,
            start_date,
            len(dates),
            working_hours,
            appointments_by_date,
        )

        filtered: List[DaySlots] = []
        for day_slots in results:
            day_slots.slots = self._apply_lead_time(day_slots.date, day_slots.slots)
            if day_slots.slots:
                filtered.append(day_slots)

        return filtered

    async def fetch_booking_inputs(
        self,
        *,
        barber_id: str,
        day: date,
    ) -> Tuple[List[Service], List[WorkingHourRule], List[Appointment]]:
        """Fetch services, working hours and the day's appointments concurrently."""
        services, working_hours, appointments = await asyncio.gather(
            self._store.get_services(barber_id),
            self._store.get_working_hours(barber_id),
            self._store.get_appointments(barber_id, day),
        )
        logger.debug(
            "Loaded %d service(s), %d working-hour rule(s), %d appointment(s) for barber %s on %s",
            len(services),
            len(working_hours),
            len(appointments),
            barber_id,
            day,
        )
        return services, working_hours, appointments

    def calculate_slots(
        self,
        *,
        service: Service,
        day: date,
        working_hours: Sequence[WorkingHourRule],
        appointments: Sequence[Appointment],
        services: Sequence[Service],
    ) -> List[str]:
        """Calculate bookable slots from already fetched rows."""
        return self._slot_calculator.available_slots_for_booking(
            service,
            day,
            working_hours,
            appointments,
            services,
        )

    def _apply_lead_time(self, day: date, slots: List[str]) -> List[str]:
        """Drop today's slots starting before now plus the minimum lead time."""
        if self._min_lead_minutes <= 0:
            return slots

        now = self._now()
        if day != now.date():
            return slots

        cutoff = now.hour * 60 + now.minute + self._min_lead_minutes
        return [slot for slot in slots if parse_clock_time(slot) >= cutoff]

    @staticmethod
    def _select_service(services: Sequence[Service], service_id: str) -> Service:
        """Match the service by id, falling back to a case-insensitive name match."""
        for service in services:
            if service.id == service_id:
                return service
        for service in services:
            if service.name.lower() == service_id.lower():
                return service
        raise ServiceNotFoundError(f"Service '{service_id}' is not offered by this barber")
