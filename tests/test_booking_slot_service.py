"""
Tests for the BookingSlotService orchestration layer.
"""

import asyncio
from typing import Dict, List

import pendulum
import pytest

from barberslots.domain.exceptions import ServiceNotFoundError
from barberslots.domain.models import Appointment, Barber, Service, WorkingHourRule
from barberslots.domain.slot_calculator import SlotCalculator
from barberslots.services.booking_slots import BookingSlotService


MONDAY = pendulum.date(2024, 11, 25)
TUESDAY = pendulum.date(2024, 11, 26)


class StubStore:
    """Minimal stub matching BookingStoreProtocol."""

    def __init__(
        self,
        services: List[Service],
        working_hours: List[WorkingHourRule],
        appointments: Dict[str, List[Appointment]],
    ):
        self._services = services
        self._working_hours = working_hours
        self._appointments = appointments
        self.appointment_calls: List[str] = []

    async def get_barber(self, identifier):
        return Barber(id=identifier)

    async def get_services(self, barber_id):
        return self._services

    async def get_working_hours(self, barber_id):
        return self._working_hours

    async def get_appointments(self, barber_id, day):
        self.appointment_calls.append(day.isoformat())
        return self._appointments.get(day.isoformat(), [])


def _services() -> List[Service]:
    return [
        Service(id="corte", barber_id="b1", name="Corte", duration=30, price=35.0),
        Service(id="combo", barber_id="b1", name="Corte + Barba", duration=60, price=55.0),
    ]


def _hours() -> List[WorkingHourRule]:
    return [
        WorkingHourRule(day_of_week=1, start_time="09:00:00", end_time="12:00:00"),
        WorkingHourRule(day_of_week=2, start_time="14:00:00", end_time="15:00:00"),
    ]


def _appointment(day: str, time: str, service_id: str = "corte") -> Appointment:
    return Appointment(
        id=f"{day}-{time}",
        barber_id="b1",
        service_id=service_id,
        appointment_date=day,
        appointment_time=time,
    )


def _build_service(appointments=None, **kwargs) -> BookingSlotService:
    store = StubStore(_services(), _hours(), appointments or {})
    return BookingSlotService(store, SlotCalculator(), **kwargs)


def test_find_slots_uses_store_data_and_calculator():
    """End-to-end call should yield calculated slots."""
    service = _build_service({"2024-11-25": [_appointment("2024-11-25", "09:30:00")]})

    slots = asyncio.run(service.find_slots(barber_id="b1", service_id="corte", day=MONDAY))

    assert slots == ["09:00", "10:00", "10:30", "11:00", "11:30"]


def test_find_slots_matches_service_by_name():
    """The service can be selected by its name, case-insensitively."""
    service = _build_service()

    slots = asyncio.run(service.find_slots(barber_id="b1", service_id="corte + barba", day=MONDAY))

    assert slots == ["09:00", "09:30", "10:00", "10:30", "11:00"]


def test_find_slots_unknown_service_raises():
    """Booking a service the barber does not offer is an error."""
    service = _build_service()

    with pytest.raises(ServiceNotFoundError):
        asyncio.run(service.find_slots(barber_id="b1", service_id="massagem", day=MONDAY))


def test_find_slots_in_range_fetches_each_day():
    """Every date in the range is queried once and empty days are dropped."""
    store = StubStore(
        _services(),
        _hours(),
        {"2024-11-26": [_appointment("2024-11-26", "14:00:00")]},
    )
    service = BookingSlotService(store, SlotCalculator())

    results = asyncio.run(
        service.find_slots_in_range(
            barber_id="b1",
            service_id="corte",
            start_date=pendulum.date(2024, 11, 24),
            days=3,
        )
    )

    assert store.appointment_calls == ["2024-11-24", "2024-11-25", "2024-11-26"]
    assert [r.date for r in results] == [MONDAY, TUESDAY]
    assert results[1].slots == ["14:30"]


def test_lead_time_filters_only_today():
    """Slots starting too soon are hidden today; other dates are untouched."""
    now = pendulum.datetime(2024, 11, 25, 9, 50, tz="America/Sao_Paulo")
    service = _build_service(min_lead_minutes=30, now=lambda: now)

    today_slots = asyncio.run(service.find_slots(barber_id="b1", service_id="corte", day=MONDAY))
    other_slots = asyncio.run(service.find_slots(barber_id="b1", service_id="corte", day=TUESDAY))

    # cutoff 10:20
    assert today_slots == ["10:30", "11:00", "11:30"]
    assert other_slots == ["14:00", "14:30"]


def test_lead_time_disabled_by_default():
    """Without a lead time the calculator result is returned unchanged."""
    now = pendulum.datetime(2024, 11, 25, 11, 0, tz="America/Sao_Paulo")
    service = _build_service(now=lambda: now)

    slots = asyncio.run(service.find_slots(barber_id="b1", service_id="corte", day=MONDAY))

    assert slots[0] == "09:00"


def test_calculate_slots_ignores_dangling_service():
    """Appointments pointing to a missing service do not block slots."""
    service = _build_service()

    slots = service.calculate_slots(
        service=_services()[0],
        day=MONDAY,
        working_hours=_hours(),
        appointments=[_appointment("2024-11-25", "09:00", service_id="apagado")],
        services=_services(),
    )

    assert slots[0] == "09:00"
