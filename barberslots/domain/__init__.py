"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import (
    Appointment,
    Barber,
    DaySlots,
    ExistingAppointment,
    MinuteRange,
    Service,
    WorkingHourRule,
)
from .slot_calculator import SlotCalculator, compute_available_slots

__all__ = [
    "Appointment",
    "Barber",
    "DaySlots",
    "ExistingAppointment",
    "MinuteRange",
    "Service",
    "WorkingHourRule",
    "SlotCalculator",
    "compute_available_slots",
]
