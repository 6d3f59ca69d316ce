"""
Domain models for working hours, appointments and bookable slots.

Clock times are handled as integer minutes since midnight. They are naive
local times: a barber's working hours and the stored appointment times are
assumed to be in the same local frame, so no timezone conversion happens here.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

import pendulum


MINUTES_PER_DAY = 24 * 60

# Sunday=0 to match the store's day_of_week column
WEEKDAY_NAMES = {
    0: "Domingo",
    1: "Segunda-feira",
    2: "Terça-feira",
    3: "Quarta-feira",
    4: "Quinta-feira",
    5: "Sexta-feira",
    6: "Sábado",
}


def parse_clock_time(value: str) -> int:
    """
    Convert an ``HH:MM`` or ``HH:MM:SS`` string to minutes since midnight.

    Seconds are accepted because the store returns ``time`` columns with
    them, but they are ignored. ``24:00`` is accepted as the end of the day
    so a shop can close at midnight.

    Raises:
        ValueError: If the string is not a valid clock time
    """
    if not isinstance(value, str):
        raise ValueError(f"Clock time must be a string, got {value!r}")

    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(part.isdigit() for part in parts):
        raise ValueError(f"Invalid clock time: {value!r}")

    hour, minute = int(parts[0]), int(parts[1])
    if hour == 24 and all(int(part) == 0 for part in parts[1:]):
        return MINUTES_PER_DAY
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Clock time out of range: {value!r}")

    return hour * 60 + minute


def format_clock_time(minutes: int) -> str:
    """Format minutes since midnight as a zero-padded ``HH:MM`` string."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def day_of_week(day: date) -> int:
    """Return the calendar weekday with Sunday=0 .. Saturday=6."""
    return day.isoweekday() % 7


@dataclass(frozen=True)
class MinuteRange:
    """
    Half-open interval ``[start, end)`` in minutes since midnight.

    Invariant: start must be before end.
    """
    start: int
    end: int

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(
                f"Start {format_clock_time(self.start)} must be before end {format_clock_time(self.end)}"
            )

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end - self.start

    def overlaps(self, other: "MinuteRange") -> bool:
        """
        Check if this range overlaps with another.

        Back-to-back ranges (one ends exactly when the other starts) do not overlap.
        """
        return not (self.end <= other.start or self.start >= other.end)

    def __str__(self) -> str:
        return f"{format_clock_time(self.start)} - {format_clock_time(self.end)}"


@dataclass(frozen=True)
class WorkingHourRule:
    """Opening hours of a barber for one weekday."""
    day_of_week: int  # 0=Sunday, 6=Saturday
    start_time: str
    end_time: str
    is_active: bool = True

    def to_range(self) -> MinuteRange:
        """
        Return the open period as a minute range.

        Raises:
            ValueError: If the times are malformed or start is not before end
        """
        return MinuteRange(
            start=parse_clock_time(self.start_time),
            end=parse_clock_time(self.end_time),
        )

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "WorkingHourRule":
        """Build a rule from a ``working_hours`` row."""
        day = int(row["day_of_week"])
        if day not in range(7):
            raise ValueError(f"day_of_week must be between 0 and 6, got {day}")
        return cls(
            day_of_week=day,
            start_time=str(row["start_time"]),
            end_time=str(row["end_time"]),
            is_active=bool(row.get("is_active", True)),
        )


@dataclass(frozen=True)
class ExistingAppointment:
    """An already booked interval for a barber on a given date."""
    start_time: str
    service_duration: int

    def to_range(self) -> MinuteRange:
        """Return the occupied interval ``[start, start + duration)``."""
        start = parse_clock_time(self.start_time)
        return MinuteRange(start=start, end=start + self.service_duration)


@dataclass
class Service:
    """A service offered by a barber."""
    id: str
    barber_id: str
    name: str
    duration: int  # minutes
    price: float = 0.0
    description: Optional[str] = None

    def format_price(self) -> str:
        """Format the price in Brazilian reais, e.g. ``R$ 1.250,00``."""
        us_style = f"{self.price:,.2f}"
        return "R$ " + us_style.replace(",", "_").replace(".", ",").replace("_", ".")

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Service":
        """Build a service from a ``services`` row."""
        duration = int(row["duration"])
        if duration <= 0:
            raise ValueError(f"Service duration must be positive, got {duration}")
        return cls(
            id=str(row["id"]),
            barber_id=str(row.get("barber_id", "")),
            name=row.get("name") or "",
            duration=duration,
            price=float(row.get("price") or 0),
            description=row.get("description"),
        )


@dataclass
class Appointment:
    """A row of the ``appointments`` table."""
    id: str
    barber_id: str
    service_id: str
    appointment_date: str  # YYYY-MM-DD
    appointment_time: str  # HH:MM[:SS]
    status: str = "confirmed"
    client_name: str = ""
    client_phone: str = ""

    def is_active(self) -> bool:
        """Cancelled appointments do not occupy the barber's time."""
        return self.status != "cancelled"

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Appointment":
        """Build an appointment from an ``appointments`` row."""
        return cls(
            id=str(row["id"]),
            barber_id=str(row.get("barber_id", "")),
            service_id=str(row["service_id"]),
            appointment_date=str(row["appointment_date"]),
            appointment_time=str(row["appointment_time"]),
            status=row.get("status") or "confirmed",
            client_name=row.get("client_name") or "",
            client_phone=row.get("client_phone") or "",
        )


@dataclass
class Barber:
    """A barber, either the shop owner or an employee."""
    id: str
    role: str = "owner"
    is_active: bool = True
    profile_id: Optional[str] = None
    employee_name: Optional[str] = None
    profile_name: Optional[str] = None
    specialty: Optional[str] = None

    def display_name(self) -> str:
        """Employees are named on the barber row, owners on their profile."""
        if self.role == "employee":
            name = self.employee_name
        else:
            name = self.profile_name or self.employee_name
        return name or "Nome não informado"

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Barber":
        """Build a barber from a ``barbers`` row with an embedded ``profiles`` join."""
        profile = row.get("profiles") or {}
        return cls(
            id=str(row["id"]),
            role=row.get("role") or "owner",
            is_active=bool(row.get("is_active", True)),
            profile_id=row.get("profile_id"),
            employee_name=row.get("employee_name"),
            profile_name=profile.get("name"),
            specialty=row.get("specialty"),
        )


@dataclass
class DaySlots:
    """Available start times found for one date."""
    date: date
    slots: List[str] = field(default_factory=list)

    def format_display(self) -> str:
        """
        Format the day for display.
        Format: Dia da semana, DD/MM/YYYY | HH:MM, HH:MM, ...
        """
        day = pendulum.date(self.date.year, self.date.month, self.date.day)
        weekday = WEEKDAY_NAMES[day_of_week(day)]
        times = ", ".join(self.slots)
        return f"{weekday}, {day.format('DD/MM/YYYY')} | {times} ({len(self.slots)} horários)"
