"""
Core business logic for calculating bookable appointment slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O). Every call is
independent: inputs are passed in fresh and nothing is cached between calls.
"""

import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from .models import (
    Appointment,
    DaySlots,
    ExistingAppointment,
    MinuteRange,
    Service,
    WorkingHourRule,
    day_of_week,
    format_clock_time,
)

logger = logging.getLogger(__name__)


DEFAULT_GRANULARITY_MINUTES = 30


class SlotCalculator:
    """
    Calculates the start times at which a service can still be booked.

    Algorithm:
    1. Find the barber's active working-hour rule for the date's weekday
    2. Generate candidate start times every ``granularity_minutes`` from opening
    3. Drop candidates whose service would run past closing time
    4. Drop candidates overlapping an existing appointment
    5. Return the rest as ``HH:MM`` strings, in ascending order

    The step between candidates is a fixed policy and does not depend on the
    duration of the service: a 45-minute service is still offered only at
    :00 and :30 with the default granularity.

    Missing or malformed inputs never raise; they produce an empty result.
    """

    def __init__(self, granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES):
        if granularity_minutes <= 0:
            raise ValueError(f"granularity_minutes must be positive, got {granularity_minutes}")
        self.granularity_minutes = granularity_minutes

    def compute_available_slots(
        self,
        target_duration: Optional[int],
        day: Optional[date],
        working_hours: Sequence[WorkingHourRule],
        existing_appointments: Iterable[ExistingAppointment] = (),
    ) -> List[str]:
        """
        Compute the bookable start times for one date.

        Args:
            target_duration: Duration in minutes of the service being booked
            day: Calendar date to compute slots for
            working_hours: The barber's weekly working-hour rules
            existing_appointments: Non-cancelled appointments of the barber on ``day``

        Returns:
            Ordered list of ``HH:MM`` start times (empty when nothing fits or
            inputs are not available yet)
        """
        if not target_duration or day is None or not working_hours:
            return []

        duration = self._whole_minutes(target_duration)
        if duration is None or duration <= 0:
            return []

        if not isinstance(day, date):
            logger.warning("Ignoring slot request for non-date value %r", day)
            return []

        rule = self._find_rule(working_hours, day_of_week(day))
        if rule is None:
            return []

        try:
            opening = rule.to_range()
        except ValueError as exc:
            logger.warning("Ignoring malformed working-hour rule %s: %s", rule, exc)
            return []

        occupied = self._occupied_ranges(existing_appointments or ())

        slots: List[str] = []
        candidate = opening.start

        while candidate < opening.end:
            candidate_end = candidate + duration

            # Ending exactly at closing time is allowed
            if candidate_end <= opening.end:
                wanted = MinuteRange(start=candidate, end=candidate_end)
                if not any(wanted.overlaps(busy) for busy in occupied):
                    slots.append(format_clock_time(candidate))

            candidate += self.granularity_minutes

        return slots

    def compute_slots_for_range(
        self,
        target_duration: Optional[int],
        start_date: date,
        days: int,
        working_hours: Sequence[WorkingHourRule],
        appointments_by_date: Dict[date, List[ExistingAppointment]],
    ) -> List[DaySlots]:
        """
        Compute slots for ``days`` consecutive dates starting at ``start_date``.

        Dates without any bookable slot are left out of the result.
        """
        results: List[DaySlots] = []

        for offset in range(max(days, 0)):
            current = start_date + timedelta(days=offset)
            slots = self.compute_available_slots(
                target_duration,
                current,
                working_hours,
                appointments_by_date.get(current, []),
            )
            if slots:
                results.append(DaySlots(date=current, slots=slots))

        return results

    def available_slots_for_booking(
        self,
        service: Optional[Service],
        day: Optional[date],
        working_hours: Sequence[WorkingHourRule],
        appointments: Iterable[Appointment],
        services: Iterable[Service],
    ) -> List[str]:
        """
        Compute slots from raw store rows.

        Each appointment's occupied interval is derived from the duration of
        its own service, looked up in ``services``.
        """
        if service is None:
            return []

        existing = resolve_existing_appointments(appointments, services)
        return self.compute_available_slots(service.duration, day, working_hours, existing)

    @staticmethod
    def _whole_minutes(value) -> Optional[int]:
        """Return ``value`` as integer minutes, or None if it is not a whole number."""
        try:
            minutes = int(value)
            if minutes != float(value):
                raise ValueError("fractional minutes")
        except (TypeError, ValueError, OverflowError) as exc:
            logger.warning("Ignoring invalid service duration %r: %s", value, exc)
            return None
        return minutes

    @staticmethod
    def _find_rule(
        working_hours: Sequence[WorkingHourRule],
        weekday: int,
    ) -> Optional[WorkingHourRule]:
        """Return the first active rule for the weekday, if any."""
        for rule in working_hours:
            if rule.day_of_week == weekday and rule.is_active:
                return rule
        return None

    @staticmethod
    def _occupied_ranges(
        existing_appointments: Iterable[ExistingAppointment],
    ) -> List[MinuteRange]:
        """Convert appointments to minute ranges, skipping malformed entries."""
        occupied: List[MinuteRange] = []

        for appointment in existing_appointments:
            try:
                occupied.append(appointment.to_range())
            except (TypeError, ValueError) as exc:
                logger.warning("Ignoring malformed appointment %s: %s", appointment, exc)

        return occupied


def resolve_existing_appointments(
    appointments: Iterable[Appointment],
    services: Iterable[Service],
) -> List[ExistingAppointment]:
    """
    Pair each active appointment with the duration of its service.

    An appointment whose service cannot be found does not block anything.
    This keeps a data-integrity gap from closing the whole agenda, but it can
    allow a double booking, so every occurrence is logged.
    """
    durations = {service.id: service.duration for service in services}
    existing: List[ExistingAppointment] = []

    for appointment in appointments:
        if not appointment.is_active():
            continue

        duration = durations.get(appointment.service_id)
        if duration is None:
            logger.warning(
                "Appointment %s references unknown service %s; "
                "it will not block availability",
                appointment.id,
                appointment.service_id,
            )
            continue

        existing.append(
            ExistingAppointment(
                start_time=appointment.appointment_time,
                service_duration=duration,
            )
        )

    return existing


_default_calculator = SlotCalculator()


def compute_available_slots(
    target_duration: Optional[int],
    day: Optional[date],
    working_hours: Sequence[WorkingHourRule],
    existing_appointments: Iterable[ExistingAppointment] = (),
) -> List[str]:
    """Compute bookable slots with the default 30-minute granularity."""
    return _default_calculator.compute_available_slots(
        target_duration, day, working_hours, existing_appointments
    )
