"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .booking_slots import BookingSlotService, BookingStoreProtocol

__all__ = ["BookingSlotService", "BookingStoreProtocol"]
