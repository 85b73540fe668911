"""Booking domain - Slot reservations and deposit holds"""

from .router import router

__all__ = ["router"]
