"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .booking_service import BookingService
from .repositories import Repositories
from .watcher import BookingWatcher

__all__ = ["BookingService", "Repositories", "BookingWatcher"]
