"""
Shared fixtures.
"""

import pytest

from meetingdesk.adapters.memory_gateway import DEFAULT_MOCK_DATA, InMemoryGateway
from meetingdesk.services.booking_service import BookingService
from meetingdesk.services.repositories import Repositories


@pytest.fixture
def gateway():
    """In-memory database seeded with the bundled sample data."""
    return InMemoryGateway.from_json(DEFAULT_MOCK_DATA)


@pytest.fixture
def repositories(gateway):
    return Repositories.over(gateway)


@pytest.fixture
def service(repositories):
    return BookingService(repositories, timezone="Europe/Berlin")
