"""
Ids of the rows shipped in the bundled mock data file.
"""

from uuid import UUID

EVENT_ID = UUID("c0ffee00-1234-4abc-8def-000000000001")

SOLAR_ID = UUID("8f6b1c2e-1a2b-4c3d-8e9f-0a1b2c3d4e01")
LOGISTICS_ID = UUID("8f6b1c2e-1a2b-4c3d-8e9f-0a1b2c3d4e02")
LEGAL_ID = UUID("8f6b1c2e-1a2b-4c3d-8e9f-0a1b2c3d4e03")

AMIRA_ID = UUID("3c1d2e3f-4a5b-4c6d-9e7f-8a9b0c1d2e01")
JONAS_ID = UUID("3c1d2e3f-4a5b-4c6d-9e7f-8a9b0c1d2e02")

SEEDED_BOOKING_ID = UUID("bb000000-0000-4000-8000-000000000001")
