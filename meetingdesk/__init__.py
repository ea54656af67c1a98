"""
meetingdesk - admin tool for business networking events and meeting bookings.
"""

__version__ = "0.1.0"
