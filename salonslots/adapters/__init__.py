"""
Adapters layer - Booking store and external calendar integrations.
"""

from .file_sources import JsonBookingSource, JsonCalendarClient
from .google_calendar import GoogleCalendarClient
from .graph_client import GraphCalendarClient

__all__ = ["GoogleCalendarClient", "GraphCalendarClient", "JsonBookingSource", "JsonCalendarClient"]
