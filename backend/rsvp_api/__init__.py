"""RSVP collection API for a single event."""

__version__ = "0.1.0"
