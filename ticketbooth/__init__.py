"""Ticket machine server, TCP host and clients with reservations and minimal-coin change."""

__version__ = "0.1.0"