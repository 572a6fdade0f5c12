"""Shared record and value types for Kokosa."""
