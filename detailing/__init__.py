"""Appointment booking, dynamic pricing and loyalty core for a car-detailing shop."""

__version__ = "1.0.0"
