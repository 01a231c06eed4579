"""Application pipeline and CLI."""

from .booking import AppointmentBookingApp

__all__ = ["AppointmentBookingApp"]
