"""Personal habit tracker API: habits earn credits, credits buy rewards."""

__version__ = "0.1.0"
