"""Voice-driven dental appointment booking over browser automation."""

__all__ = ["__version__"]

__version__ = "0.1.0"
