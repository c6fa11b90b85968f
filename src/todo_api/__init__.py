"""HTTP API for managing todo records."""

__version__ = "0.1.0"
