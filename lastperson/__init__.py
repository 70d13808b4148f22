"""Last Person Standing pick resolution and standings engine."""

__version__ = "0.1.0"
