"""Cache-first data access layer for a paginated species catalog."""

__version__ = "0.1.0"
