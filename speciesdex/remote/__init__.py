"""Remote catalog service client and payload parsers."""

from .client import RemoteSource

__all__ = ["RemoteSource"]
