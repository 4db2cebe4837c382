"""Client for the remote monitoring API."""

from fieldwatch.api.client import FieldWatchClient

__all__ = ["FieldWatchClient"]
