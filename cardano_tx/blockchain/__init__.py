"""Blockchain node access."""

from .ogmios_client import OgmiosClient, OgmiosConnectionError, OgmiosError, OgmiosQueryError

__all__ = ["OgmiosClient", "OgmiosError", "OgmiosConnectionError", "OgmiosQueryError"]
