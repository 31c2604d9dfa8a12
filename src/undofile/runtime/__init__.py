"""Runtime services: telemetry and settings."""

from .settings import StoreSettings

__all__ = ["StoreSettings"]
