"""Route group exports."""

from . import branches, fees, geocoding, health

__all__ = ["branches", "fees", "geocoding", "health"]
