"""Multi-modal route planning: routing with cache and fallback, airport-aware flight legs."""

__version__ = "1.0.0"
