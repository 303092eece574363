"""WineTrail - wine tasting marketplace backend."""

__version__ = "0.3.0"
