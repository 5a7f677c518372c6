"""Weather-station data engine for the Barcelona area."""

__version__ = "0.1.0"
