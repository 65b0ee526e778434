"""Version information for forest."""

__version__ = "0.2.0"
