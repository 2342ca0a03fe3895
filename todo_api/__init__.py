"""Multi-user to-do list JSON API."""

__version__ = "1.0.0"
