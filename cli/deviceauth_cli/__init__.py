"""Command-line client for device authorization login."""

__version__ = "0.1.0"
