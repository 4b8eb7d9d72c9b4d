"""Device authorization (CLI login) service."""

__version__ = "0.1.0"
