"""Mock interview session lifecycle and report generation service."""

__version__ = "2.0.0"
