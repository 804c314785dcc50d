"""Clip discovery and rendering work queue."""

__version__ = "0.1.0"
