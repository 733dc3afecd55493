"""Plum - remote plugin marketplace discovery and caching."""

__version__ = "0.2.0"
