"""Cached, deduplicated points of interest merged from an upstream geodata service and internal records."""

__version__ = "0.1.0"
