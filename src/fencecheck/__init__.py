"""Validate and fix language tags on fenced code blocks in markdown."""

__version__ = "0.1.0"
