"""Staged Token Sale API."""

__version__ = "0.1.0"
