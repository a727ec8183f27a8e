"""
Domain repository interfaces.
"""

from .entry_repository import EntryRepository, EntryFilter, empty_summary

__all__ = ["EntryRepository", "EntryFilter", "empty_summary"]
