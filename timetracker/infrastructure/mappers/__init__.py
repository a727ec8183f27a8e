"""
Mappers between database models and API structures.
"""

from .entry_mapper import EntryMapper

__all__ = ["EntryMapper"]
