"""
Page based pagination of entry lists.
Pages are zero based, links keep every other query parameter.
"""

from dataclasses import dataclass
from math import ceil
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlencode

from timetracker.infrastructure.mappers.entry_mapper import EntryMapper

RENAMED_KEYS = {
    "user": "user_id",
    "project": "project_id",
    "customer": "customer_id",
    "activity": "activity_id",
    "worklog": "worklog_id",
}


@dataclass
class PaginatedEntryCollection:
    """One page of entries plus what is needed to navigate to the others."""

    entries: List[Any]
    total_count: int
    current_page: int
    max_results: int

    def to_array(self, mapper: Optional[EntryMapper] = None) -> List[Dict[str, Any]]:
        """Flat entries with *_id keys and ISO dates."""
        mapper = mapper or EntryMapper()
        result = []
        for entry in self.entries:
            flat = mapper.to_array(entry)
            flat.pop("class", None)
            flat["date"] = entry.day.isoformat()
            for old_key, new_key in RENAMED_KEYS.items():
                flat[new_key] = flat.pop(old_key)
            result.append(flat)
        return result

    @property
    def last_page(self) -> int:
        if self.total_count == 0 or self.max_results <= 0:
            return 0
        return ceil(self.total_count / self.max_results) - 1

    @property
    def has_previous_page(self) -> bool:
        return self.current_page > 0

    @property
    def has_next_page(self) -> bool:
        return self.current_page < self.last_page

    @property
    def previous_page(self) -> Optional[int]:
        if not self.has_previous_page:
            return None
        return min(self.current_page - 1, self.last_page)

    @property
    def next_page(self) -> Optional[int]:
        return self.current_page + 1 if self.has_next_page else None


def get_pagination_links(
    base_url: str,
    collection: PaginatedEntryCollection,
    query_params: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Optional[str]]:
    """
    Generate self, last, prev and next links.

    Returns:
        Dictionary with pagination links, missing pages are None
    """
    params = {key: value for key, value in (query_params or {}).items() if key != "page"}

    def build_url(page: int) -> str:
        return f"{base_url}?{urlencode({**params, 'page': page})}"

    if collection.total_count == 0:
        return {
            "self": build_url(collection.current_page),
            "last": None,
            "prev": None,
            "next": None,
        }

    return {
        "self": build_url(collection.current_page),
        "last": build_url(collection.last_page),
        "prev": build_url(collection.previous_page) if collection.has_previous_page else None,
        "next": build_url(collection.next_page) if collection.has_next_page else None,
    }
