from typing import Iterable, List

from .models import ALL_CATEGORIES, ApiKeyRecord


def matches_query(record: ApiKeyRecord, query: str) -> bool:
    if not query:
        return True
    needle = query.lower()
    if needle in record.name.lower():
        return True
    if record.description and needle in record.description.lower():
        return True
    return any(needle in tag.lower() for tag in record.tags)


def matches_category(record: ApiKeyRecord, category: str) -> bool:
    return category == ALL_CATEGORIES or record.category == category


def filter_records(records: Iterable[ApiKeyRecord], query: str = "", category: str = ALL_CATEGORIES) -> List[ApiKeyRecord]:
    """Search + category filter. Input order is kept."""
    return [r for r in records if matches_category(r, category) and matches_query(r, query)]
