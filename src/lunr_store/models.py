"""Data models for site documents and search store entries."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from lunr_store.errors import InvalidEntryError


@dataclass
class Post:
    """Represents a parsed source document (post, draft, collection doc or page)."""

    path: str
    collection: str
    slug: str
    title: str
    content: str
    url: str
    date: datetime | None = None
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    teaser: str | None = None
    front_matter: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SearchEntry:
    """One record of the search store."""

    title: str
    excerpt: str
    categories: tuple[str, ...]
    tags: tuple[str, ...]
    url: str
    teaser: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the record as it is serialized into the store.

        Returns:
            Mapping with keys in store order.
        """
        return {
            "title": self.title,
            "excerpt": self.excerpt,
            "categories": list(self.categories),
            "tags": list(self.tags),
            "url": self.url,
            "teaser": self.teaser,
        }

    @classmethod
    def from_dict(cls, record: Any) -> "SearchEntry":
        """Build an entry from a loaded store record.

        Args:
            record: Decoded record, expected to be a mapping.

        Returns:
            SearchEntry instance.

        Raises:
            InvalidEntryError: If the record does not have the entry shape.
        """
        if not isinstance(record, dict):
            msg = f"Search entry must be an object, got {type(record).__name__}"
            raise InvalidEntryError(msg)

        for key in ("title", "url"):
            if not isinstance(record.get(key), str):
                msg = f"Search entry field {key!r} must be a string"
                raise InvalidEntryError(msg)

        excerpt = record.get("excerpt", "")
        if not isinstance(excerpt, str):
            msg = "Search entry field 'excerpt' must be a string"
            raise InvalidEntryError(msg)

        teaser = record.get("teaser")
        if teaser is not None and not isinstance(teaser, str):
            msg = "Search entry field 'teaser' must be a string or null"
            raise InvalidEntryError(msg)

        return cls(
            title=record["title"],
            excerpt=excerpt,
            categories=_labels(record, "categories"),
            tags=_labels(record, "tags"),
            url=record["url"],
            teaser=teaser,
        )


def _labels(record: dict[str, Any], key: str) -> tuple[str, ...]:
    value = record.get(key)
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        msg = f"Search entry field {key!r} must be a list of strings"
        raise InvalidEntryError(msg)
    return tuple(value)
