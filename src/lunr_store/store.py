"""Search store collection and its JavaScript/JSON file formats."""

import json
import logging
import os
import re
import tempfile
from collections.abc import Iterable, Iterator
from pathlib import Path

from lunr_store.errors import DuplicateUrlError, StoreFormatError, StoreValidationError
from lunr_store.models import SearchEntry

logger = logging.getLogger(__name__)

DEFAULT_VARIABLE = "store"
FORMAT_JAVASCRIPT = "js"
FORMAT_JSON = "json"
FORMATS = (FORMAT_JAVASCRIPT, FORMAT_JSON)

_SUFFIX_FORMATS = {".js": FORMAT_JAVASCRIPT, ".json": FORMAT_JSON}
_JS_ASSIGNMENT = re.compile(r"^\s*(?:var|let|const)\s+([A-Za-z_$][\w$]*)\s*=\s*(.*?)\s*;?\s*$", re.DOTALL)


def validate_entries(entries: Iterable[SearchEntry]) -> list[str]:
    """Check the store invariants.

    Args:
        entries: Entries to check.

    Returns:
        Description of every violation (empty when the entries are valid).
    """
    problems: list[str] = []
    seen: set[str] = set()
    for position, entry in enumerate(entries):
        if not entry.url.strip():
            problems.append(f"entry {position} has an empty url")
        elif entry.url in seen:
            problems.append(f"entry {position} repeats url {entry.url}")
        seen.add(entry.url)
        if not entry.title.strip():
            problems.append(f"entry {position} ({entry.url or 'no url'}) has an empty title")
    return problems


class SearchStore:
    """Ordered collection of search entries with unique urls."""

    def __init__(self, entries: Iterable[SearchEntry] = ()) -> None:
        """Initialise store, adding each entry in order.

        Args:
            entries: Initial entries.

        Raises:
            DuplicateUrlError: If two entries share a url.
        """
        self._entries: list[SearchEntry] = []
        self._urls: set[str] = set()
        for entry in entries:
            self.add(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[SearchEntry]:
        return iter(self._entries)

    def __contains__(self, url: object) -> bool:
        return url in self._urls

    @property
    def entries(self) -> tuple[SearchEntry, ...]:
        """Entries in insertion order."""
        return tuple(self._entries)

    def add(self, entry: SearchEntry) -> None:
        """Append an entry.

        Args:
            entry: Entry to append.

        Raises:
            DuplicateUrlError: If an entry with the same url is already present.
        """
        if entry.url in self._urls:
            raise DuplicateUrlError(entry.url)
        self._entries.append(entry)
        self._urls.add(entry.url)

    def validate(self) -> None:
        """Raise if the store breaks its invariants.

        Raises:
            StoreValidationError: Listing every violation found.
        """
        problems = validate_entries(self._entries)
        if problems:
            raise StoreValidationError(problems)

    def to_records(self) -> list[dict[str, object]]:
        """Return the entries as plain records."""
        return [entry.to_dict() for entry in self._entries]

    def to_json(self, indent: int | None = 2) -> str:
        """Serialise the store as a JSON array.

        Args:
            indent: JSON indentation, None for a compact document.

        Returns:
            JSON text.
        """
        return json.dumps(self.to_records(), ensure_ascii=False, indent=indent)

    def to_javascript(self, variable: str = DEFAULT_VARIABLE) -> str:
        """Serialise the store as a JavaScript variable assignment.

        Args:
            variable: Name of the global the search script reads.

        Returns:
            JavaScript text (``var store = [...]``).
        """
        return f"var {variable} = {self.to_json()}\n"

    def write(self, path: Path, fmt: str | None = None) -> None:
        """Write the store, replacing any previous file wholesale.

        Args:
            path: Output file.
            fmt: ``js`` or ``json``; inferred from the suffix when omitted.

        Raises:
            StoreFormatError: If the format is unknown.
        """
        fmt = fmt or _SUFFIX_FORMATS.get(path.suffix.lower())
        if fmt == FORMAT_JAVASCRIPT:
            payload = self.to_javascript()
        elif fmt == FORMAT_JSON:
            payload = self.to_json() + "\n"
        else:
            msg = f"Cannot infer store format for {path}; use one of {', '.join(FORMATS)}"
            raise StoreFormatError(msg)

        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(temp_name, path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise
        logger.info("Wrote %d search entries to %s", len(self), path)

    @classmethod
    def from_json(cls, text: str) -> "SearchStore":
        """Load a store from a JSON array.

        Raises:
            DuplicateUrlError: If two records share a url.
        """
        return cls(parse_json_entries(text))

    @classmethod
    def from_javascript(cls, text: str) -> "SearchStore":
        """Load a store from a ``var store = [...]`` script.

        Raises:
            DuplicateUrlError: If two records share a url.
        """
        return cls(parse_javascript_entries(text))

    @classmethod
    def load(cls, path: Path) -> "SearchStore":
        """Load a store file, choosing the format from its suffix.

        Args:
            path: Store file (``.js`` or ``.json``).

        Returns:
            SearchStore instance.
        """
        return cls(read_entries(path))


def parse_json_entries(text: str) -> list[SearchEntry]:
    """Decode the entries of a JSON store.

    Args:
        text: JSON text.

    Returns:
        Entries in file order.

    Raises:
        StoreFormatError: If the text is not a JSON array.
        InvalidEntryError: If a record does not have the entry shape.
    """
    try:
        records = json.loads(text)
    except json.JSONDecodeError as exc:
        msg = f"Search store is not valid JSON: {exc}"
        raise StoreFormatError(msg) from exc
    if not isinstance(records, list):
        msg = "Search store must be a JSON array"
        raise StoreFormatError(msg)
    return [SearchEntry.from_dict(record) for record in records]


def parse_javascript_entries(text: str) -> list[SearchEntry]:
    """Decode the entries of a ``var store = [...]`` script.

    Args:
        text: JavaScript text.

    Returns:
        Entries in file order.

    Raises:
        StoreFormatError: If the script is not a single array assignment.
    """
    match = _JS_ASSIGNMENT.match(text)
    if not match:
        msg = "Search store script must be a single 'var <name> = [...]' assignment"
        raise StoreFormatError(msg)
    return parse_json_entries(match.group(2))


def read_entries(path: Path) -> list[SearchEntry]:
    """Read the entries of a store file without enforcing url uniqueness.

    Args:
        path: Store file; ``.json`` files are read as JSON, anything else as
            a script.

    Returns:
        Entries in file order.

    Raises:
        StoreFormatError: If the file cannot be read or parsed.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read search store {path}: {exc}"
        raise StoreFormatError(msg) from exc

    if _SUFFIX_FORMATS.get(path.suffix.lower()) == FORMAT_JSON:
        return parse_json_entries(text)
    return parse_javascript_entries(text)
