"""Exceptions raised while building or reading a search store."""


class LunrStoreError(Exception):
    """Base class for all lunr-store errors."""


class ConfigError(LunrStoreError):
    """Raised when the site configuration cannot be loaded."""


class PostParseError(LunrStoreError):
    """Raised when a source document has malformed front matter or dates."""


class InvalidEntryError(LunrStoreError):
    """Raised when a loaded record does not have the search entry shape."""


class StoreFormatError(LunrStoreError):
    """Raised when a store file cannot be parsed or written in a format."""


class DuplicateUrlError(LunrStoreError):
    """Raised when two entries claim the same url."""

    def __init__(self, url: str) -> None:
        """Initialise duplicate url error.

        Args:
            url: The url that is already present in the store.
        """
        super().__init__(f"Duplicate search entry url: {url}")
        self.url = url


class StoreValidationError(LunrStoreError, ValueError):
    """Raised when a store violates its invariants."""

    def __init__(self, problems: list[str]) -> None:
        """Initialise validation error.

        Args:
            problems: Human readable description of every violation found.
        """
        super().__init__("Invalid search store: " + "; ".join(problems))
        self.problems = problems
