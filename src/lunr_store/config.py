"""Site configuration read from a Jekyll ``_config.yml``."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from lunr_store.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "_config.yml"
DEFAULT_EXCERPT_WORDS = 50
DEFAULT_EXCLUDE = ("Gemfile", "Gemfile.lock", "node_modules", "vendor")


@dataclass
class CollectionConfig:
    """A custom document collection living in ``_<name>/``."""

    name: str
    permalink: str | None = None


@dataclass
class SiteConfig:
    """Settings that shape the search store."""

    baseurl: str = ""
    permalink: str = "date"
    teaser: str | None = None
    search_full_content: bool = False
    search_within_pages: bool = False
    excerpt_words: int = DEFAULT_EXCERPT_WORDS
    collections: list[CollectionConfig] = field(default_factory=list)
    show_drafts: bool = False
    future: bool = False
    unpublished: bool = False
    exclude: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE))

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "SiteConfig":
        """Build a configuration from a decoded ``_config.yml`` document.

        Args:
            data: Decoded YAML mapping.

        Returns:
            SiteConfig instance.

        Raises:
            ConfigError: If a recognised key has the wrong type.
        """
        lunr = data.get("lunr") or {}
        if not isinstance(lunr, dict):
            msg = "Config key 'lunr' must be a mapping"
            raise ConfigError(msg)

        permalink = _optional_str(data, "permalink") or "date"
        collections: list[CollectionConfig] = []
        for collection in _collections(data.get("collections")):
            if collection.name == "posts":
                permalink = collection.permalink or permalink
            else:
                collections.append(collection)

        excerpt_words = lunr.get("excerpt_words", DEFAULT_EXCERPT_WORDS)
        if not isinstance(excerpt_words, int) or isinstance(excerpt_words, bool):
            msg = "Config key 'lunr.excerpt_words' must be an integer"
            raise ConfigError(msg)

        exclude = data.get("exclude") or []
        if not isinstance(exclude, list):
            msg = "Config key 'exclude' must be a list"
            raise ConfigError(msg)

        return cls(
            baseurl=_optional_str(data, "baseurl") or "",
            permalink=permalink,
            teaser=_optional_str(data, "teaser"),
            search_full_content=bool(data.get("search_full_content", False)),
            search_within_pages=bool(lunr.get("search_within_pages", False)),
            excerpt_words=excerpt_words,
            collections=collections,
            show_drafts=bool(data.get("show_drafts", False)),
            future=bool(data.get("future", False)),
            unpublished=bool(data.get("unpublished", False)),
            exclude=list(DEFAULT_EXCLUDE) + [str(item) for item in exclude],
        )


def load_config(path: Path) -> SiteConfig:
    """Load site configuration from a YAML file.

    A missing file yields the default configuration.

    Args:
        path: Path to ``_config.yml``.

    Returns:
        SiteConfig instance.

    Raises:
        ConfigError: If the file cannot be read or is not a YAML mapping.
    """
    if not path.exists():
        logger.info("No site config at %s, using defaults", path)
        return SiteConfig()

    try:
        with path.open(encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
    except (OSError, UnicodeDecodeError, ValueError, yaml.YAMLError) as exc:
        msg = f"Cannot read site config {path}: {exc}"
        raise ConfigError(msg) from exc

    if not isinstance(loaded, dict):
        msg = f"Site config {path} must be a YAML mapping"
        raise ConfigError(msg)

    logger.debug("Loaded site config from %s", path)
    return SiteConfig.from_mapping(loaded)


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        msg = f"Config key {key!r} must be a string"
        raise ConfigError(msg)
    return value


def _collections(value: Any) -> list[CollectionConfig]:
    """Normalise the ``collections`` key (list of names or mapping of settings)."""
    if value is None:
        return []
    if isinstance(value, list):
        return [CollectionConfig(name=str(name)) for name in value]
    if isinstance(value, dict):
        collections = []
        for name, settings in value.items():
            settings = settings or {}
            if not isinstance(settings, dict):
                msg = f"Settings for collection {name!r} must be a mapping"
                raise ConfigError(msg)
            collections.append(CollectionConfig(name=str(name), permalink=_optional_str(settings, "permalink")))
        return collections
    msg = "Config key 'collections' must be a list or a mapping"
    raise ConfigError(msg)
