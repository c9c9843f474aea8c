"""Indexer that walks a Jekyll site source tree and builds its search store."""

import fnmatch
import logging
import subprocess
import tempfile
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any

from lunr_store.config import CONFIG_FILENAME, SiteConfig, load_config
from lunr_store.entries import build_entry, is_searchable
from lunr_store.errors import DuplicateUrlError
from lunr_store.models import Post
from lunr_store.parser import (
    DRAFTS,
    PAGES,
    POSTS,
    SUPPORTED_EXTENSIONS,
    PostParser,
    is_post_filename,
)
from lunr_store.store import SearchStore

logger = logging.getLogger(__name__)


class SiteIndexer:
    """Builds the search store for a site source tree."""

    def __init__(self, config: SiteConfig | None = None, **overrides: Any) -> None:
        """Initialise indexer.

        Args:
            config: Site configuration. When omitted, ``_config.yml`` is read
                from the root of each indexed site.
            **overrides: SiteConfig fields forced on top of the configuration
                (e.g. ``show_drafts=True``).
        """
        self.config = config
        self.overrides = overrides
        self.parser = PostParser()

    def index_from_git(self, repo_url: str, branch: str = "main", shallow: bool = True) -> SearchStore:
        """Clone a site repository and index it.

        Args:
            repo_url: Git url of the site repository.
            branch: Git branch to clone.
            shallow: Whether to do a shallow clone.

        Returns:
            Search store for the cloned site.
        """
        with tempfile.TemporaryDirectory() as temp_dir:
            repo_path = Path(temp_dir) / "site"
            self._clone_repository(repo_url, repo_path, branch, shallow)
            return self._index_directory(repo_path, datetime.now())

    def index_from_path(self, site_path: Path, now: datetime | None = None) -> SearchStore:
        """Index a site from a local path.

        Args:
            site_path: Site source root (the directory holding ``_posts``).
            now: Build time used to hold back future posts; defaults to now.

        Returns:
            Search store for the site.
        """
        return self._index_directory(site_path, now or datetime.now())

    def rebuild(self, site_path: Path, output_path: Path, fmt: str | None = None, now: datetime | None = None) -> int:
        """Index a site and replace its store file.

        Nothing is written when indexing fails.

        Args:
            site_path: Site source root.
            output_path: Store file to replace.
            fmt: ``js`` or ``json``; inferred from the output suffix when omitted.
            now: Build time used to hold back future posts.

        Returns:
            Number of entries written.
        """
        store = self.index_from_path(site_path, now)
        store.write(output_path, fmt)
        return len(store)

    def _clone_repository(self, repo_url: str, target_path: Path, branch: str, shallow: bool) -> None:
        """Clone the site repository.

        Args:
            repo_url: Git url of the site repository.
            target_path: Directory to clone into.
            branch: Git branch to clone.
            shallow: Whether to do a shallow clone.
        """
        cmd = ["git", "clone"]
        if shallow:
            cmd.extend(["--depth", "1", "--single-branch"])
        cmd.extend(["--branch", branch, repo_url, str(target_path)])

        logger.info("Cloning %s (%s)...", repo_url, branch)
        subprocess.run(cmd, check=True, capture_output=True)  # noqa: S603
        logger.info("Repository cloned successfully")

    def _index_directory(self, site_path: Path, now: datetime) -> SearchStore:
        """Index every searchable document of a site.

        Args:
            site_path: Site source root.
            now: Build time.

        Returns:
            Validated search store.

        Raises:
            ValueError: If the site path does not exist.
            DuplicateUrlError: If two documents resolve to the same url.
            StoreValidationError: If an entry has an empty title or url.
        """
        if not site_path.exists():
            msg = f"Site path does not exist: {site_path}"
            raise ValueError(msg)

        config = self.config or load_config(site_path / CONFIG_FILENAME)
        if self.overrides:
            config = replace(config, **self.overrides)
        posts = self._parse_collection(site_path, self._post_files(site_path, config), POSTS, config.permalink)
        if config.show_drafts:
            posts += self._parse_collection(site_path, self._draft_files(site_path, config), DRAFTS, config.permalink)
        documents = sorted(posts, key=_document_order)

        for collection in config.collections:
            files = [
                path
                for path in self._files_under(site_path / f"_{collection.name}")
                if self.parser.has_front_matter(path)
            ]
            parsed = self._parse_collection(site_path, files, collection.name, collection.permalink)
            documents.extend(sorted(parsed, key=_document_order))

        if config.search_within_pages:
            pages = self._parse_collection(site_path, self._page_files(site_path, config), PAGES, config.permalink)
            documents.extend(sorted(pages, key=lambda page: page.path))

        store = SearchStore()
        for post in documents:
            if not is_searchable(post, config, now):
                logger.debug("Excluded from search: %s", post.path)
                continue
            try:
                store.add(build_entry(post, config))
            except DuplicateUrlError:
                logger.error("Url %s of %s is already taken by another document", post.url, post.path)
                raise

        store.validate()
        logger.info("Successfully indexed %d documents", len(store))
        return store

    def _parse_collection(
        self, site_path: Path, files: list[Path], collection: str, permalink: str | None
    ) -> list[Post]:
        logger.info("Found %d %s files to index", len(files), collection)
        documents = []
        for file_path in files:
            post = self.parser.parse_file(file_path, site_path, collection, permalink)
            if post:
                documents.append(post)
                logger.debug("Parsed: %s", post.path)
            else:
                logger.warning("Failed to parse: %s", file_path)
        return documents

    def _post_files(self, site_path: Path, config: SiteConfig) -> list[Path]:
        files = []
        for path in self._special_dir_files(site_path, "_posts", config):
            if is_post_filename(path.name):
                files.append(path)
            else:
                logger.debug("Skipping %s: not a dated post filename", path)
        return files

    def _draft_files(self, site_path: Path, config: SiteConfig) -> list[Path]:
        return self._special_dir_files(site_path, "_drafts", config)

    def _special_dir_files(self, site_path: Path, dir_name: str, config: SiteConfig) -> list[Path]:
        """Collect files from ``dir_name`` at the root and in category directories.

        Args:
            site_path: Site source root.
            dir_name: ``_posts`` or ``_drafts``.
            config: Site configuration (for excludes).

        Returns:
            Source files found.
        """
        files = []
        for directory in sorted(site_path.rglob(dir_name)):
            relative = directory.relative_to(site_path)
            parents = relative.parts[:-1]
            if not directory.is_dir() or any(_is_hidden(part) for part in parents):
                continue
            if _is_excluded(relative, config.exclude):
                continue
            files.extend(self._files_under(directory))
        return files

    def _page_files(self, site_path: Path, config: SiteConfig) -> list[Path]:
        files = []
        for path in self._files_under(site_path):
            relative = path.relative_to(site_path)
            if any(_is_hidden(part) for part in relative.parts) or _is_excluded(relative, config.exclude):
                continue
            if self.parser.has_front_matter(path):
                files.append(path)
        return files

    def _files_under(self, directory: Path) -> list[Path]:
        if not directory.is_dir():
            return []
        return sorted(
            path for path in directory.rglob("*") if path.is_file() and path.suffix.lower() in SUPPORTED_EXTENSIONS
        )


def _document_order(post: Post) -> tuple[datetime, str]:
    return (post.date or datetime.min, post.path)


def _is_hidden(part: str) -> bool:
    return part.startswith(("_", "."))


def _is_excluded(relative_path: Path, patterns: list[str]) -> bool:
    """Return whether a site-relative path matches a config ``exclude`` entry.

    Args:
        relative_path: Path relative to the site root.
        patterns: Exclude entries (paths or glob patterns).

    Returns:
        True when the path or one of its parents is excluded.
    """
    posix = relative_path.as_posix()
    for pattern in patterns:
        pattern = pattern.strip("/")
        if posix == pattern or posix.startswith(pattern + "/"):
            return True
        if any(fnmatch.fnmatch(part, pattern) for part in relative_path.parts):
            return True
    return False
