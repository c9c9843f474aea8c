"""Parser for site source documents (Markdown, HTML and reStructuredText)."""

import logging
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any

import docutils.frontend  # type: ignore[import-untyped]
import docutils.nodes  # type: ignore[import-untyped]
import docutils.parsers.rst  # type: ignore[import-untyped]
import docutils.utils  # type: ignore[import-untyped]
import yaml

from lunr_store.errors import PostParseError
from lunr_store.models import Post
from lunr_store.text import html_to_text, markdown_to_text, titleize_slug
from lunr_store.urls import (
    DEFAULT_COLLECTION_PERMALINK,
    generate_url,
    page_url,
    post_placeholders,
    resolve_template,
)

logger = logging.getLogger(__name__)

POSTS = "posts"
DRAFTS = "drafts"
PAGES = "pages"

MARKDOWN_EXTENSIONS = frozenset({".md", ".markdown", ".mkd", ".mkdn"})
HTML_EXTENSIONS = frozenset({".html", ".htm"})
RST_EXTENSIONS = frozenset({".rst", ".rest"})
SUPPORTED_EXTENSIONS = MARKDOWN_EXTENSIONS | HTML_EXTENSIONS | RST_EXTENSIONS

POST_FILENAME = re.compile(r"^(?P<date>\d{4}-\d{2}-\d{2})-(?P<slug>.+)\.(?P<ext>[^.]+)$")

_FRONT_MATTER = re.compile(r"\A---[ \t]*\r?\n(.*?)^(?:---|\.\.\.)[ \t]*\r?$\n?", re.DOTALL | re.MULTILINE)
_FRONT_MATTER_DATE = re.compile(
    r"^(?P<day>\d{4}-\d{2}-\d{2})"
    r"(?:[ T](?P<time>\d{1,2}:\d{2}(?::\d{2}(?:\.\d+)?)?)"
    r"(?:\s*(?P<offset>Z|[+-]\d{2}:?\d{2}))?)?$"
)


class MetadataVisitor(docutils.nodes.GenericNodeVisitor):  # type: ignore[misc]
    """Visitor to find the document title in an RST document tree."""

    def __init__(self, document: docutils.nodes.document) -> None:
        """Initialise metadata visitor.

        Args:
            document: Docutils document tree.
        """
        super().__init__(document)
        self.title: str | None = None

    def visit_title(self, node: docutils.nodes.title) -> None:
        """Visit title node (first section header).

        Args:
            node: Title node.
        """
        if self.title is None:
            self.title = node.astext()

    def default_visit(self, node: docutils.nodes.Node) -> None:
        """Default visit handler (no-op).

        Args:
            node: Any node.
        """

    def default_departure(self, node: docutils.nodes.Node) -> None:
        """Default departure handler (no-op).

        Args:
            node: Any node.
        """


class TextContentVisitor(docutils.nodes.GenericNodeVisitor):  # type: ignore[misc]
    """Visitor to collect the readable text of an RST document tree."""

    def __init__(self, document: docutils.nodes.document) -> None:
        """Initialise text content visitor.

        Args:
            document: Docutils document tree.
        """
        super().__init__(document)
        self._text_parts: list[str] = []

    def visit_comment(self, node: docutils.nodes.comment) -> None:
        """Skip comments.

        Args:
            node: Comment node.

        Raises:
            docutils.nodes.SkipNode: Always raised to skip comments.
        """
        raise docutils.nodes.SkipNode

    def visit_system_message(self, node: docutils.nodes.system_message) -> None:
        """Skip parser diagnostics embedded in the tree.

        Raises:
            docutils.nodes.SkipNode: Always raised to skip diagnostics.
        """
        raise docutils.nodes.SkipNode

    def visit_Text(self, node: docutils.nodes.Text) -> None:  # noqa: N802
        """Visit text node and collect content.

        Args:
            node: Text node.
        """
        text = node.astext().strip()
        if text:
            self._text_parts.append(text)

    def default_visit(self, node: docutils.nodes.Node) -> None:
        """Default visit handler (no-op).

        Args:
            node: Any node.
        """

    def default_departure(self, node: docutils.nodes.Node) -> None:
        """Default departure handler (no-op).

        Args:
            node: Any node.
        """

    def get_text(self) -> str:
        """Get collected text content.

        Returns:
            Concatenated text content.
        """
        return " ".join(self._text_parts)


def split_front_matter(source: str) -> tuple[dict[str, Any] | None, str]:
    """Split YAML front matter from a document body.

    Args:
        source: Full document source.

    Returns:
        Tuple of (front matter mapping or None when absent, body).

    Raises:
        PostParseError: If the front matter is not a YAML mapping or holds
            an impossible date.
        yaml.YAMLError: If the front matter is not valid YAML.
    """
    source = source.removeprefix("\ufeff")
    match = _FRONT_MATTER.match(source)
    if not match:
        return None, source

    try:
        loaded = yaml.safe_load(match.group(1)) or {}
    except ValueError as exc:
        # PyYAML raises a plain ValueError for timestamps such as 2016-02-30
        msg = f"Invalid front matter value: {exc}"
        raise PostParseError(msg) from exc
    if not isinstance(loaded, dict):
        msg = "Front matter must be a YAML mapping"
        raise PostParseError(msg)
    return loaded, source[match.end() :]


def is_post_filename(name: str) -> bool:
    """Return whether a filename follows the ``YYYY-MM-DD-slug.ext`` post convention."""
    match = POST_FILENAME.match(name)
    return bool(match) and f".{match.group('ext').lower()}" in SUPPORTED_EXTENSIONS


def coerce_date(value: Any) -> datetime:
    """Convert a front matter date into a naive datetime.

    Time zone offsets are dropped; the wall clock time is kept.

    Args:
        value: YAML date, datetime or string.

    Returns:
        Datetime value.

    Raises:
        PostParseError: If the value is not a recognisable date.
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    match = _FRONT_MATTER_DATE.match(str(value).strip())
    if not match:
        msg = f"Invalid date: {value!r}"
        raise PostParseError(msg)
    text = match.group("day")
    if match.group("time"):
        hour, rest = match.group("time").split(":", 1)
        text += f"T{hour.zfill(2)}:{rest}"
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        msg = f"Invalid date: {value!r}"
        raise PostParseError(msg) from exc


def labels(front_matter: dict[str, Any], plural: str, singular: str) -> list[str]:
    """Read a label list (categories or tags) from front matter.

    Both keys accept a list or a space separated string.

    Args:
        front_matter: Document front matter.
        plural: List key, e.g. ``tags``.
        singular: Single value key, e.g. ``tag``.

    Returns:
        Labels in declaration order.
    """
    result: list[str] = []
    for key in (plural, singular):
        value = front_matter.get(key)
        if value is None:
            continue
        items = value.split() if isinstance(value, str) else value if isinstance(value, list) else [value]
        result.extend(str(item) for item in items if item is not None and str(item))
    return result


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


class PostParser:
    """Parses site source files into ``Post`` instances."""

    def parse_file(
        self,
        file_path: Path,
        base_path: Path,
        collection: str = POSTS,
        permalink: str | None = None,
    ) -> Post | None:
        """Parse a source file and extract metadata, text and url.

        Args:
            file_path: Path to the source file.
            base_path: Site root directory.
            collection: Collection the file belongs to (``posts``, ``drafts``,
                a custom collection name, or ``pages``).
            permalink: Permalink style or template for the collection.

        Returns:
            Post instance or None if parsing fails.
        """
        try:
            return self._parse(file_path, base_path, collection, permalink)
        except (OSError, UnicodeDecodeError, yaml.YAMLError, PostParseError, docutils.utils.SystemMessage) as exc:
            logger.debug("Cannot parse %s: %s", file_path, exc)
            return None

    def has_front_matter(self, file_path: Path) -> bool:
        """Return whether a file starts with a front matter fence.

        Args:
            file_path: Path to the file.

        Returns:
            True when the first line is ``---``.
        """
        try:
            with file_path.open(encoding="utf-8") as handle:
                first_line = handle.readline()
        except (OSError, UnicodeDecodeError):
            return False
        return first_line.removeprefix("\ufeff").rstrip() == "---"

    def _parse(self, file_path: Path, base_path: Path, collection: str, permalink: str | None) -> Post:
        source = file_path.read_text(encoding="utf-8")
        front_matter, body = split_front_matter(source)
        front_matter = front_matter or {}
        relative_path = file_path.relative_to(base_path)
        extension = file_path.suffix.lower()

        rst_title: str | None = None
        if extension in RST_EXTENSIONS:
            doctree = self._parse_rst(body, file_path)
            rst_title = self._extract_title(doctree)
            content = self._extract_text_content(doctree)
        elif extension in HTML_EXTENSIONS:
            content = html_to_text(body)
        else:
            content = markdown_to_text(body)

        slug, post_date, collection_path, dir_categories = self._locate(file_path, relative_path, collection)
        if "date" in front_matter and front_matter["date"] is not None:
            post_date = coerce_date(front_matter["date"])
        if front_matter.get("slug"):
            slug = str(front_matter["slug"])

        categories = _unique(dir_categories + labels(front_matter, "categories", "category"))
        tags = _unique(labels(front_matter, "tags", "tag"))

        title = front_matter.get("title")
        title = str(title) if title not in (None, "") else rst_title or titleize_slug(slug)

        url = self._compute_url(
            relative_path,
            collection,
            permalink,
            front_matter,
            post_placeholders(slug, categories, post_date, collection, collection_path),
        )

        return Post(
            path=relative_path.as_posix(),
            collection=collection,
            slug=slug,
            title=title,
            content=content,
            url=url,
            date=post_date,
            categories=categories,
            tags=tags,
            teaser=self._extract_teaser(front_matter),
            front_matter=front_matter,
        )

    def _locate(
        self, file_path: Path, relative_path: Path, collection: str
    ) -> tuple[str, datetime | None, str, list[str]]:
        """Derive slug, date, collection-relative path and directory categories.

        Args:
            file_path: Absolute path of the file.
            relative_path: Path relative to the site root.
            collection: Collection name.

        Returns:
            Tuple of (slug, date, collection path without extension, categories).

        Raises:
            PostParseError: If a post filename carries an impossible date.
        """
        parts = relative_path.parts
        marker = f"_{collection}"
        if collection != PAGES and marker in parts:
            index = parts.index(marker)
            dir_categories = list(parts[:index]) if collection in (POSTS, DRAFTS) else []
            inner = Path(*parts[index + 1 :])
        else:
            dir_categories = []
            inner = relative_path
        collection_path = inner.with_suffix("").as_posix()

        match = POST_FILENAME.match(file_path.name)
        if collection in (POSTS, DRAFTS) and match:
            try:
                post_date = datetime.strptime(match.group("date"), "%Y-%m-%d")
            except ValueError as exc:
                msg = f"Invalid date in filename: {file_path.name}"
                raise PostParseError(msg) from exc
            return match.group("slug"), post_date, collection_path, dir_categories

        post_date = None
        if collection == DRAFTS:
            post_date = datetime.fromtimestamp(file_path.stat().st_mtime)
        return file_path.stem, post_date, collection_path, dir_categories

    def _compute_url(
        self,
        relative_path: Path,
        collection: str,
        permalink: str | None,
        front_matter: dict[str, Any],
        placeholders: dict[str, str],
    ) -> str:
        """Compute the site-relative url of a document.

        Args:
            relative_path: Path relative to the site root.
            collection: Collection name.
            permalink: Collection permalink style or template.
            front_matter: Document front matter.
            placeholders: Permalink placeholder values.

        Returns:
            Site-relative url.
        """
        own_permalink = front_matter.get("permalink")
        own_permalink = str(own_permalink) if own_permalink else None

        if collection == PAGES:
            return page_url(relative_path.as_posix(), permalink, own_permalink)
        if own_permalink:
            return generate_url(own_permalink, placeholders)
        if collection in (POSTS, DRAFTS):
            return generate_url(resolve_template(permalink), placeholders)
        return generate_url(permalink or DEFAULT_COLLECTION_PERMALINK, placeholders)

    def _extract_teaser(self, front_matter: dict[str, Any]) -> str | None:
        header = front_matter.get("header")
        if isinstance(header, dict) and isinstance(header.get("teaser"), str) and header["teaser"]:
            return str(header["teaser"])
        return None

    def _parse_rst(self, source: str, file_path: Path) -> docutils.nodes.document:
        """Parse RST source into docutils document tree.

        Args:
            source: RST source text.
            file_path: Path to the file (for error reporting).

        Returns:
            Docutils document tree.
        """
        parser = docutils.parsers.rst.Parser()
        settings = docutils.frontend.get_default_settings(docutils.parsers.rst.Parser)
        settings.report_level = 5  # Suppress warnings
        settings.halt_level = 5
        document = docutils.utils.new_document(str(file_path), settings)
        parser.parse(source, document)
        return document

    def _extract_title(self, doctree: docutils.nodes.document) -> str | None:
        visitor = MetadataVisitor(doctree)
        doctree.walk(visitor)
        return visitor.title

    def _extract_text_content(self, doctree: docutils.nodes.document) -> str:
        """Extract readable text content from RST document tree.

        Args:
            doctree: Docutils document tree.

        Returns:
            Extracted text content.
        """
        visitor = TextContentVisitor(doctree)
        doctree.walk(visitor)
        return visitor.get_text()
