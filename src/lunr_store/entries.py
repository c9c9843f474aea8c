"""Conversion of parsed documents into search store entries."""

from datetime import datetime

from lunr_store.config import SiteConfig
from lunr_store.models import Post, SearchEntry
from lunr_store.parser import DRAFTS, PAGES
from lunr_store.text import newlines_to_spaces, truncate_words
from lunr_store.urls import relative_url


def build_entry(post: Post, config: SiteConfig) -> SearchEntry:
    """Build the search entry for a document.

    Args:
        post: Parsed document.
        config: Site configuration.

    Returns:
        SearchEntry instance.
    """
    excerpt = newlines_to_spaces(post.content)
    if not config.search_full_content:
        excerpt = truncate_words(excerpt, config.excerpt_words)

    return SearchEntry(
        title=post.title,
        excerpt=excerpt,
        categories=tuple(post.categories),
        tags=tuple(post.tags),
        url=relative_url(post.url, config.baseurl) or "",
        teaser=relative_url(post.teaser or config.teaser, config.baseurl),
    )


def is_searchable(post: Post, config: SiteConfig, now: datetime) -> bool:
    """Return whether a document belongs in the search store.

    Args:
        post: Parsed document.
        config: Site configuration.
        now: Build time, used to hold back future-dated posts.

    Returns:
        True when the document should be indexed.
    """
    if post.front_matter.get("search") is False:
        return False
    if post.front_matter.get("published") is False and not config.unpublished:
        return False
    if post.collection in (PAGES, DRAFTS) or config.future or post.date is None:
        return True
    return post.date <= now
