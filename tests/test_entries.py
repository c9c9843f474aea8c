"""Tests for search entry construction."""

import dataclasses
from datetime import datetime

import pytest

from lunr_store.config import SiteConfig
from lunr_store.entries import build_entry, is_searchable
from lunr_store.errors import InvalidEntryError
from lunr_store.models import Post, SearchEntry

NOW = datetime(2020, 1, 1)


@pytest.fixture
def post() -> Post:
    """Create a sample post.

    Returns:
        Post instance.
    """
    return Post(
        path="_posts/2016-05-10-swagger-documentation.md",
        collection="posts",
        slug="swagger-documentation",
        title="Defining a New API with Swagger",
        content="An API is, fundamentally, a contract\nbetween two machines.",
        url="/swagger-documentation/",
        date=datetime(2016, 5, 10),
        categories=["api"],
        tags=["swagger", "openapi"],
    )


def test_build_entry(post: Post) -> None:
    """Test building an entry with default settings."""
    entry = build_entry(post, SiteConfig())

    assert entry == SearchEntry(
        title="Defining a New API with Swagger",
        excerpt="An API is, fundamentally, a contract between two machines.",
        categories=("api",),
        tags=("swagger", "openapi"),
        url="/swagger-documentation/",
        teaser=None,
    )


def test_build_entry_truncates_excerpt(post: Post) -> None:
    """Test that the excerpt is cut to the configured word count."""
    post.content = " ".join(f"word{i}" for i in range(80))

    entry = build_entry(post, SiteConfig())

    assert entry.excerpt.endswith("word49...")
    assert len(entry.excerpt.removesuffix("...").split()) == 50


def test_build_entry_full_content(post: Post) -> None:
    """Test that full content search keeps every word."""
    post.content = " ".join(f"word{i}" for i in range(80))

    entry = build_entry(post, SiteConfig(search_full_content=True))

    assert entry.excerpt == post.content


def test_build_entry_custom_word_count(post: Post) -> None:
    """Test a configured excerpt length."""
    entry = build_entry(post, SiteConfig(excerpt_words=3))

    assert entry.excerpt == "An API is,..."


def test_build_entry_baseurl_and_site_teaser(post: Post) -> None:
    """Test base url prefixing of url and fallback teaser."""
    config = SiteConfig(baseurl="/blog", teaser="/assets/images/default.png")

    entry = build_entry(post, config)

    assert entry.url == "/blog/swagger-documentation/"
    assert entry.teaser == "/blog/assets/images/default.png"


def test_build_entry_own_teaser_wins(post: Post) -> None:
    """Test that a post teaser overrides the site teaser."""
    post.teaser = "https://cdn.example.com/teaser.png"

    entry = build_entry(post, SiteConfig(teaser="/assets/images/default.png"))

    assert entry.teaser == "https://cdn.example.com/teaser.png"


def test_entry_is_immutable(post: Post) -> None:
    """Test that entries cannot be changed after creation."""
    entry = build_entry(post, SiteConfig())

    with pytest.raises(dataclasses.FrozenInstanceError):
        entry.title = "Changed"  # type: ignore[misc]


def test_is_searchable_default(post: Post) -> None:
    """Test that a plain past post is searchable."""
    assert is_searchable(post, SiteConfig(), NOW)


def test_search_false_excluded(post: Post) -> None:
    """Test that search: false hides a post."""
    post.front_matter = {"search": False}
    assert not is_searchable(post, SiteConfig(), NOW)


def test_unpublished_excluded(post: Post) -> None:
    """Test that published: false hides a post unless unpublished is set."""
    post.front_matter = {"published": False}

    assert not is_searchable(post, SiteConfig(), NOW)
    assert is_searchable(post, SiteConfig(unpublished=True), NOW)


def test_future_post_excluded(post: Post) -> None:
    """Test that future posts are held back unless future is set."""
    post.date = datetime(2030, 1, 1)

    assert not is_searchable(post, SiteConfig(), NOW)
    assert is_searchable(post, SiteConfig(future=True), NOW)


def test_pages_ignore_dates(post: Post) -> None:
    """Test that pages are never held back by date."""
    post.collection = "pages"
    post.date = datetime(2030, 1, 1)

    assert is_searchable(post, SiteConfig(), NOW)


def test_entry_from_dict() -> None:
    """Test building an entry from a loaded record."""
    entry = SearchEntry.from_dict(
        {"title": "A", "excerpt": "B", "categories": ["c"], "tags": [], "url": "/a/", "teaser": None}
    )

    assert entry.categories == ("c",)
    assert entry.to_dict()["categories"] == ["c"]


def test_entry_from_dict_missing_or_null_labels() -> None:
    """Test that absent and null label fields become empty tuples."""
    entry = SearchEntry.from_dict({"title": "A", "url": "/a/", "tags": None})

    assert entry.categories == ()
    assert entry.tags == ()


@pytest.mark.parametrize(
    "record",
    [
        [],
        {"url": "/a/"},
        {"title": "A", "url": 3},
        {"title": "A", "url": "/a/", "excerpt": None},
        {"title": "A", "url": "/a/", "categories": [1]},
        {"title": "A", "url": "/a/", "categories": ""},
        {"title": "A", "url": "/a/", "categories": {}},
        {"title": "A", "url": "/a/", "tags": 0},
        {"title": "A", "url": "/a/", "tags": False},
        {"title": "A", "url": "/a/", "teaser": 5},
    ],
)
def test_entry_from_dict_rejects_bad_shapes(record: object) -> None:
    """Test that malformed records raise InvalidEntryError."""
    with pytest.raises(InvalidEntryError):
        SearchEntry.from_dict(record)
