"""Tests for permalink computation."""

from datetime import datetime

from lunr_store.urls import (
    generate_url,
    page_url,
    post_placeholders,
    relative_url,
    resolve_template,
    sanitize_url,
)


def _placeholders(categories: list[str] | None = None) -> dict[str, str]:
    return post_placeholders(
        slug="hello-world",
        categories=categories or [],
        date=datetime(2016, 3, 7, 8, 9, 10),
        collection="posts",
        path="2016-03-07-hello-world",
    )


def test_named_styles() -> None:
    """Test every named permalink style."""
    placeholders = _placeholders(["Go", "API"])

    assert generate_url(resolve_template("date"), placeholders) == "/go/api/2016/03/07/hello-world.html"
    assert generate_url(resolve_template("pretty"), placeholders) == "/go/api/2016/03/07/hello-world/"
    assert generate_url(resolve_template("ordinal"), placeholders) == "/go/api/2016/067/hello-world.html"
    assert generate_url(resolve_template("none"), placeholders) == "/go/api/hello-world.html"
    assert generate_url(resolve_template("weekdate"), placeholders) == "/go/api/2016/W10/Mon/hello-world.html"


def test_default_style_is_date() -> None:
    """Test that a missing permalink falls back to the date style."""
    assert resolve_template(None) == resolve_template("date")


def test_custom_template_placeholders() -> None:
    """Test individual date and name placeholders."""
    placeholders = _placeholders()

    assert generate_url("/:short_year/:i_month/:i_day/:slug/", placeholders) == "/16/3/7/hello-world/"
    assert generate_url("/:year/:hour:minute:second/:name", placeholders) == "/2016/080910/2016-03-07-hello-world"
    assert generate_url("/:collection/:title/", placeholders) == "/posts/hello-world/"


def test_empty_categories_collapse_slashes() -> None:
    """Test that an empty categories segment does not leave a double slash."""
    assert generate_url("/:categories/:title/", _placeholders()) == "/hello-world/"


def test_duplicate_categories_are_lowercased_once() -> None:
    """Test that categories differing in case appear once."""
    assert generate_url("/:categories/:title/", _placeholders(["Go", "go"])) == "/go/hello-world/"


def test_unknown_placeholder_kept() -> None:
    """Test that unknown placeholders are left verbatim."""
    assert generate_url("/:unknown/:title/", _placeholders()) == "/:unknown/hello-world/"


def test_placeholder_values_are_escaped() -> None:
    """Test percent-encoding of placeholder values."""
    placeholders = post_placeholders("hello world", ["c#"], None, "posts", "hello world")
    assert generate_url("/:categories/:title/", placeholders) == "/c%23/hello%20world/"


def test_sanitize_url() -> None:
    """Test leading slash and repeated slash normalisation."""
    assert sanitize_url("a//b///c/") == "/a/b/c/"
    assert sanitize_url("/") == "/"


def test_page_url_with_front_matter_permalink() -> None:
    """Test that a page permalink is used as is."""
    assert page_url("about.md", "date", "contact/") == "/contact/"


def test_page_url_front_matter_placeholders() -> None:
    """Test that page permalinks expand placeholders and escape their values."""
    assert page_url("about.md", "date", ":path:basename:output_ext") == "/about.html"
    assert page_url("guides/setup me.md", "date", "/docs:path:basename/") == "/docs/guides/setup%20me/"


def test_page_url_nested() -> None:
    """Test nested page urls."""
    assert page_url("guides/setup.md", "date") == "/guides/setup.html"
    assert page_url("guides/setup.md", "/:title/") == "/guides/setup/"
    assert page_url("index.html", "date") == "/"


def test_relative_url() -> None:
    """Test prefixing site paths with the base url."""
    assert relative_url("/multiple-language-codegen/", "") == "/multiple-language-codegen/"
    assert relative_url("/post/", "/blog") == "/blog/post/"
    assert relative_url("/post/", "blog/") == "/blog/post/"
    assert relative_url("assets/teaser.png", "/blog") == "/blog/assets/teaser.png"
    assert relative_url("https://cdn.example.com/x.png", "/blog") == "https://cdn.example.com/x.png"
    assert relative_url("//cdn.example.com/x.png", "/blog") == "//cdn.example.com/x.png"
    assert relative_url(None, "/blog") is None
