"""Permalink computation for site documents."""

import re
from datetime import datetime
from urllib.parse import quote

from lunr_store.text import slugify

PERMALINK_STYLES = {
    "date": "/:categories/:year/:month/:day/:title:output_ext",
    "pretty": "/:categories/:year/:month/:day/:title/",
    "ordinal": "/:categories/:year/:y_day/:title:output_ext",
    "weekdate": "/:categories/:year/W:week/:short_day/:title:output_ext",
    "none": "/:categories/:title:output_ext",
}

DEFAULT_COLLECTION_PERMALINK = "/:collection/:path:output_ext"
OUTPUT_EXT = ".html"

_SAFE_PATH_CHARS = "-._~!$&'()*+,;=:@/"
_ABSOLUTE_URL = re.compile(r"^(?:[A-Za-z][A-Za-z0-9+.\-]*:|//)")
_REPEATED_SLASHES = re.compile(r"/{2,}")


def resolve_template(permalink: str | None) -> str:
    """Expand a named permalink style into its template.

    Args:
        permalink: Style name, template, or None for the default style.

    Returns:
        Permalink template.
    """
    if not permalink:
        return PERMALINK_STYLES["date"]
    return PERMALINK_STYLES.get(permalink, permalink)


def date_placeholders(date: datetime | None) -> dict[str, str]:
    """Build the date placeholders for a permalink template.

    Args:
        date: Document date, or None for undated documents.

    Returns:
        Placeholder values (empty when there is no date).
    """
    if date is None:
        return {}
    return {
        "year": date.strftime("%Y"),
        "short_year": date.strftime("%y"),
        "month": date.strftime("%m"),
        "i_month": str(date.month),
        "day": date.strftime("%d"),
        "i_day": str(date.day),
        "y_day": date.strftime("%j"),
        "week": date.strftime("%V"),
        "short_day": date.strftime("%a"),
        "long_day": date.strftime("%A"),
        "hour": date.strftime("%H"),
        "minute": date.strftime("%M"),
        "second": date.strftime("%S"),
    }


def post_placeholders(
    slug: str,
    categories: list[str],
    date: datetime | None,
    collection: str,
    path: str,
) -> dict[str, str]:
    """Build all placeholders for a collection document.

    Args:
        slug: Document slug (from the filename or front matter).
        categories: Document categories.
        date: Document date.
        collection: Collection name.
        path: Collection-relative path without extension.

    Returns:
        Placeholder values keyed by placeholder name.
    """
    unique_categories: list[str] = []
    for category in categories:
        lowered = category.lower()
        if lowered not in unique_categories:
            unique_categories.append(lowered)

    placeholders = date_placeholders(date)
    placeholders.update(
        {
            "title": slug,
            "slug": slugify(slug),
            "name": path.rsplit("/", 1)[-1],
            "categories": "/".join(unique_categories),
            "collection": collection,
            "path": path,
            "output_ext": OUTPUT_EXT,
        }
    )
    return placeholders


def generate_url(template: str, placeholders: dict[str, str]) -> str:
    """Substitute placeholders into a permalink template.

    Unknown placeholders are left as they are.

    Args:
        template: Permalink template such as ``/:year/:title/``.
        placeholders: Placeholder values.

    Returns:
        Normalised site-relative url.
    """
    url = template
    # Longest names first so ``:short_year`` is not eaten by ``:year``
    for key in sorted(placeholders, key=len, reverse=True):
        url = url.replace(f":{key}", escape_path(placeholders[key]))
    return sanitize_url(url)


def escape_path(value: str) -> str:
    """Percent-encode a url path component."""
    return quote(value, safe=_SAFE_PATH_CHARS)


def sanitize_url(url: str) -> str:
    """Ensure a single leading slash and no repeated slashes.

    Args:
        url: Raw url path.

    Returns:
        Sanitised url path.
    """
    url = _REPEATED_SLASHES.sub("/", url)
    if not url.startswith("/"):
        url = "/" + url
    return url


def page_placeholders(relative_path: str) -> dict[str, str]:
    """Build the placeholders available to a page permalink.

    Args:
        relative_path: Path of the page relative to the site root.

    Returns:
        ``path`` (the page directory), ``basename`` and ``output_ext``.
    """
    directory, _, filename = relative_path.rpartition("/")
    return {
        "path": f"/{directory}/" if directory else "/",
        "basename": filename.rsplit(".", 1)[0],
        "output_ext": OUTPUT_EXT,
    }


def page_url(relative_path: str, permalink: str | None, front_matter_permalink: str | None = None) -> str:
    """Compute the url of a plain page.

    Args:
        relative_path: Path of the page relative to the site root.
        permalink: Site permalink style, used to decide between pretty and
            extension urls.
        front_matter_permalink: Permalink set in the page front matter.

    Returns:
        Site-relative url.
    """
    directory, _, filename = relative_path.rpartition("/")
    basename = filename.rsplit(".", 1)[0]
    if front_matter_permalink:
        return generate_url(front_matter_permalink, page_placeholders(relative_path))

    prefix = "/" + escape_path(directory) if directory else ""
    if basename == "index":
        return sanitize_url(prefix + "/")
    if resolve_template(permalink).endswith("/"):
        return sanitize_url(f"{prefix}/{escape_path(basename)}/")
    return sanitize_url(f"{prefix}/{escape_path(basename)}{OUTPUT_EXT}")


def relative_url(path: str | None, baseurl: str = "") -> str | None:
    """Prefix a site path with the base url.

    Absolute urls and None are returned unchanged.

    Args:
        path: Site path, absolute url or None.
        baseurl: Site base url (e.g. ``/blog``), may be empty.

    Returns:
        Url relative to the host root.
    """
    if path is None or _ABSOLUTE_URL.match(path):
        return path
    base = baseurl.rstrip("/")
    if base and not base.startswith("/"):
        base = "/" + base
    if not path.startswith("/"):
        path = "/" + path
    return base + path
