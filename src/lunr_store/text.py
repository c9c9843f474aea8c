"""Text filters used to turn document sources into search excerpts.

The HTML helpers follow the Liquid filters a Jekyll theme chains together
when it renders ``lunr-store.js`` (``strip_html``, ``newline_to_br``,
``strip_newlines``, ``truncatewords``). The Markdown helper is a best-effort
plain-text rendering, since the store only needs the words, not the markup.
"""

import re

DEFAULT_ELLIPSIS = "..."

_HTML_BLOCKS = re.compile(r"<script.*?</script>|<!--.*?-->|<style.*?</style>", re.DOTALL | re.IGNORECASE)
_HTML_TAGS = re.compile(r"</?[A-Za-z!?][^>]*>", re.DOTALL)
_BLOCK_CLOSERS = re.compile(r"</(?:p|h[1-6])\s*>", re.IGNORECASE)
_BR_TAGS = re.compile(r"<br\s*/?>", re.IGNORECASE)
_NEWLINES = re.compile(r"\r\n|\r|\n")
_WHITESPACE = re.compile(r"\s+")

_LIQUID_RAW = re.compile(r"{%-?\s*raw\s*-?%}(.*?){%-?\s*endraw\s*-?%}", re.DOTALL)
_LIQUID_TAGS = re.compile(r"{%.*?%}|{{.*?}}", re.DOTALL)

# Code spans and fenced blocks keep their straight quotes
_CODE_SEGMENTS = re.compile(r"(?s:^[ \t]*(```|~~~).*?^[ \t]*\1[ \t]*$)|(`{1,2})[^\n]+?\2", re.MULTILINE)
_CODE_PLACEHOLDER = re.compile(r"\x00(\d+)\x00")

_SMART_QUOTE_RULES: list[tuple[re.Pattern[str], str]] = [
    # Apostrophes inside words and before abbreviated decades ('80s)
    (re.compile(r"(?<=\w)'(?=\w)"), "’"),
    (re.compile(r"'(?=\d\ds\b)"), "’"),
    # Openers follow the start of text, whitespace or opening punctuation
    (re.compile(r"(?<![^\s(\[{\-‘])\""), "“"),
    (re.compile(r"(?<![^\s(\[{\-“])'"), "‘"),
    (re.compile(r"\""), "”"),
    (re.compile(r"'"), "’"),
]

_MARKDOWN_RULES: list[tuple[re.Pattern[str], str]] = [
    # Fence lines (the code itself is kept, as a rendered page keeps it)
    (re.compile(r"^[ \t]*(?:```|~~~).*$", re.MULTILINE), ""),
    # Kramdown inline attribute lists
    (re.compile(r"{:[^}\n]*}"), ""),
    # Reference link definitions
    (re.compile(r"^[ ]{0,3}\[[^\]\n]+\]:[ \t]*\S.*$", re.MULTILINE), ""),
    # Horizontal rules and setext heading underlines
    (re.compile(r"^[ ]{0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$", re.MULTILINE), ""),
    (re.compile(r"^[ \t]*=+[ \t]*$", re.MULTILINE), ""),
    # Table separator rows and pipes
    (re.compile(r"^[ \t]*\|?[ \t]*:?-+:?[ \t]*(?:\|[ \t]*:?-+:?[ \t]*)+\|?[ \t]*$", re.MULTILINE), ""),
    (re.compile(r"^[ \t]*\|(.*?)\|?[ \t]*$", re.MULTILINE), r"\1"),
    (re.compile(r"[ \t]+\|[ \t]+"), " "),
    # Images, autolinks, links
    (re.compile(r"!\[[^\]]*\](?:\([^)]*\)|\[[^\]]*\])"), ""),
    (re.compile(r"<((?:https?|ftp|mailto):[^>\s]+)>"), r"\1"),
    (re.compile(r"\[([^\]]+)\]\([^)]*\)"), r"\1"),
    (re.compile(r"\[([^\]]+)\]\[[^\]]*\]"), r"\1"),
    # Headings, block quotes, list markers
    (re.compile(r"^[ ]{0,3}#{1,6}[ \t]*(.*?)[ \t]*#*[ \t]*$", re.MULTILINE), r"\1"),
    (re.compile(r"^(?:[ \t]*>)+[ \t]?", re.MULTILINE), ""),
    (re.compile(r"^[ \t]*(?:[-*+]|\d+[.)])[ \t]+", re.MULTILINE), ""),
    # Inline code, emphasis, strikethrough
    (re.compile(r"(`{1,2})(.+?)\1"), r"\2"),
    (re.compile(r"(\*\*|__)(?=\S)(.+?)(?<=\S)\1"), r"\2"),
    (re.compile(r"\*(?=\S)(.+?)(?<=\S)\*"), r"\1"),
    (re.compile(r"(?<!\w)_(?=\S)(.+?)(?<=\S)_(?!\w)"), r"\1"),
    (re.compile(r"~~(?=\S)(.+?)(?<=\S)~~"), r"\1"),
]


def strip_html(text: str) -> str:
    """Remove script/style blocks, HTML comments and tags.

    Args:
        text: HTML text.

    Returns:
        Text with all markup removed.
    """
    text = _HTML_BLOCKS.sub("", text)
    return _HTML_TAGS.sub("", text)


def newlines_to_spaces(text: str) -> str:
    """Turn line breaks and block closers into single spaces.

    Args:
        text: HTML or plain text.

    Returns:
        Text without line breaks.
    """
    text = _BR_TAGS.sub(" ", text)
    text = _BLOCK_CLOSERS.sub(lambda match: match.group(0) + " ", text)
    return _NEWLINES.sub(" ", text)


def truncate_words(text: str, count: int, ellipsis: str = DEFAULT_ELLIPSIS) -> str:
    """Truncate text to a number of words.

    Text with at most ``count`` words is returned unchanged.

    Args:
        text: Text to truncate.
        count: Maximum number of words to keep (values below 1 keep one word).
        ellipsis: Suffix appended when words were dropped.

    Returns:
        Possibly truncated text.
    """
    count = max(count, 1)
    words = text.split()
    if len(words) <= count:
        return text
    return " ".join(words[:count]) + ellipsis


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs into single spaces and trim the ends."""
    return _WHITESPACE.sub(" ", text).strip()


def strip_liquid(text: str) -> str:
    """Drop Liquid tags and outputs, keeping the body of raw blocks.

    Args:
        text: Source text that may contain Liquid markup.

    Returns:
        Text without Liquid markup.
    """
    parts = _LIQUID_RAW.split(text)
    # re.split puts the captured raw bodies at odd indices
    return "".join(part if index % 2 else _LIQUID_TAGS.sub("", part) for index, part in enumerate(parts))


def smart_quotes(text: str) -> str:
    """Replace straight quotes with typographic ones, as kramdown renders them.

    Quotes inside code spans and fenced code blocks are left alone.

    Args:
        text: Markdown text.

    Returns:
        Text with curly quotes and apostrophes.
    """
    code: list[str] = []

    def hide(match: re.Match[str]) -> str:
        code.append(match.group(0))
        return f"\x00{len(code) - 1}\x00"

    text = _CODE_SEGMENTS.sub(hide, text)
    for pattern, replacement in _SMART_QUOTE_RULES:
        text = pattern.sub(replacement, text)
    return _CODE_PLACEHOLDER.sub(lambda match: code[int(match.group(1))], text)


def markdown_to_text(source: str) -> str:
    """Render Markdown source as plain text.

    Args:
        source: Markdown body (without front matter).

    Returns:
        Plain text on a single line.
    """
    text = smart_quotes(strip_liquid(source))
    for pattern, replacement in _MARKDOWN_RULES:
        text = pattern.sub(replacement, text)
    text = strip_html(newlines_to_spaces(text))
    return collapse_whitespace(text)


def html_to_text(source: str) -> str:
    """Render HTML source as plain text."""
    return collapse_whitespace(strip_html(newlines_to_spaces(strip_liquid(source))))


def titleize_slug(slug: str) -> str:
    """Turn a slug into a title, e.g. ``hello-world`` into ``Hello World``.

    Args:
        slug: Hyphenated slug.

    Returns:
        Title with every word capitalised.
    """
    return " ".join(word.capitalize() for word in slug.split("-") if word)


def slugify(text: str) -> str:
    """Lowercase text and collapse everything but letters and digits into hyphens."""
    return re.sub(r"[\W_]+", "-", text.lower()).strip("-")
