"""Utility functions for doc_fetcher."""

import re
from datetime import date
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import unquote, urlparse

# Characters that are not allowed in filenames on at least one common platform
ILLEGAL_FILENAME_CHARS = '<>:"/\\|?*'
MAX_TITLE_LENGTH = 100

_ILLEGAL_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_WHITESPACE_RE = re.compile(r'\s+')


def sanitize_title(
    title: str,
    max_length: int = MAX_TITLE_LENGTH,
    replace_spaces: bool = False,
    fallback: str = "untitled",
) -> str:
    """
    Turn a document title into a safe filename stem.

    Args:
        title: Raw title (may contain newlines, slashes, ...)
        max_length: Maximum length of the result
        replace_spaces: Replace spaces with underscores
        fallback: Returned when nothing usable is left

    Returns:
        Sanitized title of at most ``max_length`` characters

    Examples:
        >>> sanitize_title('Attention Is All You Need')
        'Attention Is All You Need'

        >>> sanitize_title('a/b: c?', replace_spaces=True)
        'ab_c'
    """
    cleaned = _ILLEGAL_RE.sub('', title or '')
    cleaned = _WHITESPACE_RE.sub(' ', cleaned).strip()
    if replace_spaces:
        cleaned = cleaned.replace(' ', '_')
    cleaned = cleaned[:max_length].strip(' ._')
    return cleaned or fallback


def date_stamp(today: Optional[date] = None) -> str:
    """ISO date (YYYY-MM-DD) used to keep artifact names from colliding across days."""
    return (today or date.today()).isoformat()


def stamped_filename(stem: str, extension: str, today: Optional[date] = None) -> str:
    """
    Build ``{stem}_{YYYY-MM-DD}.{extension}``.

    Examples:
        >>> stamped_filename('paper', 'pdf', date(2024, 1, 2))
        'paper_2024-01-02.pdf'
    """
    return f"{stem}_{date_stamp(today)}.{extension.lstrip('.')}"


def filename_from_url(url: str, default: str = "document") -> str:
    """
    Filename derived from the last path segment of a URL, always ending in .pdf.

    Examples:
        >>> filename_from_url('https://example.org/files/report.pdf')
        'report.pdf'

        >>> filename_from_url('https://example.org/download/12345')
        '12345.pdf'
    """
    segment = PurePosixPath(unquote(urlparse(url).path)).name
    segment = _ILLEGAL_RE.sub('', segment).strip() or default
    if not segment.lower().endswith('.pdf'):
        segment += '.pdf'
    return segment


def is_http_url(url: str) -> bool:
    """True for absolute http(s) URLs with a host."""
    if not url or not isinstance(url, str):
        return False
    parsed = urlparse(url.strip())
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def host_of(url: str) -> str:
    """Lower-cased host name without a leading ``www.``."""
    host = (urlparse(url).hostname or '').lower()
    return host[4:] if host.startswith('www.') else host
