"""
Boundary helpers for serving artifacts to a client.

Framework-neutral pieces of two download endpoints:

- Binary retrieval proxy: stream a remote PDF back with attachment headers
- Raw content retrieval: turn inline content (possibly URL- or
  base64-encoded) into a text attachment

No HTTP server lives here; a web framework wires these into routes.
"""

import base64
import binascii
import logging
import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Dict, Iterator, Optional
from urllib.parse import quote, unquote, urlparse

import requests

from .binary_fetcher import CHUNK_SIZE
from .exceptions import FetchFailed

logger = logging.getLogger(__name__)

_NEW_ID_RE = re.compile(r'(\d{4}\.\d{4,5})')
# A '%' that does not start a valid escape
_BAD_ESCAPE_RE = re.compile(r'%(?![0-9A-Fa-f]{2})')
_NON_BASE64_RE = re.compile(r'[^A-Za-z0-9+/=]')
# Control characters other than tab and line breaks
_CONTROL_RE = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')

CONTENT_TYPES = {
    '.md': 'text/markdown',
    '.txt': 'text/plain',
    '.html': 'text/html',
}


def proxy_download_name(url: str) -> str:
    """
    Attachment filename for a proxied PDF.

    ``arxiv_{id}.pdf`` when the last URL segment holds a new-style arXiv
    id, otherwise the last segment itself.

    Examples:
        >>> proxy_download_name('https://arxiv.org/pdf/1706.03762.pdf')
        'arxiv_1706.03762.pdf'
        >>> proxy_download_name('https://example.org/files/report.pdf')
        'report.pdf'
    """
    segment = PurePosixPath(urlparse(url).path).name or 'document.pdf'
    match = _NEW_ID_RE.search(segment)
    if match:
        return f"arxiv_{match.group(1)}.pdf"
    return segment


@dataclass
class ProxyResponse:
    """Headers plus a chunk iterator for a streamed PDF."""
    filename: str
    headers: Dict[str, str]
    response: requests.Response
    status_code: int = 200

    def iter_chunks(self, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
        """Body chunks; the upstream connection is closed when exhausted."""
        try:
            for chunk in self.response.iter_content(chunk_size=chunk_size):
                if chunk:
                    yield chunk
        finally:
            self.close()

    def close(self):
        self.response.close()


def open_binary_proxy(url: str, session: requests.Session, timeout: int = 60) -> ProxyResponse:
    """
    Open a streamed GET for ``url`` and prepare attachment headers.

    Raises:
        FetchFailed: missing URL, network error or HTTP error status
    """
    if not url:
        raise FetchFailed("Missing PDF URL")

    logger.info(f"Proxying PDF download: {url}")
    try:
        response = session.get(url, stream=True, timeout=timeout, allow_redirects=True)
    except requests.RequestException as e:
        raise FetchFailed(f"Download failed: {e}") from e

    if response.status_code != 200:
        response.close()
        raise FetchFailed(f"Download failed: HTTP {response.status_code} for {url}")

    filename = proxy_download_name(url)
    return ProxyResponse(
        filename=filename,
        headers={
            'Content-Type': 'application/pdf',
            'Content-Disposition': f'attachment; filename="{filename}"',
            'Cache-Control': 'no-cache',
        },
        response=response,
    )


@dataclass
class ContentDownload:
    """Decoded inline content with the headers to send it as an attachment."""
    body: str
    filename: str
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def content_type(self) -> str:
        return self.headers.get('Content-Type', 'text/plain')


def content_type_for(filename: str) -> str:
    """Content type from the filename extension, ``text/plain`` by default."""
    return CONTENT_TYPES.get(PurePosixPath(filename.lower()).suffix, 'text/plain')


def decode_content(content: str) -> str:
    """
    Decode content passed through a query string.

    Tries URL decoding first, then base64 (UTF-8 payload, ignoring
    characters outside the base64 alphabet), and finally returns the
    content unchanged.
    """
    decoded = _url_decode(content)
    if decoded is not None:
        return decoded

    decoded = _base64_decode(content)
    if decoded is not None:
        return decoded

    logger.debug("Content is neither URL- nor base64-encoded, using it as is")
    return content


def _url_decode(content: str) -> Optional[str]:
    if _BAD_ESCAPE_RE.search(content):
        return None
    try:
        return unquote(content, errors='strict')
    except UnicodeDecodeError:
        return None


def _base64_decode(content: str) -> Optional[str]:
    """Base64 payload with characters outside the alphabet dropped, or None."""
    payload = _NON_BASE64_RE.sub('', content)
    if not payload:
        return None
    try:
        text = base64.b64decode(payload, validate=True).decode('utf-8')
    except (binascii.Error, ValueError):
        return None
    if _CONTROL_RE.search(text):
        return None
    return text


def prepare_content_download(content: str, filename: str) -> ContentDownload:
    """
    Build an attachment for inline content.

    Args:
        content: Content as received (URL-encoded, base64 or raw)
        filename: Attachment name; its extension picks the content type

    Raises:
        ValueError: content or filename missing
    """
    if not content or not filename:
        raise ValueError("Both content and filename are required")

    return ContentDownload(
        body=decode_content(content),
        filename=filename,
        headers={
            'Content-Type': content_type_for(filename),
            'Content-Disposition': f'attachment; filename="{quote(filename, safe="")}"',
            'Cache-Control': 'no-cache',
        },
    )
