"""
Content Extraction Engine

Fetches a webpage and turns its main content into a Markdown (or plain
text) document. Used when a page cannot be rendered to PDF.

Steps:
1. Fetch raw bytes and decode them (charset from Content-Type, UTF-8 default)
2. Read metadata (title, description, author, publish date, keywords)
3. Pick the content root from a prioritized list of selectors
4. Strip boilerplate (navigation, ads, comment sections, ...) and empty elements
5. Convert to Markdown with markdownify, or collapse to plain text
"""

import codecs
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

import requests
from bs4 import BeautifulSoup, Tag
from markdownify import ATX, MarkdownConverter

from .exceptions import FetchFailed, ParseFailed, UnsupportedFormat, WriteFailed
from .models import ConversionResult, ResultKind
from .utils import host_of, sanitize_title, stamped_filename

logger = logging.getLogger(__name__)

WECHAT_HOST = 'mp.weixin.qq.com'

# Tried in order; the first one with enough text becomes the content root
CONTENT_SELECTORS = [
    # WeChat articles
    '#js_content',
    '.rich_media_content',
    '#img-content',
    # Generic
    'article',
    '[role="main"]',
    '.main-content',
    '.content',
    '.post-content',
    '.entry-content',
    '.article-content',
    '.page-content',
    'main',
    '#content',
    '#main',
    '.container .content',
    'body',
]

BOILERPLATE_SELECTORS = [
    'script',
    'style',
    'nav',
    'header',
    'footer',
    '.navigation',
    '.nav',
    '.menu',
    '.sidebar',
    '.ads',
    '.advertisement',
    '.social-share',
    '.comments',
    '.comment',
    '.related-posts',
    '.popup',
    '.modal',
    '.cookie-notice',
    '[class*="ad-"]',
    '[id*="ad-"]',
]

WECHAT_BOILERPLATE_SELECTORS = [
    '.rich_media_tool',
    '.rich_media_meta',
    '.rich_media_extra',
    '.rich_media_area_primary',
    '.rich_media_area_extra',
    '.profile_container',
    '.qr_code_pc',
    '.reward_qrcode',
    '.mp_profile_iframe_wrp',
    '#js_pc_qr_code',
    '.weui-loadmore',
    '.js_jump_icon',
    '.js_share_container',
    '[data-brushtype="tools"]',
]

# Elements that are meaningful without content; table cells keep rows aligned
KEEP_EMPTY = {'img', 'br', 'hr', 'input', 'td', 'th'}

FORMAT_ALIASES = {
    'markdown': 'markdown',
    'md': 'markdown',
    'text': 'text',
    'txt': 'text',
}
EXTENSIONS = {'markdown': 'md', 'text': 'txt'}

_CHARSET_RE = re.compile(r'charset=([^;]+)', re.IGNORECASE)
_LANGUAGE_CLASS_RE = re.compile(r'language-(\w+)')


def normalize_format(fmt: str) -> str:
    """
    Canonical format name ('markdown' or 'text').

    Raises:
        UnsupportedFormat: for anything else
    """
    canonical = FORMAT_ALIASES.get((fmt or '').strip().lower())
    if canonical is None:
        raise UnsupportedFormat(f"Unsupported format: {fmt} (expected markdown or text)")
    return canonical


def is_wechat_article(url: str) -> bool:
    return host_of(url) == WECHAT_HOST


def code_language(el: Tag) -> str:
    """Language of a ``pre`` block from data-language or a language-xxx class."""
    candidates = [el]
    code = el.find('code')
    if code is not None:
        candidates.append(code)
    for node in candidates:
        language = node.get('data-language')
        if language:
            return language
        match = _LANGUAGE_CLASS_RE.search(' '.join(node.get('class', [])))
        if match:
            return match.group(1)
    return ''


class DocumentMarkdownConverter(MarkdownConverter):
    """
    markdownify converter with ATX headings, ``-`` bullets and fenced code.

    Images without a ``src`` are dropped; tables are kept as blocks
    separated from the surrounding text.
    """

    def __init__(self, **options):
        options.setdefault('heading_style', ATX)
        options.setdefault('bullets', '-')
        options.setdefault('code_language_callback', code_language)
        # First row becomes the header instead of an inserted empty one
        options.setdefault('table_infer_header', True)
        super().__init__(**options)

    def convert_img(self, el, text, *args, **kwargs):
        if not el.get('src'):
            return ''
        return super().convert_img(el, text, *args, **kwargs)

    def convert_table(self, el, text, *args, **kwargs):
        table = super().convert_table(el, text, *args, **kwargs)
        return '\n\n' + table.strip('\n') + '\n\n'


@dataclass
class PageMetadata:
    """Metadata read from a page before cleaning."""
    title: str = ''
    description: str = ''
    author: str = ''
    published: str = ''
    keywords: List[str] = field(default_factory=list)


@dataclass
class ExtractedDocument:
    """A page rendered as Markdown or plain text."""
    url: str
    fmt: str
    content: str
    file_name: str
    metadata: PageMetadata

    @property
    def title(self) -> str:
        return self.metadata.title

    @property
    def content_bytes(self) -> int:
        return len(self.content.encode('utf-8'))


class ContentExtractor:
    """
    Convert webpages to Markdown or plain text documents.

    Args:
        session: requests session used to fetch pages
        timeout: Request timeout in seconds
        min_content_length: Characters of text a selector match needs to
                            be taken as the content root
    """

    def __init__(self, session: requests.Session, timeout: int = 30, min_content_length: int = 100):
        self.session = session
        self.timeout = timeout
        self.min_content_length = min_content_length

    def fetch_html(self, url: str) -> str:
        """
        Fetch a page and decode it.

        Raises:
            FetchFailed: network error or HTTP error status
        """
        headers = {}
        wechat = is_wechat_article(url)
        if wechat:
            headers.update({
                'Referer': 'https://mp.weixin.qq.com/',
                'Sec-Fetch-Dest': 'document',
                'Sec-Fetch-Mode': 'navigate',
                'Sec-Fetch-Site': 'same-origin',
            })

        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout, allow_redirects=True)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchFailed(f"Could not fetch {url}: {e}") from e

        if wechat:
            charset = 'utf-8'
        else:
            charset = self._charset_from(response.headers.get('Content-Type', ''))
        return self._decode(response.content, charset)

    @staticmethod
    def _charset_from(content_type: str) -> str:
        match = _CHARSET_RE.search(content_type or '')
        if not match:
            return 'utf-8'
        return match.group(1).strip().strip('"\'').lower() or 'utf-8'

    @staticmethod
    def _decode(raw: bytes, charset: str) -> str:
        try:
            codecs.lookup(charset)
            return raw.decode(charset)
        except (LookupError, UnicodeDecodeError):
            logger.debug(f"Could not decode as {charset}, falling back to UTF-8")
            return raw.decode('utf-8', errors='replace')

    def extract(self, url: str, fmt: str = 'markdown') -> ExtractedDocument:
        """
        Fetch ``url`` and extract its main content.

        Raises:
            UnsupportedFormat: unknown ``fmt``
            FetchFailed: the page could not be fetched
            ParseFailed: no content root found
        """
        fmt = normalize_format(fmt)
        logger.info(f"Extracting content from {url} as {fmt}")
        return self.html_to_document(self.fetch_html(url), url, fmt)

    def html_to_document(self, html: str, url: str, fmt: str = 'markdown') -> ExtractedDocument:
        """
        Convert page HTML into a document. No network access.

        Args:
            html: Page source
            url: Page URL (platform detection, source line)
            fmt: 'markdown'/'md' or 'text'/'txt'
        """
        fmt = normalize_format(fmt)
        wechat = is_wechat_article(url)
        soup = BeautifulSoup(html or '', 'html.parser')

        # Metadata first: cleaning removes some of its sources
        metadata = self.extract_metadata(soup)
        root = self.find_content_root(soup)
        self.clean(root, wechat=wechat)

        if fmt == 'text':
            content = ' '.join(root.get_text(' ').split())
        else:
            body = DocumentMarkdownConverter().convert(str(root)).strip()
            content = self.assemble_markdown(metadata, url, body)

        file_name = stamped_filename(
            sanitize_title(metadata.title or 'webpage', replace_spaces=True, fallback='webpage'),
            EXTENSIONS[fmt],
        )
        return ExtractedDocument(url=url, fmt=fmt, content=content, file_name=file_name, metadata=metadata)

    @staticmethod
    def _meta(soup: BeautifulSoup, **attrs) -> str:
        tag = soup.find('meta', attrs=attrs)
        if tag is None:
            return ''
        return (tag.get('content') or '').strip()

    def extract_metadata(self, soup: BeautifulSoup) -> PageMetadata:
        """Read title, description, author, publish date and keywords."""
        title = soup.title.get_text().strip() if soup.title else ''
        if not title:
            h1 = soup.find('h1')
            title = h1.get_text().strip() if h1 else ''
        if not title:
            title = self._meta(soup, property='og:title')

        description = self._meta(soup, name='description') or self._meta(soup, property='og:description')

        author = self._meta(soup, name='author') or self._meta(soup, property='article:author')
        if not author:
            author_element = soup.select_one('.author')
            author = author_element.get_text().strip() if author_element else ''

        published = self._meta(soup, property='article:published_time') or self._meta(soup, name='date')
        if not published:
            time_element = soup.find('time', attrs={'datetime': True})
            published = time_element['datetime'].strip() if time_element else ''

        keywords_content = self._meta(soup, name='keywords')
        keywords = [k.strip() for k in keywords_content.split(',')] if keywords_content else []

        return PageMetadata(
            title=' '.join(title.split()),
            description=description,
            author=' '.join(author.split()),
            published=published,
            keywords=keywords,
        )

    def find_content_root(self, soup: BeautifulSoup) -> Tag:
        """
        First selector match with more than ``min_content_length`` characters
        of text, else ``body``.

        Raises:
            ParseFailed: the page has neither a candidate nor a body
        """
        for selector in CONTENT_SELECTORS:
            element = soup.select_one(selector)
            if element is not None and len(element.get_text().strip()) > self.min_content_length:
                logger.debug(f"Content root: {selector}")
                return element

        if soup.body is None:
            raise ParseFailed("No content root found: page has no body")
        return soup.body

    def clean(self, root: Tag, wechat: bool = False) -> Tag:
        """Remove boilerplate, then empty elements until nothing changes."""
        selectors = BOILERPLATE_SELECTORS + (WECHAT_BOILERPLATE_SELECTORS if wechat else [])
        for selector in selectors:
            for element in root.select(selector):
                # Nested matches go away with their ancestor
                if not element.decomposed:
                    element.decompose()

        removed = True
        while removed:
            removed = False
            for element in root.find_all(True):
                if element.name in KEEP_EMPTY:
                    continue
                if element.find(True) is None and not element.get_text().strip():
                    element.decompose()
                    removed = True
        return root

    @staticmethod
    def assemble_markdown(metadata: PageMetadata, url: str, body: str) -> str:
        """Title heading, optional front matter and description, then the body."""
        parts = []
        if metadata.title:
            parts.append(f"# {metadata.title}\n\n")

        if metadata.author or metadata.published:
            parts.append('---\n')
            if metadata.author:
                parts.append(f"Author: {metadata.author}\n")
            if metadata.published:
                parts.append(f"Published: {metadata.published}\n")
            parts.append(f"Source: {url}\n")
            parts.append('---\n\n')

        if metadata.description:
            parts.append(f"> {metadata.description}\n\n")

        parts.append(body)
        return ''.join(parts)

    def convert(
        self,
        url: str,
        output_dir: Union[str, Path],
        fmt: str = 'markdown',
    ) -> ConversionResult:
        """
        Extract ``url`` and write the document into ``output_dir``.

        Returns:
            ConversionResult of kind markdown or text with inline content

        Raises:
            UnsupportedFormat, FetchFailed, ParseFailed, WriteFailed
        """
        document = self.extract(url, fmt)
        output_path = Path(output_dir) / document.file_name
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(document.content, encoding='utf-8')
        except OSError as e:
            raise WriteFailed(f"Could not write {output_path}: {e}") from e

        logger.info(f"✓ Extracted {document.content_bytes} bytes: {url} → {output_path.name}")
        return ConversionResult(
            success=True,
            url=url,
            kind=ResultKind.MARKDOWN if document.fmt == 'markdown' else ResultKind.TEXT,
            title=document.title or None,
            file_path=str(output_path),
            file_name=output_path.name,
            content=document.content,
            content_bytes=document.content_bytes,
        )
