"""
doc_fetcher - Convert document URLs into local PDFs and Markdown

Resolves arbitrary document URLs using:
- URL classification (direct PDF, arXiv paper, arXiv listing, webpage)
- arXiv PDF download with API title lookup
- arXiv listing and search page extraction
- Webpage fallback chain: headless Chrome, remote renderers,
  Markdown extraction, manual guidance
- Sequential batch processing with progress events
- Download helpers for proxying PDFs and serving inline content
"""

from .version import __version__, __author__
from .batch import BatchSequencer, format_event
from .classifier import UrlCategory, classify
from .config import FetcherConfig, load_config
from .exceptions import (
    DocFetchError,
    FetchFailed,
    IdentifierNotFound,
    ParseFailed,
    UnsupportedFormat,
    WriteFailed,
)
from .models import (
    BatchEvent,
    BatchSummary,
    ConversionRequest,
    ConversionResult,
    EventType,
    ItemState,
    ListingEntry,
    ResultKind,
)
from .orchestrator import Converter
from .proxy import ContentDownload, ProxyResponse, open_binary_proxy, prepare_content_download

__all__ = [
    "__version__",
    "__author__",
    "Converter",
    "BatchSequencer",
    "format_event",
    "classify",
    "UrlCategory",
    "FetcherConfig",
    "load_config",
    "open_binary_proxy",
    "prepare_content_download",
    "ProxyResponse",
    "ContentDownload",
    "ConversionRequest",
    "ConversionResult",
    "ResultKind",
    "ListingEntry",
    "BatchEvent",
    "BatchSummary",
    "EventType",
    "ItemState",
    "DocFetchError",
    "IdentifierNotFound",
    "FetchFailed",
    "ParseFailed",
    "WriteFailed",
    "UnsupportedFormat",
]
