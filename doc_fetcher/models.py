"""
Data model shared by every branch of the conversion pipeline.

All objects here are request-scoped: they are created while one URL (or one
batch) is processed and discarded afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ResultKind(Enum):
    """What a ConversionResult carries."""
    DIRECT_PDF = "direct_pdf"
    PREPRINT_PDF = "preprint_pdf"
    PREPRINT_LISTING = "preprint_listing"
    WEBPAGE_PDF = "webpage_pdf"
    MARKDOWN = "markdown"
    TEXT = "text"
    WEBPAGE_GUIDANCE = "webpage_guidance"
    ERROR = "error"


class ItemState(Enum):
    """Processing state of one batch item."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ConversionRequest:
    """One URL to convert."""
    url: str


@dataclass(frozen=True)
class PreprintIdentity:
    """Paper identifier and the PDF URL derived from it."""
    id: str
    canonical_pdf_url: str


@dataclass(frozen=True)
class ListingEntry:
    """One paper found on a listing or search page."""
    url: str
    pdf_url: str
    id: str
    title: str

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "pdfUrl": self.pdf_url, "id": self.id, "title": self.title}


@dataclass(frozen=True)
class PdfLink:
    """A link on a webpage that looks like it points at a PDF."""
    url: str
    text: str

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "text": self.text}


@dataclass
class Guidance:
    """Manual alternatives offered when a page could not be converted."""
    discovered_pdf_links: List[PdfLink] = field(default_factory=list)
    alternatives: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "discoveredPdfLinks": [link.to_dict() for link in self.discovered_pdf_links],
            "alternatives": list(self.alternatives),
        }


@dataclass
class ConversionResult:
    """
    Normalized result of converting one URL.

    Either ``success`` is True and the payload matching ``kind`` is filled in,
    or ``success`` is False and ``error`` holds a human-readable message.
    ``kind`` is always set; failures use ResultKind.ERROR unless a more
    specific kind is known.
    """

    success: bool
    url: str
    kind: ResultKind = ResultKind.ERROR
    title: Optional[str] = None
    file_path: Optional[str] = None
    file_name: Optional[str] = None
    content_bytes: Optional[int] = None
    content: Optional[str] = None
    items: Optional[List[ListingEntry]] = None
    guidance: Optional[Guidance] = None
    identifier: Optional[str] = None
    pdf_url: Optional[str] = None
    tier: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None
    suggestion: Optional[str] = None

    def __post_init__(self):
        if not self.success and not self.error:
            self.error = "Unknown error"

    @classmethod
    def failure(
        cls,
        url: str,
        error: str,
        kind: ResultKind = ResultKind.ERROR,
        suggestion: Optional[str] = None,
    ) -> "ConversionResult":
        """Build a failed result."""
        return cls(success=False, url=url, kind=kind, error=error or "Unknown error", suggestion=suggestion)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON wire shape, leaving out absent fields."""
        data: Dict[str, Any] = {
            "success": self.success,
            "kind": self.kind.value,
            "url": self.url,
        }
        optional = {
            "title": self.title,
            "filePath": self.file_path,
            "fileName": self.file_name,
            "contentBytes": self.content_bytes,
            "content": self.content,
            "identifier": self.identifier,
            "pdfUrl": self.pdf_url,
            "tier": self.tier,
            "message": self.message,
            "error": self.error,
            "suggestion": self.suggestion,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        if self.items is not None:
            data["items"] = [entry.to_dict() for entry in self.items]
        if self.guidance is not None:
            data["guidance"] = self.guidance.to_dict()
        return data

    def __repr__(self):
        if self.success:
            target = self.file_name or self.title or self.url
            return f"✓ {self.kind.value}: {target}"
        return f"✗ {self.url} ({self.error})"


class EventType(Enum):
    """Batch event types, in the order they are emitted for one item."""
    PROGRESS = "progress"
    RESULT = "result"
    COMPLETE = "complete"


@dataclass(frozen=True)
class BatchEvent:
    """
    One message of a streamed batch.

    progress: current, total, url
    result:   current, total, index, result
    complete: current == total, results, success_count
    """

    type: EventType
    current: int
    total: int
    url: Optional[str] = None
    index: Optional[int] = None
    result: Optional[ConversionResult] = None
    results: Optional[List[ConversionResult]] = None
    success_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type.value, "current": self.current, "total": self.total}
        if self.type is EventType.PROGRESS:
            data["url"] = self.url
            data["message"] = f"Processing {self.current}/{self.total}: {self.url}"
        elif self.type is EventType.RESULT:
            data["index"] = self.index
            data["result"] = self.result.to_dict() if self.result else None
        else:
            data["successCount"] = self.success_count
            data["success"] = bool(self.success_count)
            data["results"] = [r.to_dict() for r in (self.results or [])]
        return data


@dataclass
class BatchSummary:
    """Buffered outcome of a whole batch."""
    results: List[ConversionResult]
    success_count: int

    @property
    def total(self) -> int:
        return len(self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success_count > 0,
            "total": self.total,
            "successCount": self.success_count,
            "results": [r.to_dict() for r in self.results],
        }
