"""Content extraction tier: Markdown instead of PDF when no renderer worked."""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Union

from ..exceptions import DocFetchError
from ..extractor import ContentExtractor
from ..models import Guidance
from .base import RenderTier, TierOutcome

logger = logging.getLogger(__name__)

SUBSTITUTION_MESSAGE = (
    "The page could not be rendered to PDF here; its content was converted "
    "to Markdown, which keeps the structure and stays editable"
)

MARKDOWN_ALTERNATIVES = [
    "Markdown keeps headings, lists, tables and links and can be edited",
    "To get a PDF, convert the Markdown with a Markdown editor such as Typora or Mark Text",
    "Or open the page in a browser and use Print → Save as PDF",
    "Install Chrome locally to enable direct PDF rendering",
]


class ContentExtractionTier(RenderTier):
    """
    Extract the page content as a document.

    Args:
        output_dir: Directory for the document
        extractor: ContentExtractor used for the conversion
        fmt: 'markdown' or 'text'
        enabled: False skips this tier
    """

    name = "content"

    def __init__(
        self,
        output_dir: Union[str, Path],
        extractor: ContentExtractor,
        fmt: str = 'markdown',
        enabled: bool = True,
    ):
        self.output_dir = Path(output_dir)
        self.extractor = extractor
        self.fmt = fmt
        self.enabled = enabled

    def is_available(self) -> bool:
        return self.enabled

    def attempt(self, url: str) -> TierOutcome:
        try:
            result = self.extractor.convert(url, self.output_dir, self.fmt)
        except DocFetchError as e:
            logger.warning(f"Content extraction failed for {url}: {e}")
            return TierOutcome.decline(self.name, str(e))

        return TierOutcome.accept(self.name, replace(
            result,
            tier=self.name,
            message=SUBSTITUTION_MESSAGE,
            guidance=Guidance(alternatives=list(MARKDOWN_ALTERNATIVES)),
        ))
