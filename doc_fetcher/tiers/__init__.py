"""
Render tiers for generic webpages.

Order of the fallback chain:
1. HeadlessRenderTier - headless Chrome print to PDF
2. BrowserlessTier / PDFShiftTier - hosted renderers (need credentials)
3. ContentExtractionTier - Markdown instead of PDF
4. GuidanceTier - manual alternatives
"""

from .base import RenderTier, TierOutcome
from .chain import RenderFallbackChain
from .content import ContentExtractionTier
from .guidance import GuidanceTier, find_pdf_links
from .headless import HeadlessRenderTier
from .remote import BrowserlessTier, PDFShiftTier, RemoteRenderTier, remote_tiers

__all__ = [
    'RenderTier',
    'TierOutcome',
    'RenderFallbackChain',
    'HeadlessRenderTier',
    'RemoteRenderTier',
    'BrowserlessTier',
    'PDFShiftTier',
    'remote_tiers',
    'ContentExtractionTier',
    'GuidanceTier',
    'find_pdf_links',
]
