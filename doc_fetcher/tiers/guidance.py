"""
Guidance tier: the last resort.

When nothing could be converted, describe the page and list what the user
can do by hand, including any PDF links found on it.
"""

import logging
from typing import List
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from ..models import ConversionResult, Guidance, PdfLink, ResultKind
from .base import RenderTier, TierOutcome

logger = logging.getLogger(__name__)

GUIDANCE_MESSAGE = "The page could not be converted automatically. Try one of the following:"
GUIDANCE_SUGGESTION = "Check that the URL is correct, or open it directly in a browser"


def find_pdf_links(html: str, base_url: str) -> List[PdfLink]:
    """
    Anchors whose href mentions "pdf", as absolute URLs without duplicates.

    Args:
        html: Page source
        base_url: Page URL used to resolve relative links

    Returns:
        List of PdfLink in document order
    """
    soup = BeautifulSoup(html or '', 'html.parser')
    links: List[PdfLink] = []
    seen = set()
    for anchor in soup.select('a[href*="pdf"]'):
        full_url = urljoin(base_url, anchor['href'].strip())
        if full_url in seen:
            continue
        seen.add(full_url)
        text = ' '.join(anchor.get_text().split())
        links.append(PdfLink(url=full_url, text=text or 'PDF file'))
    return links


def manual_alternatives(pdf_link_count: int) -> List[str]:
    alternatives = [
        "1. Open the page in a browser and use Print → Save as PDF",
        "2. Use an online converter such as web2pdfconvert.com or save-as-pdf.com",
        "3. Use a browser extension such as Save as PDF or Print Friendly",
    ]
    if pdf_link_count > 0:
        alternatives.append(f"4. Download the PDF files linked from the page directly ({pdf_link_count} found)")
    return alternatives


class GuidanceTier(RenderTier):
    """
    Analyse the page and return manual alternatives.

    Succeeds whenever the page can be fetched; declines with a failed
    result only when it cannot.
    """

    name = "guidance"

    def __init__(self, session: requests.Session, timeout: int = 30):
        self.session = session
        self.timeout = timeout

    def attempt(self, url: str) -> TierOutcome:
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"✗ Could not reach {url}: {e}")
            return TierOutcome.decline(self.name, str(e), ConversionResult.failure(
                url,
                f"Could not access the webpage: {e}",
                suggestion=GUIDANCE_SUGGESTION,
            ))

        html = response.text
        soup = BeautifulSoup(html, 'html.parser')
        title = (soup.title.get_text().strip() if soup.title else '') or 'Untitled'
        pdf_links = find_pdf_links(html, url)

        logger.info(f"Page analysed: {title} ({len(pdf_links)} PDF links)")
        return TierOutcome.accept(self.name, ConversionResult(
            success=True,
            url=url,
            kind=ResultKind.WEBPAGE_GUIDANCE,
            title=title,
            message=GUIDANCE_MESSAGE,
            guidance=Guidance(
                discovered_pdf_links=pdf_links,
                alternatives=manual_alternatives(len(pdf_links)),
            ),
            tier=self.name,
        ))
