"""
Remote render tiers.

Hosted rendering services that take a URL and return a PDF. A service is
only tried when its credential is configured (config file or environment).
"""

import logging
from abc import abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import requests

from ..binary_fetcher import BinaryFetcher
from ..config import RemoteRenderSettings
from ..exceptions import FetchFailed, WriteFailed
from ..models import ConversionResult, ResultKind
from ..utils import filename_from_url, host_of, stamped_filename
from .base import RenderTier, TierOutcome

logger = logging.getLogger(__name__)


class RemoteRenderTier(RenderTier):
    """
    Base class for POST-a-URL-get-a-PDF services.

    Subclasses provide the endpoint, credential and request payload.

    Args:
        output_dir: Directory for the PDF
        session: requests session
        fetcher: BinaryFetcher used to stream the response to disk
        timeout: Request timeout in seconds
    """

    name = "remote"

    def __init__(
        self,
        output_dir: Union[str, Path],
        session: requests.Session,
        fetcher: BinaryFetcher,
        credential: Optional[str],
        endpoint: str,
        timeout: int = 60,
    ):
        self.output_dir = Path(output_dir)
        self.session = session
        self.fetcher = fetcher
        self.credential = credential
        self.endpoint = endpoint
        self.timeout = timeout

    def is_available(self) -> bool:
        return bool(self.credential)

    @abstractmethod
    def build_request(self, url: str) -> Dict[str, Any]:
        """Keyword arguments for ``session.post``."""
        pass

    def target_name(self, url: str) -> str:
        """``{host}_{last-segment}_{date}.pdf``; no page title is known here."""
        stem = filename_from_url(url, default='index')[:-len('.pdf')]
        return stamped_filename(f"{host_of(url) or 'webpage'}_{stem}", 'pdf')

    def attempt(self, url: str) -> TierOutcome:
        logger.info(f"Rendering {url} with {self.name}")
        try:
            response = self.session.post(
                self.endpoint,
                timeout=self.timeout,
                stream=True,
                **self.build_request(url),
            )
        except requests.RequestException as e:
            return TierOutcome.decline(self.name, f"{self.name} request failed: {e}")

        local_path = self.output_dir / self.target_name(url)
        try:
            if response.status_code != 200:
                return TierOutcome.decline(self.name, f"{self.name} returned HTTP {response.status_code}")
            self.fetcher.write_response(response, local_path, url)
        except (FetchFailed, WriteFailed) as e:
            return TierOutcome.decline(self.name, str(e))
        finally:
            response.close()

        logger.info(f"✓ Rendered {url} via {self.name} → {local_path.name}")
        return TierOutcome.accept(self.name, ConversionResult(
            success=True,
            url=url,
            kind=ResultKind.WEBPAGE_PDF,
            title=host_of(url) or url,
            file_path=str(local_path),
            file_name=local_path.name,
            content_bytes=local_path.stat().st_size,
            tier=self.name,
        ))


class BrowserlessTier(RemoteRenderTier):
    """Browserless ``/pdf`` endpoint, authenticated with a token query parameter."""

    name = "browserless"

    def build_request(self, url: str) -> Dict[str, Any]:
        return {
            'params': {'token': self.credential},
            'json': {
                'url': url,
                'options': {'format': 'A4', 'printBackground': True},
            },
        }


class PDFShiftTier(RemoteRenderTier):
    """PDFShift v3 conversion endpoint, authenticated with an API key header."""

    name = "pdfshift"

    def build_request(self, url: str) -> Dict[str, Any]:
        return {
            'headers': {'X-API-Key': self.credential},
            'json': {'source': url, 'format': 'A4'},
        }


def remote_tiers(
    output_dir: Union[str, Path],
    session: requests.Session,
    fetcher: BinaryFetcher,
    settings: RemoteRenderSettings,
    timeout: int = 60,
) -> List[RemoteRenderTier]:
    """Remote tiers in the order they are tried."""
    return [
        BrowserlessTier(output_dir, session, fetcher, settings.browserless_token,
                        settings.browserless_url, timeout),
        PDFShiftTier(output_dir, session, fetcher, settings.pdfshift_api_key,
                     settings.pdfshift_url, timeout),
    ]
