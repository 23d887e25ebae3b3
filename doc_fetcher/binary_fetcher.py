"""
Binary Fetcher - stream a remote binary (usually a PDF) to disk.

The response body is written chunk by chunk, never held in memory as a
whole. The operation only counts as done once the file has been flushed
and closed.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import requests

from .exceptions import FetchFailed, WriteFailed
from .models import ConversionResult, ResultKind
from .utils import filename_from_url, stamped_filename

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


class BinaryFetcher:
    """
    Download binaries with a shared session.

    Args:
        session: requests session (browser headers, retries)
        timeout: Read timeout in seconds; generous because PDFs can be
                 several megabytes
        connect_timeout: Connect timeout in seconds
    """

    def __init__(self, session: requests.Session, timeout: int = 60, connect_timeout: int = 30):
        self.session = session
        self.timeout = timeout
        self.connect_timeout = min(connect_timeout, timeout)

    def target_name(self, url: str) -> str:
        """
        Date-stamped filename for a URL: ``{last-segment}_{YYYY-MM-DD}.pdf``.

        The stamp keeps a later download of the same URL from silently
        overwriting an earlier one.
        """
        name = filename_from_url(url)
        return stamped_filename(name[:-len('.pdf')], 'pdf')

    def fetch(
        self,
        url: str,
        output_dir: Union[str, Path],
        file_name: Optional[str] = None,
    ) -> Path:
        """
        Stream ``url`` into ``output_dir``.

        Args:
            url: Direct resource URL
            output_dir: Target directory (created if missing)
            file_name: Explicit filename; derived from the URL if omitted

        Returns:
            Path of the written file

        Raises:
            FetchFailed: Network error, timeout or non-200 response
            WriteFailed: The file could not be written
        """
        output_dir = Path(output_dir)
        local_path = output_dir / (file_name or self.target_name(url))

        try:
            response = self.session.get(
                url,
                timeout=(self.connect_timeout, self.timeout),
                allow_redirects=True,
                stream=True,
            )
        except requests.Timeout as e:
            raise FetchFailed(f"Timeout after {self.timeout}s: {url}") from e
        except requests.RequestException as e:
            raise FetchFailed(f"Request failed for {url}: {e}") from e

        try:
            if response.status_code != 200:
                raise FetchFailed(f"HTTP {response.status_code} for {url}")
            self.write_response(response, local_path, url)
        finally:
            response.close()

        logger.info(f"✓ Downloaded: {url} → {local_path.name}")
        return local_path

    def write_response(self, response: requests.Response, local_path: Path, url: str) -> None:
        """
        Stream an open response body into ``local_path``.

        Raises:
            FetchFailed: body interrupted or empty (partial file removed)
            WriteFailed: the file could not be written (partial file removed)
        """
        first_chunk = True
        try:
            local_path.parent.mkdir(parents=True, exist_ok=True)
            with open(local_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if not chunk:  # keep-alive
                        continue
                    if first_chunk:
                        if not chunk.lstrip().startswith(b"%PDF"):
                            logger.warning(f"Response for {url} does not start with %PDF, saving anyway")
                        first_chunk = False
                    f.write(chunk)
                f.flush()
        except requests.RequestException as e:
            # RequestException subclasses OSError, so it has to be caught first
            local_path.unlink(missing_ok=True)
            raise FetchFailed(f"Download interrupted for {url}: {e}") from e
        except OSError as e:
            local_path.unlink(missing_ok=True)
            raise WriteFailed(f"Could not write {local_path}: {e}") from e

        if first_chunk:
            local_path.unlink(missing_ok=True)
            raise FetchFailed(f"Empty response body for {url}")

    def fetch_direct(self, url: str, output_dir: Union[str, Path]) -> ConversionResult:
        """Download a direct PDF link and describe it as a ``direct_pdf`` result."""
        local_path = self.fetch(url, output_dir)
        return ConversionResult(
            success=True,
            url=url,
            kind=ResultKind.DIRECT_PDF,
            title=filename_from_url(url)[:-len('.pdf')],
            file_path=str(local_path),
            file_name=local_path.name,
            pdf_url=url,
        )
