"""
HTTP session factory.

Every conversion gets its own requests session with retry logic and
browser-like default headers. Some hosts reject clients that do not
identify as a browser.
"""

import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import DEFAULT_USER_AGENT, FetcherConfig

logger = logging.getLogger(__name__)


def create_session(
    user_agent: Optional[str] = None,
    max_retries: int = 3,
    backoff_factor: float = 1.0,
) -> requests.Session:
    """
    Create a requests session with retry logic.

    Args:
        user_agent: User agent string (default: recent desktop Chrome)
        max_retries: Maximum number of retries on 429/5xx and connection errors
        backoff_factor: Backoff factor for retry delays (1s, 2s, 4s, ...)

    Returns:
        Configured session with retry adapter
    """
    session = requests.Session()

    retry_strategy = Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["HEAD", "GET", "OPTIONS", "POST"],
        # 403 is usually a permanent block, don't retry it
    )

    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    session.headers.update({
        'User-Agent': user_agent or DEFAULT_USER_AGENT,
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8',
        'Accept-Language': 'en-US,en;q=0.9,zh-CN;q=0.8',
        'Accept-Encoding': 'gzip, deflate',
        'DNT': '1',
        'Connection': 'keep-alive',
        'Upgrade-Insecure-Requests': '1',
        'Cache-Control': 'no-cache',
    })

    return session


def session_from_config(config: FetcherConfig) -> requests.Session:
    """Create a session using the network settings of a FetcherConfig."""
    return create_session(
        user_agent=config.user_agent,
        max_retries=config.max_retries,
        backoff_factor=config.backoff_factor,
    )
