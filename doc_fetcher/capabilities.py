"""
Environment checks.

The pipeline itself never checks: callers decide once (for example the
CLI at startup) and pass the answer in as a boolean.
"""

import logging
import shutil
from pathlib import Path

from selenium.common.exceptions import WebDriverException

logger = logging.getLogger(__name__)

CHROME_BINARIES = [
    'google-chrome',
    'google-chrome-stable',
    'chromium',
    'chromium-browser',
    'chrome',
]

CHROME_APP_PATHS = [
    Path('/Applications/Google Chrome.app/Contents/MacOS/Google Chrome'),
    Path('/Applications/Chromium.app/Contents/MacOS/Chromium'),
]


def chrome_installed() -> bool:
    """Whether a Chrome or Chromium binary can be found."""
    if any(shutil.which(name) for name in CHROME_BINARIES):
        return True
    return any(path.exists() for path in CHROME_APP_PATHS)


def headless_browser_available(launch: bool = True) -> bool:
    """
    Whether headless Chrome can be used for rendering.

    Args:
        launch: Also start and quit a browser once to make sure the driver
                works (slower, but catches missing drivers and sandbox issues)
    """
    if not chrome_installed():
        logger.info("Chrome not found, headless rendering disabled")
        return False
    if not launch:
        return True

    from .tiers.headless import create_chrome_driver

    try:
        driver = create_chrome_driver()
    except WebDriverException as e:
        logger.info(f"Headless Chrome could not be started, rendering disabled: {e.msg or e}")
        return False
    try:
        driver.quit()
    except WebDriverException as e:
        logger.debug(f"Error closing test WebDriver: {e}")
    logger.debug("Headless Chrome available")
    return True
