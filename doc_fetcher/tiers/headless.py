"""
Headless browser render tier.

Loads the page in headless Chrome through Selenium and prints it to PDF
with the DevTools print command. Each attempt starts its own browser and
quits it before returning, whatever happens.
"""

import base64
import logging
import time
from pathlib import Path
from typing import Callable, Optional, Union

from selenium import webdriver
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.common.print_page_options import PrintOptions
from selenium.webdriver.support.ui import WebDriverWait

from ..config import DEFAULT_USER_AGENT, HeadlessSettings
from ..models import ConversionResult, ResultKind
from ..utils import sanitize_title, stamped_filename
from .base import RenderTier, TierOutcome

logger = logging.getLogger(__name__)

# A4 in centimetres
A4_WIDTH_CM = 21.0
A4_HEIGHT_CM = 29.7


def create_chrome_driver(user_agent: str = DEFAULT_USER_AGENT, page_load_timeout: int = 30):
    """Start a headless Chrome WebDriver."""
    options = Options()
    options.add_argument('--headless=new')
    options.add_argument('--no-sandbox')
    options.add_argument('--disable-dev-shm-usage')
    options.add_argument('--disable-gpu')
    options.add_argument(f'user-agent={user_agent}')
    options.add_argument('--window-size=1920,1080')

    driver = webdriver.Chrome(options=options)
    driver.set_page_load_timeout(page_load_timeout)
    logger.debug("Initialized headless Chrome WebDriver")
    return driver


class HeadlessRenderTier(RenderTier):
    """
    Render a webpage to PDF with headless Chrome.

    Args:
        output_dir: Directory for the PDF
        available: Whether a headless browser can be started here; decided
                   by the caller, the tier never checks for it
        settings: Timeouts, settle delay and margins
        user_agent: User agent the browser presents
        driver_factory: Callable returning a WebDriver (default: headless Chrome)
        sleep: Used for the settle delay
    """

    name = "headless"

    def __init__(
        self,
        output_dir: Union[str, Path],
        available: bool,
        settings: Optional[HeadlessSettings] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        driver_factory: Optional[Callable] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.output_dir = Path(output_dir)
        self.available = available
        self.settings = settings or HeadlessSettings()
        self.user_agent = user_agent
        self.driver_factory = driver_factory or (
            lambda: create_chrome_driver(self.user_agent, self.settings.page_load_timeout)
        )
        self.sleep = sleep

    def is_available(self) -> bool:
        return self.available and self.settings.enabled

    def print_options(self) -> PrintOptions:
        """A4, fixed margins, backgrounds printed."""
        options = PrintOptions()
        options.page_width = A4_WIDTH_CM
        options.page_height = A4_HEIGHT_CM
        options.margin_top = self.settings.margin_cm
        options.margin_bottom = self.settings.margin_cm
        options.margin_left = self.settings.margin_cm
        options.margin_right = self.settings.margin_cm
        options.background = True
        return options

    def attempt(self, url: str) -> TierOutcome:
        logger.info(f"Rendering {url} with headless Chrome")
        driver = None
        try:
            driver = self.driver_factory()
            driver.get(url)

            # Load event done, then give late requests a moment to settle
            WebDriverWait(driver, self.settings.page_load_timeout).until(
                lambda d: d.execute_script('return document.readyState') == 'complete'
            )
            if self.settings.settle_delay > 0:
                self.sleep(self.settings.settle_delay)

            title = (driver.title or '').strip() or 'webpage'
            pdf_data = base64.b64decode(driver.print_page(self.print_options()))

            file_name = stamped_filename(sanitize_title(title, replace_spaces=True, fallback='webpage'), 'pdf')
            local_path = self.output_dir / file_name
            local_path.parent.mkdir(parents=True, exist_ok=True)
            local_path.write_bytes(pdf_data)

        except TimeoutException as e:
            logger.warning(f"Headless render timed out for {url}")
            return TierOutcome.decline(self.name, f"Page load timed out: {e.msg or e}")
        except WebDriverException as e:
            logger.warning(f"Headless render failed for {url}: {e.msg or e}")
            return TierOutcome.decline(self.name, f"Browser error: {e.msg or e}")
        except OSError as e:
            logger.warning(f"Could not write rendered PDF for {url}: {e}")
            return TierOutcome.decline(self.name, f"Could not write PDF: {e}")
        finally:
            if driver is not None:
                try:
                    driver.quit()
                except WebDriverException as e:
                    logger.debug(f"Error closing WebDriver: {e}")

        logger.info(f"✓ Rendered {url} → {file_name}")
        return TierOutcome.accept(self.name, ConversionResult(
            success=True,
            url=url,
            kind=ResultKind.WEBPAGE_PDF,
            title=title,
            file_path=str(local_path),
            file_name=file_name,
            content_bytes=len(pdf_data),
            tier=self.name,
        ))
