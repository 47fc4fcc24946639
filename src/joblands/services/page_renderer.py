import logging
from abc import ABC, abstractmethod

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from joblands.core.exceptions import UpstreamError, UpstreamTimeoutError

logger = logging.getLogger(__name__)


class PageRenderer(ABC):
    @abstractmethod
    async def render(self, url: str, timeout_ms: int) -> str:
        """Navigate to ``url`` and return the rendered HTML."""
        ...


class PlaywrightPageRenderer(PageRenderer):
    """Headless Chromium renderer.

    A browser is launched per call and closed on every exit path, including
    task cancellation, so no Chromium process outlives the request.
    """

    def __init__(self, user_agent: str | None = None) -> None:
        self._user_agent = user_agent

    async def render(self, url: str, timeout_ms: int) -> str:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=True)
            try:
                context = await browser.new_context(user_agent=self._user_agent)
                page = await context.new_page()
                await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
                return await page.content()
            except PlaywrightTimeoutError as e:
                raise UpstreamTimeoutError(
                    f"Page load exceeded {timeout_ms}ms: {url}",
                    public_message="The job page took too long to load",
                ) from e
            except PlaywrightError as e:
                raise UpstreamError(
                    f"Page rendering failed for {url}: {e}",
                    public_message="Could not load the job page",
                ) from e
            finally:
                await browser.close()
                logger.debug("Browser closed for %s", url)
