"""Сервис управления Playwright-браузером.

Инкапсулирует запуск Chromium, создание контекста и страницы,
переходы по страницам админки с повторными попытками и
корректное закрытие всех ресурсов.
"""

import random

from playwright.async_api import Browser, BrowserContext, Page, async_playwright
from playwright.async_api import Error as PlaywrightError

from spree_uploader.config import BrowserSettings, get_logger
from spree_uploader.services.driver import NavigationError
from spree_uploader.utils import retry_call

logger = get_logger("browser_service")

USER_AGENTS: list[str] = [
    (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/124.0.0.0 Safari/537.36"
    ),
    (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/124.0.0.0 Safari/537.36"
    ),
]

BROWSER_ARGS: list[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
    "--start-maximized",
]

# Фрагменты заголовка страницы, означающие ошибку сервера
ERROR_TITLES: tuple[str, ...] = (
    "We're sorry, but something went wrong",
    "502 Bad Gateway",
    "503 Service",
    "504 Gateway",
)


class BrowserService:
    """Сервис для управления Playwright-браузером.

    Attributes:
        _settings: Настройки браузера из конфигурации.
        _playwright: Экземпляр Playwright.
        _browser: Запущенный браузер.
        _context: Контекст браузера.
        _page: Активная страница.
    """

    def __init__(self, settings: BrowserSettings) -> None:
        self._settings = settings
        self._playwright: object | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    async def launch(self) -> Page:
        """Запускает браузер, создаёт контекст и страницу.

        Returns:
            Готовая к использованию страница Playwright.

        Raises:
            RuntimeError: Если не удалось запустить браузер.
        """
        try:
            pw = await async_playwright().start()
            self._playwright = pw

            self._browser = await pw.chromium.launch(
                headless=self._settings.headless,
                args=BROWSER_ARGS,
            )

            self._context = await self._browser.new_context(
                user_agent=random.choice(USER_AGENTS),
                viewport={"width": 1600, "height": 1000},
                locale="en-US",
            )
            self._context.set_default_timeout(self._settings.navigation_timeout)
            self._context.set_default_navigation_timeout(
                self._settings.navigation_timeout
            )

            self._page = await self._context.new_page()

            logger.info(
                "browser_launched",
                headless=self._settings.headless,
                timeout=self._settings.navigation_timeout,
            )
            return self._page

        except Exception as e:
            logger.error("browser_launch_failed", exc_info=True, error=str(e))
            await self.close()
            raise RuntimeError(f"Не удалось запустить браузер: {e}") from e

    async def navigate(self, url: str) -> Page:
        """Открывает URL, повторяя попытки с линейно растущей задержкой.

        Args:
            url: Адрес страницы.

        Returns:
            Страница после успешной загрузки.

        Raises:
            NavigationError: Страница не открылась после всех попыток.
        """
        page = self.require_page()
        try:
            await retry_call(
                self._goto,
                url,
                max_retries=self._settings.navigation_retries,
                delay=self._settings.navigation_retry_delay,
                exceptions=(PlaywrightError, NavigationError),
            )
        except (PlaywrightError, NavigationError) as e:
            raise NavigationError(f"Не удалось открыть {url}: {e}") from e
        return page

    async def _goto(self, url: str) -> None:
        page = self.require_page()
        logger.debug("navigation_started", url=url)

        response = await page.goto(
            url,
            wait_until="domcontentloaded",
            timeout=self._settings.navigation_timeout,
        )
        if response is not None and response.status >= 500:
            raise NavigationError(f"HTTP {response.status} для {url}")

        title = await page.title()
        for phrase in ERROR_TITLES:
            if phrase.lower() in title.lower():
                raise NavigationError(f"Страница ошибки '{title}' для {url}")

        logger.debug("navigation_success", url=url, current_url=page.url)

    async def wait(self, milliseconds: int | None = None) -> None:
        """Пауза на текущей странице (по умолчанию page_wait_time)."""
        if self._page is None:
            return
        await self._page.wait_for_timeout(milliseconds or self._settings.page_wait_time)

    def require_page(self) -> Page:
        """Активная страница.

        Raises:
            RuntimeError: Браузер не запущен.
        """
        if self._page is None:
            raise RuntimeError("Браузер не запущен: вызовите launch()")
        return self._page

    async def close(self) -> None:
        """Закрывает контекст, браузер и Playwright в правильном порядке."""
        try:
            if self._context is not None:
                await self._context.close()
                self._context = None

            if self._browser is not None:
                await self._browser.close()
                self._browser = None

            if self._playwright is not None:
                await self._playwright.stop()  # type: ignore[union-attr]
                self._playwright = None

            self._page = None
            logger.info("browser_closed")

        except Exception as e:
            logger.warning("browser_close_error", error=str(e))
