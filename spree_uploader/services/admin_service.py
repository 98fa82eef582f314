"""Драйвер админ-панели Spree на Playwright.

Проходит мастер создания товара в админке:
    1. Новый товар: название, цена, SKU, прототип, дата доступности,
       категория доставки.
    2. Карточка товара: slug, описание, себестоимость, старая цена, таксоны.
    3. Изображения.
    4. Свойства (бренд и характеристики).
    5. Остатки на складе.

Если админка отвечает, что SKU уже занят, драйвер находит существующий
товар по SKU и продолжает с шага 2 в режиме обновления.
"""

import re
from datetime import date, timedelta
from pathlib import Path
from urllib.parse import urlencode

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from spree_uploader.config import AdminSettings, get_logger
from spree_uploader.models import (
    NormalizedProduct,
    SubmissionOutcome,
    SubmissionStatus,
    TaxonPath,
)
from spree_uploader.services.browser_service import BrowserService
from spree_uploader.services.driver import (
    DuplicateSkuError,
    LoginError,
    SubmissionDriver,
    SubmissionError,
)
from spree_uploader.services.media_service import MediaService
from spree_uploader.services.taxonomy import match_taxon_index

logger = get_logger("admin_service")

_EDIT_URL_PATTERN = re.compile(r"/admin/products/([^/?#]+)/edit")

# Признаки конфликта SKU в баннере ошибки
DUPLICATE_SKU_MARKERS: tuple[str, ...] = (
    "sku has already been taken",
    "sku is already taken",
    "sku zaten",
)

# Максимум вариантов таксона, просматриваемых в выпадающем списке
MAX_TAXON_OPTIONS: int = 50

# Установка значения <select> с учётом select2: ищет option по value или
# тексту, выставляет его и генерирует change (в том числе через jQuery).
SET_SELECT_SCRIPT: str = """
    ([selector, value, label]) => {
        const select = document.querySelector(selector);
        if (!select) return null;
        const options = Array.from(select.options);
        const option = options.find(o =>
            (label && o.text.trim() === label) || (value && o.value === value)
        );
        if (!option) return null;
        select.value = option.value;
        select.dispatchEvent(new Event('change', { bubbles: true }));
        if (window.jQuery) window.jQuery(select).trigger('change');
        return option.text.trim();
    }
"""

# Запись значения в поле ввода/textarea с событиями input и change.
SET_VALUE_SCRIPT: str = """
    ([selector, value]) => {
        const element = document.querySelector(selector);
        if (!element) return false;
        element.value = value;
        element.dispatchEvent(new Event('input', { bubbles: true }));
        element.dispatchEvent(new Event('change', { bubbles: true }));
        return true;
    }
"""


def slug_from_edit_url(url: str) -> str | None:
    """Slug товара из URL страницы редактирования админки."""
    match = _EDIT_URL_PATTERN.search(url)
    return match.group(1) if match else None


def is_duplicate_sku_message(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in DUPLICATE_SKU_MARKERS)


class SpreeAdminDriver(SubmissionDriver):
    """Отправка товаров через HTML-формы админки Spree.

    Attributes:
        _settings: Адрес админки, учётные данные, параметры формы.
        _browser: Сервис браузера.
        _media: Сервис скачивания изображений.
    """

    # Вход
    LOGIN_EMAIL = "#spree_user_email"
    LOGIN_PASSWORD = "#spree_user_password"
    LOGIN_SUBMIT = "input[type='submit'], button[type='submit']"

    # Новый товар
    PRODUCT_NAME = "#product_name"
    PRODUCT_PRICE = "#product_price"
    PRODUCT_SKU = "#product_sku"
    PRODUCT_PROTOTYPE = "#product_prototype_id"
    PRODUCT_AVAILABLE_ON = "#product_available_on"
    AVAILABLE_ON_ALT_INPUT = ".flatpickr-alt-input"
    PRODUCT_SHIPPING_CATEGORY = "#product_shipping_category_id"
    CREATE_BUTTON = "button.btn.btn-success[type='submit']"
    ERROR_BANNERS = "#errorExplanation, .alert-danger, .alert-error, .flash.error"

    # Карточка товара
    PRODUCT_SLUG = "#product_slug"
    PRODUCT_DESCRIPTION = "#product_description"
    PRODUCT_COST_PRICE = "#product_cost_price"
    PRODUCT_COMPARE_AT_PRICE = "#product_compare_at_price"
    PRODUCT_TAXONS = "#product_taxon_ids"
    TAXON_SEARCH = "#product_taxon_ids + .select2 .select2-search__field"
    TAXON_OPTION = ".select2-results__option"
    UPDATE_BUTTON = "form[id^='edit_product'] button[type='submit']"

    # Поиск существующего товара
    PRODUCT_EDIT_LINK = "a[href*='/admin/products/'][href$='/edit']"

    # Изображения
    IMAGE_FILE = "#image_attachment"
    IMAGE_ALT = "#image_alt"
    IMAGE_SUBMIT = "form#new_image button[type='submit']"

    # Свойства
    PROPERTY_NAME_INPUTS = "input[name$='[property_name]']"
    PROPERTY_VALUE_INPUTS = "input[name$='[value]']"
    ADD_PROPERTY_LINK = "a.spree_add_fields"
    PROPERTIES_SUBMIT = "form button[type='submit']"

    # Остатки
    STOCK_QUANTITY = "#stock_movement_quantity"
    STOCK_LOCATION = "#stock_movement_stock_location_id"
    STOCK_SUBMIT = "form#new_stock_movement button[type='submit']"

    def __init__(
        self,
        settings: AdminSettings,
        browser_service: BrowserService,
        media_service: MediaService,
    ) -> None:
        self._settings = settings
        self._browser = browser_service
        self._media = media_service

    async def start(self) -> None:
        """Запускает браузер и входит в админку."""
        await self._browser.launch()
        await self._login()

    async def close(self) -> None:
        await self._media.close()
        await self._browser.close()

    async def submit(self, product: NormalizedProduct) -> SubmissionOutcome:
        """Создаёт товар или, при конфликте SKU, обновляет существующий.

        Ошибки после создания товара возвращаются как failed вместе
        с URL уже созданного товара.

        Raises:
            SubmissionError: Товар не удалось ни создать, ни найти.
        """
        try:
            slug = await self._create(product)
            status = SubmissionStatus.CREATED
        except DuplicateSkuError:
            logger.info("product_sku_exists", sku=product.sku)
            slug = await self._find_by_sku(product.sku)
            status = SubmissionStatus.UPDATED

        resource_url = self._storefront_url(slug)
        try:
            slug = await self._fill_details(slug, product)
            resource_url = self._storefront_url(slug)
            await self._upload_images(slug, product)
            await self._fill_properties(slug, product)
            await self._set_stock(slug, product.stock_quantity)
        except (PlaywrightError, SubmissionError) as e:
            logger.error(
                "product_details_failed",
                sku=product.sku,
                slug=slug,
                error=str(e),
            )
            return SubmissionOutcome(
                status=SubmissionStatus.FAILED,
                resource_url=resource_url,
                error=str(e),
            )

        logger.info(
            "product_saved",
            sku=product.sku,
            status=status.value,
            url=resource_url,
        )
        return SubmissionOutcome(status=status, resource_url=resource_url)

    def _storefront_url(self, slug: str) -> str:
        return f"{self._settings.base_url}/products/{slug}"

    async def _login(self) -> None:
        """Входит в админку по email и паролю.

        Raises:
            LoginError: После отправки формы осталась страница входа.
        """
        page = await self._browser.navigate(self._settings.login_url)
        await page.wait_for_selector(self.LOGIN_EMAIL, state="visible")
        await page.fill(self.LOGIN_EMAIL, self._settings.email)
        await page.fill(self.LOGIN_PASSWORD, self._settings.password)

        async with page.expect_navigation(wait_until="domcontentloaded"):
            await page.click(self.LOGIN_SUBMIT)

        if "/login" in page.url:
            raise LoginError(f"Вход не выполнен для {self._settings.email}")

        logger.info("admin_logged_in", url=page.url)

    async def _open(self, url: str) -> Page:
        """Открывает страницу админки, перелогиниваясь, если сессия истекла."""
        page = await self._browser.navigate(url)
        if "/login" in page.url:
            logger.warning("admin_session_expired", url=url)
            await self._login()
            page = await self._browser.navigate(url)
        return page

    async def _set_select(
        self,
        page: Page,
        selector: str,
        value: str = "",
        label: str = "",
    ) -> str | None:
        return await page.evaluate(SET_SELECT_SCRIPT, [selector, value, label])

    async def _create(self, product: NormalizedProduct) -> str:
        """Заполняет форму нового товара и возвращает slug созданного.

        Raises:
            DuplicateSkuError: SKU уже используется.
            SubmissionError: Админка вернула другую ошибку.
        """
        page = await self._open(self._settings.new_product_url)

        await page.wait_for_selector(self.PRODUCT_NAME, state="visible")
        await page.fill(self.PRODUCT_NAME, product.title)
        await page.fill(self.PRODUCT_PRICE, str(product.list_price))
        await page.fill(self.PRODUCT_SKU, product.sku)

        if self._settings.prototype_id and await page.locator(self.PRODUCT_PROTOTYPE).count():
            await self._set_select(page, self.PRODUCT_PROTOTYPE, value=self._settings.prototype_id)

        await self._set_available_on(page)
        await self._set_shipping_category(page)

        async with page.expect_navigation(wait_until="domcontentloaded"):
            await page.click(self.CREATE_BUTTON)

        slug = slug_from_edit_url(page.url)
        if slug is not None:
            logger.info("product_created", sku=product.sku, slug=slug)
            return slug

        errors = " ".join(await page.locator(self.ERROR_BANNERS).all_inner_texts()).strip()
        if is_duplicate_sku_message(errors):
            raise DuplicateSkuError(product.sku)
        raise SubmissionError(
            f"Товар не создан: {errors or 'неизвестная ошибка'} (url: {page.url})"
        )

    async def _set_available_on(self, page: Page) -> None:
        available_on = date.today() - timedelta(
            days=self._settings.available_on_offset_days
        )
        value = available_on.isoformat()

        if await page.evaluate(SET_VALUE_SCRIPT, [self.PRODUCT_AVAILABLE_ON, value]):
            logger.debug("available_on_set", value=value)
            return

        # Без скрытого поля остаётся только видимый ввод flatpickr
        await page.fill(self.AVAILABLE_ON_ALT_INPUT, value)
        logger.debug("available_on_typed", value=value)

    async def _set_shipping_category(self, page: Page) -> None:
        selected = await self._set_select(
            page,
            self.PRODUCT_SHIPPING_CATEGORY,
            label=self._settings.shipping_category,
        )
        if selected is None and self._settings.shipping_category_id:
            selected = await self._set_select(
                page,
                self.PRODUCT_SHIPPING_CATEGORY,
                value=self._settings.shipping_category_id,
            )
        if selected is None:
            raise SubmissionError(
                f"Категория доставки '{self._settings.shipping_category}' не найдена"
            )
        logger.debug("shipping_category_set", category=selected)

    async def _find_by_sku(self, sku: str) -> str:
        """Ищет существующий товар по SKU и возвращает его slug.

        Raises:
            SubmissionError: Товар с таким SKU не найден в списке.
        """
        query = urlencode({
            "q[variants_including_master_sku_eq]": sku,
            "q[deleted_at_null]": "1",
        })
        page = await self._open(f"{self._settings.products_url}?{query}")

        links = page.locator(self.PRODUCT_EDIT_LINK)
        if not await links.count():
            raise SubmissionError(f"Товар с SKU '{sku}' не найден для обновления")

        href = await links.first.get_attribute("href") or ""
        slug = slug_from_edit_url(href)
        if slug is None:
            raise SubmissionError(f"Не удалось определить товар по ссылке {href}")

        logger.info("product_found_by_sku", sku=sku, slug=slug)
        return slug

    async def _fill_details(self, slug: str, product: NormalizedProduct) -> str:
        """Заполняет карточку товара и возвращает актуальный slug."""
        page = await self._open(f"{self._settings.products_url}/{slug}/edit")
        await page.wait_for_selector(self.PRODUCT_NAME, state="visible")

        await page.fill(self.PRODUCT_NAME, product.title)
        await page.fill(self.PRODUCT_PRICE, str(product.list_price))
        if await page.locator(self.PRODUCT_SLUG).count():
            await page.fill(self.PRODUCT_SLUG, product.slug)
        await page.evaluate(
            SET_VALUE_SCRIPT, [self.PRODUCT_DESCRIPTION, product.description]
        )
        await page.fill(self.PRODUCT_COST_PRICE, str(product.cost_price))
        await page.fill(self.PRODUCT_COMPARE_AT_PRICE, str(product.compare_at_price))

        await self._select_taxons(page, product)

        async with page.expect_navigation(wait_until="domcontentloaded"):
            await page.click(self.UPDATE_BUTTON)

        errors = " ".join(await page.locator(self.ERROR_BANNERS).all_inner_texts()).strip()
        if errors:
            raise SubmissionError(f"Карточка товара не сохранена: {errors}")

        return slug_from_edit_url(page.url) or product.slug

    async def _taxon_options(self, page: Page, query: str) -> list[str]:
        """Набирает запрос в поиске таксонов и возвращает предложенные пути.

        Позиция в списке совпадает с позицией варианта в выпадающем списке.
        """
        search = page.locator(self.TAXON_SEARCH)
        await search.click()
        await search.fill(query)
        await self._browser.wait()
        options = page.locator(self.TAXON_OPTION)
        texts = await options.all_inner_texts()
        return [text.strip() for text in texts[:MAX_TAXON_OPTIONS]]

    async def _pick_taxon_option(self, page: Page, index: int) -> None:
        await page.locator(self.TAXON_OPTION).nth(index).click()

    async def _select_taxons(self, page: Page, product: NormalizedProduct) -> None:
        """Выбирает таксоны: по пути категории, иначе по ключевым словам.

        Для пути ищется вариант, у которого хвост пути совпадает с
        заданным; для ключевых слов берётся первый непустой вариант.
        Вариант выбирается по позиции, а не по тексту.
        """
        if not await page.locator(self.PRODUCT_TAXONS).count():
            logger.warning("taxon_field_missing", sku=product.sku)
            return

        target: TaxonPath | None = product.taxon_path
        if target is not None and target.is_hierarchical:
            options = await self._taxon_options(page, target.parts[-1])
            index = match_taxon_index(options, target)
            if index is not None:
                await self._pick_taxon_option(page, index)
                logger.info("taxon_selected", sku=product.sku, taxon=options[index])
                return
            logger.warning(
                "taxon_path_not_matched",
                sku=product.sku,
                taxon_path=str(target),
                candidates=[o for o in options if o][:10],
            )

        for keyword in product.taxon_keywords:
            options = await self._taxon_options(page, keyword)
            index = next((i for i, option in enumerate(options) if option), None)
            if index is None:
                logger.debug("taxon_keyword_no_options", keyword=keyword)
                continue
            await self._pick_taxon_option(page, index)
            logger.info("taxon_selected", sku=product.sku, taxon=options[index])

    async def _upload_images(self, slug: str, product: NormalizedProduct) -> None:
        """Скачивает изображения товара и загружает их по одному.

        Ошибка отдельного файла логируется и не прерывает остальные.
        """
        if not product.images:
            return

        files: list[Path] = await self._media.download_all(product.images)
        uploaded = 0
        for path in files:
            try:
                page = await self._open(
                    f"{self._settings.products_url}/{slug}/images/new"
                )
                await page.set_input_files(self.IMAGE_FILE, str(path))
                if await page.locator(self.IMAGE_ALT).count():
                    await page.fill(self.IMAGE_ALT, product.title)
                async with page.expect_navigation(wait_until="domcontentloaded"):
                    await page.click(self.IMAGE_SUBMIT)
                uploaded += 1
            except PlaywrightError as e:
                logger.warning(
                    "image_upload_failed",
                    sku=product.sku,
                    path=str(path),
                    error=str(e),
                )

        logger.info(
            "images_uploaded",
            sku=product.sku,
            requested=len(product.images),
            uploaded=uploaded,
        )

    async def _fill_properties(self, slug: str, product: NormalizedProduct) -> None:
        """Заполняет свойства: бренд и характеристики из фида."""
        properties = [(spec.name, spec.value) for spec in product.specifications]
        if product.brand:
            properties.insert(0, ("Brand", product.brand))
        if not properties:
            return

        page = await self._open(
            f"{self._settings.products_url}/{slug}/product_properties"
        )
        names = page.locator(self.PROPERTY_NAME_INPUTS)
        values = page.locator(self.PROPERTY_VALUE_INPUTS)

        # Первая строка формы пустая; остальные добавляются ссылкой
        start = await names.count() - 1
        if start < 0:
            raise SubmissionError("Форма свойств товара не найдена")

        for offset, (name, value) in enumerate(properties):
            row = start + offset
            if row >= await names.count():
                await page.click(self.ADD_PROPERTY_LINK)
                await names.nth(row).wait_for(state="visible")
            await names.nth(row).fill(name)
            await values.nth(row).fill(value)

        async with page.expect_navigation(wait_until="domcontentloaded"):
            await page.click(self.PROPERTIES_SUBMIT)

        logger.debug("properties_saved", sku=product.sku, count=len(properties))

    async def _set_stock(self, slug: str, quantity: int) -> None:
        """Добавляет движение остатков на склад."""
        if quantity <= 0:
            return

        page = await self._open(f"{self._settings.products_url}/{slug}/stock")
        if not await page.locator(self.STOCK_QUANTITY).count():
            raise SubmissionError("Форма остатков не найдена")

        await page.fill(self.STOCK_QUANTITY, str(quantity))
        if self._settings.stock_location:
            await self._set_select(
                page, self.STOCK_LOCATION, label=self._settings.stock_location
            )

        async with page.expect_navigation(wait_until="domcontentloaded"):
            await page.click(self.STOCK_SUBMIT)

        logger.debug("stock_saved", slug=slug, quantity=quantity)
