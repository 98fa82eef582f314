"""Сервис скачивания изображений товара.

Все изображения одного товара скачиваются параллельно и независимо:
ошибка одного файла не прерывает остальные, а в результат попадают
только успешно скачанные файлы.
"""

import asyncio
import hashlib
from collections.abc import Sequence
from pathlib import Path
from urllib.parse import urlparse

import aiohttp

from spree_uploader.config import MediaSettings, get_logger

logger = get_logger("media_service")

IMAGE_EXTENSIONS: tuple[str, ...] = (".jpg", ".jpeg", ".png", ".gif", ".webp")
CONTENT_TYPE_EXTENSIONS: dict[str, str] = {
    "jpeg": ".jpg",
    "jpg": ".jpg",
    "png": ".png",
    "gif": ".gif",
    "webp": ".webp",
}
DOWNLOAD_HEADERS: dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "image/avif,image/webp,image/*,*/*;q=0.8",
}


class MediaDownloadError(Exception):
    """Изображение не удалось скачать."""


def image_extension(url: str, content_type: str = "") -> str:
    """Расширение файла по URL, затем по Content-Type; по умолчанию .jpg."""
    path = urlparse(url).path.lower()
    for ext in IMAGE_EXTENSIONS:
        if path.endswith(ext):
            return ".jpg" if ext == ".jpeg" else ext

    content_type = content_type.lower()
    for marker, ext in CONTENT_TYPE_EXTENSIONS.items():
        if marker in content_type:
            return ext
    return ".jpg"


class MediaService:
    """Параллельное скачивание изображений через aiohttp.

    Attributes:
        _settings: Настройки (каталог, таймаут).
        _session: Общая aiohttp-сессия.
    """

    def __init__(self, settings: MediaSettings) -> None:
        self._settings = settings
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._settings.download_timeout),
                headers=DOWNLOAD_HEADERS,
            )
        return self._session

    async def download_all(self, urls: Sequence[str]) -> list[Path]:
        """Скачивает все изображения параллельно.

        Args:
            urls: URL изображений одного товара.

        Returns:
            Пути к успешно скачанным файлам в порядке исходных URL.
        """
        if not urls:
            return []

        results = await asyncio.gather(
            *(self.download(url) for url in urls),
            return_exceptions=True,
        )

        downloaded: list[Path] = []
        for url, result in zip(urls, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(
                    "image_download_failed",
                    url=url,
                    error=str(result),
                    error_type=type(result).__name__,
                )
                continue
            downloaded.append(result)

        logger.info(
            "images_downloaded",
            requested=len(urls),
            downloaded=len(downloaded),
        )
        return downloaded

    async def download(self, url: str) -> Path:
        """Скачивает одно изображение в image_dir.

        Имя файла — хэш URL, поэтому повторное скачивание
        перезаписывает тот же файл.

        Raises:
            MediaDownloadError: Неверный URL, HTTP-ошибка или сбой сети.
        """
        if urlparse(url).scheme not in ("http", "https"):
            raise MediaDownloadError(f"Неподдерживаемый URL: {url}")

        session = await self._get_session()
        try:
            async with session.get(url) as response:
                if response.status != 200:
                    raise MediaDownloadError(f"HTTP {response.status} для {url}")
                content = await response.read()
                content_type = response.headers.get("Content-Type", "")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise MediaDownloadError(f"Ошибка скачивания {url}: {e}") from e

        if not content:
            raise MediaDownloadError(f"Пустой ответ для {url}")

        target_dir = Path(self._settings.image_dir)
        target_dir.mkdir(parents=True, exist_ok=True)
        name = hashlib.md5(url.encode("utf-8")).hexdigest()[:16]
        path = target_dir / f"{name}{image_extension(url, content_type)}"
        path.write_bytes(content)

        logger.debug("image_saved", url=url, path=str(path), size=len(content))
        return path

    async def close(self) -> None:
        """Закрывает aiohttp-сессию."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
