"""Повтор асинхронных вызовов для переходов по страницам админки.

Повторяет вызов фиксированное число раз с линейно растущей
задержкой: delay, 2 × delay, 3 × delay, ...

Пример использования:
    page = await retry_call(
        open_page, url, max_retries=3, delay=2.0, exceptions=(PlaywrightError,)
    )
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from spree_uploader.config import get_logger

logger = get_logger("retry")

T = TypeVar("T")


def linear_delay(delay: float, attempt: int) -> float:
    """Задержка перед повтором после попытки с номером ``attempt``."""
    return delay * attempt


async def retry_call(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_retries: int = 3,
    delay: float = 2.0,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
    **kwargs: Any,
) -> T:
    """Вызывает корутинную функцию с повторами при указанных исключениях.

    Args:
        func: Асинхронная функция.
        *args: Позиционные аргументы для func.
        max_retries: Общее число попыток (не меньше 1).
        delay: Базовая задержка в секундах.
        exceptions: Типы исключений, при которых делать повтор.
        **kwargs: Именованные аргументы для func.

    Returns:
        Результат успешного вызова func.

    Raises:
        Последнее пойманное исключение, если все попытки исчерпаны.
    """
    attempts = max(1, max_retries)
    name = getattr(func, "__name__", repr(func))

    for attempt in range(1, attempts + 1):
        try:
            return await func(*args, **kwargs)
        except exceptions as e:
            if attempt == attempts:
                logger.error(
                    "retry_exhausted",
                    function=name,
                    attempt=attempt,
                    max_retries=attempts,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise

            next_delay = linear_delay(delay, attempt)
            logger.warning(
                "retry_attempt",
                function=name,
                attempt=attempt,
                max_retries=attempts,
                next_delay=next_delay,
                error=str(e),
                error_type=type(e).__name__,
            )
            await asyncio.sleep(next_delay)

    raise RuntimeError("unreachable")  # pragma: no cover
