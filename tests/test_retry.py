from unittest.mock import AsyncMock

import pytest

from spree_uploader.utils import linear_delay, retry_call
from spree_uploader.utils import retry as retry_module


@pytest.fixture
def sleep_mock(monkeypatch):
    mock = AsyncMock()
    monkeypatch.setattr(retry_module.asyncio, "sleep", mock)
    return mock


def test_linear_delay():
    assert [linear_delay(2.0, n) for n in (1, 2, 3)] == [2.0, 4.0, 6.0]


@pytest.mark.asyncio
async def test_retries_until_success_with_growing_delay(sleep_mock):
    func = AsyncMock(side_effect=[ConnectionError("a"), ConnectionError("b"), "ok"])
    func.__name__ = "open_page"

    result = await retry_call(
        func, "https://x", max_retries=3, delay=1.5, exceptions=(ConnectionError,)
    )

    assert result == "ok"
    assert func.await_count == 3
    func.assert_awaited_with("https://x")
    assert [c.args[0] for c in sleep_mock.await_args_list] == [1.5, 3.0]


@pytest.mark.asyncio
async def test_reraises_last_error_when_exhausted(sleep_mock):
    func = AsyncMock(side_effect=TimeoutError("slow"))
    func.__name__ = "open_page"

    with pytest.raises(TimeoutError, match="slow"):
        await retry_call(func, max_retries=2, delay=1.0, exceptions=(TimeoutError,))

    assert func.await_count == 2
    assert sleep_mock.await_count == 1


@pytest.mark.asyncio
async def test_other_errors_are_not_retried(sleep_mock):
    func = AsyncMock(side_effect=KeyError("k"))
    func.__name__ = "open_page"

    with pytest.raises(KeyError):
        await retry_call(func, max_retries=5, exceptions=(ConnectionError,))

    assert func.await_count == 1
    sleep_mock.assert_not_awaited()

