"""
リトライデコレータ

線形バックオフ（試行回数 × 基準間隔）によるリトライ機能を提供。
プロバイダの HTTP 呼び出しで使用し、認証エラー時は認証情報を差し替えて
試行回数を消費せずに即座に再試行する。
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .exceptions import (
    AuthFailureError,
    ProviderExhaustedError,
    TranslationNetworkError,
    UpstreamFormatError,
)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

# 通常の失敗として再試行する例外
RETRYABLE_ERRORS = (TranslationNetworkError, UpstreamFormatError)


def backoff_delay(attempt: int, base_interval: float) -> float:
    """
    待機時間を計算

    Args:
        attempt: 失敗した試行の番号（1 始まり）
        base_interval: 基準間隔（秒）

    Returns:
        次の試行までの待機秒数
    """
    return max(0.0, attempt * base_interval)


def with_retry(
    max_attempts: int = 3,
    base_interval: float = 1.0,
    *,
    label: Optional[str] = None,
    on_auth_failure: Optional[Callable[[AuthFailureError], bool]] = None,
) -> Callable[[F], F]:
    """
    非同期関数用のリトライデコレータ

    TranslationNetworkError / UpstreamFormatError 発生時に再試行する。
    AuthFailureError は on_auth_failure が True を返した場合のみ即座に
    再試行し、試行回数には数えない。その他の例外はそのまま伝播する。

    Args:
        max_attempts: 最大試行回数（デフォルト: 3）
        base_interval: バックオフの基準間隔（秒、デフォルト: 1.0）
        label: 失敗時のエラーメッセージに使う名前
        on_auth_failure: 認証エラー時のコールバック（差し替えできたら True）

    Returns:
        デコレータ関数

    Raises:
        ProviderExhaustedError: 試行回数を使い切った場合（last_error 付き）

    Examples:
        >>> @with_retry(max_attempts=3, base_interval=0.5)
        ... async def call_api(text):
        ...     ...
    """
    attempts = max(1, max_attempts)

    def decorator(func: F) -> F:
        name = label or getattr(func, "__name__", "request")

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            last_error: Optional[Exception] = None
            attempt = 0
            while attempt < attempts:
                try:
                    return await func(*args, **kwargs)
                except AuthFailureError as e:
                    if on_auth_failure is not None and on_auth_failure(e):
                        logger.info("%s: credential rejected, retrying with next key", name)
                        continue
                    raise
                except RETRYABLE_ERRORS as e:
                    last_error = e
                    attempt += 1
                    if attempt < attempts:
                        delay = backoff_delay(attempt, base_interval)
                        logger.debug(
                            "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                            name,
                            attempt,
                            attempts,
                            delay,
                            e,
                        )
                        await asyncio.sleep(delay)
            raise ProviderExhaustedError(name, attempts, last_error)

        return wrapper  # type: ignore[return-value]

    return decorator
