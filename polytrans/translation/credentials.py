"""認証情報（API キー）のローテーション管理"""

from __future__ import annotations

import logging
import threading
from typing import FrozenSet, Iterable, List, Optional

logger = logging.getLogger(__name__)


class CredentialSet:
    """
    プロバイダごとの API キー候補

    候補は順序付きで保持し、常に 1 つだけが「現在の」キーになる。
    認証エラー時は swap() で現在のキーを不良リストに移し、次の候補に切り替える。
    候補が尽きると現在のキーは None になり、以降の呼び出しは即座に失敗する。

    Examples:
        >>> creds = CredentialSet(["key-a", "key-b"])
        >>> creds.current
        'key-a'
        >>> creds.swap()
        True
        >>> creds.current
        'key-b'
    """

    def __init__(
        self,
        candidates: Optional[Iterable[str]] = None,
        fallback: Optional[str] = None,
    ):
        """
        Args:
            candidates: API キー候補（優先順）
            fallback: 単一キー設定（候補の末尾に追加）
        """
        ordered: List[str] = []
        for key in list(candidates or []) + [fallback]:
            if key and key not in ordered:
                ordered.append(key)
        self._pending = ordered
        self._bad: List[str] = []
        self._lock = threading.Lock()
        self._current: Optional[str] = self._pending.pop(0) if self._pending else None

    @property
    def current(self) -> Optional[str]:
        """現在のキー（未設定なら None）"""
        with self._lock:
            return self._current

    @property
    def bad(self) -> FrozenSet[str]:
        """拒否されたキー"""
        with self._lock:
            return frozenset(self._bad)

    def has_alternates(self) -> bool:
        """現在のキー以外に未使用の候補が残っているか"""
        with self._lock:
            return bool(self._pending)

    def swap(self) -> bool:
        """
        現在のキーを不良扱いにして次の候補へ切り替える

        Returns:
            新しいキーが現在のキーになった場合 True、候補が尽きた場合 False
        """
        with self._lock:
            if self._current is not None and self._current not in self._bad:
                self._bad.append(self._current)
            self._current = None
            while self._pending:
                candidate = self._pending.pop(0)
                if candidate not in self._bad:
                    self._current = candidate
                    break
            remaining = len(self._pending)
            swapped = self._current is not None
        logger.debug("Credential swapped (remaining=%d, active=%s)", remaining, swapped)
        return swapped

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending) + (1 if self._current else 0)
