"""翻訳結果のキャッシュ管理"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import threading
import time
import unicodedata
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 1000
DEFAULT_TTL_SECONDS = 7 * 24 * 60 * 60  # 7 日
CACHE_FILE_NAME = "translation_cache.json"


@dataclass
class CacheEntry:
    """キャッシュエントリ"""

    original_text: str
    translated_text: str
    source_lang: str
    target_lang: str
    provider: str
    timestamp: float  # 作成時刻（エポック秒）

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        return cls(
            original_text=str(data["original_text"]),
            translated_text=str(data["translated_text"]),
            source_lang=str(data["source_lang"]),
            target_lang=str(data["target_lang"]),
            provider=str(data["provider"]),
            timestamp=float(data["timestamp"]),
        )


def make_cache_key(text: str, source_lang: str, target_lang: str, provider: str) -> str:
    """
    キャッシュキーを計算

    NFC 正規化した "text|source|target|provider" の SHA-256。
    """
    content = unicodedata.normalize("NFC", f"{text}|{source_lang}|{target_lang}|{provider}")
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class TranslationCache:
    """
    翻訳結果のキャッシュ

    (テキスト, ソース言語, ターゲット言語, プロバイダ) ごとに翻訳結果を保持する。
    エントリは TTL 経過で失効し、容量超過時は古いものから削除される。

    変更操作は全て 1 つのロック内で行い、並行する set() でも
    最大件数を超えない。永続化は単一ワーカーのバックグラウンド
    スレッドで行い、失敗しても翻訳処理には影響しない。

    Examples:
        >>> cache = TranslationCache(path=None)
        >>> cache.set("Hello", "こんにちは", "en", "ja", "google_free")
        >>> cache.get("Hello", "en", "ja", "google_free")
        'こんにちは'
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        max_size: int = DEFAULT_MAX_SIZE,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            path: 永続化先の JSON ファイル（None なら永続化しない）
            max_size: 最大エントリ数
            ttl_seconds: エントリの有効期間（秒）
            clock: 現在時刻（エポック秒）を返す関数
        """
        self.path = Path(path) if path is not None else None
        self.max_size = max(1, int(max_size))
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: Optional[Future] = None

    # ------------------------------------------------------------------
    # 参照・更新
    # ------------------------------------------------------------------

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.timestamp > self.ttl_seconds

    def get(self, text: str, source_lang: str, target_lang: str, provider: str) -> Optional[str]:
        """
        キャッシュから翻訳結果を取得

        失効したエントリはその場で削除して None を返す。
        """
        key = make_cache_key(text, source_lang, target_lang, provider)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._expired(entry, self._clock()):
                del self._entries[key]
                entry = None
            if entry is None:
                self._misses += 1
                return None
            self._hits += 1
            return entry.translated_text

    def set(
        self,
        text: str,
        translated_text: str,
        source_lang: str,
        target_lang: str,
        provider: str,
    ) -> None:
        """
        翻訳結果を保存

        容量に達している場合は失効エントリを削除し、それでも空きがなければ
        古い順に削除して 1 件分の空きを作ってから挿入する。
        """
        key = make_cache_key(text, source_lang, target_lang, provider)
        with self._lock:
            now = self._clock()
            if key not in self._entries and len(self._entries) >= self.max_size:
                self._evict(now)
            self._entries[key] = CacheEntry(
                original_text=text,
                translated_text=translated_text,
                source_lang=source_lang,
                target_lang=target_lang,
                provider=provider,
                timestamp=now,
            )
            snapshot = self._snapshot()
        self._schedule(self._write, snapshot)

    def _evict(self, now: float) -> None:
        # ロック保持中に呼ぶこと
        removed = self._purge_expired(now)
        overflow = len(self._entries) - self.max_size + 1
        if overflow > 0:
            oldest = sorted(self._entries.items(), key=lambda item: item[1].timestamp)
            for key, _ in oldest[:overflow]:
                del self._entries[key]
            removed += overflow
        logger.debug("Evicted %d cache entries (size=%d)", removed, len(self._entries))

    def _purge_expired(self, now: float) -> int:
        expired = [k for k, e in self._entries.items() if self._expired(e, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear_expired(self) -> int:
        """
        失効エントリを削除

        Returns:
            削除した件数
        """
        with self._lock:
            removed = self._purge_expired(self._clock())
            snapshot = self._snapshot()
        if removed:
            self._schedule(self._write, snapshot)
        return removed

    def clear(self) -> None:
        """全エントリを削除し、永続化済みのファイルも削除する"""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
        self._schedule(self._remove_file)
        logger.info("Translation cache cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        """
        キャッシュ統計を取得

        Returns:
            size, max_size, ttl_seconds, hits, misses, hit_rate, path
        """
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._entries),
                "max_size": self.max_size,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": self._hits / total if total > 0 else 0.0,
                "path": str(self.path) if self.path else None,
            }

    # ------------------------------------------------------------------
    # 永続化
    # ------------------------------------------------------------------

    def load(self) -> int:
        """
        永続化済みのエントリを読み込む

        失効済みのエントリは読み込まない。ファイルが存在しない、
        壊れている、読めない場合は空として扱う。

        Returns:
            読み込んだ件数
        """
        if self.path is None or not self.path.exists():
            return 0
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Failed to load translation cache from %s: %s", self.path, e)
            return 0
        if not isinstance(raw, list):
            logger.warning("Ignoring translation cache with unexpected layout: %s", self.path)
            return 0

        loaded: List[Tuple[str, CacheEntry]] = []
        for item in raw:
            try:
                key, data = item
                loaded.append((str(key), CacheEntry.from_dict(data)))
            except (TypeError, ValueError, KeyError):
                logger.debug("Skipping malformed cache item: %r", item)

        with self._lock:
            now = self._clock()
            fresh = [(k, e) for k, e in loaded if not self._expired(e, now)]
            fresh.sort(key=lambda item: item[1].timestamp)
            for key, entry in fresh[-self.max_size :]:
                self._entries[key] = entry
            while len(self._entries) > self.max_size:
                self._evict(now)
            count = len(self._entries)
        logger.debug("Loaded %d translation cache entries from %s", count, self.path)
        return count

    def flush(self, timeout: Optional[float] = None) -> None:
        """予約済みの永続化処理の完了を待つ"""
        pending = self._pending
        if pending is not None:
            pending.result(timeout=timeout)

    def close(self) -> None:
        """永続化スレッドを停止（予約済みの書き込みは完了させる）"""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
            self._pending = None

    def _snapshot(self) -> Optional[List[List[Any]]]:
        if self.path is None:
            return None
        return [[key, asdict(entry)] for key, entry in self._entries.items()]

    def _schedule(self, func: Callable[..., None], *args: Any) -> None:
        if self.path is None:
            return
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="polytrans-cache"
            )
        self._pending = self._executor.submit(self._guarded, func, *args)

    def _guarded(self, func: Callable[..., None], *args: Any) -> None:
        try:
            func(*args)
        except OSError as e:
            logger.warning("Failed to persist translation cache to %s: %s", self.path, e)

    def _write(self, snapshot: List[List[Any]]) -> None:
        assert self.path is not None
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(snapshot, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self.path)

    def _remove_file(self) -> None:
        assert self.path is not None
        if self.path.exists():
            self.path.unlink()
