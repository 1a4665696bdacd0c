"""
TranslationCache のテスト
"""

from __future__ import annotations

import json
import threading

import pytest

from polytrans.translation.cache import (
    DEFAULT_MAX_SIZE,
    DEFAULT_TTL_SECONDS,
    TranslationCache,
    make_cache_key,
)


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


class TestMakeCacheKey:
    """make_cache_key のテスト"""

    def test_distinguishes_components(self):
        """各要素が異なればキーも異なる"""
        base = make_cache_key("Hello", "en", "ja", "google_free")
        assert base != make_cache_key("Hello", "en", "fr", "google_free")
        assert base != make_cache_key("Hello", "en", "ja", "deepl_free")
        assert base != make_cache_key("Hello!", "en", "ja", "google_free")

    def test_nfc_normalized(self):
        """NFC 正規化により合成済み・分解済みの文字列は同じキー"""
        composed = "caf\u00e9"
        decomposed = "cafe\u0301"
        assert make_cache_key(composed, "fr", "en", "p") == make_cache_key(
            decomposed, "fr", "en", "p"
        )


class TestTranslationCacheBasic:
    """基本動作のテスト"""

    def test_defaults(self):
        """既定値は 1000 件・7 日"""
        cache = TranslationCache()
        assert cache.max_size == DEFAULT_MAX_SIZE == 1000
        assert cache.ttl_seconds == DEFAULT_TTL_SECONDS == 604800

    def test_set_and_get(self, clock):
        """保存したものを取得できる"""
        cache = TranslationCache(clock=clock)
        cache.set("Hello", "こんにちは", "en", "ja", "google_free")
        assert cache.get("Hello", "en", "ja", "google_free") == "こんにちは"
        assert cache.get("Hello", "en", "ja", "deepl_free") is None

    def test_stats(self, clock):
        """ヒット・ミスを数える"""
        cache = TranslationCache(clock=clock)
        cache.set("a", "A", "en", "ja", "p")
        cache.get("a", "en", "ja", "p")
        cache.get("b", "en", "ja", "p")
        stats = cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.5
        assert stats["size"] == 1
        assert stats["path"] is None

    def test_overwrite_same_key(self, clock):
        """同じキーは上書きされ件数は増えない"""
        cache = TranslationCache(clock=clock)
        cache.set("a", "A1", "en", "ja", "p")
        cache.set("a", "A2", "en", "ja", "p")
        assert len(cache) == 1
        assert cache.get("a", "en", "ja", "p") == "A2"


class TestTranslationCacheExpiry:
    """TTL のテスト"""

    def test_entry_expires_after_ttl(self, clock):
        """TTL を過ぎたエントリは返さず削除する"""
        cache = TranslationCache(ttl_seconds=60, clock=clock)
        cache.set("a", "A", "en", "ja", "p")
        clock.advance(60)
        assert cache.get("a", "en", "ja", "p") == "A"
        clock.advance(1)
        assert cache.get("a", "en", "ja", "p") is None
        assert len(cache) == 0

    def test_clear_expired(self, clock):
        """失効エントリだけを削除して件数を返す"""
        cache = TranslationCache(ttl_seconds=60, clock=clock)
        cache.set("old", "OLD", "en", "ja", "p")
        clock.advance(45)
        cache.set("new", "NEW", "en", "ja", "p")
        clock.advance(30)
        assert cache.clear_expired() == 1
        assert cache.get("new", "en", "ja", "p") == "NEW"

    def test_clear(self, clock):
        """clear で全件削除"""
        cache = TranslationCache(clock=clock)
        cache.set("a", "A", "en", "ja", "p")
        cache.clear()
        assert len(cache) == 0
        assert cache.get_stats()["hits"] == 0


class TestTranslationCacheEviction:
    """容量超過時の削除のテスト"""

    def test_oldest_evicted(self, clock):
        """容量を超えると最も古いエントリを削除する"""
        cache = TranslationCache(max_size=3, clock=clock)
        for text in ("a", "b", "c"):
            cache.set(text, text.upper(), "en", "ja", "p")
            clock.advance(1)
        cache.set("d", "D", "en", "ja", "p")

        assert len(cache) == 3
        assert cache.get("a", "en", "ja", "p") is None
        assert cache.get("d", "en", "ja", "p") == "D"

    def test_expired_purged_before_oldest(self, clock):
        """失効エントリがあればそれを先に削除する"""
        cache = TranslationCache(max_size=2, ttl_seconds=10, clock=clock)
        cache.set("a", "A", "en", "ja", "p")
        clock.advance(5)
        cache.set("b", "B", "en", "ja", "p")
        clock.advance(6)  # a だけ失効
        cache.set("c", "C", "en", "ja", "p")

        assert cache.get("b", "en", "ja", "p") == "B"
        assert cache.get("c", "en", "ja", "p") == "C"

    def test_concurrent_sets_respect_capacity(self, clock):
        """並行する set でも最大件数を超えない"""
        cache = TranslationCache(max_size=50, clock=clock)

        def worker(prefix: str):
            for i in range(100):
                cache.set(f"{prefix}-{i}", "x", "en", "ja", "p")

        threads = [threading.Thread(target=worker, args=(str(n),)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) <= 50


class TestTranslationCachePersistence:
    """永続化のテスト"""

    def test_round_trip(self, tmp_path, clock):
        """書き込んだ内容を別インスタンスで読み込める"""
        path = tmp_path / "cache" / "translation_cache.json"
        cache = TranslationCache(path=path, clock=clock)
        cache.set("Hello", "Bonjour", "en", "fr", "google_free")
        cache.flush()
        cache.close()

        assert path.exists()
        restored = TranslationCache(path=path, clock=clock)
        assert restored.load() == 1
        assert restored.get("Hello", "en", "fr", "google_free") == "Bonjour"

    def test_load_skips_expired(self, tmp_path, clock):
        """失効済みのエントリは読み込まない"""
        path = tmp_path / "translation_cache.json"
        cache = TranslationCache(path=path, ttl_seconds=100, clock=clock)
        cache.set("a", "A", "en", "ja", "p")
        clock.advance(50)
        cache.set("b", "B", "en", "ja", "p")
        cache.flush()
        cache.close()

        clock.advance(60)
        restored = TranslationCache(path=path, ttl_seconds=100, clock=clock)
        assert restored.load() == 1
        assert restored.get("b", "en", "ja", "p") == "B"

    def test_load_keeps_newest_within_capacity(self, tmp_path, clock):
        """読み込み時も最大件数を超えない（新しいものを残す）"""
        path = tmp_path / "translation_cache.json"
        cache = TranslationCache(path=path, max_size=10, clock=clock)
        for i in range(5):
            cache.set(str(i), str(i), "en", "ja", "p")
            clock.advance(1)
        cache.flush()
        cache.close()

        restored = TranslationCache(path=path, max_size=2, clock=clock)
        assert restored.load() == 2
        assert restored.get("4", "en", "ja", "p") == "4"
        assert restored.get("0", "en", "ja", "p") is None

    def test_missing_file(self, tmp_path):
        """ファイルがなければ空"""
        cache = TranslationCache(path=tmp_path / "none.json")
        assert cache.load() == 0

    def test_corrupt_file_is_ignored(self, tmp_path, caplog):
        """壊れたファイルは警告して空として扱う"""
        path = tmp_path / "translation_cache.json"
        path.write_text("{not json", encoding="utf-8")
        cache = TranslationCache(path=path)
        with caplog.at_level("WARNING", logger="polytrans.translation.cache"):
            assert cache.load() == 0
        assert "Failed to load translation cache" in caplog.text

    def test_malformed_items_skipped(self, tmp_path, clock):
        """形式の合わない要素は読み飛ばす"""
        path = tmp_path / "translation_cache.json"
        good = {
            "original_text": "a",
            "translated_text": "A",
            "source_lang": "en",
            "target_lang": "ja",
            "provider": "p",
            "timestamp": clock.now,
        }
        key = make_cache_key("a", "en", "ja", "p")
        path.write_text(json.dumps([[key, good], ["bad"], [key, {"x": 1}]]), encoding="utf-8")

        cache = TranslationCache(path=path, clock=clock)
        assert cache.load() == 1
        assert cache.get("a", "en", "ja", "p") == "A"

    def test_clear_removes_file(self, tmp_path, clock):
        """clear で永続化ファイルも削除する"""
        path = tmp_path / "translation_cache.json"
        cache = TranslationCache(path=path, clock=clock)
        cache.set("a", "A", "en", "ja", "p")
        cache.flush()
        cache.clear()
        cache.flush()
        cache.close()
        assert not path.exists()

    def test_write_failure_does_not_raise(self, tmp_path, clock, caplog):
        """書き込みに失敗しても例外は送出しない"""
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        cache = TranslationCache(path=blocker / "translation_cache.json", clock=clock)
        with caplog.at_level("WARNING", logger="polytrans.translation.cache"):
            cache.set("a", "A", "en", "ja", "p")
            cache.flush()
        cache.close()
        assert cache.get("a", "en", "ja", "p") == "A"
        assert "Failed to persist translation cache" in caplog.text
