"""
翻訳リクエスト・結果データクラスのテスト
"""

from __future__ import annotations

import pytest

from polytrans.translation.result import ContentKind, TranslationRequest, TranslationResult


class TestContentKind:
    """ContentKind.infer のテスト"""

    @pytest.mark.parametrize(
        "content",
        ["<p>Hello</p>", "Text with <b>bold</b>", "<DIV class='x'>a</DIV>"],
    )
    def test_html(self, content):
        assert ContentKind.infer(content) is ContentKind.HTML

    @pytest.mark.parametrize("content", ["Hello", "1 < 2 and 3 > 2", "", "a <3 b"])
    def test_text(self, content):
        assert ContentKind.infer(content) is ContentKind.TEXT


class TestTranslationRequest:
    """TranslationRequest のテスト"""

    def test_create_infers_kind(self):
        request = TranslationRequest.create("<p>Hi</p>", "auto", "ja")
        assert request.kind is ContentKind.HTML
        assert request.source_lang == "auto"

    def test_default_kind(self):
        assert TranslationRequest("Hi", "en", "ja").kind is ContentKind.TEXT


class TestTranslationResult:
    """TranslationResult のテスト"""

    def test_fields(self):
        result = TranslationResult(
            text="こんにちは",
            original_text="Hello",
            source_lang="en",
            target_lang="ja",
            provider="google_free",
        )
        assert result.cached is False
        assert result.provider == "google_free"
