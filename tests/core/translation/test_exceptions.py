"""
翻訳例外クラスのテスト
"""

from __future__ import annotations

import pytest

from polytrans.translation.exceptions import (
    AllProvidersFailedError,
    AuthFailureError,
    MissingCredentialError,
    ProviderExhaustedError,
    TranslationError,
    TranslationNetworkError,
    TranslationTimeoutError,
    UpstreamFormatError,
    UpstreamHTTPError,
)


class TestExceptionHierarchy:
    """例外クラス階層のテスト"""

    @pytest.mark.parametrize(
        "error_class",
        [
            MissingCredentialError,
            AuthFailureError,
            TranslationNetworkError,
            UpstreamFormatError,
            ProviderExhaustedError,
            AllProvidersFailedError,
        ],
    )
    def test_is_translation_error(self, error_class):
        """全て TranslationError のサブクラス"""
        assert issubclass(error_class, TranslationError)

    def test_timeout_is_network_error(self):
        """タイムアウトはネットワークエラーの一種"""
        assert issubclass(TranslationTimeoutError, TranslationNetworkError)

    def test_http_error_is_network_error(self):
        """非 2xx 応答はネットワークエラーの一種"""
        assert issubclass(UpstreamHTTPError, TranslationNetworkError)


class TestUpstreamHTTPError:
    """UpstreamHTTPError のテスト"""

    def test_message_contains_status(self):
        """ステータスと本文がメッセージに含まれる"""
        error = UpstreamHTTPError(403, "forbidden")
        assert "403" in str(error)
        assert "forbidden" in str(error)
        assert error.status_code == 403

    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    def test_capacity_statuses(self, status):
        """レート制限・過負荷系は is_capacity"""
        assert UpstreamHTTPError(status).is_capacity is True

    @pytest.mark.parametrize("status", [400, 401, 403, 404])
    def test_client_errors_are_not_capacity(self, status):
        """クライアントエラーは is_capacity ではない"""
        assert UpstreamHTTPError(status).is_capacity is False


class TestCompositeErrors:
    """付加情報を持つ例外のテスト"""

    def test_missing_credential_detail(self):
        """詳細メッセージ付き"""
        error = MissingCredentialError("deepl_pro", "key rejected")
        assert error.provider == "deepl_pro"
        assert "deepl_pro requires an API key: key rejected" == str(error)

    def test_exhausted_keeps_last_error(self):
        """最後のエラーを保持する"""
        last = TranslationNetworkError("connection reset")
        error = ProviderExhaustedError("google_free", 3, last)
        assert error.last_error is last
        assert error.attempts == 3
        assert "3 attempt(s)" in str(error)

    def test_all_failed_lists_providers(self):
        """失敗したプロバイダ名を列挙する"""
        errors = {"a": TranslationError("x"), "b": TranslationError("y")}
        error = AllProvidersFailedError(errors)
        assert error.errors == errors
        assert "a, b" in str(error)
