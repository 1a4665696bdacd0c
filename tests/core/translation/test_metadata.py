"""
ProviderMetadata のテスト
"""

from __future__ import annotations

import dataclasses

import pytest

from polytrans.translation.metadata import ProviderDescriptor, ProviderInfo, ProviderMetadata

ALL_PROVIDERS = {
    "google_free",
    "google_free_new",
    "microsoft_edge",
    "deepl_free",
    "deepl_pro",
    "chatgpt",
    "azure_chatgpt",
    "deepseek",
    "gemini",
    "claude",
    "microsoft",
    "youdao",
    "baidu",
}


class TestProviderMetadata:
    """ProviderMetadata のテスト"""

    def test_all_registered(self):
        """全プロバイダが登録されている"""
        assert set(ProviderMetadata.list_provider_ids()) == ALL_PROVIDERS

    def test_get_existing(self):
        """登録情報を取得"""
        info = ProviderMetadata.get("google_free")
        assert isinstance(info, ProviderInfo)
        assert info.module == ".impl.google"
        assert info.class_name == "GoogleFreeProvider"
        assert info.descriptor.free is True

    def test_get_nonexistent(self):
        """未登録は None"""
        assert ProviderMetadata.get("nonexistent") is None

    def test_descriptor_unknown_raises(self):
        """未登録の descriptor は ValueError"""
        with pytest.raises(ValueError, match="Unknown provider"):
            ProviderMetadata.descriptor("nonexistent")

    def test_get_all_is_copy(self):
        """get_all はコピーを返す"""
        all_providers = ProviderMetadata.get_all()
        all_providers.pop("google_free")
        assert ProviderMetadata.get("google_free") is not None

    def test_free_providers(self):
        """無料プロバイダは認証情報不要"""
        free = ProviderMetadata.list_free_provider_ids()
        assert {"google_free", "google_free_new", "microsoft_edge", "deepl_free"} <= set(free)
        for provider_id in free:
            assert ProviderMetadata.descriptor(provider_id).needs_credential is False

    def test_paid_providers_need_credentials(self):
        """有料プロバイダは認証情報が必要"""
        for provider_id in ALL_PROVIDERS - set(ProviderMetadata.list_free_provider_ids()):
            assert ProviderMetadata.descriptor(provider_id).needs_credential is True


class TestProviderDescriptor:
    """ProviderDescriptor のテスト"""

    def test_frozen(self):
        """構築後は変更できない"""
        descriptor = ProviderMetadata.descriptor("claude")
        with pytest.raises(dataclasses.FrozenInstanceError):
            descriptor.request_timeout = 1.0  # type: ignore[misc]

    def test_rate_limited_providers(self):
        """レート制限の厳しいプロバイダは同時実行 1"""
        claude = ProviderMetadata.descriptor("claude")
        assert claude.concurrency_limit == 1
        assert claude.request_interval == 12.0
        assert ProviderMetadata.descriptor("gemini").concurrency_limit == 1

    def test_defaults(self):
        """既定の調整値"""
        descriptor = ProviderMetadata.descriptor("google_free")
        assert isinstance(descriptor, ProviderDescriptor)
        assert descriptor.request_timeout == 10.0
        assert descriptor.request_attempts == 3
        assert descriptor.concurrency_limit == 0

    def test_language_tables(self):
        """言語テーブルを持つ"""
        descriptor = ProviderMetadata.descriptor("deepl_free")
        assert descriptor.target_languages["Japanese"] == "JA"
