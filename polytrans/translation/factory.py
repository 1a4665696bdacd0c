"""
翻訳プロバイダ・オーケストレータのファクトリー

ProviderFactory は登録情報からプロバイダを動的に生成する。
TranslatorFactory は設定辞書から、キャッシュ・識別子ローテータ・セグメンタを
組み合わせた MultiProviderTranslator を構築する。
"""

from __future__ import annotations

import importlib
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

import appdirs

from ..config.defaults import CACHE_DIR_ENV, DEFAULT_CONFIG, env_api_keys, merge_config
from ..config.validator import ConfigValidator
from .cache import CACHE_FILE_NAME, TranslationCache
from .identity import IdentityRotator
from .metadata import ProviderMetadata
from .orchestrator import MultiProviderTranslator
from .segmenter import HtmlSegmenter

if TYPE_CHECKING:
    from .base import BaseProvider

logger = logging.getLogger(__name__)

APP_NAME = "polytrans"


class ProviderFactory:
    """翻訳プロバイダを作成するファクトリークラス"""

    @classmethod
    def create_provider(cls, provider_id: str, **provider_options: Any) -> BaseProvider:
        """
        指定された ID のプロバイダを作成

        Args:
            provider_id: プロバイダ ID（例: "google_free", "deepl_pro"）
            **provider_options: プロバイダ固有のパラメータ

        Returns:
            BaseProvider のインスタンス

        Raises:
            ValueError: 未登録の ID が指定された場合

        Examples:
            >>> provider = ProviderFactory.create_provider("google_free", target_lang="ja")
            >>> provider = ProviderFactory.create_provider(
            ...     "deepl_pro",
            ...     api_keys=["key-1", "key-2"],
            ... )
        """
        info = ProviderMetadata.get(provider_id)
        if info is None:
            available = ProviderMetadata.list_provider_ids()
            raise ValueError(f"Unknown provider: {provider_id}. Available: {available}")

        params = {**info.default_params, **provider_options}
        module = importlib.import_module(info.module, package="polytrans.translation")
        provider_class = getattr(module, info.class_name)
        return provider_class(**params)

    @classmethod
    def list_available_providers(cls) -> List[str]:
        """登録済みプロバイダ ID のリスト"""
        return ProviderMetadata.list_provider_ids()


def default_cache_path() -> Path:
    """
    キャッシュファイルの既定パス

    POLYTRANS_CACHE_DIR があればそのディレクトリ、なければ
    appdirs のユーザーキャッシュディレクトリを使う。
    """
    directory = os.environ.get(CACHE_DIR_ENV) or appdirs.user_cache_dir(APP_NAME)
    return Path(directory) / CACHE_FILE_NAME


class TranslatorFactory:
    """設定から MultiProviderTranslator を構築するファクトリークラス"""

    @classmethod
    def create_translator(
        cls,
        config: Optional[Mapping[str, Any]] = None,
        *,
        cache: Optional[TranslationCache] = None,
        identity_rotator: Optional[IdentityRotator] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> MultiProviderTranslator:
        """
        設定辞書から翻訳オーケストレータを作成

        Args:
            config: DEFAULT_CONFIG に上書きする設定
            cache: 共有するキャッシュ（未指定なら設定から生成して load() する）
            identity_rotator: 共有する識別子ローテータ（未指定なら設定から生成）
            environ: API キーを読む環境変数（既定: os.environ）

        Returns:
            MultiProviderTranslator

        Raises:
            ValueError: 設定の検証に失敗した場合

        Examples:
            >>> translator = TranslatorFactory.create_translator(
            ...     {"translation": {"target_lang": "ja"}}
            ... )
        """
        merged = merge_config(DEFAULT_CONFIG, dict(config) if config else None)
        ConfigValidator.validate_or_raise(merged)

        translation = merged["translation"]
        identity = merged["identity"]
        if identity_rotator is None:
            identity_rotator = IdentityRotator(
                pool_size=identity["pool_size"], seed=identity["seed"]
            )

        providers = [
            ProviderFactory.create_provider(
                provider_id,
                **cls._provider_options(merged, provider_id, identity_rotator, environ),
            )
            for provider_id in translation["providers"]
        ]

        if cache is None:
            cache = cls.create_cache(merged["cache"])

        html = merged["html"]
        segmenter = HtmlSegmenter(
            small_node_chars=html["small_node_chars"],
            group_max_chars=html["group_max_chars"],
            max_concurrency=html["max_concurrency"],
            wave_pause=html["wave_pause"],
        )

        logger.debug(
            "Created translator with providers %s (multi=%s)",
            translation["providers"],
            translation["use_multiple_providers"],
        )
        return MultiProviderTranslator(
            providers,
            source_lang=translation["source_lang"],
            target_lang=translation["target_lang"],
            use_multiple_providers=translation["use_multiple_providers"],
            merge_strategy=translation["merge_strategy"],
            cache=cache,
            segmenter=segmenter,
            free_only_node_threshold=html["free_only_node_threshold"],
        )

    @classmethod
    def create_cache(cls, cache_config: Mapping[str, Any]) -> Optional[TranslationCache]:
        """cache セクションから TranslationCache を作成して永続化済みのエントリを読み込む"""
        if not cache_config.get("enabled", True):
            return None
        path = cache_config.get("path") or default_cache_path()
        cache = TranslationCache(
            path=path,
            max_size=cache_config.get("max_size", 1000),
            ttl_seconds=cache_config.get("ttl_seconds", 7 * 24 * 60 * 60),
        )
        cache.load()
        return cache

    @staticmethod
    def _provider_options(
        config: Mapping[str, Any],
        provider_id: str,
        identity_rotator: IdentityRotator,
        environ: Optional[Mapping[str, str]],
    ) -> Dict[str, Any]:
        options: Dict[str, Any] = dict(config["providers"].get(provider_id, {}))

        keys = list(options.pop("api_keys", None) or [])
        for key in env_api_keys(provider_id, environ):
            if key not in keys:
                keys.append(key)
        if keys:
            options["api_keys"] = keys

        if options.get("proxy") is None and config["network"].get("proxy"):
            options["proxy"] = config["network"]["proxy"]
        options["identity_rotator"] = identity_rotator
        return options
