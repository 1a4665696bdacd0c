"""
翻訳パイプライン

複数の翻訳プロバイダ（Google, Microsoft, DeepL, ChatGPT, Claude, Gemini など）を
並行・フォールバック実行し、結果のキャッシュ、リクエスト識別子のローテーション、
HTML 構造を保った分割翻訳を提供する。

Usage:
    from polytrans.translation import TranslatorFactory

    translator = TranslatorFactory.create_translator(
        {"translation": {"target_lang": "ja"}}
    )
    text = await translator.translate("Hello")
    html = await translator.translate_html("<p>Hello</p><p>World</p>")
    await translator.aclose()
"""

from __future__ import annotations

from .base import BaseProvider
from .cache import CacheEntry, TranslationCache, make_cache_key
from .credentials import CredentialSet
from .exceptions import (
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
from .factory import ProviderFactory, TranslatorFactory
from .identity import Identity, IdentityRotator, static_headers
from .lang_codes import get_language_name, resolve_code, to_iso639_1
from .metadata import ProviderDescriptor, ProviderInfo, ProviderMetadata
from .orchestrator import MergeStrategy, MultiProviderTranslator
from .result import ContentKind, TranslationRequest, TranslationResult
from .retry import backoff_delay, with_retry
from .segmenter import HtmlSegmenter, Segment, TextNode

__all__ = [
    # Core classes
    "BaseProvider",
    "MultiProviderTranslator",
    "MergeStrategy",
    "ProviderFactory",
    "TranslatorFactory",
    "ProviderMetadata",
    "ProviderDescriptor",
    "ProviderInfo",
    "TranslationRequest",
    "TranslationResult",
    "ContentKind",
    # Cache / identity / credentials
    "TranslationCache",
    "CacheEntry",
    "make_cache_key",
    "IdentityRotator",
    "Identity",
    "static_headers",
    "CredentialSet",
    # HTML
    "HtmlSegmenter",
    "Segment",
    "TextNode",
    # Exceptions
    "TranslationError",
    "MissingCredentialError",
    "AuthFailureError",
    "TranslationNetworkError",
    "TranslationTimeoutError",
    "UpstreamHTTPError",
    "UpstreamFormatError",
    "ProviderExhaustedError",
    "AllProvidersFailedError",
    # Language code utilities
    "to_iso639_1",
    "resolve_code",
    "get_language_name",
    # Retry decorator
    "with_retry",
    "backoff_delay",
]
