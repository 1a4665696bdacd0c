"""
翻訳プロバイダのメタデータ管理

プロバイダの静的情報（エンドポイント、認証要否、言語テーブル、
リクエスト調整値）と、ファクトリー生成用の登録情報を管理する。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from . import lang_codes


@dataclass(frozen=True)
class ProviderDescriptor:
    """プロバイダの静的情報（構築後は不変）"""

    name: str  # プロバイダ ID
    alias: str  # 表示名
    free: bool  # 認証情報なしで利用可能か
    needs_credential: bool
    endpoint: str
    source_languages: Mapping[str, str]  # 言語名 → プロバイダコード
    target_languages: Mapping[str, str]
    request_timeout: float = 10.0  # 秒
    request_attempts: int = 3
    request_interval: float = 0.0  # バックオフ基準間隔（秒）
    concurrency_limit: int = 0  # 0 = 無制限
    auth_error_markers: Tuple[str, ...] = ("401", "403")
    supports_html: bool = False


@dataclass
class ProviderInfo:
    """ファクトリー生成用の登録情報"""

    provider_id: str
    description: str
    module: str  # e.g., ".impl.google"
    class_name: str  # e.g., "GoogleFreeProvider"
    descriptor: ProviderDescriptor
    default_params: Dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.descriptor.alias


def _register(*infos: ProviderInfo) -> Dict[str, ProviderInfo]:
    return {info.provider_id: info for info in infos}


class ProviderMetadata:
    """翻訳プロバイダのメタデータ管理"""

    _PROVIDERS: Dict[str, ProviderInfo] = _register(
        ProviderInfo(
            provider_id="google_free",
            description="Google Translate web endpoint (gtx client)",
            module=".impl.google",
            class_name="GoogleFreeProvider",
            descriptor=ProviderDescriptor(
                name="google_free",
                alias="Google (Free)",
                free=True,
                needs_credential=False,
                endpoint="https://translate.googleapis.com/translate_a/single",
                source_languages=lang_codes.GOOGLE_LANGUAGES,
                target_languages=lang_codes.GOOGLE_LANGUAGES,
            ),
        ),
        ProviderInfo(
            provider_id="google_free_new",
            description="Google Translate translate-pa endpoint",
            module=".impl.google",
            class_name="GoogleFreeNewProvider",
            descriptor=ProviderDescriptor(
                name="google_free_new",
                alias="Google (Free) - New",
                free=True,
                needs_credential=False,
                endpoint="https://translate-pa.googleapis.com/v1/translate",
                source_languages=lang_codes.GOOGLE_LANGUAGES,
                target_languages=lang_codes.GOOGLE_LANGUAGES,
            ),
        ),
        ProviderInfo(
            provider_id="microsoft_edge",
            description="Microsoft Translator via the Edge browser token",
            module=".impl.microsoft",
            class_name="MicrosoftEdgeProvider",
            descriptor=ProviderDescriptor(
                name="microsoft_edge",
                alias="Microsoft Edge (Free)",
                free=True,
                needs_credential=False,
                endpoint="https://api-edge.cognitive.microsofttranslator.com/translate",
                source_languages=lang_codes.MICROSOFT_SOURCE_LANGUAGES,
                target_languages=lang_codes.MICROSOFT_LANGUAGES,
                supports_html=True,
            ),
        ),
        ProviderInfo(
            provider_id="deepl_free",
            description="DeepL API Free",
            module=".impl.deepl",
            class_name="DeepLFreeProvider",
            descriptor=ProviderDescriptor(
                name="deepl_free",
                alias="DeepL (Free)",
                free=True,
                needs_credential=False,
                endpoint="https://api-free.deepl.com/v2/translate",
                source_languages=lang_codes.DEEPL_LANGUAGES,
                target_languages=lang_codes.DEEPL_LANGUAGES,
                supports_html=True,
            ),
        ),
        ProviderInfo(
            provider_id="deepl_pro",
            description="DeepL API Pro",
            module=".impl.deepl",
            class_name="DeepLProProvider",
            descriptor=ProviderDescriptor(
                name="deepl_pro",
                alias="DeepL (Pro)",
                free=False,
                needs_credential=True,
                endpoint="https://api.deepl.com/v2/translate",
                source_languages=lang_codes.DEEPL_LANGUAGES,
                target_languages=lang_codes.DEEPL_LANGUAGES,
                auth_error_markers=("403", "456"),
                supports_html=True,
            ),
        ),
        ProviderInfo(
            provider_id="chatgpt",
            description="OpenAI chat completions",
            module=".impl.openai",
            class_name="ChatGPTProvider",
            descriptor=ProviderDescriptor(
                name="chatgpt",
                alias="ChatGPT (OpenAI)",
                free=False,
                needs_credential=True,
                endpoint="https://api.openai.com/v1/chat/completions",
                source_languages=lang_codes.OPENAI_LANGUAGES,
                target_languages=lang_codes.OPENAI_LANGUAGES,
                request_timeout=30.0,
                request_interval=1.0,
                concurrency_limit=1,
                auth_error_markers=("401", "429", "insufficient_quota"),
                supports_html=True,
            ),
            default_params={"model": "gpt-3.5-turbo", "temperature": 0.3},
        ),
        ProviderInfo(
            provider_id="azure_chatgpt",
            description="Azure OpenAI chat completions (deployment endpoint)",
            module=".impl.openai",
            class_name="AzureChatGPTProvider",
            descriptor=ProviderDescriptor(
                name="azure_chatgpt",
                alias="ChatGPT (Azure)",
                free=False,
                needs_credential=True,
                endpoint=(
                    "https://{resource}.openai.azure.com/openai/deployments/"
                    "{deployment}/chat/completions?api-version={api_version}"
                ),
                source_languages=lang_codes.OPENAI_LANGUAGES,
                target_languages=lang_codes.OPENAI_LANGUAGES,
                request_timeout=30.0,
                request_interval=1.0,
                concurrency_limit=1,
                auth_error_markers=("401", "429", "insufficient_quota"),
                supports_html=True,
            ),
            default_params={"api_version": "2024-02-01", "temperature": 0.3},
        ),
        ProviderInfo(
            provider_id="deepseek",
            description="DeepSeek chat completions",
            module=".impl.openai",
            class_name="DeepSeekProvider",
            descriptor=ProviderDescriptor(
                name="deepseek",
                alias="DeepSeek (Chat)",
                free=False,
                needs_credential=True,
                endpoint="https://api.deepseek.com/v1/chat/completions",
                source_languages=lang_codes.OPENAI_LANGUAGES,
                target_languages=lang_codes.OPENAI_LANGUAGES,
                request_timeout=30.0,
                auth_error_markers=("401", "429", "insufficient_quota"),
                supports_html=True,
            ),
            default_params={"model": "deepseek-chat", "temperature": 1.3},
        ),
        ProviderInfo(
            provider_id="gemini",
            description="Google Gemini generateContent (SSE stream)",
            module=".impl.gemini",
            class_name="GeminiProvider",
            descriptor=ProviderDescriptor(
                name="gemini",
                alias="Gemini",
                free=False,
                needs_credential=True,
                endpoint="https://generativelanguage.googleapis.com/v1beta/models",
                source_languages=lang_codes.GOOGLE_LANGUAGES,
                target_languages=lang_codes.GOOGLE_LANGUAGES,
                request_timeout=30.0,
                request_interval=1.0,
                concurrency_limit=1,
                auth_error_markers=(
                    "API_KEY_INVALID",
                    "PERMISSION_DENIED",
                    "RESOURCE_EXHAUSTED",
                ),
                supports_html=True,
            ),
            default_params={"model": "gemini-2.5-flash", "temperature": 0.9, "stream": True},
        ),
        ProviderInfo(
            provider_id="claude",
            description="Anthropic messages API",
            module=".impl.anthropic",
            class_name="ClaudeProvider",
            descriptor=ProviderDescriptor(
                name="claude",
                alias="Claude (Anthropic)",
                free=False,
                needs_credential=True,
                endpoint="https://api.anthropic.com/v1/messages",
                source_languages=lang_codes.ANTHROPIC_LANGUAGES,
                target_languages=lang_codes.ANTHROPIC_LANGUAGES,
                request_timeout=30.0,
                request_interval=12.0,
                concurrency_limit=1,
                auth_error_markers=("401", "permission_error"),
                supports_html=True,
            ),
            default_params={"model": "claude-3-7-sonnet-latest", "temperature": 1.0},
        ),
        ProviderInfo(
            provider_id="microsoft",
            description="Azure AI Translator (subscription key)",
            module=".impl.microsoft",
            class_name="MicrosoftProvider",
            descriptor=ProviderDescriptor(
                name="microsoft",
                alias="Microsoft Translator",
                free=False,
                needs_credential=True,
                endpoint="https://api.cognitive.microsofttranslator.com/translate",
                source_languages=lang_codes.MICROSOFT_SOURCE_LANGUAGES,
                target_languages=lang_codes.MICROSOFT_LANGUAGES,
                auth_error_markers=("401", "403", "400"),
            ),
            default_params={"region": "global"},
        ),
        ProviderInfo(
            provider_id="youdao",
            description="Youdao open API (signType v3)",
            module=".impl.youdao",
            class_name="YoudaoProvider",
            descriptor=ProviderDescriptor(
                name="youdao",
                alias="Youdao",
                free=False,
                needs_credential=True,
                endpoint="https://openapi.youdao.com/api",
                source_languages=lang_codes.YOUDAO_LANGUAGES,
                target_languages=lang_codes.YOUDAO_LANGUAGES,
                auth_error_markers=("401",),
            ),
        ),
        ProviderInfo(
            provider_id="baidu",
            description="Baidu Fanyi general translation API",
            module=".impl.baidu",
            class_name="BaiduProvider",
            descriptor=ProviderDescriptor(
                name="baidu",
                alias="Baidu",
                free=False,
                needs_credential=True,
                endpoint="https://fanyi-api.baidu.com/api/trans/vip/translate",
                source_languages=lang_codes.BAIDU_LANGUAGES,
                target_languages=lang_codes.BAIDU_LANGUAGES,
                auth_error_markers=("54004",),
            ),
        ),
    )

    @classmethod
    def get(cls, provider_id: str) -> Optional[ProviderInfo]:
        """
        プロバイダのメタデータを取得

        Args:
            provider_id: プロバイダ ID

        Returns:
            ProviderInfo、見つからない場合は None
        """
        return cls._PROVIDERS.get(provider_id)

    @classmethod
    def get_all(cls) -> Dict[str, ProviderInfo]:
        """全プロバイダのメタデータ（ID をキーとした辞書のコピー）"""
        return cls._PROVIDERS.copy()

    @classmethod
    def descriptor(cls, provider_id: str) -> ProviderDescriptor:
        """
        プロバイダの静的情報を取得

        Raises:
            ValueError: 未登録の ID が指定された場合
        """
        info = cls.get(provider_id)
        if info is None:
            raise ValueError(
                f"Unknown provider: {provider_id}. Available: {cls.list_provider_ids()}"
            )
        return info.descriptor

    @classmethod
    def list_provider_ids(cls) -> List[str]:
        """登録済みプロバイダ ID のリスト（登録順）"""
        return list(cls._PROVIDERS.keys())

    @classmethod
    def list_free_provider_ids(cls) -> List[str]:
        """認証情報なしで利用できるプロバイダ ID のリスト"""
        return [pid for pid, info in cls._PROVIDERS.items() if info.descriptor.free]
