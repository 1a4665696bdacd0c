"""
チャット補完系プロバイダ

ChatGPT / Azure OpenAI / DeepSeek はいずれも同じ呼び出し形式で、
エンドポイント・モデル・温度・認証ヘッダーだけが異なる。
それぞれ PromptTranslationAdapter を設定して保持し、組み立てと解析を委譲する。
"""

from __future__ import annotations

from typing import Optional

import httpx

from ..base import BaseProvider
from ..exceptions import MissingCredentialError
from .prompt import PromptTranslationAdapter

DEEPSEEK_MODELS = ("deepseek-chat", "deepseek-reasoner")


class _AdapterDelegate:
    """PromptTranslationAdapter への委譲"""

    adapter: PromptTranslationAdapter

    async def build_request(self, text: str) -> httpx.Request:
        return self.adapter.build_request(
            self._get_client(),  # type: ignore[attr-defined]
            text,
            source=self.source_language_name(),  # type: ignore[attr-defined]
            target=self.target_language_name(),  # type: ignore[attr-defined]
            api_key=self.credentials.current,  # type: ignore[attr-defined]
            headers=self.identity_headers(),  # type: ignore[attr-defined]
        )

    async def parse_response(self, response: httpx.Response, text: str) -> str:
        return self.adapter.extract(await self.read_json(response))  # type: ignore[attr-defined]


class ChatGPTProvider(_AdapterDelegate, BaseProvider):
    """ChatGPT (OpenAI)"""

    PROVIDER_ID = "chatgpt"

    def __init__(
        self,
        model: str = "gpt-3.5-turbo",
        temperature: float = 0.3,
        endpoint: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.adapter = PromptTranslationAdapter(
            endpoint=endpoint or self.descriptor.endpoint,
            model=model,
            temperature=temperature,
        )


class DeepSeekProvider(_AdapterDelegate, BaseProvider):
    """DeepSeek (Chat)"""

    PROVIDER_ID = "deepseek"

    def __init__(
        self,
        model: str = "deepseek-chat",
        temperature: float = 1.3,
        endpoint: Optional[str] = None,
        **kwargs,
    ):
        if model not in DEEPSEEK_MODELS:
            raise ValueError(f"Unknown DeepSeek model: {model}. Available: {list(DEEPSEEK_MODELS)}")
        super().__init__(**kwargs)
        self.adapter = PromptTranslationAdapter(
            endpoint=endpoint or self.descriptor.endpoint,
            model=model,
            temperature=temperature,
        )


class AzureChatGPTProvider(_AdapterDelegate, BaseProvider):
    """
    ChatGPT (Azure)

    エンドポイントはリソース名・デプロイ名・API バージョンから組み立てる。
    endpoint を直接指定した場合はそちらを優先する。
    """

    PROVIDER_ID = "azure_chatgpt"

    def __init__(
        self,
        resource: Optional[str] = None,
        deployment: Optional[str] = None,
        api_version: str = "2024-02-01",
        endpoint: Optional[str] = None,
        temperature: float = 0.3,
        **kwargs,
    ):
        super().__init__(**kwargs)
        if endpoint is None and resource and deployment:
            endpoint = self.descriptor.endpoint.format(
                resource=resource, deployment=deployment, api_version=api_version
            )
        self.adapter = PromptTranslationAdapter(
            endpoint=endpoint or "",
            model=None,
            temperature=temperature,
            auth_header="api-key",
            auth_scheme=None,
        )

    async def build_request(self, text: str) -> httpx.Request:
        if not self.adapter.endpoint:
            raise MissingCredentialError(self.name, "resource and deployment are not configured")
        return await super().build_request(text)
