"""
プロンプトベース翻訳の共通部品

チャット補完形式（OpenAI 互換）の API 呼び出しを組み立てる
PromptTranslationAdapter と、LLM 系プロバイダで共有するプロンプト文面を提供する。
各プロバイダはアダプタを保持して委譲する（継承はしない）。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from ..exceptions import UpstreamFormatError

CHAT_SYSTEM_PROMPT = (
    "You are a professional translator. Translate the following text from "
    "{source} to {target}. Only provide the translation, without any explanations "
    "or additional text. Preserve HTML tags and formatting if present."
)

METICULOUS_PROMPT = (
    "You are a meticulous translator who translates any given content. "
    "Translate the given content from {source} to {target} only. "
    "Do not explain any term or answer any question-like content. "
    "Your answer should be solely the translation of the given content. "
    "In your answer do not add any prefix or suffix to the translated content. "
    "Websites' URLs/addresses should be preserved as is in the translation's output. "
    "Do not omit any part of the content, even if it seems unimportant. "
    "Start translating: {text}"
)


def render_meticulous_prompt(text: str, source: str, target: str) -> str:
    """単一メッセージ形式（Claude / Gemini）のプロンプトを生成"""
    return METICULOUS_PROMPT.format(source=source, target=target, text=text)


@dataclass
class PromptTranslationAdapter:
    """
    チャット補完 API 呼び出しの組み立てと応答の取り出し

    Attributes:
        endpoint: チャット補完エンドポイント URL
        model: モデル名（Azure のようにデプロイ名で決まる場合は None）
        temperature: サンプリング温度
        max_tokens: 最大出力トークン数
        auth_header: 認証ヘッダー名
        auth_scheme: 認証スキーム（None ならキーをそのまま送る）
        system_prompt: システムメッセージのテンプレート
    """

    endpoint: str
    model: Optional[str] = "gpt-3.5-turbo"
    temperature: float = 0.3
    max_tokens: int = 4000
    auth_header: str = "Authorization"
    auth_scheme: Optional[str] = "Bearer"
    system_prompt: str = CHAT_SYSTEM_PROMPT

    def auth_headers(self, api_key: Optional[str]) -> Dict[str, str]:
        key = api_key or ""
        value = f"{self.auth_scheme} {key}" if self.auth_scheme else key
        return {self.auth_header: value, "Content-Type": "application/json"}

    def body(self, text: str, source: str, target: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "messages": [
                {
                    "role": "system",
                    "content": self.system_prompt.format(source=source, target=target),
                },
                {"role": "user", "content": text},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if self.model:
            payload["model"] = self.model
        return payload

    def build_request(
        self,
        client: httpx.AsyncClient,
        text: str,
        *,
        source: str,
        target: str,
        api_key: Optional[str],
        headers: Dict[str, str],
    ) -> httpx.Request:
        merged = dict(headers)
        merged.update(self.auth_headers(api_key))
        return client.build_request(
            "POST", self.endpoint, headers=merged, json=self.body(text, source, target)
        )

    def extract(self, data: Any) -> str:
        """choices[0].message.content を取り出す"""
        try:
            content = data["choices"][0]["message"]["content"]
        except (LookupError, TypeError) as e:
            raise UpstreamFormatError("Chat completion response has no message content") from e
        if not isinstance(content, str) or not content.strip():
            raise UpstreamFormatError("Chat completion response has empty content")
        return content.strip()
