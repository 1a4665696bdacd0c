"""
Claude (Anthropic Messages API) 実装
"""

from __future__ import annotations

import httpx

from ..base import BaseProvider
from ..exceptions import UpstreamFormatError
from .prompt import render_meticulous_prompt

ANTHROPIC_VERSION = "2023-06-01"


class ClaudeProvider(BaseProvider):
    """
    Claude (Anthropic)

    レート制限が厳しいため、既定で同時実行 1・基準間隔 12 秒で動作する。
    """

    PROVIDER_ID = "claude"

    def __init__(
        self,
        model: str = "claude-3-7-sonnet-latest",
        temperature: float = 1.0,
        max_tokens: int = 4096,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def build_request(self, text: str) -> httpx.Request:
        prompt = render_meticulous_prompt(
            text, self.source_language_name(), self.target_language_name()
        )
        headers = self.request_headers(
            {
                "Content-Type": "application/json",
                "x-api-key": self.credentials.current or "",
                "anthropic-version": ANTHROPIC_VERSION,
            }
        )
        body = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
        }
        return self._get_client().build_request(
            "POST", self.descriptor.endpoint, headers=headers, json=body
        )

    async def parse_response(self, response: httpx.Response, text: str) -> str:
        data = await self.read_json(response)
        try:
            content = data["content"][0]["text"]
        except (LookupError, TypeError) as e:
            raise UpstreamFormatError(f"{self.name} response has no content") from e
        if not isinstance(content, str) or not content.strip():
            raise UpstreamFormatError(f"{self.name} response has empty content")
        return content.strip()
