"""
Gemini 実装

streamGenerateContent（SSE）で応答を受け取り、チャンクを連結して返す。
呼び出し側（オーケストレータ）はストリーミングを意識しない。
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Dict, List

import httpx

from ..base import BaseProvider
from ..exceptions import UpstreamFormatError
from .prompt import render_meticulous_prompt

logger = logging.getLogger(__name__)

SAFETY_CATEGORIES = (
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


def _candidate_text(data: Dict[str, Any]) -> str:
    candidates = data.get("candidates") or [{}]
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text") or "" for part in parts)


def _finished(data: Dict[str, Any]) -> bool:
    candidates = data.get("candidates") or [{}]
    return candidates[0].get("finishReason") == "STOP"


async def iter_sse_chunks(response: httpx.Response) -> AsyncIterator[str]:
    """
    SSE 応答からテキストチャンクを順に取り出す

    "data:" 行の JSON から candidates[0].content.parts[].text を返し、
    finishReason が STOP になった時点で終了する。解析できない行は読み飛ばす。
    """
    async for line in response.aiter_lines():
        if not line.startswith("data:"):
            continue
        try:
            data = json.loads(line[5:].strip())
        except ValueError:
            logger.debug("Skipping malformed SSE line: %.80s", line)
            continue
        if not isinstance(data, dict):
            continue
        chunk = _candidate_text(data)
        if chunk:
            yield chunk
        if _finished(data):
            return


class GeminiProvider(BaseProvider):
    """Gemini (Google AI Studio)"""

    PROVIDER_ID = "gemini"

    def __init__(
        self,
        model: str = "gemini-2.5-flash",
        temperature: float = 0.9,
        stream: bool = True,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.model = model
        self.temperature = temperature
        self.stream = stream

    def _url(self) -> str:
        base = f"{self.descriptor.endpoint}/{self.model}"
        if self.stream:
            return f"{base}:streamGenerateContent?alt=sse&key={self.credentials.current}"
        return f"{base}:generateContent?key={self.credentials.current}"

    def _body(self, text: str) -> Dict[str, Any]:
        prompt = render_meticulous_prompt(
            text,
            self.source_language_name(auto_label="detected language"),
            self.target_language_name(),
        )
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": self.temperature, "topP": 1.0, "topK": 1},
            "safetySettings": [
                {"category": category, "threshold": "BLOCK_NONE"}
                for category in SAFETY_CATEGORIES
            ],
        }

    async def build_request(self, text: str) -> httpx.Request:
        headers = self.request_headers({"Content-Type": "application/json"})
        return self._get_client().build_request(
            "POST", self._url(), headers=headers, json=self._body(text)
        )

    async def parse_response(self, response: httpx.Response, text: str) -> str:
        if self.stream:
            chunks: List[str] = [chunk async for chunk in iter_sse_chunks(response)]
            result = "".join(chunks)
        else:
            data = await self.read_json(response)
            result = _candidate_text(data) if isinstance(data, dict) else ""
        if not result:
            raise UpstreamFormatError(f"{self.name} returned no candidate text")
        return result
