"""
LLM 系プロバイダ（ChatGPT / Azure / DeepSeek / Claude / Gemini）のテスト
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from polytrans.translation.exceptions import (
    MissingCredentialError,
    ProviderExhaustedError,
    UpstreamFormatError,
)
from polytrans.translation.impl.anthropic import ANTHROPIC_VERSION, ClaudeProvider
from polytrans.translation.impl.gemini import GeminiProvider, iter_sse_chunks
from polytrans.translation.impl.openai import (
    AzureChatGPTProvider,
    ChatGPTProvider,
    DeepSeekProvider,
)
from polytrans.translation.impl.prompt import (
    PromptTranslationAdapter,
    render_meticulous_prompt,
)


def chat_response(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


class TestPromptTranslationAdapter:
    """PromptTranslationAdapter のテスト"""

    def test_body(self):
        adapter = PromptTranslationAdapter(endpoint="https://x.test/chat", model="m", temperature=0.5)
        body = adapter.body("Hello", "English", "Japanese")
        assert body["model"] == "m"
        assert body["temperature"] == 0.5
        assert body["messages"][0]["role"] == "system"
        assert "from English to Japanese" in body["messages"][0]["content"]
        assert body["messages"][1] == {"role": "user", "content": "Hello"}

    def test_body_without_model(self):
        adapter = PromptTranslationAdapter(endpoint="https://x.test/chat", model=None)
        assert "model" not in adapter.body("a", "b", "c")

    def test_auth_headers(self):
        bearer = PromptTranslationAdapter(endpoint="e")
        assert bearer.auth_headers("k")["Authorization"] == "Bearer k"
        raw = PromptTranslationAdapter(endpoint="e", auth_header="api-key", auth_scheme=None)
        assert raw.auth_headers("k")["api-key"] == "k"

    def test_extract(self):
        adapter = PromptTranslationAdapter(endpoint="e")
        assert adapter.extract({"choices": [{"message": {"content": "  Hola \n"}}]}) == "Hola"

    @pytest.mark.parametrize(
        "data",
        [{}, {"choices": []}, {"choices": [{"message": {"content": "  "}}]}, None],
    )
    def test_extract_invalid(self, data):
        with pytest.raises(UpstreamFormatError):
            PromptTranslationAdapter(endpoint="e").extract(data)

    def test_meticulous_prompt(self):
        prompt = render_meticulous_prompt("Hi", "English", "French")
        assert "from English to French" in prompt
        assert prompt.endswith("Start translating: Hi")


class TestChatGPTProvider:
    """ChatGPTProvider のテスト"""

    def test_request(self, mock_client):
        seen = []

        def handler(request):
            seen.append(request)
            return chat_response("こんにちは")

        provider = ChatGPTProvider(api_key="sk-test", target_lang="ja", client=mock_client(handler))
        assert asyncio.run(provider.translate("Hello")) == "こんにちは"

        request = seen[0]
        body = json.loads(request.content)
        assert str(request.url) == "https://api.openai.com/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        assert body["model"] == "gpt-3.5-turbo"
        assert "from the detected language to Japanese" in body["messages"][0]["content"]

    def test_requires_key(self, mock_client):
        provider = ChatGPTProvider(client=mock_client(lambda r: chat_response("x")))
        with pytest.raises(MissingCredentialError):
            asyncio.run(provider.translate("Hello"))

    def test_quota_error_drops_key(self, mock_client):
        """insufficient_quota は認証エラー扱い"""
        provider = ChatGPTProvider(
            api_key="sk-empty",
            client=mock_client(
                lambda r: httpx.Response(429, json={"error": {"code": "insufficient_quota"}})
            ),
        )
        with pytest.raises(MissingCredentialError):
            asyncio.run(provider.translate("Hello"))
        assert provider.current_credential is None


class TestAzureChatGPTProvider:
    """AzureChatGPTProvider のテスト"""

    def test_endpoint_from_resource(self, mock_client):
        seen = []

        def handler(request):
            seen.append(request)
            return chat_response("Bonjour")

        provider = AzureChatGPTProvider(
            api_key="az-key",
            resource="myres",
            deployment="gpt4",
            target_lang="fr",
            client=mock_client(handler),
        )
        assert asyncio.run(provider.translate("Hello")) == "Bonjour"

        request = seen[0]
        assert request.url.host == "myres.openai.azure.com"
        assert request.url.path == "/openai/deployments/gpt4/chat/completions"
        assert request.url.params["api-version"] == "2024-02-01"
        assert request.headers["api-key"] == "az-key"
        assert "model" not in json.loads(request.content)

    def test_unconfigured_endpoint(self, mock_client):
        """リソース・デプロイ未設定なら MissingCredentialError"""
        provider = AzureChatGPTProvider(
            api_key="az-key", client=mock_client(lambda r: chat_response("x"))
        )
        with pytest.raises(MissingCredentialError):
            asyncio.run(provider.translate("Hello"))


class TestDeepSeekProvider:
    """DeepSeekProvider のテスト"""

    def test_defaults(self):
        provider = DeepSeekProvider(api_key="k")
        assert provider.adapter.model == "deepseek-chat"
        assert provider.adapter.temperature == 1.3

    def test_unknown_model(self):
        with pytest.raises(ValueError, match="Unknown DeepSeek model"):
            DeepSeekProvider(api_key="k", model="gpt-4")


class TestClaudeProvider:
    """ClaudeProvider のテスト"""

    def test_request_and_parse(self, mock_client):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"content": [{"type": "text", "text": " Hallo "}]})

        provider = ClaudeProvider(
            api_key="ak", source_lang="en", target_lang="de", client=mock_client(handler)
        )
        assert asyncio.run(provider.translate("Hello")) == "Hallo"

        request = seen[0]
        body = json.loads(request.content)
        assert request.headers["x-api-key"] == "ak"
        assert request.headers["anthropic-version"] == ANTHROPIC_VERSION
        assert body["model"] == "claude-3-7-sonnet-latest"
        assert "from English to German" in body["messages"][0]["content"]

    def test_empty_content(self, mock_client):
        provider = ClaudeProvider(
            api_key="ak",
            request_attempts=1,
            client=mock_client(lambda r: httpx.Response(200, json={"content": []})),
        )
        with pytest.raises(ProviderExhaustedError) as excinfo:
            asyncio.run(provider.translate("Hello"))
        assert isinstance(excinfo.value.last_error, UpstreamFormatError)


def sse_body(*events) -> str:
    return "".join(f"data: {json.dumps(event)}\r\n\r\n" for event in events)


def sse_chunk(text: str, finish: str = "") -> dict:
    candidate = {"content": {"parts": [{"text": text}], "role": "model"}}
    if finish:
        candidate["finishReason"] = finish
    return {"candidates": [candidate]}


class TestGeminiProvider:
    """GeminiProvider のテスト"""

    def test_streaming(self, mock_client):
        """SSE チャンクを連結して返す"""
        seen = []
        body = sse_body(sse_chunk("Bon"), sse_chunk("jour"), sse_chunk("", "STOP"))

        def handler(request):
            seen.append(request)
            return httpx.Response(
                200, text=body, headers={"Content-Type": "text/event-stream"}
            )

        provider = GeminiProvider(api_key="gk", target_lang="fr", client=mock_client(handler))
        assert asyncio.run(provider.translate("Hello")) == "Bonjour"

        request = seen[0]
        assert request.url.path.endswith("/gemini-2.5-flash:streamGenerateContent")
        assert request.url.params["alt"] == "sse"
        assert request.url.params["key"] == "gk"
        payload = json.loads(request.content)
        assert len(payload["safetySettings"]) == 4
        assert "from detected language to French" in payload["contents"][0]["parts"][0]["text"]

    def test_stops_at_finish_reason(self):
        """finishReason が STOP になったら以降は読まない"""
        body = sse_body(sse_chunk("A", "STOP"), sse_chunk("B"))
        response = httpx.Response(200, text=body)

        async def collect():
            return [chunk async for chunk in iter_sse_chunks(response)]

        assert asyncio.run(collect()) == ["A"]

    def test_malformed_lines_skipped(self):
        """解析できない行は読み飛ばす"""
        body = "data: {broken\n\n" + sse_body(sse_chunk("ok", "STOP"))
        response = httpx.Response(200, text=body)

        async def collect():
            return [chunk async for chunk in iter_sse_chunks(response)]

        assert asyncio.run(collect()) == ["ok"]

    def test_non_streaming(self, mock_client):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=sse_chunk("Hola", "STOP"))

        provider = GeminiProvider(
            api_key="gk", stream=False, target_lang="es", client=mock_client(handler)
        )
        assert asyncio.run(provider.translate("Hello")) == "Hola"
        assert seen[0].url.path.endswith(":generateContent")

    def test_invalid_key_drops_credential(self, mock_client):
        """API_KEY_INVALID は認証エラー扱い"""
        provider = GeminiProvider(
            api_key="bad",
            client=mock_client(
                lambda r: httpx.Response(400, json={"error": {"status": "API_KEY_INVALID"}})
            ),
        )
        with pytest.raises(MissingCredentialError):
            asyncio.run(provider.translate("Hello"))
