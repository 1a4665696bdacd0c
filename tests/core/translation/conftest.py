"""Shared fixtures for translation pipeline tests."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

import httpx
import pytest

from polytrans.translation.base import BaseProvider
from polytrans.translation.metadata import ProviderDescriptor

ECHO_ENDPOINT = "https://translate.example.test/v1/translate"

_LANGUAGES = {"English": "en", "Japanese": "ja", "French": "fr", "German": "de"}


def make_descriptor(name: str = "echo", **overrides) -> ProviderDescriptor:
    values = dict(
        name=name,
        alias=name.title(),
        free=True,
        needs_credential=False,
        endpoint=ECHO_ENDPOINT,
        source_languages={"Auto detect": "auto", **_LANGUAGES},
        target_languages=_LANGUAGES,
        request_interval=0.001,
    )
    values.update(overrides)
    return ProviderDescriptor(**values)


class EchoProvider(BaseProvider):
    """GET ?q=... を送り、{"text": ...} を返すテスト用プロバイダ"""

    async def build_request(self, text: str) -> httpx.Request:
        params = {"q": text, "tl": self.target_code}
        headers = self.request_headers({"X-Key": self.credentials.current or ""})
        return self._get_client().build_request(
            "GET", self.descriptor.endpoint, params=params, headers=headers
        )

    async def parse_response(self, response: httpx.Response, text: str) -> str:
        from polytrans.translation.exceptions import UpstreamFormatError

        data = await self.read_json(response)
        if "text" not in data:
            raise UpstreamFormatError("missing text")
        return data["text"]


class StubProvider(BaseProvider):
    """HTTP を使わず、与えられた関数で翻訳するテスト用プロバイダ"""

    def __init__(self, handler: Callable[[str], str], **kwargs):
        super().__init__(**kwargs)
        self.handler = handler
        self.calls: List[str] = []

    async def translate(self, text: str) -> str:
        self.calls.append(text)
        return self.handler(text)

    async def build_request(self, text: str) -> httpx.Request:  # pragma: no cover
        raise NotImplementedError

    async def parse_response(self, response, text):  # pragma: no cover
        raise NotImplementedError


@pytest.fixture
def echo_provider():
    """MockTransport に接続した EchoProvider を作る"""

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
        name: str = "echo",
        descriptor_overrides: Optional[Dict] = None,
        **kwargs,
    ) -> EchoProvider:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return EchoProvider(
            descriptor=make_descriptor(name, **(descriptor_overrides or {})),
            client=client,
            **kwargs,
        )

    return factory


@pytest.fixture
def stub_provider():
    """StubProvider を作る（free / supports_html などは descriptor で指定）"""

    def factory(
        name: str,
        handler: Callable[[str], str],
        **descriptor_overrides,
    ) -> StubProvider:
        return StubProvider(handler, descriptor=make_descriptor(name, **descriptor_overrides))

    return factory


@pytest.fixture
def mock_client():
    """ハンドラを MockTransport で包んだ httpx.AsyncClient を作る"""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory
