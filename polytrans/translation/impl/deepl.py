"""
DeepL 実装

- DeepLFreeProvider: api-free.deepl.com（auth_key はフォーム本文、任意）
- DeepLProProvider: api.deepl.com（DeepL-Auth-Key ヘッダー、必須）
"""

from __future__ import annotations

from typing import Dict

import httpx

from ..base import BaseProvider
from ..exceptions import UpstreamFormatError
from ..lang_codes import AUTO


def _form(text: str, source_code: str, target_code: str) -> Dict[str, str]:
    return {
        "text": text,
        "target_lang": target_code,
        "source_lang": source_code if source_code != AUTO else "",
    }


class _DeepLResponseMixin:
    name: str

    async def parse_response(self, response: httpx.Response, text: str) -> str:
        data = await self.read_json(response)  # type: ignore[attr-defined]
        try:
            translated = data["translations"][0]["text"]
        except (LookupError, TypeError) as e:
            raise UpstreamFormatError(f"{self.name} response has no translations") from e
        return translated


class DeepLFreeProvider(_DeepLResponseMixin, BaseProvider):
    """DeepL (Free)"""

    PROVIDER_ID = "deepl_free"

    async def build_request(self, text: str) -> httpx.Request:
        form = {"auth_key": self.credentials.current or ""}
        form.update(_form(text, self.source_code, self.target_code))
        return self._get_client().build_request(
            "POST", self.descriptor.endpoint, data=form, headers=self.request_headers()
        )


class DeepLProProvider(_DeepLResponseMixin, BaseProvider):
    """DeepL (Pro)"""

    PROVIDER_ID = "deepl_pro"

    async def build_request(self, text: str) -> httpx.Request:
        headers = self.request_headers(
            {"Authorization": f"DeepL-Auth-Key {self.credentials.current or ''}"}
        )
        return self._get_client().build_request(
            "POST",
            self.descriptor.endpoint,
            data=_form(text, self.source_code, self.target_code),
            headers=headers,
        )
