"""
Microsoft Translator 実装

- MicrosoftEdgeProvider: Edge ブラウザ用の認証トークンを使う無料エンドポイント
- MicrosoftProvider: Azure AI Translator（サブスクリプションキー + リージョン）
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
import time
from typing import Any, Dict, Optional, Tuple

import httpx

from ..base import BaseProvider
from ..exceptions import TranslationNetworkError, UpstreamFormatError
from ..identity import static_headers
from ..lang_codes import AUTO

logger = logging.getLogger(__name__)

EDGE_AUTH_URL = "https://edge.microsoft.com/translate/auth"


def parse_jwt_expiry(token: str) -> float:
    """
    JWT のペイロードから有効期限（エポック秒）を取り出す

    Raises:
        UpstreamFormatError: トークンの形式が不正な場合
    """
    parts = token.split(".")
    if len(parts) <= 1 or not parts[1]:
        raise UpstreamFormatError("Failed to get app key due to an invalid token")
    payload = parts[1].replace("-", "+").replace("_", "/")
    payload += "=" * (-len(payload) % 4)
    try:
        claims = json.loads(base64.b64decode(payload))
        return float(claims["exp"])
    except (binascii.Error, ValueError, KeyError, TypeError) as e:
        raise UpstreamFormatError(f"Failed to decode app key token: {e}") from e


def _first_translation(data: Any) -> Optional[str]:
    # [{"translations": [{"text": "...", "to": "ja"}]}]
    try:
        text = data[0]["translations"][0]["text"]
    except (LookupError, TypeError):
        return None
    return text if isinstance(text, str) else None


class MicrosoftEdgeProvider(BaseProvider):
    """
    Microsoft Edge (Free)

    edge.microsoft.com から取得した JWT を Bearer トークンとして使う。
    トークンは exp まで再利用し、期限切れ後に取り直す。
    トークン取得はローテーションしない固定ヘッダーで行う。
    """

    PROVIDER_ID = "microsoft_edge"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._token: Optional[Tuple[str, float]] = None
        self._token_lock: Optional[asyncio.Lock] = None

    async def _app_key(self) -> str:
        if self._token_lock is None:
            self._token_lock = asyncio.Lock()
        async with self._token_lock:
            if self._token is None or time.time() >= self._token[1]:
                self._token = await self._fetch_token()
                logger.debug("%s: refreshed auth token", self.name)
            return self._token[0]

    async def _fetch_token(self) -> Tuple[str, float]:
        try:
            response = await self._get_client().get(EDGE_AUTH_URL, headers=static_headers())
        except httpx.HTTPError as e:
            raise TranslationNetworkError(f"{self.name} token request failed: {e}") from e
        if not response.is_success:
            raise TranslationNetworkError(
                f"{self.name} token request failed: HTTP {response.status_code}"
            )
        token = response.text.strip()
        return token, parse_jwt_expiry(token)

    def _params(self) -> Dict[str, str]:
        params = {
            "to": self.target_code,
            "api-version": "3.0",
            "includeSentenceLength": "true",
        }
        if self.source_code != AUTO:
            params["from"] = self.source_code
        return params

    async def build_request(self, text: str) -> httpx.Request:
        token = await self._app_key()
        headers = self.request_headers(
            {"Content-Type": "application/json", "Authorization": f"Bearer {token}"}
        )
        return self._get_client().build_request(
            "POST",
            self.descriptor.endpoint,
            params=self._params(),
            headers=headers,
            json=[{"text": text}],
        )

    async def parse_response(self, response: httpx.Response, text: str) -> str:
        translated = _first_translation(await self.read_json(response))
        if translated is None:
            raise UpstreamFormatError(f"{self.name} response has no translations")
        return translated


class MicrosoftProvider(BaseProvider):
    """Microsoft Translator (Azure subscription)"""

    PROVIDER_ID = "microsoft"

    def __init__(self, region: str = "global", **kwargs):
        super().__init__(**kwargs)
        self.region = region or "global"

    async def build_request(self, text: str) -> httpx.Request:
        params = {"api-version": "3.0", "to": self.target_code}
        if self.source_code != AUTO:
            params["from"] = self.source_code
        headers = self.request_headers(
            {
                "Ocp-Apim-Subscription-Key": self.credentials.current or "",
                "Ocp-Apim-Subscription-Region": self.region,
                "Content-Type": "application/json",
            }
        )
        return self._get_client().build_request(
            "POST",
            self.descriptor.endpoint,
            params=params,
            headers=headers,
            json=[{"text": text}],
        )

    async def parse_response(self, response: httpx.Response, text: str) -> str:
        translated = _first_translation(await self.read_json(response))
        if translated is None:
            raise UpstreamFormatError(f"{self.name} response has no translations")
        return translated
