"""
Youdao 実装

認証情報は "appKey|appSecret" の形式。signType v3（SHA-256）で署名する:
sha256(appKey + input + salt + curtime + appSecret)
input は 20 文字を超える場合「先頭 10 文字 + 文字数 + 末尾 10 文字」に短縮する。
"""

from __future__ import annotations

import hashlib
import time
import uuid

import httpx

from ..base import BaseProvider
from ..exceptions import UpstreamFormatError
from .baidu import split_credential

SUCCESS_CODE = "0"


def truncate_input(text: str) -> str:
    """
    署名用に入力を短縮

    Examples:
        >>> truncate_input("short")
        'short'
        >>> truncate_input("abcdefghij0123456789XYZ")
        'abcdefghij233456789XYZ'
    """
    size = len(text)
    if size <= 20:
        return text
    return f"{text[:10]}{size}{text[-10:]}"


def youdao_sign(app_key: str, text: str, salt: str, curtime: str, app_secret: str) -> str:
    raw = f"{app_key}{truncate_input(text)}{salt}{curtime}{app_secret}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class YoudaoProvider(BaseProvider):
    """Youdao"""

    PROVIDER_ID = "youdao"

    async def build_request(self, text: str) -> httpx.Request:
        app_key, app_secret = split_credential(self.name, self.credentials.current)
        curtime = str(int(time.time()))
        salt = str(uuid.uuid4())
        form = {
            "from": self.source_code,
            "to": self.target_code,
            "signType": "v3",
            "curtime": curtime,
            "appKey": app_key,
            "q": text,
            "salt": salt,
            "sign": youdao_sign(app_key, text, salt, curtime, app_secret),
        }
        return self._get_client().build_request(
            "POST", self.descriptor.endpoint, data=form, headers=self.request_headers()
        )

    async def parse_response(self, response: httpx.Response, text: str) -> str:
        data = await self.read_json(response)
        if not isinstance(data, dict):
            raise UpstreamFormatError(f"{self.name} returned an unexpected body")

        code = str(data.get("errorCode", SUCCESS_CODE))
        if code != SUCCESS_CODE:
            error = UpstreamFormatError(f"{self.name} errorCode {code}")
            self.raise_for_auth(error)
            raise error

        translation = data.get("translation") or []
        if not translation or not isinstance(translation[0], str):
            raise UpstreamFormatError(f"{self.name} response has no translation")
        return translation[0]
