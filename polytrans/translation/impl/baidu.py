"""
Baidu Fanyi 実装

認証情報は "appid|appkey"（":" 区切りも可）の形式。
リクエストは MD5(appid + q + salt + appkey) で署名する。
"""

from __future__ import annotations

import hashlib
import random
import re
from typing import Optional, Tuple

import httpx

from ..base import BaseProvider
from ..exceptions import MissingCredentialError, UpstreamFormatError

CREDENTIAL_PATTERN = re.compile(r"^[^\s:|]+?[:|][^\s:|]+$")

# 成功を示す error_code
SUCCESS_CODE = "52000"


def split_credential(provider: str, credential: Optional[str]) -> Tuple[str, str]:
    """
    "id|secret" 形式の認証情報を分割

    Raises:
        MissingCredentialError: 形式が一致しない場合
    """
    if not credential or not CREDENTIAL_PATTERN.match(credential):
        raise MissingCredentialError(provider, "expected credential in format id|secret")
    first, second = re.split(r"[:|]", credential, maxsplit=1)
    return first, second


def baidu_sign(app_id: str, text: str, salt: int, app_key: str) -> str:
    return hashlib.md5(f"{app_id}{text}{salt}{app_key}".encode("utf-8")).hexdigest()


class BaiduProvider(BaseProvider):
    """Baidu"""

    PROVIDER_ID = "baidu"

    async def build_request(self, text: str) -> httpx.Request:
        app_id, app_key = split_credential(self.name, self.credentials.current)
        salt = random.randint(32768, 65535)
        form = {
            "appid": app_id,
            "q": text,
            "from": self.source_code,
            "to": self.target_code,
            "salt": str(salt),
            "sign": baidu_sign(app_id, text, salt, app_key),
        }
        return self._get_client().build_request(
            "POST", self.descriptor.endpoint, data=form, headers=self.request_headers()
        )

    async def parse_response(self, response: httpx.Response, text: str) -> str:
        data = await self.read_json(response)
        if not isinstance(data, dict):
            raise UpstreamFormatError(f"{self.name} returned an unexpected body")

        code = str(data.get("error_code", SUCCESS_CODE))
        if code != SUCCESS_CODE:
            error = UpstreamFormatError(
                f"{self.name} error {code}: {data.get('error_msg', '')}"
            )
            self.raise_for_auth(error)
            raise error

        # 改行ごとに 1 要素返る
        try:
            lines = [item["dst"] for item in data["trans_result"]]
        except (LookupError, TypeError) as e:
            raise UpstreamFormatError(f"{self.name} response has no trans_result") from e
        if not lines:
            raise UpstreamFormatError(f"{self.name} response has no trans_result")
        return "\n".join(lines)
