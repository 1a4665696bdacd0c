"""
翻訳プロバイダの抽象基底クラス

全てのプロバイダ実装はこの基底クラスを継承し、リクエスト組み立て
（build_request）と応答解析（parse_response）だけを実装する。
リトライ、タイムアウト、認証情報の差し替え、同時実行数の制限、
失敗分類はこのクラスが共通で担う。
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional

import httpx

from .credentials import CredentialSet
from .exceptions import (
    AuthFailureError,
    MissingCredentialError,
    ProviderExhaustedError,
    TranslationNetworkError,
    TranslationTimeoutError,
    UpstreamFormatError,
    UpstreamHTTPError,
)
from .identity import IdentityRotator, static_headers
from .lang_codes import AUTO, get_language_name, resolve_code
from .metadata import ProviderDescriptor, ProviderMetadata
from .retry import with_retry

logger = logging.getLogger(__name__)

# request_interval が 0 のプロバイダで使うバックオフ基準間隔（秒）
DEFAULT_BACKOFF_INTERVAL = 1.0


class BaseProvider(ABC):
    """
    翻訳プロバイダの抽象基底クラス

    サブクラスは PROVIDER_ID を定義し、build_request / parse_response を実装する。
    静的情報（エンドポイント、言語テーブル、調整値）は ProviderMetadata に登録された
    ProviderDescriptor から取得する。
    """

    PROVIDER_ID: str = ""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        api_keys: Optional[Iterable[str]] = None,
        source_lang: str = AUTO,
        target_lang: str = "en",
        request_timeout: Optional[float] = None,
        request_attempts: Optional[int] = None,
        request_interval: Optional[float] = None,
        concurrency_limit: Optional[int] = None,
        proxy: Optional[str] = None,
        identity_rotator: Optional[IdentityRotator] = None,
        client: Optional[httpx.AsyncClient] = None,
        descriptor: Optional[ProviderDescriptor] = None,
        **kwargs: Any,
    ):
        """
        プロバイダを初期化

        Args:
            api_key: 単一の API キー
            api_keys: API キー候補（優先順）。認証エラー時に順に切り替える
            source_lang: ソース言語（言語名またはコード、"auto" 可）
            target_lang: ターゲット言語（言語名またはコード）
            request_timeout: 1 試行あたりのタイムアウト（秒）
            request_attempts: 最大試行回数
            request_interval: バックオフ基準間隔（秒）
            concurrency_limit: 同時実行数の上限（0 = 無制限）
            proxy: プロキシ URL（例: "http://127.0.0.1:8080", "socks5://..."）
            identity_rotator: リクエストヘッダーのローテーション元
            client: 共有する httpx.AsyncClient（指定時はクローズしない）
            descriptor: 静的情報の差し替え（テスト用）
            **kwargs: サブクラス固有のパラメータ
        """
        self.descriptor = descriptor or ProviderMetadata.descriptor(self.PROVIDER_ID)
        self.credentials = CredentialSet(api_keys, api_key)
        self.source_lang = source_lang
        self.target_lang = target_lang

        d = self.descriptor
        self.request_timeout = float(request_timeout or d.request_timeout)
        self.request_attempts = int(request_attempts or d.request_attempts)
        interval = d.request_interval if request_interval is None else request_interval
        self.request_interval = float(interval)
        limit = d.concurrency_limit if concurrency_limit is None else concurrency_limit
        self.concurrency_limit = int(limit)

        self.proxy = proxy
        self._identity_rotator = identity_rotator
        self._client = client
        self._owns_client = client is None
        self._semaphore = (
            asyncio.Semaphore(self.concurrency_limit) if self.concurrency_limit > 0 else None
        )

        if kwargs:
            logger.debug("%s: ignoring unknown options %s", self.name, sorted(kwargs))

        backoff = self.request_interval or DEFAULT_BACKOFF_INTERVAL
        self._execute = with_retry(
            self.request_attempts,
            backoff,
            label=self.name,
            on_auth_failure=self._handle_auth_failure,
        )(self._attempt)

    # ------------------------------------------------------------------
    # プロパティ
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def alias(self) -> str:
        return self.descriptor.alias

    @property
    def free(self) -> bool:
        return self.descriptor.free

    @property
    def supports_html(self) -> bool:
        return self.descriptor.supports_html

    @property
    def current_credential(self) -> Optional[str]:
        return self.credentials.current

    def set_source_lang(self, language: str) -> None:
        self.source_lang = language

    def set_target_lang(self, language: str) -> None:
        self.target_lang = language

    # ------------------------------------------------------------------
    # 言語コード
    # ------------------------------------------------------------------

    def language_code(self, language: str, *, source: bool = False) -> str:
        """
        言語名・言語コードをプロバイダ固有コードに変換

        Args:
            language: 言語名（"Japanese"）またはコード（"ja"）
            source: ソース言語として解決する場合 True（"auto" をそのまま通す）

        Returns:
            プロバイダ固有コード
        """
        if source and (not language or language.lower() == AUTO):
            return AUTO
        table = self.descriptor.source_languages if source else self.descriptor.target_languages
        return resolve_code(table, language)

    @property
    def source_code(self) -> str:
        return self.language_code(self.source_lang, source=True)

    @property
    def target_code(self) -> str:
        return self.language_code(self.target_lang)

    def source_language_name(self, auto_label: str = "the detected language") -> str:
        """プロンプト用のソース言語名"""
        if self.source_code == AUTO:
            return auto_label
        return get_language_name(self.source_lang, self.descriptor.source_languages)

    def target_language_name(self) -> str:
        """プロンプト用のターゲット言語名"""
        return get_language_name(self.target_lang, self.descriptor.target_languages)

    # ------------------------------------------------------------------
    # 失敗分類
    # ------------------------------------------------------------------

    def is_auth_failure(self, error: BaseException) -> bool:
        """エラー内容がプロバイダの認証エラー識別子を含むか"""
        message = str(error)
        return any(marker in message for marker in self.descriptor.auth_error_markers)

    def is_recoverable_failure(self, error: BaseException) -> bool:
        """
        想定内の失敗かどうか

        認証情報なし、ネットワーク障害、タイムアウト、上流の容量不足（429 / 5xx）、
        およびそれらを最後のエラーとするリトライ枯渇が該当する。
        """
        if isinstance(error, ProviderExhaustedError):
            return self.is_recoverable_failure(error.last_error)
        if isinstance(error, MissingCredentialError):
            return True
        if isinstance(error, UpstreamHTTPError):
            return error.is_capacity
        return isinstance(error, TranslationNetworkError)

    # ------------------------------------------------------------------
    # 翻訳
    # ------------------------------------------------------------------

    async def translate(self, text: str) -> str:
        """
        テキストを翻訳

        設定済みのソース / ターゲット言語と現在の認証情報を使用する。

        Args:
            text: 翻訳対象テキスト

        Returns:
            翻訳テキスト

        Raises:
            MissingCredentialError: 認証情報が必要だが利用可能なものがない
            ProviderExhaustedError: 試行回数を使い切った
        """
        if not text or not text.strip():
            return text
        self._require_credential()
        if self._semaphore is None:
            return await self._execute(text)
        async with self._semaphore:
            return await self._execute(text)

    async def _attempt(self, text: str) -> str:
        self._require_credential()
        try:
            return await asyncio.wait_for(self._exchange(text), timeout=self.request_timeout)
        except asyncio.TimeoutError as e:
            raise TranslationTimeoutError(
                f"{self.name} request timeout after {self.request_timeout:.1f}s"
            ) from e

    async def _exchange(self, text: str) -> str:
        request = await self.build_request(text)
        client = self._get_client()
        try:
            response = await client.send(request, stream=True)
        except httpx.TimeoutException as e:
            raise TranslationTimeoutError(f"{self.name} request timeout: {e}") from e
        except httpx.HTTPError as e:
            raise TranslationNetworkError(f"{self.name} network error: {e}") from e

        try:
            if not response.is_success:
                await response.aread()
                error = UpstreamHTTPError(response.status_code, response.text)
                self.raise_for_auth(error)
                raise error
            return await self.parse_response(response, text)
        except httpx.HTTPError as e:
            raise TranslationNetworkError(f"{self.name} network error: {e}") from e
        finally:
            await response.aclose()

    def raise_for_auth(self, error: Exception) -> None:
        """認証エラー識別子に一致すれば AuthFailureError に変換して送出"""
        if self.descriptor.needs_credential and self.is_auth_failure(error):
            raise AuthFailureError(self.name, str(error)) from error

    def _require_credential(self) -> None:
        if self.descriptor.needs_credential and not self.credentials.current:
            raise MissingCredentialError(self.name)

    def _handle_auth_failure(self, error: AuthFailureError) -> bool:
        """認証エラー時に次の候補へ切り替える（候補がなければ MissingCredentialError）"""
        if self.credentials.has_alternates() and self.credentials.swap():
            logger.info("%s: switched to next API key after auth failure", self.name)
            return True
        self.credentials.swap()
        raise MissingCredentialError(self.name, str(error)) from error

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                proxy=self.proxy,
                timeout=httpx.Timeout(self.request_timeout),
                follow_redirects=True,
            )
        return self._client

    def identity_headers(self) -> Dict[str, str]:
        """ローテーションされた識別子ヘッダー（ローテータ未設定なら固定ヘッダー）"""
        if self._identity_rotator is None:
            return static_headers()
        return self._identity_rotator.next_headers()

    def request_headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = self.identity_headers()
        if extra:
            headers.update(extra)
        return headers

    async def read_json(self, response: httpx.Response) -> Any:
        """応答本文を JSON として読み込む（失敗時は UpstreamFormatError）"""
        await response.aread()
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamFormatError(
                f"{self.name} returned a non-JSON body: {response.text[:200]}"
            ) from e

    @abstractmethod
    async def build_request(self, text: str) -> httpx.Request:
        """
        1 試行分の HTTP リクエストを組み立てる

        試行ごとに呼ばれるため、署名やヘッダーのローテーションはここで行う。
        """
        ...

    @abstractmethod
    async def parse_response(self, response: httpx.Response, text: str) -> str:
        """
        応答から翻訳テキストを取り出す

        Raises:
            UpstreamFormatError: 翻訳結果のフィールドが見つからない場合
        """
        ...

    async def aclose(self) -> None:
        """所有している HTTP クライアントを閉じる"""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, free={self.free})"
