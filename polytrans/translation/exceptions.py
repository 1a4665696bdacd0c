"""
翻訳エラーの例外クラス階層

プロバイダ呼び出しで発生する各種エラーを分類するための例外クラスを定義。
オーケストレータはこの分類を見て「想定内の失敗」かどうかを判断する。
"""

from __future__ import annotations

from typing import Dict, Optional


class TranslationError(Exception):
    """翻訳エラーの基底クラス"""

    pass


class MissingCredentialError(TranslationError):
    """認証情報が必要だが利用可能なものがない"""

    def __init__(self, provider: str, detail: Optional[str] = None):
        self.provider = provider
        message = f"{provider} requires an API key"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class AuthFailureError(TranslationError):
    """プロバイダが認証情報を拒否した"""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider} rejected the credential: {message}")


class TranslationNetworkError(TranslationError):
    """ネットワーク関連エラー（接続失敗、非 2xx 応答）"""

    pass


class TranslationTimeoutError(TranslationNetworkError):
    """リクエストがタイムアウトした"""

    pass


class UpstreamHTTPError(TranslationNetworkError):
    """プロバイダが非 2xx ステータスを返した"""

    CAPACITY_STATUSES = frozenset({429, 500, 502, 503, 504})

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body}")

    @property
    def is_capacity(self) -> bool:
        """レート制限・過負荷系のステータスかどうか"""
        return self.status_code in self.CAPACITY_STATUSES


class UpstreamFormatError(TranslationError):
    """応答に翻訳結果のフィールドが含まれていない"""

    pass


class ProviderExhaustedError(TranslationError):
    """リトライ回数を使い切った"""

    def __init__(self, provider: str, attempts: int, last_error: Exception):
        self.provider = provider
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{provider} failed after {attempts} attempt(s): {last_error}"
        )


class AllProvidersFailedError(TranslationError):
    """全プロバイダ（フォールバック含む）が失敗した"""

    def __init__(self, errors: Dict[str, Exception]):
        self.errors = dict(errors)
        names = ", ".join(self.errors) or "none"
        super().__init__(f"All translation providers failed ({names})")
