"""
翻訳リクエスト・結果のデータクラス
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field

# タグらしきものを含むかどうかの簡易判定
_MARKUP_PROBE = re.compile(r"<[a-z][\s\S]*>", re.IGNORECASE)


class ContentKind(str, enum.Enum):
    """翻訳対象の種別"""

    TEXT = "text"
    HTML = "html"

    @classmethod
    def infer(cls, content: str) -> "ContentKind":
        """
        内容から種別を推定

        Examples:
            >>> ContentKind.infer("<p>Hello</p>")
            <ContentKind.HTML: 'html'>
            >>> ContentKind.infer("1 < 2")
            <ContentKind.TEXT: 'text'>
        """
        return cls.HTML if _MARKUP_PROBE.search(content or "") else cls.TEXT


@dataclass
class TranslationRequest:
    """翻訳リクエスト（呼び出しごとに生成、永続化しない）"""

    text: str
    source_lang: str  # "auto" 可
    target_lang: str
    kind: ContentKind = field(default=ContentKind.TEXT)

    @classmethod
    def create(cls, text: str, source_lang: str, target_lang: str) -> "TranslationRequest":
        return cls(
            text=text,
            source_lang=source_lang,
            target_lang=target_lang,
            kind=ContentKind.infer(text),
        )


@dataclass
class TranslationResult:
    """翻訳結果"""

    text: str  # 翻訳テキスト
    original_text: str  # 原文
    source_lang: str  # ソース言語
    target_lang: str  # ターゲット言語
    provider: str  # 結果を返したプロバイダ ID
    cached: bool = False  # キャッシュから返したか
