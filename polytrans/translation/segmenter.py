"""
HTML セグメンタ / バッチャ

HTML 断片からテキストノードを取り出し、短いノードをまとめて翻訳単位（Segment）を作り、
同時実行数を制限したウェーブで翻訳して、元のマークアップに書き戻す。

書き戻しは元の HTML 文字列への直接置換で行う。置換位置は前回の置換位置から
前方に検索し、タグの外側（テキスト領域）だけを対象にするため、
同じ文字列が複数のノードに現れても順番どおりに対応づけられる。
"""

from __future__ import annotations

import asyncio
import bisect
import html as html_lib
import logging
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString

from .exceptions import TranslationError

logger = logging.getLogger(__name__)

DEFAULT_SMALL_NODE_CHARS = 50
DEFAULT_GROUP_MAX_CHARS = 200
DEFAULT_MAX_CONCURRENCY = 3
DEFAULT_WAVE_PAUSE = 0.1  # 秒

# グループ内のノードを連結する区切り
GROUP_SEPARATOR = "\n"

_SKIP_PARENTS = frozenset({"script", "style", "template", "noscript"})

# テキスト領域以外（コメント、script / style の中身、タグ）
_MARKUP = re.compile(
    r"<!--.*?-->|<script\b.*?</script\s*>|<style\b.*?</style\s*>|<[^>]*>",
    re.IGNORECASE | re.DOTALL,
)

# 文字参照（&#8217; &quot; &mdash; など）。末尾の ; がないものも html.unescape に合わせて扱う
_CHARREF = re.compile(r"&(#[0-9]+;?|#[xX][0-9a-fA-F]+;?|[A-Za-z][A-Za-z0-9]*;?)")

TranslateUnit = Callable[[str], Awaitable[str]]


@dataclass
class TextNode:
    """文書順のテキストノード（前後の空白を除いた本文）"""

    index: int
    text: str


@dataclass
class Segment:
    """翻訳単位（連続する短いノード、または 1 つの長いノード）"""

    node_indices: List[int] = field(default_factory=list)
    texts: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return GROUP_SEPARATOR.join(self.texts)

    @property
    def is_group(self) -> bool:
        return len(self.texts) > 1

    def __len__(self) -> int:
        return sum(len(t) for t in self.texts)


@dataclass
class _DecodedRegion:
    """文字参照を展開したテキスト領域と、展開後の各位置に対応する元の位置"""

    text: str
    offsets: List[int]  # len(text) + 1 要素。offsets[i] は展開後 i 文字目の元の開始位置

    def raw_span(self, start: int, end: int) -> Tuple[int, int]:
        return self.offsets[start], self.offsets[end]


def _decode_region(markup: str, start: int, end: int) -> _DecodedRegion:
    chars: List[str] = []
    offsets: List[int] = []
    position = start
    while position < end:
        match = _CHARREF.match(markup, position, end) if markup[position] == "&" else None
        if match is None:
            chars.append(markup[position])
            offsets.append(position)
            position += 1
            continue
        decoded = html_lib.unescape(match.group(0))
        chars.append(decoded)
        offsets.extend([position] * len(decoded))
        position = match.end()
    offsets.append(end)
    return _DecodedRegion("".join(chars), offsets)


def _text_regions(markup: str) -> List[_DecodedRegion]:
    bounds = []
    cursor = 0
    for match in _MARKUP.finditer(markup):
        if match.start() > cursor:
            bounds.append((cursor, match.start()))
        cursor = match.end()
    if cursor < len(markup):
        bounds.append((cursor, len(markup)))
    return [_decode_region(markup, start, end) for start, end in bounds]


class HtmlSegmenter:
    """
    HTML 断片の分割・翻訳・書き戻し

    Examples:
        >>> segmenter = HtmlSegmenter()
        >>> nodes = segmenter.extract_nodes("<p>Hello</p><p>World</p>")
        >>> [s.text for s in segmenter.group(nodes)]
        ['Hello\\nWorld']
    """

    def __init__(
        self,
        small_node_chars: int = DEFAULT_SMALL_NODE_CHARS,
        group_max_chars: int = DEFAULT_GROUP_MAX_CHARS,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        wave_pause: float = DEFAULT_WAVE_PAUSE,
    ):
        """
        Args:
            small_node_chars: これ未満の長さのノードをグループ化の対象にする
            group_max_chars: グループの合計文字数の上限
            max_concurrency: 1 ウェーブで同時に翻訳する単位数
            wave_pause: ウェーブ間の待機時間（秒）
        """
        self.small_node_chars = small_node_chars
        self.group_max_chars = group_max_chars
        self.max_concurrency = max(1, max_concurrency)
        self.wave_pause = wave_pause

    def extract_nodes(self, markup: str) -> List[TextNode]:
        """
        翻訳対象のテキストノードを文書順に取り出す

        コメントなどの特殊文字列、script / style 内のテキスト、
        空白のみのノードは除外する。
        """
        soup = BeautifulSoup(markup, "html.parser")
        nodes: List[TextNode] = []
        for string in soup.find_all(string=True):
            if not isinstance(string, NavigableString) or isinstance(string, PreformattedString):
                continue
            if string.parent is not None and string.parent.name in _SKIP_PARENTS:
                continue
            text = str(string).strip()
            if not text:
                continue
            nodes.append(TextNode(index=len(nodes), text=text))
        return nodes

    def group(self, nodes: Sequence[TextNode]) -> List[Segment]:
        """
        短いノードを貪欲にまとめて翻訳単位を作る

        - small_node_chars 以上のノード、改行を含むノードは単独の単位になる
          （その直前までのグループは先に確定する）
        - グループの合計文字数が group_max_chars を超える場合は新しいグループを始める
        """
        segments: List[Segment] = []
        current = Segment()

        def flush() -> None:
            nonlocal current
            if current.texts:
                segments.append(current)
                current = Segment()

        for node in nodes:
            size = len(node.text)
            if size >= self.small_node_chars or GROUP_SEPARATOR in node.text:
                flush()
                segments.append(Segment([node.index], [node.text]))
                continue
            if current.texts and len(current) + size > self.group_max_chars:
                flush()
            current.node_indices.append(node.index)
            current.texts.append(node.text)
        flush()
        return segments

    async def translate_segments(
        self,
        segments: Sequence[Segment],
        translate_unit: TranslateUnit,
    ) -> Dict[int, str]:
        """
        翻訳単位をウェーブごとに翻訳

        各ウェーブは最大 max_concurrency 単位を同時に処理し、全て完了してから
        次のウェーブを始める（間に wave_pause 秒待つ）。失敗した単位は結果に含めない。

        Args:
            segments: group() の結果
            translate_unit: 1 単位分のテキストを翻訳するコルーチン関数

        Returns:
            ノード番号 → 翻訳テキスト
        """
        results: Dict[int, str] = {}
        for start in range(0, len(segments), self.max_concurrency):
            if start > 0 and self.wave_pause > 0:
                await asyncio.sleep(self.wave_pause)
            wave = segments[start : start + self.max_concurrency]
            outcomes = await asyncio.gather(
                *(self._translate_segment(segment, translate_unit) for segment in wave)
            )
            for outcome in outcomes:
                results.update(outcome)
        return results

    async def _translate_segment(
        self, segment: Segment, translate_unit: TranslateUnit
    ) -> Dict[int, str]:
        translated = await self._safe_translate(segment.text, translate_unit)
        if translated is None:
            return {}
        if not segment.is_group:
            return {segment.node_indices[0]: translated}

        lines = translated.split(GROUP_SEPARATOR)
        if len(lines) == len(segment.texts):
            return {
                index: line.strip() or original
                for index, line, original in zip(segment.node_indices, lines, segment.texts)
            }

        # 行数が一致しない場合はノードごとに翻訳し直す
        logger.debug(
            "Group translation returned %d lines for %d nodes, translating individually",
            len(lines),
            len(segment.texts),
        )
        results: Dict[int, str] = {}
        for index, text in zip(segment.node_indices, segment.texts):
            single = await self._safe_translate(text, translate_unit)
            if single is not None:
                results[index] = single
        return results

    async def _safe_translate(self, text: str, translate_unit: TranslateUnit) -> Optional[str]:
        try:
            translated = await translate_unit(text)
        except TranslationError as e:
            logger.debug("Keeping original text for unit (%d chars): %s", len(text), e)
            return None
        except Exception as e:
            logger.warning("Unexpected error while translating unit: %s", e, exc_info=True)
            return None
        if not translated or not translated.strip():
            return None
        return translated.strip()

    def build_replacements(
        self, nodes: Sequence[TextNode], translations: Dict[int, str]
    ) -> List[Tuple[str, str]]:
        """文書順の (原文, 訳文) リスト（変化のないノードは含めない）"""
        pairs = []
        for node in nodes:
            translated = translations.get(node.index)
            if translated is not None and translated != node.text:
                pairs.append((node.text, translated))
        return pairs

    def splice(self, markup: str, replacements: Sequence[Tuple[str, str]]) -> str:
        """
        訳文を元の HTML に書き戻す

        置換は与えられた順に行い、各原文は前回の置換位置より後ろの
        テキスト領域（タグの外側）から最初に見つかった箇所を置き換える。
        テキスト領域は文字参照（&amp; &#8217; &quot; など）を展開してから
        照合するため、参照で書かれた原文も見つかる。見つからない原文は
        そのまま残す。

        Args:
            markup: 元の HTML
            replacements: (原文, 訳文) のリスト（文書順）

        Returns:
            書き戻した HTML
        """
        regions = _text_regions(markup)
        pieces: List[str] = []
        cursor = 0

        for original, translated in replacements:
            found = self._find(regions, original, cursor)
            if found is None:
                logger.debug("Could not locate text to splice: %.40r", original)
                continue
            start, end = found
            pieces.append(markup[cursor:start])
            pieces.append(html_lib.escape(translated, quote=False))
            cursor = end

        pieces.append(markup[cursor:])
        return "".join(pieces)

    @staticmethod
    def _find(
        regions: Sequence[_DecodedRegion], text: str, cursor: int
    ) -> Optional[Tuple[int, int]]:
        """cursor 以降で text が現れる元の HTML 上の範囲 (start, end)"""
        for region in regions:
            if region.offsets[-1] <= cursor:
                continue
            lower = bisect.bisect_left(region.offsets, cursor, 0, len(region.text))
            position = region.text.find(text, lower)
            if position != -1:
                return region.raw_span(position, position + len(text))
        return None
