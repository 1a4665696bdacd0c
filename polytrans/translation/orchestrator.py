"""
複数プロバイダによる翻訳オーケストレータ

設定された複数のプロバイダを並行実行（全て完了まで待機）して結果をマージし、
全滅時は無料プロバイダで 1 回だけ再試行する。キャッシュの参照・書き込みと、
HTML 断片の分割翻訳（HtmlSegmenter）もここで扱う。

呼び出しごとに TranslationRequest を作り、言語はそのリクエストから読む。
プロバイダに設定する言語は呼び出し間で共有されるため、言語の異なる呼び出しは
先行する呼び出しが全て終わるまで待ってから切り替える。
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from typing import AsyncIterator, Dict, List, Optional, Sequence, Tuple, Union

from .base import BaseProvider
from .cache import TranslationCache
from .exceptions import AllProvidersFailedError, TranslationError, UpstreamFormatError
from .lang_codes import AUTO
from .result import ContentKind, TranslationRequest, TranslationResult
from .segmenter import HtmlSegmenter

logger = logging.getLogger(__name__)

# これを超えるテキストノード数の HTML では無料プロバイダを順に試す
DEFAULT_FREE_ONLY_NODE_THRESHOLD = 10


class MergeStrategy(str, enum.Enum):
    """複数の成功結果の統合方法"""

    FIRST = "first"
    VOTE = "vote"  # 未実装（FIRST と同じ）
    AVERAGE = "average"  # 未実装（FIRST と同じ）


class MultiProviderTranslator:
    """
    複数プロバイダの翻訳オーケストレータ

    Examples:
        >>> translator = MultiProviderTranslator(
        ...     [GoogleFreeNewProvider(), GoogleFreeProvider()],
        ...     target_lang="ja",
        ... )
        >>> asyncio.run(translator.translate("Hello"))
        'こんにちは'
    """

    def __init__(
        self,
        providers: Sequence[BaseProvider],
        source_lang: str = AUTO,
        target_lang: str = "en",
        use_multiple_providers: bool = True,
        merge_strategy: Union[MergeStrategy, str] = MergeStrategy.FIRST,
        cache: Optional[TranslationCache] = None,
        segmenter: Optional[HtmlSegmenter] = None,
        free_only_node_threshold: int = DEFAULT_FREE_ONLY_NODE_THRESHOLD,
    ):
        """
        Args:
            providers: プロバイダ（優先順）
            source_lang: ソース言語（"auto" 可）
            target_lang: ターゲット言語
            use_multiple_providers: False の場合は先頭のプロバイダだけを使う
            merge_strategy: 複数の成功結果の統合方法
            cache: 翻訳キャッシュ（None ならキャッシュしない）
            segmenter: HTML セグメンタ（None なら既定値で生成）
            free_only_node_threshold: HTML で無料プロバイダを順に試すノード数の閾値

        Raises:
            ValueError: プロバイダが 1 つもない場合
        """
        if not providers:
            raise ValueError("At least one translation provider is required")
        self._providers: List[BaseProvider] = list(providers)
        self.use_multiple_providers = use_multiple_providers
        self.merge_strategy = MergeStrategy(merge_strategy)
        self.cache = cache
        self.segmenter = segmenter or HtmlSegmenter()
        self.free_only_node_threshold = free_only_node_threshold
        self.source_lang = source_lang
        self.target_lang = target_lang

        # プロバイダに現在設定している (source, target) と、それを使用中の呼び出し数
        self._active_languages: Tuple[str, str] = (source_lang, target_lang)
        self._active_calls = 0
        self._language_condition: Optional[asyncio.Condition] = None
        self._condition_loop: Optional[asyncio.AbstractEventLoop] = None
        self._apply_languages(self._active_languages)

    @property
    def providers(self) -> List[BaseProvider]:
        return list(self._providers)

    @property
    def single_mode(self) -> bool:
        return not self.use_multiple_providers or len(self._providers) == 1

    def set_source_lang(self, language: str) -> None:
        self.source_lang = language
        if self._active_calls == 0:
            self._apply_languages((language, self.target_lang))

    def set_target_lang(self, language: str) -> None:
        self.target_lang = language
        if self._active_calls == 0:
            self._apply_languages((self.source_lang, language))

    def _apply_languages(self, languages: Tuple[str, str]) -> None:
        source_lang, target_lang = languages
        for provider in self._providers:
            provider.set_source_lang(source_lang)
            provider.set_target_lang(target_lang)
        self._active_languages = languages

    def _condition(self) -> asyncio.Condition:
        loop = asyncio.get_running_loop()
        if self._language_condition is None or self._condition_loop is not loop:
            self._language_condition = asyncio.Condition()
            self._condition_loop = loop
        return self._language_condition

    @contextlib.asynccontextmanager
    async def _pinned_languages(self, request: TranslationRequest) -> AsyncIterator[None]:
        """
        リクエストの言語をプロバイダに設定した状態で処理を行う

        同じ言語の呼び出しは並行に進む。言語の異なる呼び出しは、使用中の
        呼び出しが全て終わってから言語を切り替える。
        """
        languages = (request.source_lang, request.target_lang)
        condition = self._condition()
        async with condition:
            await condition.wait_for(
                lambda: self._active_calls == 0 or self._active_languages == languages
            )
            if self._active_languages != languages:
                logger.debug("Switching provider languages to %s -> %s", *languages)
                self._apply_languages(languages)
            self._active_calls += 1
        try:
            yield
        finally:
            async with condition:
                self._active_calls -= 1
                condition.notify_all()

    def _request(self, text: str, target_lang: Optional[str]) -> TranslationRequest:
        """呼び出しごとのリクエストを作る（target_lang 指定時は既定値も更新）"""
        if target_lang and target_lang != self.target_lang:
            self.target_lang = target_lang
        return TranslationRequest.create(text, self.source_lang, target_lang or self.target_lang)

    @staticmethod
    def _unit_request(request: TranslationRequest, text: str) -> TranslationRequest:
        return TranslationRequest.create(text, request.source_lang, request.target_lang)

    # ------------------------------------------------------------------
    # テキスト翻訳
    # ------------------------------------------------------------------

    async def translate(self, text: str, target_lang: Optional[str] = None) -> str:
        """
        テキストを翻訳

        Args:
            text: 翻訳対象テキスト
            target_lang: ターゲット言語（指定時は以降の呼び出しの既定値にもなる）

        Returns:
            翻訳テキスト（空白のみの入力はそのまま）

        Raises:
            AllProvidersFailedError: 全プロバイダ（フォールバック含む）が失敗した場合
        """
        result = await self.translate_result(text, target_lang)
        return result.text

    async def translate_result(
        self, text: str, target_lang: Optional[str] = None
    ) -> TranslationResult:
        """translate() と同じ処理で、どのプロバイダの結果かを含めて返す"""
        return await self._translate_request(self._request(text, target_lang))

    async def _translate_request(self, request: TranslationRequest) -> TranslationResult:
        text = request.text
        if not text or not text.strip():
            return self._result(request, text, provider="")

        cached = self._cache_lookup(request)
        if cached is not None:
            provider_name, translated = cached
            return self._result(request, translated, provider_name, cached=True)

        async with self._pinned_languages(request):
            if self.single_mode:
                provider = self._providers[0]
                try:
                    translated = await self._call(provider, text)
                except TranslationError as e:
                    raise AllProvidersFailedError({provider.name: e}) from e
                winner, invoked = provider, [provider]
            else:
                winner, translated, invoked = await self._translate_multi(text)

        self._cache_store(request, translated, invoked)
        return self._result(request, translated, winner.name)

    async def _translate_multi(self, text: str) -> Tuple[BaseProvider, str, List[BaseProvider]]:
        outcomes = await asyncio.gather(
            *(self._call(provider, text) for provider in self._providers),
            return_exceptions=True,
        )

        successes: List[Tuple[BaseProvider, str]] = []
        errors: Dict[str, Exception] = {}
        for provider, outcome in zip(self._providers, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                errors[provider.name] = outcome
            else:
                successes.append((provider, outcome))

        if successes:
            winner, translated = self._merge(successes)
            return winner, translated, list(self._providers)

        fallback = next((p for p in self._providers if p.free), None)
        if fallback is not None:
            logger.debug("All providers failed, retrying once with %s", fallback.name)
            try:
                translated = await self._call(fallback, text)
            except TranslationError as e:
                errors[f"{fallback.name} (fallback)"] = e
            else:
                return fallback, translated, list(self._providers)

        raise AllProvidersFailedError(errors)

    def _merge(self, successes: List[Tuple[BaseProvider, str]]) -> Tuple[BaseProvider, str]:
        if self.merge_strategy is not MergeStrategy.FIRST:
            logger.debug(
                "Merge strategy '%s' is not implemented, using first result",
                self.merge_strategy.value,
            )
        return successes[0]

    async def _call(self, provider: BaseProvider, text: str) -> str:
        """プロバイダを呼び出し、失敗を分類してログに残す（空の結果も失敗）"""
        try:
            translated = await provider.translate(text)
        except Exception as e:
            if provider.is_recoverable_failure(e):
                logger.debug("%s: recoverable failure: %s", provider.name, e)
            else:
                logger.warning("Translation failed with %s: %s", provider.name, e)
            if isinstance(e, TranslationError):
                raise
            raise TranslationError(f"{provider.name}: {e}") from e

        if not translated or not translated.strip():
            logger.debug("%s returned an empty translation", provider.name)
            raise UpstreamFormatError(f"{provider.name} returned an empty translation")
        return translated

    # ------------------------------------------------------------------
    # キャッシュ
    # ------------------------------------------------------------------

    def _cache_lookup(self, request: TranslationRequest) -> Optional[Tuple[str, str]]:
        if self.cache is None:
            return None
        for provider in self._providers:
            hit = self.cache.get(
                request.text, request.source_lang, request.target_lang, provider.name
            )
            if hit is not None:
                logger.debug("Cache hit for %s (%d chars)", provider.name, len(request.text))
                return provider.name, hit
        return None

    def _cache_store(
        self,
        request: TranslationRequest,
        translated: str,
        providers: Sequence[BaseProvider],
    ) -> None:
        if self.cache is None:
            return
        for provider in providers:
            self.cache.set(
                request.text,
                translated,
                request.source_lang,
                request.target_lang,
                provider.name,
            )

    @staticmethod
    def _result(
        request: TranslationRequest, translated: str, provider: str, cached: bool = False
    ) -> TranslationResult:
        return TranslationResult(
            text=translated,
            original_text=request.text,
            source_lang=request.source_lang,
            target_lang=request.target_lang,
            provider=provider,
            cached=cached,
        )

    # ------------------------------------------------------------------
    # HTML 翻訳
    # ------------------------------------------------------------------

    async def translate_html(self, html: str, target_lang: Optional[str] = None) -> str:
        """
        HTML 断片を構造を保ったまま翻訳

        翻訳できなかった単位は原文のまま残す。この関数は例外を送出しない。

        Args:
            html: HTML 断片
            target_lang: ターゲット言語

        Returns:
            翻訳済み HTML（全滅時は元の HTML）
        """
        return await self._translate_html_request(self._request(html, target_lang))

    async def _translate_html_request(self, request: TranslationRequest) -> str:
        html = request.text
        if request.kind is ContentKind.TEXT:
            return await self._translate_or_original(request)

        if self.single_mode and self._providers[0].supports_html:
            # HTML をそのまま扱えるプロバイダは分割せずに送る
            return await self._translate_or_original(request)

        try:
            nodes = self.segmenter.extract_nodes(html)
        except Exception as e:
            logger.warning("Failed to parse HTML fragment, translating as text: %s", e)
            return await self._translate_or_original(request)
        if not nodes:
            return html

        segments = self.segmenter.group(nodes)
        free_first = len(nodes) > self.free_only_node_threshold

        async def translate_unit(text: str) -> str:
            unit = self._unit_request(request, text)
            if free_first:
                return await self._translate_free_first(unit)
            return (await self._translate_request(unit)).text

        translations = await self.segmenter.translate_segments(segments, translate_unit)
        replacements = self.segmenter.build_replacements(nodes, translations)
        logger.debug(
            "Translated %d/%d text nodes in %d units",
            len(replacements),
            len(nodes),
            len(segments),
        )
        return self.segmenter.splice(html, replacements)

    async def _translate_free_first(self, request: TranslationRequest) -> str:
        """無料プロバイダを順に試し、全て失敗したら通常の経路で翻訳する"""
        cached = self._cache_lookup(request)
        if cached is not None:
            return cached[1]
        async with self._pinned_languages(request):
            for provider in self._providers:
                if not provider.free:
                    continue
                try:
                    translated = await self._call(provider, request.text)
                except TranslationError:
                    continue
                self._cache_store(request, translated, [provider])
                return translated
        return (await self._translate_request(request)).text

    async def _translate_or_original(self, request: TranslationRequest) -> str:
        try:
            return (await self._translate_request(request)).text
        except TranslationError as e:
            logger.debug("Translation failed, returning original content: %s", e)
            return request.text

    async def translate_content(self, content: str, target_lang: Optional[str] = None) -> str:
        """
        内容の種別（テキスト / HTML）を推定して翻訳

        失敗時は元の内容を返す。
        """
        request = self._request(content, target_lang)
        if request.kind is ContentKind.HTML:
            return await self._translate_html_request(request)
        return await self._translate_or_original(request)

    # ------------------------------------------------------------------
    # ライフサイクル
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """全プロバイダの HTTP クライアントを閉じ、キャッシュの書き込みを待つ"""
        for provider in self._providers:
            await provider.aclose()
        if self.cache is not None:
            await asyncio.to_thread(self.cache.flush)

    async def __aenter__(self) -> "MultiProviderTranslator":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
