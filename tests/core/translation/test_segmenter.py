"""
HtmlSegmenter のテスト
"""

from __future__ import annotations

import asyncio

import pytest

from polytrans.translation.exceptions import TranslationError
from polytrans.translation.segmenter import HtmlSegmenter, Segment, TextNode


def texts(nodes):
    return [node.text for node in nodes]


class TestExtractNodes:
    """extract_nodes のテスト"""

    def test_document_order(self):
        segmenter = HtmlSegmenter()
        nodes = segmenter.extract_nodes("<div><p>One</p><span>Two <b>Three</b></span></div>")
        assert texts(nodes) == ["One", "Two", "Three"]
        assert [n.index for n in nodes] == [0, 1, 2]

    def test_skips_whitespace_comments_and_scripts(self):
        markup = (
            "<p> </p><!-- note --><script>var a = 1;</script>"
            "<style>p { color: red; }</style><p>Visible</p>"
        )
        assert texts(HtmlSegmenter().extract_nodes(markup)) == ["Visible"]

    def test_entities_decoded(self):
        assert texts(HtmlSegmenter().extract_nodes("<p>Tom &amp; Jerry</p>")) == ["Tom & Jerry"]


class TestGroup:
    """group のテスト"""

    def test_small_nodes_grouped(self):
        segmenter = HtmlSegmenter()
        segments = segmenter.group([TextNode(0, "Hello"), TextNode(1, "World")])
        assert len(segments) == 1
        assert segments[0].text == "Hello\nWorld"
        assert segments[0].is_group is True

    def test_large_node_alone(self):
        """small_node_chars 以上のノードは単独の単位"""
        segmenter = HtmlSegmenter(small_node_chars=10)
        nodes = [TextNode(0, "a"), TextNode(1, "this is a long node"), TextNode(2, "b")]
        segments = segmenter.group(nodes)
        assert [s.node_indices for s in segments] == [[0], [1], [2]]

    def test_multiline_node_alone(self):
        """改行を含むノードは単独の単位"""
        segmenter = HtmlSegmenter()
        segments = segmenter.group([TextNode(0, "a"), TextNode(1, "b\nc"), TextNode(2, "d")])
        assert [s.node_indices for s in segments] == [[0], [1], [2]]

    def test_group_max_chars(self):
        """合計文字数の上限を超えると新しいグループ"""
        segmenter = HtmlSegmenter(small_node_chars=50, group_max_chars=10)
        nodes = [TextNode(i, "abcd") for i in range(5)]
        segments = segmenter.group(nodes)
        assert [s.node_indices for s in segments] == [[0, 1], [2, 3], [4]]
        assert all(len(s) <= 10 for s in segments)

    def test_segment_length(self):
        assert len(Segment([0, 1], ["ab", "cde"])) == 5


class TestTranslateSegments:
    """translate_segments のテスト"""

    def test_group_split_back(self):
        segmenter = HtmlSegmenter(wave_pause=0)

        async def upper(text):
            return text.upper()

        segments = [Segment([0, 1], ["Hello", "World"])]
        result = asyncio.run(segmenter.translate_segments(segments, upper))
        assert result == {0: "HELLO", 1: "WORLD"}

    def test_line_mismatch_falls_back_to_nodes(self):
        """行数が合わなければノードごとに翻訳し直す"""
        segmenter = HtmlSegmenter(wave_pause=0)
        calls = []

        async def merge_lines(text):
            calls.append(text)
            return text.replace("\n", " ").upper()

        segments = [Segment([0, 1], ["Hello", "World"])]
        result = asyncio.run(segmenter.translate_segments(segments, merge_lines))
        assert result == {0: "HELLO", 1: "WORLD"}
        assert calls == ["Hello\nWorld", "Hello", "World"]

    def test_failed_unit_omitted(self):
        """失敗した単位は結果に含めない"""
        segmenter = HtmlSegmenter(wave_pause=0)

        async def flaky(text):
            if text == "bad":
                raise TranslationError("down")
            return text.upper()

        segments = [Segment([0], ["good"]), Segment([1], ["bad"])]
        result = asyncio.run(segmenter.translate_segments(segments, flaky))
        assert result == {0: "GOOD"}

    def test_unexpected_error_logged(self, caplog):
        segmenter = HtmlSegmenter(wave_pause=0)

        async def broken(text):
            raise RuntimeError("bug")

        with caplog.at_level("WARNING", logger="polytrans.translation.segmenter"):
            result = asyncio.run(segmenter.translate_segments([Segment([0], ["x"])], broken))
        assert result == {}
        assert "Unexpected error" in caplog.text

    def test_waves_bounded(self):
        """1 ウェーブの同時実行数は max_concurrency まで"""
        segmenter = HtmlSegmenter(max_concurrency=2, wave_pause=0)
        state = {"active": 0, "peak": 0}

        async def slow(text):
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
            await asyncio.sleep(0.01)
            state["active"] -= 1
            return text.upper()

        segments = [Segment([i], [f"n{i}"]) for i in range(5)]
        result = asyncio.run(segmenter.translate_segments(segments, slow))
        assert len(result) == 5
        assert state["peak"] == 2


class TestSplice:
    """splice のテスト"""

    def test_preserves_markup(self):
        segmenter = HtmlSegmenter()
        markup = '<p class="Hello">Hello</p><p>World</p>'
        result = segmenter.splice(markup, [("Hello", "Bonjour"), ("World", "Monde")])
        assert result == '<p class="Hello">Bonjour</p><p>Monde</p>'

    def test_repeated_text_in_order(self):
        """同じ文字列は文書順に対応づける"""
        segmenter = HtmlSegmenter()
        markup = "<li>Yes</li><li>No</li><li>Yes</li>"
        result = segmenter.splice(markup, [("Yes", "Oui"), ("No", "Non"), ("Yes", "Si")])
        assert result == "<li>Oui</li><li>Non</li><li>Si</li>"

    def test_escaped_source(self):
        """エスケープ済みの原文にも一致し、訳文はエスケープする"""
        segmenter = HtmlSegmenter()
        result = segmenter.splice("<p>Tom &amp; Jerry</p>", [("Tom & Jerry", "Tom <&> Jerry")])
        assert result == "<p>Tom &lt;&amp;&gt; Jerry</p>"

    def test_character_references(self):
        """数値参照・名前付き参照で書かれた原文にも一致する"""
        segmenter = HtmlSegmenter()
        markup = "<p>It&#8217;s raining</p><p>Say &quot;hi&quot; &mdash; now</p>"
        result = segmenter.splice(
            markup,
            [("It’s raining", "Il pleut"), ('Say "hi" — now', "Dis bonjour")],
        )
        assert result == "<p>Il pleut</p><p>Dis bonjour</p>"

    def test_character_reference_keeps_surrounding_text(self):
        """参照の前後の空白やタグはそのまま残る"""
        segmenter = HtmlSegmenter()
        markup = "<p>  caf&#xE9; </p><p>caf&eacute;</p>"
        result = segmenter.splice(markup, [("café", "coffee"), ("café", "kaffee")])
        assert result == "<p>  coffee </p><p>kaffee</p>"

    def test_ignores_script_content(self):
        segmenter = HtmlSegmenter()
        markup = "<script>var Hello = 1;</script><p>Hello</p>"
        result = segmenter.splice(markup, [("Hello", "Hola")])
        assert result == "<script>var Hello = 1;</script><p>Hola</p>"

    def test_missing_text_left_alone(self):
        segmenter = HtmlSegmenter()
        assert segmenter.splice("<p>A</p>", [("Z", "zz")]) == "<p>A</p>"


class TestBuildReplacements:
    """build_replacements のテスト"""

    def test_unchanged_and_missing_skipped(self):
        segmenter = HtmlSegmenter()
        nodes = [TextNode(0, "a"), TextNode(1, "b"), TextNode(2, "c")]
        pairs = segmenter.build_replacements(nodes, {0: "A", 1: "b"})
        assert pairs == [("a", "A")]
