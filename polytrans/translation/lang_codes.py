"""
言語コード正規化ユーティリティ

各プロバイダの言語テーブル（言語名 → プロバイダ固有コード）と、
呼び出し側が渡す言語指定（言語名、BCP-47 コードのどちらでも可）を
プロバイダ固有コードへ変換する関数を提供する。
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional

import langcodes

AUTO = "auto"

GOOGLE_LANGUAGES: Dict[str, str] = {
    "Auto detect": "auto",
    "Afrikaans": "af",
    "Albanian": "sq",
    "Amharic": "am",
    "Arabic": "ar",
    "Armenian": "hy",
    "Azerbaijani": "az",
    "Basque": "eu",
    "Belarusian": "be",
    "Bengali": "bn",
    "Bosnian": "bs",
    "Bulgarian": "bg",
    "Catalan": "ca",
    "Cebuano": "ceb",
    "Chinese (Simplified)": "zh-CN",
    "Chinese (Traditional)": "zh-TW",
    "Corsican": "co",
    "Croatian": "hr",
    "Czech": "cs",
    "Danish": "da",
    "Dutch": "nl",
    "English": "en",
    "Esperanto": "eo",
    "Estonian": "et",
    "Finnish": "fi",
    "French": "fr",
    "Galician": "gl",
    "Georgian": "ka",
    "German": "de",
    "Greek": "el",
    "Gujarati": "gu",
    "Haitian Creole": "ht",
    "Hausa": "ha",
    "Hawaiian": "haw",
    "Hebrew": "he",
    "Hindi": "hi",
    "Hmong": "hmn",
    "Hungarian": "hu",
    "Icelandic": "is",
    "Igbo": "ig",
    "Indonesian": "id",
    "Irish": "ga",
    "Italian": "it",
    "Japanese": "ja",
    "Javanese": "jw",
    "Kannada": "kn",
    "Kazakh": "kk",
    "Khmer": "km",
    "Korean": "ko",
    "Kurdish": "ku",
    "Kyrgyz": "ky",
    "Lao": "lo",
    "Latin": "la",
    "Latvian": "lv",
    "Lithuanian": "lt",
    "Luxembourgish": "lb",
    "Macedonian": "mk",
    "Malagasy": "mg",
    "Malay": "ms",
    "Malayalam": "ml",
    "Maltese": "mt",
    "Maori": "mi",
    "Marathi": "mr",
    "Mongolian": "mn",
    "Myanmar (Burmese)": "my",
    "Nepali": "ne",
    "Norwegian": "no",
    "Nyanja (Chichewa)": "ny",
    "Pashto": "ps",
    "Persian": "fa",
    "Polish": "pl",
    "Portuguese": "pt",
    "Punjabi": "pa",
    "Romanian": "ro",
    "Russian": "ru",
    "Samoan": "sm",
    "Scots Gaelic": "gd",
    "Serbian": "sr",
    "Sesotho": "st",
    "Shona": "sn",
    "Sindhi": "sd",
    "Sinhala (Sinhalese)": "si",
    "Slovak": "sk",
    "Slovenian": "sl",
    "Somali": "so",
    "Spanish": "es",
    "Sundanese": "su",
    "Swahili": "sw",
    "Swedish": "sv",
    "Tagalog (Filipino)": "tl",
    "Tajik": "tg",
    "Tamil": "ta",
    "Telugu": "te",
    "Thai": "th",
    "Turkish": "tr",
    "Ukrainian": "uk",
    "Urdu": "ur",
    "Uzbek": "uz",
    "Vietnamese": "vi",
    "Welsh": "cy",
    "Xhosa": "xh",
    "Yiddish": "yi",
    "Yoruba": "yo",
    "Zulu": "zu",
}

MICROSOFT_LANGUAGES: Dict[str, str] = {
    "Afrikaans": "af",
    "Arabic": "ar",
    "Bangla": "bn",
    "Bosnian": "bs",
    "Bulgarian": "bg",
    "Cantonese (Traditional)": "yue",
    "Catalan": "ca",
    "Chinese (Simplified)": "zh-Hans",
    "Chinese (Traditional)": "zh-Hant",
    "Croatian": "hr",
    "Czech": "cs",
    "Danish": "da",
    "Dutch": "nl",
    "English": "en",
    "Estonian": "et",
    "Fijian": "fj",
    "Filipino": "fil",
    "Finnish": "fi",
    "French": "fr",
    "German": "de",
    "Greek": "el",
    "Gujarati": "gu",
    "Hebrew": "he",
    "Hindi": "hi",
    "Hmong Daw": "mww",
    "Hungarian": "hu",
    "Icelandic": "is",
    "Indonesian": "id",
    "Irish": "ga",
    "Italian": "it",
    "Japanese": "ja",
    "Kannada": "kn",
    "Kazakh": "kk",
    "Klingon": "tlh",
    "Korean": "ko",
    "Kurdish (Central)": "ku",
    "Kurdish (Northern)": "kmr",
    "Lao": "lo",
    "Latvian": "lv",
    "Lithuanian": "lt",
    "Malagasy": "mg",
    "Malay": "ms",
    "Malayalam": "ml",
    "Maltese": "mt",
    "Maori": "mi",
    "Marathi": "mr",
    "Myanmar": "my",
    "Norwegian": "nb",
    "Pashto": "ps",
    "Persian": "fa",
    "Polish": "pl",
    "Portuguese": "pt",
    "Punjabi": "pa",
    "Queretaro Otomi": "otq",
    "Romanian": "ro",
    "Russian": "ru",
    "Samoan": "sm",
    "Serbian": "sr",
    "Slovak": "sk",
    "Slovenian": "sl",
    "Spanish": "es",
    "Swahili": "sw",
    "Swedish": "sv",
    "Tahitian": "ty",
    "Tamil": "ta",
    "Telugu": "te",
    "Thai": "th",
    "Tongan": "to",
    "Turkish": "tr",
    "Ukrainian": "uk",
    "Urdu": "ur",
    "Vietnamese": "vi",
    "Welsh": "cy",
    "Yucatec Maya": "yua",
}

MICROSOFT_SOURCE_LANGUAGES: Dict[str, str] = {"Auto detect": "auto", **MICROSOFT_LANGUAGES}

DEEPL_LANGUAGES: Dict[str, str] = {
    "Bulgarian": "BG",
    "Czech": "CS",
    "Danish": "DA",
    "German": "DE",
    "Greek": "EL",
    "English": "EN",
    "Spanish": "ES",
    "Estonian": "ET",
    "Finnish": "FI",
    "French": "FR",
    "Hungarian": "HU",
    "Indonesian": "ID",
    "Italian": "IT",
    "Japanese": "JA",
    "Korean": "KO",
    "Lithuanian": "LT",
    "Latvian": "LV",
    "Norwegian": "NB",
    "Dutch": "NL",
    "Polish": "PL",
    "Portuguese": "PT",
    "Romanian": "RO",
    "Russian": "RU",
    "Slovak": "SK",
    "Slovenian": "SL",
    "Swedish": "SV",
    "Turkish": "TR",
    "Ukrainian": "UK",
    "Chinese (Simplified)": "ZH",
}

# ChatGPT 系（DeepSeek / Azure 含む）
OPENAI_LANGUAGES: Dict[str, str] = {
    "Auto detect": "auto",
    "Afrikaans": "af",
    "Albanian": "sq",
    "Arabic": "ar",
    "Armenian": "hy",
    "Azerbaijani": "az",
    "Basque": "eu",
    "Belarusian": "be",
    "Bengali": "bn",
    "Bosnian": "bs",
    "Bulgarian": "bg",
    "Catalan": "ca",
    "Chinese (Simplified)": "zh",
    "Chinese (Traditional)": "zh-TW",
    "Croatian": "hr",
    "Czech": "cs",
    "Danish": "da",
    "Dutch": "nl",
    "English": "en",
    "Estonian": "et",
    "Finnish": "fi",
    "French": "fr",
    "Galician": "gl",
    "Georgian": "ka",
    "German": "de",
    "Greek": "el",
    "Gujarati": "gu",
    "Hebrew": "he",
    "Hindi": "hi",
    "Hungarian": "hu",
    "Icelandic": "is",
    "Indonesian": "id",
    "Irish": "ga",
    "Italian": "it",
    "Japanese": "ja",
    "Kannada": "kn",
    "Kazakh": "kk",
    "Korean": "ko",
    "Latvian": "lv",
    "Lithuanian": "lt",
    "Macedonian": "mk",
    "Malay": "ms",
    "Marathi": "mr",
    "Norwegian": "no",
    "Polish": "pl",
    "Portuguese": "pt",
    "Romanian": "ro",
    "Russian": "ru",
    "Serbian": "sr",
    "Slovak": "sk",
    "Slovenian": "sl",
    "Spanish": "es",
    "Swahili": "sw",
    "Swedish": "sv",
    "Tagalog": "tl",
    "Tamil": "ta",
    "Telugu": "te",
    "Thai": "th",
    "Turkish": "tr",
    "Ukrainian": "uk",
    "Urdu": "ur",
    "Vietnamese": "vi",
    "Welsh": "cy",
}

ANTHROPIC_LANGUAGES: Dict[str, str] = {
    "Auto detect": "auto",
    "English": "en",
    "Spanish": "es",
    "French": "fr",
    "German": "de",
    "Italian": "it",
    "Portuguese": "pt",
    "Russian": "ru",
    "Japanese": "ja",
    "Korean": "ko",
    "Chinese (Simplified)": "zh",
    "Chinese (Traditional)": "zh-TW",
    "Arabic": "ar",
    "Hindi": "hi",
    "Dutch": "nl",
    "Polish": "pl",
    "Turkish": "tr",
    "Vietnamese": "vi",
    "Thai": "th",
    "Indonesian": "id",
    "Czech": "cs",
    "Swedish": "sv",
    "Norwegian": "no",
    "Danish": "da",
    "Finnish": "fi",
    "Greek": "el",
    "Hebrew": "he",
    "Romanian": "ro",
    "Hungarian": "hu",
    "Bulgarian": "bg",
    "Croatian": "hr",
    "Slovak": "sk",
    "Slovenian": "sl",
    "Ukrainian": "uk",
    "Serbian": "sr",
    "Malay": "ms",
    "Tagalog": "tl",
    "Swahili": "sw",
}

BAIDU_LANGUAGES: Dict[str, str] = {
    "Auto detect": "auto",
    "English": "en",
    "Chinese (Simplified)": "zh",
    "Japanese": "jp",
    "Korean": "kor",
    "Spanish": "spa",
    "French": "fra",
    "Thai": "th",
    "Arabic": "ara",
    "Russian": "ru",
    "Portuguese": "pt",
    "German": "de",
    "Italian": "it",
    "Greek": "el",
    "Dutch": "nl",
    "Polish": "pl",
    "Bulgarian": "bul",
    "Estonian": "est",
    "Danish": "dan",
    "Finnish": "fin",
    "Czech": "cs",
    "Romanian": "rom",
    "Slovenian": "slo",
    "Swedish": "swe",
    "Hungarian": "hu",
    "Vietnamese": "vie",
}

YOUDAO_LANGUAGES: Dict[str, str] = {
    "Auto detect": "auto",
    "Chinese (Simplified)": "zh-CHS",
    "Chinese (Traditional)": "zh-CHT",
    "English": "en",
    "Japanese": "ja",
    "Korean": "ko",
    "French": "fr",
    "Spanish": "es",
    "Portuguese": "pt",
    "Italian": "it",
    "Russian": "ru",
    "Vietnamese": "vi",
    "German": "de",
    "Arabic": "ar",
    "Indonesian": "id",
    "Afrikaans": "af",
    "Bosnian": "bs",
    "Bulgarian": "bg",
    "Cantonese": "yue",
    "Croatian": "hr",
    "Czech": "cs",
    "Danish": "da",
    "Dutch": "nl",
    "Estonian": "et",
    "Fijian": "fj",
    "Finnish": "fi",
    "Greek": "el",
    "Haitian Creole": "ht",
    "Hebrew": "he",
    "Hindi": "hi",
    "Hungarian": "hu",
    "Icelandic": "is",
    "Malay": "ms",
    "Maltese": "mt",
    "Norwegian": "no",
    "Polish": "pl",
    "Romanian": "ro",
    "Serbian": "sr",
    "Slovak": "sk",
    "Slovenian": "sl",
    "Swahili": "sw",
    "Swedish": "sv",
    "Tahitian": "ty",
    "Thai": "th",
    "Tongan": "to",
    "Turkish": "tr",
    "Ukrainian": "uk",
    "Urdu": "ur",
    "Welsh": "cy",
}

# Baidu / Youdao など独自コードのため、langcodes での解釈結果を補う
_CODE_ALIASES: Dict[str, str] = {
    "jp": "ja",
    "kor": "ko",
    "spa": "es",
    "fra": "fr",
    "ara": "ar",
    "bul": "bg",
    "est": "et",
    "dan": "da",
    "fin": "fi",
    "rom": "ro",
    "slo": "sl",
    "swe": "sv",
    "vie": "vi",
    "jw": "jv",
    "zh-chs": "zh-Hans",
    "zh-cht": "zh-Hant",
}


def _parse(code: str) -> Optional[langcodes.Language]:
    code = _CODE_ALIASES.get(code.lower(), code)
    try:
        return langcodes.Language.get(code)
    except (ValueError, LookupError):
        return None


def to_iso639_1(code: str) -> str:
    """
    言語コードを ISO 639-1 に変換

    Examples:
        >>> to_iso639_1("zh-CN")
        'zh'
        >>> to_iso639_1("JA")
        'ja'
    """
    parsed = _parse(code)
    if parsed is None or parsed.language is None:
        return code.lower()
    return parsed.language


def _script(code: str) -> Optional[str]:
    parsed = _parse(code)
    if parsed is None or parsed.language is None:
        return None
    try:
        return parsed.maximize().script
    except (ValueError, LookupError):
        return None


def resolve_code(table: Mapping[str, str], language: str) -> str:
    """
    言語指定をプロバイダ固有コードに変換

    解決順序:
    1. テーブルの言語名と一致（大文字小文字無視）
    2. テーブルのコードと一致（大文字小文字無視）
    3. ISO 639-1 と文字体系（zh-Hans / zh-Hant など）が一致するコード
    4. 見つからなければ入力をそのまま返す

    Args:
        table: 言語名 → プロバイダコード
        language: 言語名または言語コード

    Returns:
        プロバイダ固有コード

    Examples:
        >>> resolve_code(DEEPL_LANGUAGES, "ja")
        'JA'
        >>> resolve_code(MICROSOFT_LANGUAGES, "zh-TW")
        'zh-Hant'
    """
    if not language:
        return language
    lowered = language.lower()
    if lowered == AUTO:
        return AUTO

    for name, code in table.items():
        if name.lower() == lowered:
            return code
    for code in table.values():
        if code.lower() == lowered:
            return code

    iso = to_iso639_1(language)
    script = _script(language)
    fallback: Optional[str] = None
    for code in table.values():
        if code == AUTO or to_iso639_1(code) != iso:
            continue
        if script is None or _script(code) == script:
            return code
        if fallback is None:
            fallback = code
    return fallback if fallback is not None else language


def get_language_name(language: str, table: Mapping[str, str] = GOOGLE_LANGUAGES) -> str:
    """
    プロンプト用に英語の言語名を取得

    Args:
        language: 言語名または言語コード
        table: 参照する言語テーブル

    Returns:
        英語での言語名（例: "Japanese"）。不明な場合は入力をそのまま返す
    """
    code = resolve_code(table, language)
    for name, value in table.items():
        if value == code and value != AUTO:
            return name
    return language
