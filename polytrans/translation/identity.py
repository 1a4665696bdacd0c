"""
User-Agent ローテーション

翻訳プロバイダへのリクエストにのみ使用する合成クライアント識別子を生成・巡回する。
同一識別子からの連続リクエストによるレート制限を避けるのが目的。
翻訳以外の通信（認証トークン取得など）は static_headers() の固定識別子を使う。
"""

from __future__ import annotations

import random
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

CHROME_VERSIONS = ["120.0.0.0", "121.0.0.0", "122.0.0.0", "119.0.0.0", "118.0.0.0"]
FIREFOX_VERSIONS = ["119.0", "120.0", "121.0", "122.0"]
SAFARI_VERSIONS = ["17.0", "17.1", "17.2", "16.6", "16.5"]
EDGE_VERSIONS = ["120.0.0.0", "121.0.0.0", "119.0.0.0"]

WINDOWS_VERSIONS = ["10.0", "11.0"]
MAC_VERSIONS = ["10_15_7", "11_7_10", "12_7_1", "13_5_2", "14_2_1"]
LINUX_DISTROS = ["", "Ubuntu; ", "Fedora; ", "Debian; "]
ANDROID_VERSIONS = ["11", "12", "13", "14"]
ANDROID_DEVICES = [
    "SM-S918B",
    "Pixel 6",
    "Pixel 7",
    "Pixel 8",
    "SM-G998B",
    "OnePlus 11",
    "Xiaomi 13",
    "OPPO Find X5",
    "vivo X90",
    "Realme GT 3",
]
IOS_VERSIONS = ["16_6", "17_0", "17_1", "17_2", "15_7"]
IOS_DEVICES = ["iPhone", "iPad"]

ACCEPT_LANGUAGES = [
    "en-US,en;q=0.9",
    "en-GB,en;q=0.9",
    "es-ES,es;q=0.9,en;q=0.8",
    "fr-FR,fr;q=0.9,en;q=0.8",
    "de-DE,de;q=0.9,en;q=0.8",
    "pt-BR,pt;q=0.9,en;q=0.8",
    "ja-JP,ja;q=0.9,en;q=0.8",
    "zh-CN,zh;q=0.9,en;q=0.8",
]

DEFAULT_POOL_SIZE = 200

# 翻訳以外の通信で使う固定 User-Agent
STATIC_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass(frozen=True)
class Identity:
    """合成クライアント識別子"""

    user_agent: str
    accept_language: str

    def to_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept-Language": self.accept_language,
            "Accept": "*/*",
            "Accept-Encoding": "gzip, deflate, br",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        }


def generate_user_agents(rng: Optional[random.Random] = None) -> List[str]:
    """
    ブラウザ・OS の組み合わせから User-Agent を生成

    重複は除去し、順序はシャッフルして返す。

    Args:
        rng: 乱数生成器（テストで固定する場合に指定）

    Returns:
        ユニークな User-Agent のリスト
    """
    rng = rng or random.Random()
    agents: List[str] = []

    # Chrome on Windows
    for win in WINDOWS_VERSIONS:
        for chrome in CHROME_VERSIONS:
            agents.append(
                f"Mozilla/5.0 (Windows NT {win}; Win64; x64) AppleWebKit/537.36 "
                f"(KHTML, like Gecko) Chrome/{chrome} Safari/537.36"
            )

    # Chrome on macOS
    for mac in MAC_VERSIONS:
        for chrome in CHROME_VERSIONS:
            agents.append(
                f"Mozilla/5.0 (Macintosh; Intel Mac OS X {mac}) AppleWebKit/537.36 "
                f"(KHTML, like Gecko) Chrome/{chrome} Safari/537.36"
            )

    # Chrome on Linux
    for distro in LINUX_DISTROS:
        for chrome in CHROME_VERSIONS:
            agents.append(
                f"Mozilla/5.0 (X11; {distro}Linux x86_64) AppleWebKit/537.36 "
                f"(KHTML, like Gecko) Chrome/{chrome} Safari/537.36"
            )

    # Firefox on Windows
    for win in WINDOWS_VERSIONS:
        for ff in FIREFOX_VERSIONS:
            agents.append(
                f"Mozilla/5.0 (Windows NT {win}; Win64; x64; rv:{ff}) "
                f"Gecko/20100101 Firefox/{ff}"
            )

    # Firefox on macOS
    for mac in MAC_VERSIONS[:3]:
        for ff in FIREFOX_VERSIONS:
            agents.append(
                f"Mozilla/5.0 (Macintosh; Intel Mac OS X {mac.replace('_', '.', 1)}; "
                f"rv:{ff}) Gecko/20100101 Firefox/{ff}"
            )

    # Safari on macOS
    for mac in MAC_VERSIONS:
        for safari in SAFARI_VERSIONS:
            agents.append(
                f"Mozilla/5.0 (Macintosh; Intel Mac OS X {mac}) AppleWebKit/605.1.15 "
                f"(KHTML, like Gecko) Version/{safari} Safari/605.1.15"
            )

    # Edge on Windows
    for win in WINDOWS_VERSIONS:
        for edge in EDGE_VERSIONS:
            agents.append(
                f"Mozilla/5.0 (Windows NT {win}; Win64; x64) AppleWebKit/537.36 "
                f"(KHTML, like Gecko) Chrome/{edge} Safari/537.36 Edg/{edge}"
            )

    # Chrome on Android
    for device in ANDROID_DEVICES:
        for android in ANDROID_VERSIONS[:2]:
            chrome = rng.choice(CHROME_VERSIONS)
            agents.append(
                f"Mozilla/5.0 (Linux; Android {android}; {device}) AppleWebKit/537.36 "
                f"(KHTML, like Gecko) Chrome/{chrome} Mobile Safari/537.36"
            )

    # Safari on iOS
    for device in IOS_DEVICES:
        for ios in IOS_VERSIONS:
            for safari in SAFARI_VERSIONS[:2]:
                agents.append(
                    f"Mozilla/5.0 ({device}; CPU {device} OS {ios} like Mac OS X) "
                    f"AppleWebKit/605.1.15 (KHTML, like Gecko) Version/{safari} "
                    f"Mobile/15E148 Safari/604.1"
                )

    # Opera / Brave on Windows
    for win in WINDOWS_VERSIONS:
        for chrome in CHROME_VERSIONS:
            agents.append(
                f"Mozilla/5.0 (Windows NT {win}; Win64; x64) AppleWebKit/537.36 "
                f"(KHTML, like Gecko) Chrome/{chrome} Safari/537.36 OPR/106.0.0.0"
            )
            agents.append(
                f"Mozilla/5.0 (Windows NT {win}; Win64; x64) AppleWebKit/537.36 "
                f"(KHTML, like Gecko) Chrome/{chrome} Safari/537.36 Brave/{chrome}"
            )

    unique = list(dict.fromkeys(agents))
    rng.shuffle(unique)
    return unique


def static_headers() -> Dict[str, str]:
    """翻訳以外の通信用の固定ヘッダー（ローテーションしない）"""
    return {
        "User-Agent": STATIC_USER_AGENT,
        "Accept": "*/*",
    }


class IdentityRotator:
    """
    合成クライアント識別子のプール

    構築時に User-Agent と Accept-Language の組を生成してシャッフルし、
    next_identity() のたびにカーソルを 1 つ進めて巡回する。
    カーソルの更新はロックで保護しているため、並行呼び出しでも
    プールサイズ分の呼び出しの間は同じ識別子が返らない。

    Examples:
        >>> rotator = IdentityRotator(seed=0)
        >>> headers = rotator.next_headers()
        >>> "User-Agent" in headers
        True
    """

    def __init__(self, pool_size: int = DEFAULT_POOL_SIZE, seed: Optional[int] = None):
        rng = random.Random(seed)
        agents = generate_user_agents(rng)
        size = max(1, min(pool_size, len(agents)))
        self._pool: List[Identity] = [
            Identity(
                user_agent=agents[i % len(agents)],
                accept_language=rng.choice(ACCEPT_LANGUAGES),
            )
            for i in range(size)
        ]
        rng.shuffle(self._pool)
        self._cursor = 0
        self._lock = threading.Lock()

    def next_identity(self) -> Identity:
        """現在のカーソル位置の識別子を返し、カーソルを進める"""
        with self._lock:
            identity = self._pool[self._cursor]
            self._cursor = (self._cursor + 1) % len(self._pool)
        return identity

    def next_headers(self) -> Dict[str, str]:
        """次の識別子のリクエストヘッダー"""
        return self.next_identity().to_headers()

    @property
    def pool(self) -> List[Identity]:
        return list(self._pool)

    def __len__(self) -> int:
        return len(self._pool)
