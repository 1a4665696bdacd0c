"""TypedDict definitions for the translation pipeline configuration.

These types back ConfigValidator. Annotations are evaluated at runtime, so
they use typing constructs rather than postponed string annotations.
"""

from typing import List, Literal, MutableMapping, Optional, TypedDict, Union

__all__ = [
    "TranslationSection",
    "ProviderOptions",
    "ProvidersConfig",
    "NetworkConfig",
    "CacheConfig",
    "HtmlConfig",
    "IdentityConfig",
    "LoggingConfig",
    "CoreConfig",
]


class TranslationSection(TypedDict, total=False):
    providers: List[str]
    source_lang: str
    target_lang: str
    use_multiple_providers: bool
    merge_strategy: Literal["first", "vote", "average"]


class ProviderOptions(TypedDict, total=False):
    api_key: Optional[str]
    api_keys: List[str]
    request_timeout: float
    request_attempts: int
    request_interval: float
    concurrency_limit: int
    proxy: Optional[str]
    model: str
    temperature: float
    max_tokens: int
    stream: bool
    region: str
    resource: str
    deployment: str
    api_version: str
    endpoint: str


ProvidersConfig = MutableMapping[str, ProviderOptions]


class NetworkConfig(TypedDict, total=False):
    proxy: Optional[str]


class CacheConfig(TypedDict, total=False):
    enabled: bool
    max_size: int
    ttl_seconds: Union[int, float]
    path: Optional[str]


class HtmlConfig(TypedDict, total=False):
    small_node_chars: int
    group_max_chars: int
    max_concurrency: int
    wave_pause: float
    free_only_node_threshold: int


class IdentityConfig(TypedDict, total=False):
    pool_size: int
    seed: Optional[int]


class LoggingConfig(TypedDict, total=False):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class _CoreConfigRequired(TypedDict):
    translation: TranslationSection


class CoreConfig(_CoreConfigRequired, total=False):
    providers: ProvidersConfig
    network: NetworkConfig
    cache: CacheConfig
    html: HtmlConfig
    identity: IdentityConfig
    logging: LoggingConfig
