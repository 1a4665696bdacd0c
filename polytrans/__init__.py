"""polytrans の公開 API

複数の翻訳プロバイダを並行・フォールバック実行する翻訳パイプライン。
主要シンボルは `polytrans` 直下から取得できる。
"""

from .config import ValidationError
from .translation import (
    AllProvidersFailedError,
    BaseProvider,
    ContentKind,
    HtmlSegmenter,
    IdentityRotator,
    MergeStrategy,
    MultiProviderTranslator,
    ProviderFactory,
    ProviderMetadata,
    TranslationCache,
    TranslationError,
    TranslationResult,
    TranslatorFactory,
)

__version__ = "0.1.0"

__all__ = [
    '__version__',
    'TranslatorFactory',
    'ProviderFactory',
    'ProviderMetadata',
    'MultiProviderTranslator',
    'MergeStrategy',
    'BaseProvider',
    'TranslationResult',
    'ContentKind',
    'TranslationCache',
    'IdentityRotator',
    'HtmlSegmenter',
    'TranslationError',
    'AllProvidersFailedError',
    'ValidationError',
]
