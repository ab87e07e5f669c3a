"""nlptok: unigram tokenization for transformer encoder inference."""

from .analysis import AnalysisPipeline, InnerTokenization
from .builder import TokenizerBuilder, build_tokenizer
from .chunking import ChunkPlanner, num_extra_tokens
from .config import TokenizationConfig, Truncate, list_truncate_policies
from .errors import (
    ConfigurationError,
    InputTooLongError,
    NlpTokError,
    ResourceLoadError,
    SpecialTokenError,
    VocabularyError,
)
from .factory import from_pretrained, get_tokenizer, list_tokenizers, load_vocabulary
from .normalizer import CharMap, CharMapNormalizer, load_charmap
from .result import TokenizationResult, Tokens, TokensBuilder
from .segmenter import SegmentedToken, UnigramSegmenter
from .tokenizer import DebertaV2Tokenizer, NlpTokenizer
from .vocab import SpecialTokens, TokenKind, Vocabulary

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("nlptok")
except PackageNotFoundError:
    __version__ = "dev"

__all__ = [
    "AnalysisPipeline",
    "InnerTokenization",
    "TokenizerBuilder",
    "build_tokenizer",
    "ChunkPlanner",
    "num_extra_tokens",
    "TokenizationConfig",
    "Truncate",
    "list_truncate_policies",
    "NlpTokError",
    "ConfigurationError",
    "InputTooLongError",
    "ResourceLoadError",
    "SpecialTokenError",
    "VocabularyError",
    "from_pretrained",
    "get_tokenizer",
    "list_tokenizers",
    "load_vocabulary",
    "CharMap",
    "CharMapNormalizer",
    "load_charmap",
    "TokenizationResult",
    "Tokens",
    "TokensBuilder",
    "SegmentedToken",
    "UnigramSegmenter",
    "DebertaV2Tokenizer",
    "NlpTokenizer",
    "SpecialTokens",
    "TokenKind",
    "Vocabulary",
]
