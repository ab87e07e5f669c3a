"""Validating construction of tokenizers from a vocabulary and settings."""

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from .config import TokenizationConfig, _as_literal_set
from .normalizer import CharMap, load_charmap
from .tokenizer import DebertaV2Tokenizer
from .vocab import Vocabulary

log = logging.getLogger(__name__)

# sentinel: load the packaged normalization table at build time
_DEFAULT_CHARMAP = object()


class TokenizerBuilder:
    """
    Collects settings and builds a ``DebertaV2Tokenizer``.

    Setters are independent and chainable. Nothing is validated until
    ``build()``, which either returns a complete tokenizer or raises.

    .. code-block:: python

        tok = (
            TokenizerBuilder(vocab, scores)
            .set_with_special_tokens(True)
            .set_max_sequence_length(256)
            .build()
        )
    """

    def __init__(
        self,
        vocab: Sequence[str],
        scores: Sequence[float] | None = None,
        config: TokenizationConfig | None = None,
    ) -> None:
        self.vocab = list(vocab)
        self.scores = list(scores) if scores is not None else None
        config = config or TokenizationConfig()
        self.with_special_tokens: Any = config.with_special_tokens
        self.max_sequence_length: Any = config.max_sequence_length
        self.never_split: Iterable[str] | None = config.never_split
        self.truncate: Any = config.truncate
        self.span: Any = config.span
        self.word_prefix: str = ""
        self.charmap: Any = _DEFAULT_CHARMAP

    def set_never_split(self, never_split: Iterable[str] | None) -> "TokenizerBuilder":
        """Extra literals that must never be subdivided; control tokens are always included."""
        self.never_split = never_split
        return self

    def set_max_sequence_length(self, max_sequence_length: int) -> "TokenizerBuilder":
        self.max_sequence_length = max_sequence_length
        return self

    def set_with_special_tokens(self, with_special_tokens: bool) -> "TokenizerBuilder":
        """Include CLS and SEP tokens."""
        self.with_special_tokens = with_special_tokens
        return self

    def set_truncate(self, truncate: Any) -> "TokenizerBuilder":
        self.truncate = truncate
        return self

    def set_span(self, span: int) -> "TokenizerBuilder":
        self.span = span
        return self

    def set_word_prefix(self, word_prefix: str) -> "TokenizerBuilder":
        self.word_prefix = word_prefix
        return self

    def set_charmap(self, charmap: CharMap | None) -> "TokenizerBuilder":
        """Normalization table to use; ``None`` disables normalization."""
        self.charmap = charmap
        return self

    def build(self) -> DebertaV2Tokenizer:
        """
        Validate the collected settings and build the tokenizer.

        :raises ConfigurationError: If settings are invalid or the vocabulary
            lacks a required control token.
        :raises ResourceLoadError: If the packaged normalization table cannot be loaded.
        """
        config = TokenizationConfig(
            with_special_tokens=self.with_special_tokens,
            max_sequence_length=self.max_sequence_length,
            never_split=_as_literal_set(self.never_split),
            truncate=self.truncate,
            span=self.span,
        )
        vocab = Vocabulary(self.vocab, self.scores)
        charmap = load_charmap() if self.charmap is _DEFAULT_CHARMAP else self.charmap
        return DebertaV2Tokenizer(vocab, config, charmap=charmap, word_prefix=self.word_prefix)


def build_tokenizer(
    vocab: Sequence[str],
    scores: Sequence[float] | None = None,
    *,
    word_prefix: str = "",
    charmap: CharMap | None | object = _DEFAULT_CHARMAP,
    **settings: Any,
) -> DebertaV2Tokenizer:
    """
    Build a tokenizer in one call.

    ``settings`` are ``TokenizationConfig`` options (``with_special_tokens``,
    ``max_sequence_length``, ``never_split``, ``truncate``, ``span``).

    :raises ConfigurationError: On invalid settings or a vocabulary missing control tokens.
    """
    config = TokenizationConfig.from_dict(settings)
    builder = TokenizerBuilder(vocab, scores, config).set_word_prefix(word_prefix)
    if charmap is not _DEFAULT_CHARMAP:
        builder.set_charmap(charmap)  # type: ignore[arg-type]
    return builder.build()
