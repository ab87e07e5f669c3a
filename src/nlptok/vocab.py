"""
Immutable vocabulary table and special token resolution.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Final

from ._sanitise import render_token
from .errors import ConfigurationError, SpecialTokenError, VocabularyError
from .types import Score, TokenId

UNKNOWN_TOKEN: Final[str] = "[UNK]"
SEPARATOR_TOKEN: Final[str] = "[SEP]"
PAD_TOKEN: Final[str] = "[PAD]"
CLASS_TOKEN: Final[str] = "[CLS]"
MASK_TOKEN: Final[str] = "[MASK]"

CONTROL_TOKENS: Final[frozenset[str]] = frozenset(
    {UNKNOWN_TOKEN, SEPARATOR_TOKEN, PAD_TOKEN, CLASS_TOKEN, MASK_TOKEN}
)

# id used for cls/sep when special tokens are disabled
NO_TOKEN: Final[int] = -1

VOCAB_SUFFIX: Final[str] = ".vocab"

log = logging.getLogger(__name__)


class Vocabulary:
    """
    Bidirectional mapping between token text and token id.

    Ids are assigned in the order of the input list. Lookup by text goes
    through a dict while the ordered list is kept for id -> text decoding
    and export.
    """

    __slots__ = ("_tokens", "_ids", "_scores")

    def __init__(
        self, tokens: Sequence[str], scores: Sequence[float] | None = None
    ) -> None:
        """
        Build the table.

        :param tokens: Token strings; list index is the token id.
        :param scores: Per-token scores parallel to ``tokens``; defaults to 0.0.
        :raises ConfigurationError: If scores are not parallel or a token repeats.
        """
        if scores is not None and len(scores) != len(tokens):
            raise ConfigurationError(
                f"vocabulary and scores differ in length ({len(tokens)} != {len(scores)})"
            )

        ids: dict[str, TokenId] = {}
        duplicates: set[str] = set()
        for idx, tok in enumerate(tokens):
            if tok in ids:
                duplicates.add(tok)
            ids[tok] = idx
        if duplicates:
            raise ConfigurationError(
                "vocabulary contains duplicate tokens", invalid_options=duplicates
            )

        self._tokens: tuple[str, ...] = tuple(tokens)
        self._ids: dict[str, TokenId] = ids
        self._scores: tuple[Score, ...] = (
            tuple(float(s) for s in scores)
            if scores is not None
            else (0.0,) * len(self._tokens)
        )
        log.debug(f"built vocabulary with {len(self._tokens)} tokens")

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, text: object) -> bool:
        return text in self._ids

    def get(self, text: str) -> TokenId | None:
        """Return the id of ``text`` or ``None`` if it is not in the vocabulary."""
        return self._ids.get(text)

    def text_of(self, token_id: TokenId) -> str:
        """
        Return the token text for ``token_id``.

        :raises VocabularyError: If the id is outside ``[0, size)``.
        """
        if not 0 <= token_id < len(self._tokens):
            raise VocabularyError("token id not in vocabulary", invalid_id=token_id)
        return self._tokens[token_id]

    def score_of(self, token_id: TokenId) -> Score:
        """Return the segmentation score of ``token_id``."""
        if not 0 <= token_id < len(self._scores):
            raise VocabularyError("token id not in vocabulary", invalid_id=token_id)
        return self._scores[token_id]

    def to_list(self) -> list[str]:
        """Return the token strings in original id order."""
        return list(self._tokens)

    def scores(self) -> list[Score]:
        return list(self._scores)

    def save(self, file_prefix: str) -> Path:
        """
        Write a human-readable listing of the vocabulary to ``<prefix>.vocab``.

        Each line is ``[id] text score`` with control characters escaped.
        """
        vocab_path = Path(file_prefix).with_suffix(VOCAB_SUFFIX)
        vocab_path.parent.mkdir(parents=True, exist_ok=True)

        log.debug(f"saving vocab to {vocab_path}")
        with vocab_path.open("w", encoding="utf-8", newline="\n") as f:
            for idx, (tok, score) in enumerate(zip(self._tokens, self._scores)):
                f.write(f"[{idx}] {render_token(tok)} {score}\n")
        return vocab_path


class TokenKind(str, Enum):
    """Control tokens a tokenizer can be asked for."""

    UNKNOWN = "unknown"
    PAD = "pad"
    CLS = "cls"
    SEP = "sep"
    MASK = "mask"

    @property
    def literal(self) -> str:
        return _KIND_LITERALS[self]


_KIND_LITERALS: Final[dict[TokenKind, str]] = {
    TokenKind.UNKNOWN: UNKNOWN_TOKEN,
    TokenKind.PAD: PAD_TOKEN,
    TokenKind.CLS: CLASS_TOKEN,
    TokenKind.SEP: SEPARATOR_TOKEN,
    TokenKind.MASK: MASK_TOKEN,
}


@dataclass(frozen=True)
class SpecialTokens:
    """Resolved ids of the control tokens for one tokenizer."""

    unk_id: TokenId
    pad_id: TokenId
    cls_id: TokenId = NO_TOKEN
    sep_id: TokenId = NO_TOKEN
    mask_id: TokenId | None = None

    @classmethod
    def resolve(cls, vocab: Vocabulary, with_special_tokens: bool) -> "SpecialTokens":
        """
        Look up the control tokens in ``vocab``.

        ``[UNK]`` and ``[PAD]`` are always required; ``[CLS]`` and ``[SEP]``
        only when ``with_special_tokens`` is set. Every missing token is
        reported in a single error. A missing ``[MASK]`` is not an error.

        :raises ConfigurationError: If any required token is missing.
        """
        required = [UNKNOWN_TOKEN, PAD_TOKEN]
        if with_special_tokens:
            required += [CLASS_TOKEN, SEPARATOR_TOKEN]

        missing = [tok for tok in required if tok not in vocab]
        if missing:
            raise ConfigurationError(
                "stored vocabulary is missing required token(s)",
                missing_tokens=missing,
            )

        unk_id = vocab.get(UNKNOWN_TOKEN)
        pad_id = vocab.get(PAD_TOKEN)
        assert unk_id is not None and pad_id is not None

        if with_special_tokens:
            cls_id = vocab.get(CLASS_TOKEN)
            sep_id = vocab.get(SEPARATOR_TOKEN)
            assert cls_id is not None and sep_id is not None
        else:
            cls_id = sep_id = NO_TOKEN

        return cls(
            unk_id=unk_id,
            pad_id=pad_id,
            cls_id=cls_id,
            sep_id=sep_id,
            mask_id=vocab.get(MASK_TOKEN),
        )

    def required_token_id(self, kind: TokenKind | str) -> TokenId:
        """
        Return the id configured for ``kind``.

        :raises SpecialTokenError: If the token kind is not configured.
        """
        kind = TokenKind(kind)
        match kind:
            case TokenKind.UNKNOWN:
                token_id: TokenId | None = self.unk_id
            case TokenKind.PAD:
                token_id = self.pad_id
            case TokenKind.CLS:
                token_id = self.cls_id
            case TokenKind.SEP:
                token_id = self.sep_id
            case TokenKind.MASK:
                token_id = self.mask_id

        if token_id is None or token_id == NO_TOKEN:
            raise SpecialTokenError("special token not configured", kind=kind.value)
        return token_id

    def ids(self) -> set[TokenId]:
        """Return every configured control token id."""
        candidates = [self.unk_id, self.pad_id, self.cls_id, self.sep_id, self.mask_id]
        return {tok for tok in candidates if tok is not None and tok != NO_TOKEN}
