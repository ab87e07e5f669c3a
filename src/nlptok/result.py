"""
Per-window token assembly and the padded batch result.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from .errors import NlpTokError
from .types import Position, TokenId

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tokens:
    """One output window: content plus injected special tokens, unpadded."""

    input: str | tuple[str, str]
    token_ids: list[TokenId]
    token_positions: list[Position]
    token_type_ids: list[int]
    sequence_id: int
    chunk_index: int = 0
    span_prev: int = -1
    truncated: bool = False
    # index of the first token of the second sequence, -1 for single sequences
    seq_pair_offset: int = -1

    def __len__(self) -> int:
        return len(self.token_ids)


class TokensBuilder:
    """
    Joins content tokens with special tokens.

    With special tokens enabled a single sequence becomes ``[CLS] a [SEP]``
    and a pair ``[CLS] a [SEP] b [SEP]``. Special tokens get position -1.
    """

    def __init__(self, cls_token_id: TokenId, sep_token_id: TokenId, with_special_tokens: bool) -> None:
        self.cls_token_id = cls_token_id
        self.sep_token_id = sep_token_id
        self.with_special_tokens = with_special_tokens
        self._ids: list[TokenId] = []
        self._positions: list[Position] = []
        self._types: list[int] = []
        self._seq_pair_offset = -1

    def _reset(self) -> None:
        self._ids, self._positions, self._types = [], [], []
        self._seq_pair_offset = -1

    def _append_special(self, token_id: TokenId, type_id: int) -> None:
        self._ids.append(token_id)
        self._positions.append(-1)
        self._types.append(type_id)

    def _append_content(self, ids: Sequence[TokenId], positions: Sequence[Position], type_id: int) -> None:
        self._ids.extend(ids)
        self._positions.extend(positions)
        self._types.extend([type_id] * len(ids))

    def add_sequence(self, ids: Sequence[TokenId], positions: Sequence[Position]) -> "TokensBuilder":
        self._reset()
        if self.with_special_tokens:
            self._append_special(self.cls_token_id, 0)
        self._append_content(ids, positions, 0)
        if self.with_special_tokens:
            self._append_special(self.sep_token_id, 0)
        return self

    def add_sequence_pair(
        self,
        ids1: Sequence[TokenId],
        positions1: Sequence[Position],
        ids2: Sequence[TokenId],
        positions2: Sequence[Position],
    ) -> "TokensBuilder":
        self._reset()
        if self.with_special_tokens:
            self._append_special(self.cls_token_id, 0)
        self._append_content(ids1, positions1, 0)
        if self.with_special_tokens:
            self._append_special(self.sep_token_id, 0)
        self._seq_pair_offset = len(self._ids)
        self._append_content(ids2, positions2, 1)
        if self.with_special_tokens:
            self._append_special(self.sep_token_id, 1)
        return self

    def build(
        self,
        input: str | tuple[str, str],
        *,
        sequence_id: int,
        chunk_index: int = 0,
        span_prev: int = -1,
        truncated: bool = False,
    ) -> Tokens:
        tokens = Tokens(
            input=input,
            token_ids=self._ids,
            token_positions=self._positions,
            token_type_ids=self._types,
            sequence_id=sequence_id,
            chunk_index=chunk_index,
            span_prev=span_prev,
            truncated=truncated,
            seq_pair_offset=self._seq_pair_offset,
        )
        self._reset()
        return tokens


@dataclass
class TokenizationResult:
    """
    The windows of a batch in input order, ready to be padded into a request.

    Windows are right padded with ``pad_token_id`` to the longest window.
    Inputs that failed when errors are collected appear in ``errors`` and
    contribute no windows.
    """

    vocabulary: list[str]
    pad_token_id: TokenId
    tokens: list[Tokens] = field(default_factory=list)
    errors: dict[int, NlpTokError] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.tokens)

    @property
    def longest_sequence_length(self) -> int:
        return max((len(t) for t in self.tokens), default=0)

    def any_truncated(self) -> bool:
        return any(t.truncated for t in self.tokens)

    def windows_for(self, sequence_id: int) -> list[Tokens]:
        """All windows of one input, in chunk order."""
        return [t for t in self.tokens if t.sequence_id == sequence_id]

    def window_refs(self) -> list[tuple[int, int]]:
        """``(sequence_id, chunk_index)`` of every window, aligned with the padded rows."""
        return [(t.sequence_id, t.chunk_index) for t in self.tokens]

    def _pad(self, row: Sequence[int], value: int) -> list[int]:
        return list(row) + [value] * (self.longest_sequence_length - len(row))

    def padded_token_ids(self) -> list[list[TokenId]]:
        return [self._pad(t.token_ids, self.pad_token_id) for t in self.tokens]

    def attention_masks(self) -> list[list[int]]:
        return [self._pad([1] * len(t), 0) for t in self.tokens]

    def padded_token_type_ids(self) -> list[list[int]]:
        return [self._pad(t.token_type_ids, 0) for t in self.tokens]

    def position_ids(self) -> list[list[int]]:
        return [self._pad(list(range(len(t))), 0) for t in self.tokens]

    def get_token(self, token_id: TokenId) -> str:
        return self.vocabulary[token_id]

    def build_request(self, request_id: str) -> dict[str, Any]:
        """
        Build the JSON serialisable inference payload.

        ``arg_1`` is the attention mask, ``arg_2`` the token type ids and
        ``arg_3`` the position ids.
        """
        log.debug(
            f"building request {request_id} with {len(self.tokens)} windows "
            f"of length {self.longest_sequence_length}"
        )
        return {
            "request_id": request_id,
            "tokens": self.padded_token_ids(),
            "arg_1": self.attention_masks(),
            "arg_2": self.padded_token_type_ids(),
            "arg_3": self.position_ids(),
        }
