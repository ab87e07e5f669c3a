"""
Tokenizer interface and the DeBERTa-v2 style unigram tokenizer.
"""

import logging
import os
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from math import ceil
from typing import Final, Literal, Protocol, TypeAlias, runtime_checkable

from ._decorators import measure_time
from .analysis import AnalysisPipeline, InnerTokenization
from .chunking import ChunkPlanner, num_extra_tokens
from .config import NO_SPAN, TokenizationConfig, Truncate
from .errors import ConfigurationError, InputTooLongError, NlpTokError
from .normalizer import CharMap, CharMapNormalizer
from .result import TokenizationResult, Tokens, TokensBuilder
from .segmenter import UnigramSegmenter
from .types import TokenId
from .vocab import MASK_TOKEN, PAD_TOKEN, UNKNOWN_TOKEN, SpecialTokens, Vocabulary

ErrorPolicy = Literal["raise", "collect"]
_ERROR_POLICIES: Final[tuple[str, ...]] = ("raise", "collect")

RequestBuilder: TypeAlias = Callable[
    [Sequence[str], Truncate | str | None, int | None, int, int | None],
    TokenizationResult,
]

log = logging.getLogger(__name__)


@runtime_checkable
class NlpTokenizer(Protocol):
    """What the request building code needs from a model family's tokenizer."""

    @property
    def cls_token_id(self) -> TokenId: ...

    @property
    def sep_token_id(self) -> TokenId: ...

    @property
    def max_sequence_length(self) -> int: ...

    @property
    def with_special_tokens(self) -> bool: ...

    def num_extra_tokens_for_single_sequence(self) -> int: ...

    def num_extra_tokens_for_seq_pair(self) -> int: ...

    def default_span_for_chunking(self, max_window_size: int) -> int: ...

    def inner_tokenize(self, text: str) -> InnerTokenization: ...

    def build_tokenization_result(self, tokenizations: list[Tokens]) -> TokenizationResult: ...


class DebertaV2Tokenizer:
    """
    Unigram tokenizer for DeBERTa-v2 style vocabularies.

    Immutable after construction; every call works on local state so one
    instance can be shared between threads.
    """

    TOKENIZER_TYPE: str = "deberta_v2"

    def __init__(
        self,
        vocab: Vocabulary,
        config: TokenizationConfig | None = None,
        charmap: CharMap | None = None,
        word_prefix: str = "",
    ) -> None:
        """
        :param vocab: Vocabulary with scores.
        :param config: Tokenization settings; defaults to ``TokenizationConfig()``.
        :param charmap: Normalization table; ``None`` or an empty table disables normalization.
        :param word_prefix: Marker prepended to every word before segmentation, e.g. ``"▁"``.
        :raises ConfigurationError: If the vocabulary lacks a required control token.
        """
        self._config = config or TokenizationConfig()
        self._vocab = vocab
        self._special = SpecialTokens.resolve(vocab, self._config.with_special_tokens)
        self.word_prefix = word_prefix

        segmenter = UnigramSegmenter(
            vocab, UNKNOWN_TOKEN, self._config.never_split, word_prefix=word_prefix
        )
        normalizer = CharMapNormalizer(charmap) if charmap else None
        self._pipeline = AnalysisPipeline(segmenter, normalizer)

        log.info(
            f"built {self.TOKENIZER_TYPE} tokenizer: {len(vocab)} tokens, "
            f"special tokens {'on' if self.with_special_tokens else 'off'}, "
            f"max sequence length {self.max_sequence_length}, "
            f"{len(charmap) if charmap else 0} normalization rules"
        )

    # Interface
    # ---------------------------------------------------------------------------

    @property
    def config(self) -> TokenizationConfig:
        return self._config

    @property
    def special_tokens(self) -> SpecialTokens:
        return self._special

    @property
    def cls_token_id(self) -> TokenId:
        return self._special.cls_id

    @property
    def sep_token_id(self) -> TokenId:
        return self._special.sep_id

    @property
    def max_sequence_length(self) -> int:
        return self._config.max_sequence_length

    @property
    def with_special_tokens(self) -> bool:
        return self._config.with_special_tokens

    def num_extra_tokens_for_single_sequence(self) -> int:
        return num_extra_tokens(self.with_special_tokens)

    def num_extra_tokens_for_seq_pair(self) -> int:
        return num_extra_tokens(self.with_special_tokens, pair=True)

    def default_span_for_chunking(self, max_window_size: int) -> int:
        """Half of the window content size; see ``ChunkPlanner``."""
        return ChunkPlanner(max_window_size, self.num_extra_tokens_for_single_sequence()).default_span

    def inner_tokenize(self, text: str) -> InnerTokenization:
        return self._pipeline.analyze(text)

    def create_tokens_builder(self) -> TokensBuilder:
        return TokensBuilder(self.cls_token_id, self.sep_token_id, self.with_special_tokens)

    def build_tokenization_result(self, tokenizations: list[Tokens]) -> TokenizationResult:
        return TokenizationResult(
            vocabulary=self._vocab.to_list(),
            pad_token_id=self.pad_token_id,
            tokens=list(tokenizations),
        )

    # Accessors
    # ---------------------------------------------------------------------------

    @property
    def pad_token_id(self) -> TokenId:
        return self._special.pad_id

    @property
    def pad_token(self) -> str:
        return PAD_TOKEN

    @property
    def mask_token_id(self) -> TokenId | None:
        return self._special.mask_id

    @property
    def mask_token(self) -> str:
        return MASK_TOKEN

    @property
    def unknown_token_id(self) -> TokenId:
        return self._special.unk_id

    def id_of(self, text: str) -> TokenId:
        """Vocabulary id of ``text``, or the unknown token id."""
        token_id = self._vocab.get(text)
        return self.unknown_token_id if token_id is None else token_id

    def text_of(self, token_id: TokenId) -> str:
        return self._vocab.text_of(token_id)

    def get_vocabulary(self) -> list[str]:
        """Token strings in original id order."""
        return self._vocab.to_list()

    def vocab_size(self) -> int:
        return len(self._vocab)

    def convert_ids_to_tokens(self, ids: Sequence[TokenId]) -> list[str]:
        return [self._vocab.text_of(tok) for tok in ids]

    def decode(self, ids: Sequence[TokenId], skip_special_tokens: bool = True) -> str:
        """
        Rebuild text from ids.

        With a word prefix, pieces are concatenated and markers become
        spaces; without one, word boundaries are unknown and pieces are
        joined by spaces.
        """
        special = self._special.ids() if skip_special_tokens else set()
        pieces = [self._vocab.text_of(tok) for tok in ids if tok not in special]
        if self.word_prefix:
            return "".join(pieces).replace(self.word_prefix, " ").strip()
        return " ".join(pieces)

    # Tokenization
    # ---------------------------------------------------------------------------

    def _window_size(self, window_size: int | None) -> int:
        if window_size is None:
            return self.max_sequence_length
        if window_size <= 0 or window_size > self.max_sequence_length:
            raise ConfigurationError(
                f"window size [{window_size}] must be positive and at most the "
                f"max sequence length [{self.max_sequence_length}]"
            )
        return window_size

    def tokenize(
        self,
        text: str,
        truncate: Truncate | str | None = None,
        span: int | None = None,
        sequence_id: int = 0,
        window_size: int | None = None,
    ) -> list[Tokens]:
        """
        Tokenize one input into one or more windows.

        An input that fits becomes a single window. Otherwise it is split
        into overlapping windows when ``span`` is set, truncated to the
        window when ``truncate`` allows it, and rejected when it does not.

        :raises InputTooLongError: If the input does not fit, ``span`` is
            unset and ``truncate`` is ``none``.
        """
        truncate = self._config.truncate if truncate is None else Truncate.get(truncate)
        span = self._config.span if span is None else span
        window_size = self._window_size(window_size)

        inner = self.inner_tokenize(text)
        ids, positions = inner.ids, inner.positions
        extra = self.num_extra_tokens_for_single_sequence()
        num_tokens = len(ids) + extra
        builder = self.create_tokens_builder()

        if num_tokens <= window_size:
            return [builder.add_sequence(ids, positions).build(text, sequence_id=sequence_id)]

        if span != NO_SPAN:
            windows = ChunkPlanner(window_size, extra).plan(positions, span)
            return [
                builder.add_sequence(ids[start:end], positions[start:end]).build(
                    text,
                    sequence_id=sequence_id,
                    chunk_index=idx,
                    span_prev=-1 if idx == 0 else windows[idx - 1][1] - start,
                )
                for idx, (start, end) in enumerate(windows)
            ]

        if truncate is Truncate.NONE:
            raise InputTooLongError(
                "input too large, the tokenized input length exceeds the maximum sequence length",
                num_tokens=num_tokens,
                max_length=window_size,
                sequence_id=sequence_id,
            )

        keep = window_size - extra
        if keep <= 0:
            raise ConfigurationError(
                f"window size [{window_size}] leaves no room for content "
                f"with [{extra}] special tokens"
            )
        log.warning(
            f"truncating sequence {sequence_id} from {len(ids)} to {keep} tokens"
        )
        return [
            builder.add_sequence(ids[:keep], positions[:keep]).build(
                text, sequence_id=sequence_id, truncated=True
            )
        ]

    def tokenize_pair(
        self,
        seq1: str,
        seq2: str,
        truncate: Truncate | str | None = None,
        span: int | None = None,
        sequence_id: int = 0,
        window_size: int | None = None,
    ) -> list[Tokens]:
        """
        Tokenize a sequence pair as ``[CLS] seq1 [SEP] seq2 [SEP]``.

        When the pair does not fit and ``span`` is set, ``seq2`` is split into
        overlapping windows and ``seq1`` is repeated in each of them.
        Otherwise ``first`` trims ``seq1``, ``second`` trims ``seq2`` and
        ``balanced`` trims the longer of the two until both fit.

        :raises InputTooLongError: If the pair cannot be made to fit.
        """
        truncate = self._config.truncate if truncate is None else Truncate.get(truncate)
        span = self._config.span if span is None else span
        window_size = self._window_size(window_size)

        inner1, inner2 = self.inner_tokenize(seq1), self.inner_tokenize(seq2)
        ids1, pos1 = inner1.ids, inner1.positions
        ids2, pos2 = inner2.ids, inner2.positions
        extra = self.num_extra_tokens_for_seq_pair()
        num_tokens = len(ids1) + len(ids2) + extra
        builder = self.create_tokens_builder()
        pair = (seq1, seq2)

        if num_tokens <= window_size:
            return [
                builder.add_sequence_pair(ids1, pos1, ids2, pos2).build(
                    pair, sequence_id=sequence_id
                )
            ]

        def too_long() -> InputTooLongError:
            return InputTooLongError(
                "input too large, the tokenized sequence pair exceeds the maximum sequence length",
                num_tokens=num_tokens,
                max_length=window_size,
                sequence_id=sequence_id,
            )

        if span != NO_SPAN:
            # seq2 needs more room than the span after seq1 and special tokens
            if window_size - len(ids1) - extra <= span:
                raise too_long()
            windows = ChunkPlanner(window_size - len(ids1), extra).plan(pos2, span)
            return [
                builder.add_sequence_pair(ids1, pos1, ids2[start:end], pos2[start:end]).build(
                    pair,
                    sequence_id=sequence_id,
                    chunk_index=idx,
                    span_prev=-1 if idx == 0 else windows[idx - 1][1] - start,
                )
                for idx, (start, end) in enumerate(windows)
            ]

        budget = window_size - extra
        match truncate:
            case Truncate.NONE:
                raise too_long()
            case Truncate.FIRST:
                keep2 = len(ids2)
                keep1 = budget - keep2
            case Truncate.SECOND:
                keep1 = len(ids1)
                keep2 = budget - keep1
            case Truncate.BALANCED:
                keep1 = min(len(ids1), max(budget // 2, budget - len(ids2)))
                keep2 = min(len(ids2), budget - keep1)

        if keep1 <= 0 or keep2 <= 0:
            raise too_long()

        log.warning(
            f"truncating sequence pair {sequence_id} from ({len(ids1)}, {len(ids2)}) "
            f"to ({keep1}, {keep2}) tokens"
        )
        return [
            builder.add_sequence_pair(
                ids1[:keep1], pos1[:keep1], ids2[:keep2], pos2[:keep2]
            ).build(pair, sequence_id=sequence_id, truncated=True)
        ]

    # Request building
    # ---------------------------------------------------------------------------

    def _fan_out(
        self,
        fn: Callable[[int], list[Tokens] | NlpTokError],
        n: int,
        num_workers: int | None,
    ) -> list[list[Tokens] | NlpTokError]:
        """Run ``fn`` over ``range(n)`` keeping input order."""
        if num_workers is None:
            workers = os.cpu_count() or 1
        else:
            workers = max(1, num_workers)  # "0" interpreted as 1 worker

        if workers == 1 or n <= 1:
            return [fn(idx) for idx in range(n)]

        # group inputs to reduce task-scheduling overhead for large batches
        target_tasks = min(n, workers * 2)
        group_size = max(1, ceil(n / target_tasks))
        groups = [range(idx, min(idx + group_size, n)) for idx in range(0, n, group_size)]

        def run_group(group: range) -> list[list[Tokens] | NlpTokError]:
            return [fn(idx) for idx in group]

        with ThreadPoolExecutor(max_workers=workers) as pool:
            grouped = list(pool.map(run_group, groups))
        return [out for group in grouped for out in group]

    def _assemble(
        self, outputs: list[list[Tokens] | NlpTokError], sequence_id_offset: int
    ) -> TokenizationResult:
        tokens: list[Tokens] = []
        errors: dict[int, NlpTokError] = {}
        for idx, out in enumerate(outputs):
            if isinstance(out, NlpTokError):
                errors[idx + sequence_id_offset] = out
            else:
                tokens.extend(out)
        result = self.build_tokenization_result(tokens)
        result.errors = errors
        if errors:
            log.warning(f"{len(errors)} of {len(outputs)} inputs failed to tokenize")
        return result

    def _check_request(
        self, errors: str, span: int | None, window_size: int | None, pair: bool
    ) -> None:
        if errors not in _ERROR_POLICIES:
            raise ConfigurationError(
                f"unknown error policy: {errors!r}. Valid policies: {', '.join(_ERROR_POLICIES)}"
            )
        span = self._config.span if span is None else span
        if span != NO_SPAN:
            # fail before any input is processed
            extra = (
                self.num_extra_tokens_for_seq_pair()
                if pair
                else self.num_extra_tokens_for_single_sequence()
            )
            ChunkPlanner(self._window_size(window_size), extra).validate_span(span)

    @measure_time
    def build_request(
        self,
        inputs: Sequence[str],
        truncate: Truncate | str | None = None,
        span: int | None = None,
        window_size: int | None = None,
        *,
        errors: ErrorPolicy = "raise",
        num_workers: int | None = 1,
        sequence_id_offset: int = 0,
    ) -> TokenizationResult:
        """
        Tokenize a batch of inputs into one result.

        Windows are ordered by input, then by chunk index. With
        ``errors="raise"`` the first ``InputTooLongError`` aborts the batch;
        with ``errors="collect"`` it is stored in ``result.errors`` under the
        input's sequence id and the other inputs are unaffected.

        :param inputs: Raw input strings.
        :param truncate: Truncate policy; defaults to the configured one.
        :param span: Window overlap; ``-1`` disables windowing, defaults to the configured one.
        :param window_size: Window length; defaults to ``max_sequence_length``.
        :param errors: ``"raise"`` or ``"collect"``.
        :param num_workers: Threads used to tokenize inputs; ``None`` uses all cores.
        :param sequence_id_offset: Sequence id of the first input.
        """
        self._check_request(errors, span, window_size, pair=False)

        def run(idx: int) -> list[Tokens] | NlpTokError:
            try:
                return self.tokenize(
                    inputs[idx], truncate, span, idx + sequence_id_offset, window_size
                )
            except InputTooLongError as e:
                if errors == "raise":
                    raise
                return e

        return self._assemble(self._fan_out(run, len(inputs), num_workers), sequence_id_offset)

    @measure_time
    def build_pair_request(
        self,
        pairs: Sequence[tuple[str, str]],
        truncate: Truncate | str | None = None,
        span: int | None = None,
        window_size: int | None = None,
        *,
        errors: ErrorPolicy = "raise",
        num_workers: int | None = 1,
        sequence_id_offset: int = 0,
    ) -> TokenizationResult:
        """Tokenize a batch of sequence pairs; see ``build_request``."""
        self._check_request(errors, span, window_size, pair=True)

        def run(idx: int) -> list[Tokens] | NlpTokError:
            seq1, seq2 = pairs[idx]
            try:
                return self.tokenize_pair(
                    seq1, seq2, truncate, span, idx + sequence_id_offset, window_size
                )
            except InputTooLongError as e:
                if errors == "raise":
                    raise
                return e

        return self._assemble(self._fan_out(run, len(pairs), num_workers), sequence_id_offset)

    def request_builder(self) -> RequestBuilder:
        """Return ``(inputs, truncate, span, seq_id, window_size) -> TokenizationResult``."""

        def build(
            inputs: Sequence[str],
            truncate: Truncate | str | None,
            span: int | None,
            seq_id: int,
            window_size: int | None,
        ) -> TokenizationResult:
            return self.build_request(
                inputs, truncate, span, window_size, sequence_id_offset=seq_id
            )

        return build
