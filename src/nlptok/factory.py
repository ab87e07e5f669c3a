"""Factory functions for creating tokenizers."""

import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Final

from .builder import build_tokenizer
from .errors import ConfigurationError, ResourceLoadError
from .tokenizer import DebertaV2Tokenizer

log = logging.getLogger(__name__)

_TOKENIZER_REGISTRY: Final[dict[str, type[DebertaV2Tokenizer]]] = {
    DebertaV2Tokenizer.TOKENIZER_TYPE: DebertaV2Tokenizer,
}


def list_tokenizers() -> list[str]:
    """Return names of all available tokenizer types."""
    return list(_TOKENIZER_REGISTRY.keys())


def get_tokenizer(
    name: str,
    vocab: Sequence[str],
    scores: Sequence[float] | None = None,
    **settings: Any,
) -> DebertaV2Tokenizer:
    """
    Create a tokenizer of type ``name``.

    :param name: Tokenizer type, see ``list_tokenizers()``.
    :param settings: Tokenization options passed to ``build_tokenizer``.
    :raises ConfigurationError: If ``name`` is unknown or the settings are invalid.

    .. code-block:: python

        tok = get_tokenizer("deberta_v2", vocab, scores, max_sequence_length=256)
    """
    if name not in _TOKENIZER_REGISTRY:
        raise ConfigurationError(
            f"unknown tokenizer type: {name!r}. "
            f"Valid types: {', '.join(_TOKENIZER_REGISTRY)}"
        )
    return build_tokenizer(vocab, scores, **settings)


def load_vocabulary(path: str | Path) -> tuple[list[str], list[float]]:
    """
    Read a vocabulary file.

    The file is JSON with a ``vocabulary`` list of token strings and an
    optional parallel ``scores`` list.

    :raises ResourceLoadError: If the file is missing, not JSON or malformed.
    """
    path = Path(path)
    if not path.exists():
        raise ResourceLoadError("vocabulary file does not exist", resource=str(path))

    log.info(f"loading vocabulary from {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ResourceLoadError("unable to read vocabulary file", resource=str(path)) from e

    if not isinstance(data, dict) or not isinstance(data.get("vocabulary"), list):
        raise ResourceLoadError("expected a 'vocabulary' list", resource=str(path))

    tokens = data["vocabulary"]
    scores = data.get("scores")
    if scores is None:
        scores = [0.0] * len(tokens)
    if not isinstance(scores, list) or not all(
        isinstance(s, (int, float)) and not isinstance(s, bool) for s in scores
    ):
        raise ResourceLoadError("expected 'scores' to be a list of numbers", resource=str(path))
    if not all(isinstance(tok, str) for tok in tokens):
        raise ResourceLoadError("vocabulary entries must be strings", resource=str(path))

    log.debug(f"loaded {len(tokens)} vocabulary entries")
    return tokens, [float(s) for s in scores]


def from_pretrained(model_path: str | Path, **settings: Any) -> DebertaV2Tokenizer:
    """
    Load a vocabulary file and build a tokenizer from it.

    :raises ResourceLoadError: If the vocabulary file cannot be read.
    :raises ConfigurationError: If the vocabulary or settings are invalid.

    .. code-block:: python

        tok = from_pretrained("path/to/vocab.json", with_special_tokens=True)
        result = tok.build_request(["Hello world"])
    """
    tokens, scores = load_vocabulary(model_path)
    return build_tokenizer(tokens, scores, **settings)
