"""Unit tests for vocabulary files and tokenizer factories."""

import json

import pytest

import nlptok as ntok
from nlptok import ConfigurationError, ResourceLoadError


@pytest.fixture
def vocab_file(tmp_path, hello_vocab):
    tokens, scores = hello_vocab
    path = tmp_path / "vocab.json"
    path.write_text(json.dumps({"vocabulary": tokens, "scores": scores}), encoding="utf-8")
    return path


# load_vocabulary
# ---------------------------------------------------------------------------


def test_load_vocabulary(vocab_file, hello_vocab):
    """Tokens and scores are read from JSON."""
    tokens, scores = ntok.load_vocabulary(vocab_file)
    assert tokens == hello_vocab[0]
    assert scores == hello_vocab[1]


def test_scores_are_optional(tmp_path):
    """Missing scores default to zero."""
    path = tmp_path / "vocab.json"
    path.write_text(json.dumps({"vocabulary": ["[UNK]", "[PAD]"]}), encoding="utf-8")
    assert ntok.load_vocabulary(path) == (["[UNK]", "[PAD]"], [0.0, 0.0])


def test_missing_file(tmp_path):
    """A missing file raises ResourceLoadError."""
    with pytest.raises(ResourceLoadError, match="does not exist"):
        ntok.load_vocabulary(tmp_path / "nope.json")


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps(["[UNK]"]),
        json.dumps({"vocab": ["[UNK]"]}),
        json.dumps({"vocabulary": ["[UNK]"], "scores": ["high"]}),
        json.dumps({"vocabulary": [1, 2]}),
    ],
    ids=["bad-json", "not-object", "no-vocabulary", "bad-scores", "bad-tokens"],
)
def test_malformed_file(tmp_path, content):
    """Malformed files raise ResourceLoadError."""
    path = tmp_path / "vocab.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ResourceLoadError):
        ntok.load_vocabulary(path)


# from_pretrained / get_tokenizer
# ---------------------------------------------------------------------------


def test_from_pretrained(vocab_file):
    """from_pretrained builds a working tokenizer."""
    tok = ntok.from_pretrained(vocab_file, max_sequence_length=16)
    assert tok.max_sequence_length == 16
    assert tok.build_request(["hello"]).tokens[0].token_ids == [2, 4, 5, 3]


def test_from_pretrained_mismatched_scores(tmp_path):
    """Scores must match the vocabulary length."""
    path = tmp_path / "vocab.json"
    path.write_text(json.dumps({"vocabulary": ["[UNK]", "[PAD]"], "scores": [0.0]}), encoding="utf-8")
    with pytest.raises(ConfigurationError):
        ntok.from_pretrained(path, with_special_tokens=False)


def test_get_tokenizer(hello_vocab):
    """Registered tokenizers are listed and built by name."""
    assert ntok.list_tokenizers() == ["deberta_v2"]
    tok = ntok.get_tokenizer("deberta_v2", *hello_vocab, charmap=None)
    assert isinstance(tok, ntok.DebertaV2Tokenizer)


def test_get_tokenizer_unknown_name(hello_vocab):
    """Unknown names raise and list the valid ones."""
    with pytest.raises(ConfigurationError, match="deberta_v2"):
        ntok.get_tokenizer("bert", *hello_vocab)
