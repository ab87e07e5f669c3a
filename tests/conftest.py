"""Shared fixtures for nlptok tests."""

import string

import pytest

import nlptok

CONTROL = ["[UNK]", "[PAD]", "[CLS]", "[SEP]"]


@pytest.fixture
def hello_vocab():
    """Minimal vocabulary where "hello" segments as he + llo."""
    return CONTROL + ["he", "llo"], [0.0] * 6


@pytest.fixture
def letters_vocab():
    """Control tokens, [MASK], one token per lowercase letter and a few words."""
    tokens = CONTROL + ["[MASK]"] + list(string.ascii_lowercase) + ["the", "cat", "sat", "on", "mat", ","]
    scores = [0.0] * 5 + [-2.0] * 26 + [-1.0] * 6
    return tokens, scores


@pytest.fixture
def letters_tokenizer(letters_vocab):
    """Tokenizer with special tokens and no normalization."""
    tokens, scores = letters_vocab
    return nlptok.build_tokenizer(tokens, scores, charmap=None, with_special_tokens=True)


@pytest.fixture
def plain_tokenizer(letters_vocab):
    """Tokenizer without special tokens and no normalization."""
    tokens, scores = letters_vocab
    return nlptok.build_tokenizer(tokens, scores, charmap=None, with_special_tokens=False)


def spaced(n: int) -> str:
    """``n`` single letter words, each one token in ``letters_vocab``."""
    return " ".join(string.ascii_lowercase[i % 26] for i in range(n))
