"""Unit tests for the sliding-window chunker."""
import math

import pytest

from talkrag.rag.chunker import TextChunker, chunk


def test_short_text_is_single_chunk():
    text = "A short transcript."
    assert chunk(text, window=1000, overlap=200) == [text]


def test_text_exactly_window_length_is_single_chunk():
    text = "x" * 1000
    assert chunk(text, window=1000, overlap=200) == [text]


def test_empty_text_yields_no_chunks():
    assert chunk("", window=1000, overlap=200) == []


def test_known_offsets_for_2400_chars():
    text = "".join(chr(ord("a") + (i % 26)) for i in range(2400))
    chunks = TextChunker(chunk_size=1000, chunk_overlap=200).chunk_text(text)

    assert [(c.char_start, c.char_end) for c in chunks] == [(0, 1000), (800, 1800), (1600, 2400)]
    assert [c.chunk_index for c in chunks] == [0, 1, 2]
    assert all(c.content == text[c.char_start:c.char_end] for c in chunks)


@pytest.mark.parametrize("length", [1001, 1799, 1800, 1801, 2400, 5000, 12345])
def test_chunk_count_and_reconstruction(length):
    window, overlap = 1000, 200
    text = "".join(chr(ord("a") + (i * 7 % 26)) for i in range(length))

    chunks = chunk(text, window=window, overlap=overlap)

    assert len(chunks) == math.ceil((length - overlap) / (window - overlap))
    rebuilt = chunks[0] + "".join(c[overlap:] for c in chunks[1:])
    assert rebuilt == text

    for previous, current in zip(chunks, chunks[1:]):
        assert previous[-overlap:] == current[:overlap]

    assert all(len(c) == window for c in chunks[:-1])
    assert len(chunks[-1]) <= window


@pytest.mark.parametrize("window,overlap", [(100, 100), (100, 150), (0, 0), (100, -1)])
def test_invalid_configuration_rejected(window, overlap):
    with pytest.raises(ValueError):
        TextChunker(chunk_size=window, chunk_overlap=overlap)


def test_non_string_input_rejected():
    with pytest.raises(TypeError):
        TextChunker(chunk_size=10, chunk_overlap=2).chunk_text(b"bytes")


def test_zero_overlap_is_allowed():
    assert chunk("abcdefghij", window=4, overlap=0) == ["abcd", "efgh", "ij"]
