"""Unit tests for TextChunker: sentence-bounded overlapping chunks."""

from __future__ import annotations

from services.document_ingestion.TextChunker import TextChunker, estimate_tokens, split_sentences


def _sentence(letter: str, tokens: int = 10) -> str:
    """A sentence of exactly `tokens` estimated tokens starting with `letter`."""
    return letter + "x" * (tokens * 4 - 2) + "."


class TestEstimateTokens:
    def test_four_chars_per_token(self) -> None:
        assert estimate_tokens("") == 0
        assert estimate_tokens("abc") == 0
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("a" * 41) == 10


class TestSplitSentences:
    def test_splits_on_terminal_punctuation_before_capital(self) -> None:
        assert split_sentences("First one. Second one! Third one? fourth") == [
            "First one.",
            "Second one!",
            "Third one? fourth",
        ]

    def test_czech_capitals_start_a_sentence(self) -> None:
        assert split_sentences("První věta. Čtvrtá věta. Žádná další.") == [
            "První věta.",
            "Čtvrtá věta.",
            "Žádná další.",
        ]

    def test_no_split_before_lowercase(self) -> None:
        assert split_sentences("Cena je 1.5 mil. korun.") == ["Cena je 1.5 mil. korun."]

    def test_pieces_are_trimmed(self) -> None:
        assert split_sentences("  One.   Two.  ") == ["One.", "Two."]


class TestSplitIntoChunks:
    def test_blank_text_produces_no_chunks(self, chunker: TextChunker) -> None:
        assert chunker.split_into_chunks("") == []
        assert chunker.split_into_chunks("   \n\t ") == []

    def test_short_text_is_a_single_chunk(self, chunker: TextChunker) -> None:
        chunks = chunker.split_into_chunks("Hello world.")
        assert len(chunks) == 1
        assert chunks[0].content == "Hello world."
        assert chunks[0].token_count == 3

    def test_defaults_come_from_config(self, chunker: TextChunker) -> None:
        assert chunker.target_tokens == 800
        assert chunker.overlap_tokens == 100

    def test_overlap_reappears_at_head_of_next_chunk(self, chunker: TextChunker) -> None:
        a, b, c = _sentence("A"), _sentence("B"), _sentence("C")
        chunks = chunker.split_into_chunks(" ".join([a, b, c]), target_tokens=15, overlap_tokens=5)

        assert [ch.content for ch in chunks] == [a, f"{a} {b}", f"{b} {c}"]
        assert [ch.token_count for ch in chunks] == [10, 20, 20]
        for previous, current in zip(chunks, chunks[1:]):
            last_sentence = split_sentences(previous.content)[-1]
            assert current.content.startswith(last_sentence)

    def test_overlap_respects_budget(self, chunker: TextChunker) -> None:
        sentences = [_sentence(letter) for letter in "ABCD"]
        chunks = chunker.split_into_chunks(" ".join(sentences), target_tokens=25, overlap_tokens=10)

        assert [ch.content for ch in chunks] == [
            f"{sentences[0]} {sentences[1]}",
            f"{sentences[1]} {sentences[2]}",
            f"{sentences[2]} {sentences[3]}",
        ]

    def test_multiple_overlap_sentences_keep_order(self, chunker: TextChunker) -> None:
        sentences = [_sentence(letter, tokens=5) for letter in "ABCDEF"]
        chunks = chunker.split_into_chunks(" ".join(sentences), target_tokens=20, overlap_tokens=10)

        assert chunks[0].content == " ".join(sentences[:4])
        assert chunks[1].content.startswith(f"{sentences[2]} {sentences[3]}")

    def test_oversized_sentence_is_kept_whole(self, chunker: TextChunker) -> None:
        big = _sentence("A", tokens=100)
        chunks = chunker.split_into_chunks(big, target_tokens=10, overlap_tokens=2)
        assert len(chunks) == 1
        assert chunks[0].content == big
        assert chunks[0].token_count == 100

    def test_chunks_reconstruct_sentence_sequence(self, chunker: TextChunker) -> None:
        sentences = [_sentence(letter, tokens=7) for letter in "ABCDEFGHIJ"]
        chunks = chunker.split_into_chunks(" ".join(sentences), target_tokens=30, overlap_tokens=8)

        assert len(chunks) > 1
        seen: list[str] = []
        for chunk in chunks:
            seen.extend(split_sentences(chunk.content))
        assert list(dict.fromkeys(seen)) == sentences

    def test_large_sentence_follows_overlap(self, chunker: TextChunker) -> None:
        sentences = [_sentence("A", tokens=10), _sentence("B", tokens=50)]
        chunks = chunker.split_into_chunks(" ".join(sentences), target_tokens=15, overlap_tokens=20)

        assert [ch.content for ch in chunks] == [sentences[0], " ".join(sentences)]

    def test_token_counts_are_never_negative(self, chunker: TextChunker) -> None:
        chunks = chunker.split_into_chunks("A. B. C. D. E.", target_tokens=1, overlap_tokens=0)
        assert chunks
        assert all(ch.token_count >= 0 for ch in chunks)
