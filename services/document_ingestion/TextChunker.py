"""Sentence-bounded text chunking.

Text is split into sentences, sentences are packed greedily up to a token
budget, and each chunk after the first starts with the trailing sentences of
its predecessor as overlap.
"""

import re

from shared.helper.HelperConfig import HelperConfig
from shared.models.chunk import TextChunk

CHARS_PER_TOKEN = 4

# a sentence ends at . ! or ? followed by whitespace and an upper-case letter
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+(?=[A-ZÁČĎÉĚÍŇÓŘŠŤÚŮÝŽ])")


def estimate_tokens(text: str) -> int:
    """Approximate the token count of a text (four characters per token).

    Args:
        text (str): Any text.

    Returns:
        int: Estimated tokens, 0 for an empty string.
    """
    return len(text) // CHARS_PER_TOKEN


def split_sentences(text: str) -> list[str]:
    """Split a text into trimmed, non-empty sentences.

    Abbreviations and decimal numbers followed by a capital letter are
    split as well; the heuristic is kept as is.
    """
    return [s.strip() for s in _SENTENCE_BOUNDARY.split(text) if s.strip()]


class TextChunker:
    """Splits document text into overlapping chunks near a token budget."""

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        self.target_tokens = int(helper_config.get_number_val("CHUNK_TARGET_TOKENS", default=800))
        self.overlap_tokens = int(helper_config.get_number_val("CHUNK_OVERLAP_TOKENS", default=100))

    def split_into_chunks(
        self,
        text: str,
        target_tokens: int | None = None,
        overlap_tokens: int | None = None,
    ) -> list[TextChunk]:
        """Split text into ordered chunks.

        A chunk never splits a sentence. It is emitted once the next sentence
        would push it past the budget, so a chunk may exceed the budget by at
        most one sentence. The next chunk is seeded with the trailing
        sentences of the emitted one, up to overlap_tokens (at least one
        sentence).

        Args:
            text (str): Full document text.
            target_tokens (int | None): Token budget per chunk. Defaults to CHUNK_TARGET_TOKENS.
            overlap_tokens (int | None): Token budget of the overlap. Defaults to CHUNK_OVERLAP_TOKENS.

        Returns:
            list[TextChunk]: Chunks in document order, empty for blank text.
        """
        target = self.target_tokens if target_tokens is None else target_tokens
        overlap = self.overlap_tokens if overlap_tokens is None else overlap_tokens

        if not text or not text.strip():
            return []

        sentences = split_sentences(text)
        chunks: list[TextChunk] = []
        current: list[str] = []
        current_tokens = 0

        for sentence in sentences:
            sentence_tokens = estimate_tokens(sentence)
            if current_tokens + sentence_tokens > target and current:
                chunks.append(self._build_chunk(current))
                current = self._take_overlap(current, overlap)
                current_tokens = sum(estimate_tokens(s) for s in current)
            current.append(sentence)
            current_tokens += sentence_tokens

        if current:
            chunks.append(self._build_chunk(current))

        if chunks:
            avg = sum(c.token_count for c in chunks) / len(chunks)
            self.logging.info("Created %d chunks, average %.1f tokens per chunk.", len(chunks), avg)
        return chunks

    ##########################################
    ################ HELPERS #################
    ##########################################

    @staticmethod
    def _build_chunk(sentences: list[str]) -> TextChunk:
        return TextChunk(
            content=" ".join(sentences),
            token_count=sum(estimate_tokens(s) for s in sentences),
        )

    @staticmethod
    def _take_overlap(sentences: list[str], overlap_tokens: int) -> list[str]:
        """Return the trailing sentences that fit the overlap budget, in order."""
        taken: list[str] = []
        total = 0
        for sentence in reversed(sentences):
            tokens = estimate_tokens(sentence)
            if taken and total + tokens > overlap_tokens:
                break
            taken.insert(0, sentence)
            total += tokens
        return taken
