"""Pattern-based metadata for chunk content."""

import re

from shared.helper.HelperConfig import HelperConfig
from shared.models.chunk import ChunkMetadata

DEFAULT_CURRENCIES = ["Kč", "EUR", "CZK", "€", "$"]

# D.M.YYYY with optional spaces around the dots, or ISO YYYY-MM-DD
_DATE_PATTERN = re.compile(r"\d{1,2}\s*\.\s*\d{1,2}\s*\.\s*\d{4}|\d{4}-\d{2}-\d{2}")


class MetadataEnricher:
    """Derives has_amounts, has_dates and word_count from chunk text."""

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        currencies = helper_config.get_list_val("METADATA_CURRENCIES", default=DEFAULT_CURRENCIES)
        alternatives = "|".join(re.escape(c) for c in currencies)
        self._amount_pattern = re.compile(rf"\d+[\s,]*\d*\s*(?:{alternatives})")

    def enrich(self, content: str) -> ChunkMetadata:
        """Compute metadata for one chunk.

        Args:
            content (str): Chunk text.

        Returns:
            ChunkMetadata: All false / zero for blank content.
        """
        if not content or not content.strip():
            return ChunkMetadata()
        return ChunkMetadata(
            has_amounts=self._amount_pattern.search(content) is not None,
            has_dates=_DATE_PATTERN.search(content) is not None,
            word_count=len(content.split()),
        )
