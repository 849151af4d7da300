"""Unit tests for MetadataEnricher."""

from __future__ import annotations

import pytest

from services.document_ingestion.MetadataEnricher import MetadataEnricher


class TestEnrich:
    def test_invoice_sentence(self, enricher: MetadataEnricher) -> None:
        meta = enricher.enrich("Faktura na částku 1 500 Kč splatná 15.3.2025")
        assert meta.has_amounts is True
        assert meta.has_dates is True
        assert meta.word_count == 8

    def test_blank_content(self, enricher: MetadataEnricher) -> None:
        for content in ("", "   \n"):
            meta = enricher.enrich(content)
            assert (meta.has_amounts, meta.has_dates, meta.word_count) == (False, False, 0)

    @pytest.mark.parametrize(
        "content",
        ["Celkem 250 CZK", "Price 99,90 EUR", "Total 100€", "Paid 20 $", "Zaplaceno 12 000 Kč"],
    )
    def test_amounts_detected(self, enricher: MetadataEnricher, content: str) -> None:
        assert enricher.enrich(content).has_amounts is True

    @pytest.mark.parametrize("content", ["EUR 100", "Kč bez čísla", "250 korun"])
    def test_amounts_not_detected(self, enricher: MetadataEnricher, content: str) -> None:
        assert enricher.enrich(content).has_amounts is False

    @pytest.mark.parametrize("content", ["dne 1.2.2024", "dne 15 . 3 . 2025", "on 2025-03-15"])
    def test_dates_detected(self, enricher: MetadataEnricher, content: str) -> None:
        assert enricher.enrich(content).has_dates is True

    @pytest.mark.parametrize("content", ["15/3/2025", "15.3.25", "March 2025"])
    def test_dates_not_detected(self, enricher: MetadataEnricher, content: str) -> None:
        assert enricher.enrich(content).has_dates is False

    def test_word_count_splits_on_any_whitespace(self, enricher: MetadataEnricher) -> None:
        assert enricher.enrich("one\ttwo\n\nthree   four").word_count == 4


class TestCurrencyConfig:
    def test_custom_currency_set(self, monkeypatch, helper_config) -> None:
        monkeypatch.setenv("METADATA_CURRENCIES", "[USD,GBP]")
        enricher = MetadataEnricher(helper_config=helper_config)
        assert enricher.enrich("100 USD").has_amounts is True
        assert enricher.enrich("100 Kč").has_amounts is False
