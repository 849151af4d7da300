"""Unit tests for DocumentClassifier, which always returns a valid category."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from services.document_ingestion.DocumentClassifier import DocumentClassifier, parse_category
from shared.models.document import DocumentCategory
from shared.models.errors import PipelineError


def _classifier(helper_config, answer=None, side_effect=None) -> tuple[DocumentClassifier, MagicMock]:
    llm = MagicMock()
    llm.do_generate = AsyncMock(return_value=answer, side_effect=side_effect)
    return DocumentClassifier(helper_config=helper_config, llm_client=llm), llm


class TestParseCategory:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("invoice", DocumentCategory.INVOICE),
            ("  Contract.\n", DocumentCategory.CONTRACT),
            ('"purchase_order"', DocumentCategory.PURCHASE_ORDER),
            ("Purchase Order", DocumentCategory.PURCHASE_ORDER),
            ("purchase-order", DocumentCategory.PURCHASE_ORDER),
            ("UNKNOWN", DocumentCategory.UNKNOWN),
            ("", DocumentCategory.UNKNOWN),
            (None, DocumentCategory.UNKNOWN),
            ("I think this is an invoice", DocumentCategory.UNKNOWN),
            ("receipt", DocumentCategory.UNKNOWN),
        ],
    )
    def test_parse(self, raw, expected) -> None:
        assert parse_category(raw) is expected


class TestCategorize:
    async def test_valid_answer(self, helper_config) -> None:
        classifier, _ = _classifier(helper_config, answer="invoice")
        assert await classifier.categorize("Faktura 1 500 Kč") is DocumentCategory.INVOICE

    async def test_empty_answer_is_unknown(self, helper_config) -> None:
        classifier, _ = _classifier(helper_config, answer="")
        assert await classifier.categorize("Some text") is DocumentCategory.UNKNOWN

    async def test_backend_error_is_unknown(self, helper_config) -> None:
        classifier, _ = _classifier(helper_config, side_effect=PipelineError("down", "ollama"))
        assert await classifier.categorize("Some text") is DocumentCategory.UNKNOWN

    async def test_unexpected_error_is_unknown(self, helper_config) -> None:
        classifier, _ = _classifier(helper_config, side_effect=ValueError("no response field"))
        assert await classifier.categorize("Some text") is DocumentCategory.UNKNOWN

    async def test_blank_content_skips_backend(self, helper_config) -> None:
        classifier, llm = _classifier(helper_config, answer="invoice")
        assert await classifier.categorize("   ") is DocumentCategory.UNKNOWN
        llm.do_generate.assert_not_awaited()

    async def test_sample_is_truncated_and_options_passed(self, helper_config) -> None:
        classifier, llm = _classifier(helper_config, answer="contract")
        await classifier.categorize("y" * 5000)

        kwargs = llm.do_generate.await_args.kwargs
        assert "y" * 2000 in kwargs["prompt"]
        assert "y" * 2001 not in kwargs["prompt"]
        assert kwargs["max_output_tokens"] == 20
        assert kwargs["temperature"] == pytest.approx(0.1)


class TestCategorizeOverHttp:
    async def test_ollama_request_shape(self, classifier, fake_ollama) -> None:
        fake_ollama.generate_answer = " Purchase_Order\n"
        assert await classifier.categorize("Objednávka č. 7") is DocumentCategory.PURCHASE_ORDER

        request = fake_ollama.requests_to("/api/generate")[-1]
        body = json.loads(request.content)
        assert body["stream"] is False
        assert body["options"] == {"temperature": 0.1, "num_predict": 20}

    async def test_ollama_failure_is_unknown(self, classifier, fake_ollama) -> None:
        fake_ollama.generate_status = 500
        assert await classifier.categorize("Objednávka č. 7") is DocumentCategory.UNKNOWN
