"""LLM-backed document classification."""

from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import DocumentCategory

CLASSIFIER_PROMPT = """Classify the following document into exactly one category.

Categories:
- invoice (faktura): a bill requesting payment for goods or services
- contract (smlouva): an agreement between parties with terms and obligations
- purchase_order (objednávka): an order placed for goods or services
- unknown: none of the above

Respond with ONLY the category name, nothing else.

Document:
{sample}

Category:"""


def parse_category(raw: str | None) -> DocumentCategory:
    """Map a free-form model answer onto a category.

    Surrounding whitespace, quotes and trailing punctuation are ignored and
    the match is case-insensitive. Anything unrecognised yields UNKNOWN.
    """
    if not raw:
        return DocumentCategory.UNKNOWN
    label = raw.strip().strip("\"'`").strip().rstrip(".!?,;:").strip().lower()
    label = label.replace("-", "_").replace(" ", "_")
    try:
        return DocumentCategory(label)
    except ValueError:
        return DocumentCategory.UNKNOWN


class DocumentClassifier:
    """Assigns a DocumentCategory using the generation backend. Never raises."""

    def __init__(self, helper_config: HelperConfig, llm_client: LLMClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._llm_client = llm_client
        self.sample_chars = int(helper_config.get_number_val("CLASSIFIER_SAMPLE_CHARS", default=2000))
        self.temperature = float(helper_config.get_number_val("CLASSIFIER_TEMPERATURE", default=0.1))
        self.max_tokens = int(helper_config.get_number_val("CLASSIFIER_MAX_TOKENS", default=20))

    async def categorize(self, content: str) -> DocumentCategory:
        """Classify a document by its leading text.

        Args:
            content (str): Full document text; only the first sample_chars are sent.

        Returns:
            DocumentCategory: The detected category, UNKNOWN on any failure.
        """
        sample = (content or "")[: self.sample_chars]
        if not sample.strip():
            return DocumentCategory.UNKNOWN

        try:
            answer = await self._llm_client.do_generate(
                prompt=CLASSIFIER_PROMPT.format(sample=sample),
                max_output_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except Exception as exc:
            self.logging.error("Classification failed, falling back to 'unknown': %s", exc)
            return DocumentCategory.UNKNOWN

        category = parse_category(answer)
        self.logging.info("Document classified as '%s' (raw answer: '%s').", category.value, (answer or "").strip()[:50])
        return category
