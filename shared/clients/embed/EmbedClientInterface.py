from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.errors import EmbeddingError


class EmbedClientInterface(ClientInterface):
    error_class = EmbeddingError

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # model config
        self.embed_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_MODEL", default="all-minilm:l6-v2")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "embed"

    ################ ENDPOINTS ##################
    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """
        Returns the endpoint path for embedding requests.

        Returns:
            str: The endpoint path for embedding requests (e.g. "/api/embed")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the backend-specific request body for an embedding request.

        Args:
            texts (list[str]): The texts to embed.

        Returns:
            dict: JSON-serialisable request body (e.g. {"model": "...", "input": [...]}).
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Extract embedding vectors from a raw embedding API response.

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the input texts.

        Raises:
            EmbeddingError: If the response carries no usable vectors.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts with a single backend request.

        Args:
            texts (list[str]): Texts to embed. None of them may be blank.

        Returns:
            list[list[float]]: One vector per input text, in input order.

        Raises:
            ValueError: If the list or any text in it is empty.
            EmbeddingError: If the backend is unreachable, answers with an
                error, or returns a different number of vectors.
        """
        if not texts:
            raise ValueError("Cannot embed an empty list of texts.")
        if any(not text or not text.strip() for text in texts):
            raise ValueError("Text to embed cannot be empty.")

        response = await self.do_request(
            method="POST",
            endpoint=self.get_endpoint_embedding(),
            json=self.get_embed_payload(texts),
            raise_on_error=True,
        )
        vectors = self.extract_embeddings_from_response(response.json())
        if len(vectors) != len(texts):
            raise EmbeddingError(
                f"Expected {len(texts)} embeddings, backend returned {len(vectors)}.",
                self.get_engine_name(),
            )
        self.logging.debug("Embedded %d text(s) with %d dimensions.", len(vectors), len(vectors[0]))
        return vectors

    async def do_embed_text(self, text: str) -> list[float]:
        """Embed a single text.

        Raises:
            ValueError: If the text is empty.
            EmbeddingError: If no vector could be obtained.
        """
        vectors = await self.do_embed_batch([text])
        return vectors[0]
