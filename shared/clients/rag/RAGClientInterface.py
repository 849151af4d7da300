from abc import abstractmethod
from typing import Any

import httpx

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.errors import VectorIndexError


class RAGClientInterface(ClientInterface):
    error_class = VectorIndexError

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # collection layout, shared by all engines
        self.vector_size = int(helper_config.get_number_val(f"{self.get_client_type().upper()}_VECTOR_SIZE", default=384))
        self.distance = helper_config.get_string_val(f"{self.get_client_type().upper()}_DISTANCE", default="Cosine")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "rag"

    @abstractmethod
    def get_collection_name(self) -> str:
        """
        Returns the name of the collection this client reads and writes.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_check_collection_existence(self) -> str:
        """
        Returns the endpoint path for collection existence checks (e.g. "/collections/docs/exists").
        """
        pass

    @abstractmethod
    def _get_endpoint_create_collection(self) -> str:
        """
        Returns the endpoint path for collection creation (e.g. "/collections/docs").
        """
        pass

    @abstractmethod
    def _get_endpoint_points(self) -> str:
        """
        Returns the endpoint path for point upserts (e.g. "/collections/docs/points").
        """
        pass

    @abstractmethod
    def _get_endpoint_search(self) -> str:
        """
        Returns the endpoint path for filtered similarity search.
        """
        pass

    @abstractmethod
    def _get_endpoint_delete_points(self) -> str:
        """
        Returns the endpoint path for deleting points by filter.
        """
        pass

    @abstractmethod
    def _get_endpoint_count(self) -> str:
        """
        Returns the endpoint path for counting points matching a filter.
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def build_match_condition(self, key: str, value: str | int | bool) -> dict:
        """Builds a single exact-match condition on a payload field.

        Args:
            key (str): Payload field name.
            value (str | int | bool): Value the field must equal.

        Returns:
            dict: Backend-specific condition.
        """
        pass

    @abstractmethod
    def get_create_collection_payload(self, vector_size: int, distance: str) -> dict:
        """Builds the request body for collection creation."""
        pass

    @abstractmethod
    def get_upsert_payload(self, points: list[dict[str, Any]]) -> dict:
        """Builds the request body for a point upsert.

        Args:
            points (list[dict]): Points as {"id": ..., "vector": [...], "payload": {...}}.
        """
        pass

    @abstractmethod
    def get_search_payload(self, vector: list[float], conditions: list[dict], limit: int, score_threshold: float | None) -> dict:
        """Builds the request body for a similarity search.

        Args:
            vector (list[float]): The query vector.
            conditions (list[dict]): Conditions that all must match. Empty means unfiltered.
            limit (int): Maximum number of hits.
            score_threshold (float | None): Minimum score of returned hits.
        """
        pass

    @abstractmethod
    def get_count_payload(self, conditions: list[dict]) -> dict:
        """Builds the request body for an exact point count."""
        pass

    @abstractmethod
    def get_delete_payload(self, conditions: list[dict]) -> dict:
        """Builds the request body for a filter-based delete."""
        pass

    ################ RESPONSE PARSER ##################
    @abstractmethod
    def extract_search_hits(self, raw_response: dict) -> list[dict]:
        """Extracts hits from a raw search response.

        Returns:
            list[dict]: Hits as {"id": ..., "score": float, "payload": {...}}.

        Raises:
            VectorIndexError: If the response is malformed.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_existence_check(self) -> bool:
        """Check if the collection exists in the backend.

        Raises:
            VectorIndexError: If the backend is unreachable or answers with an error.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_check_collection_existence(), raise_on_error=True)
        return bool(resp.json().get("result", {}).get("exists"))

    async def do_create_collection(self, vector_size: int | None = None, distance: str | None = None) -> httpx.Response:
        """Create the collection.

        Args:
            vector_size (int | None): Vector dimensionality, defaults to RAG_VECTOR_SIZE.
            distance (str | None): Distance metric, defaults to RAG_DISTANCE.
        """
        return await self.do_request(
            method="PUT",
            json=self.get_create_collection_payload(vector_size or self.vector_size, distance or self.distance),
            endpoint=self._get_endpoint_create_collection(),
            raise_on_error=True,
        )

    async def do_upsert_points(self, points: list[dict[str, Any]]) -> httpx.Response:
        """Insert new points or replace existing ones with the same ID."""
        return await self.do_request(
            method="PUT",
            json=self.get_upsert_payload(points),
            endpoint=self._get_endpoint_points(),
            params={"wait": "true"},
            raise_on_error=True,
        )

    async def do_search(self, vector: list[float], conditions: list[dict], limit: int, score_threshold: float | None = None) -> list[dict]:
        """Run a filtered nearest-neighbour search.

        Returns:
            list[dict]: Hits as returned by extract_search_hits().
        """
        resp = await self.do_request(
            method="POST",
            json=self.get_search_payload(vector, conditions, limit, score_threshold),
            endpoint=self._get_endpoint_search(),
            raise_on_error=True,
        )
        return self.extract_search_hits(resp.json())

    async def do_delete_points_by_filter(self, conditions: list[dict]) -> None:
        """Delete every point matching all conditions."""
        if not conditions:
            raise VectorIndexError("Refusing to delete points without a filter.", self.get_engine_name())
        await self.do_request(
            method="POST",
            json=self.get_delete_payload(conditions),
            endpoint=self._get_endpoint_delete_points(),
            params={"wait": "true"},
            raise_on_error=True,
        )

    async def do_count(self, conditions: list[dict]) -> int:
        """Count the points matching all conditions."""
        resp = await self.do_request(
            method="POST",
            json=self.get_count_payload(conditions),
            endpoint=self._get_endpoint_count(),
            raise_on_error=True,
        )
        return int(resp.json().get("result", {}).get("count", 0))
