from typing import Any

from shared.helper.HelperConfig import HelperConfig
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.models.config import EnvConfig
from shared.models.errors import VectorIndexError


class RAGClientQdrant(RAGClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._collection_name = self.get_config_val("COLLECTION", default="transaction_documents", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Qdrant"

    def get_collection_name(self) -> str:
        return self._collection_name

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="COLLECTION", val_type="string", default="transaction_documents"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"api-key": self._api_key}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/healthz"

    def _get_endpoint_check_collection_existence(self) -> str:
        return f"/collections/{self._collection_name}/exists"

    def _get_endpoint_create_collection(self) -> str:
        return f"/collections/{self._collection_name}"

    def _get_endpoint_points(self) -> str:
        return f"/collections/{self._collection_name}/points"

    def _get_endpoint_search(self) -> str:
        return f"/collections/{self._collection_name}/points/search"

    def _get_endpoint_delete_points(self) -> str:
        return f"/collections/{self._collection_name}/points/delete"

    def _get_endpoint_count(self) -> str:
        return f"/collections/{self._collection_name}/points/count"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def build_match_condition(self, key: str, value: str | int | bool) -> dict:
        return {"key": key, "match": {"value": value}}

    def get_create_collection_payload(self, vector_size: int, distance: str) -> dict:
        return {"vectors": {"size": vector_size, "distance": distance}}

    def get_upsert_payload(self, points: list[dict[str, Any]]) -> dict:
        return {"points": points}

    def get_search_payload(self, vector: list[float], conditions: list[dict], limit: int, score_threshold: float | None) -> dict:
        payload: dict[str, Any] = {
            "vector": vector,
            "limit": limit,
            "with_payload": True,
            "with_vector": False,
        }
        if conditions:
            payload["filter"] = {"must": conditions}
        if score_threshold is not None:
            payload["score_threshold"] = score_threshold
        return payload

    def get_count_payload(self, conditions: list[dict]) -> dict:
        payload: dict[str, Any] = {"exact": True}
        if conditions:
            payload["filter"] = {"must": conditions}
        return payload

    def get_delete_payload(self, conditions: list[dict]) -> dict:
        return {"filter": {"must": conditions}}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_search_hits(self, raw_response: dict) -> list[dict]:
        result = raw_response.get("result")
        if not isinstance(result, list):
            raise VectorIndexError(
                f"Malformed search response, 'result' is {type(result).__name__}.",
                self.get_engine_name(),
            )
        return [
            {
                "id": hit.get("id"),
                "score": float(hit.get("score", 0.0)),
                "payload": hit.get("payload") or {},
            }
            for hit in result
        ]
