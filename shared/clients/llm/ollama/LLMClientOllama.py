from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class LLMClientOllama(LLMClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Ollama"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return ""

    def _get_endpoint_generate(self) -> str:
        return "/api/generate"

    ################ PAYLOAD BUILDER ##################
    def get_generate_payload(self, prompt: str, max_output_tokens: int, temperature: float) -> dict:
        """Build the Ollama generate request body.

        Returns:
            dict: {"model": "...", "prompt": "...", "stream": False,
                   "options": {"temperature": ..., "num_predict": ...}}
        """
        return {
            "model": self.generation_model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": temperature,
                "num_predict": max_output_tokens,
            },
        }

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_generated_text(self, response_data: dict) -> str:
        """Extract the completion from an Ollama /api/generate response.

        Raises:
            ValueError: If the "response" field is missing.
        """
        text = response_data.get("response")
        if text is None:
            raise ValueError(
                "Ollama generate response does not contain a 'response' field. "
                "Response keys: %s" % list(response_data.keys())
            )
        return text
