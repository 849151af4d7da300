from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class LLMClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # generation config
        self.generation_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_MODEL", default="llama3.1:8b")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "llm"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_generate(self) -> str:
        """Returns the endpoint path for single-prompt generation requests (e.g. "/api/generate")."""
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_generate_payload(self, prompt: str, max_output_tokens: int, temperature: float) -> dict:
        """Build the backend-specific request body for a generation request.

        Args:
            prompt (str): The complete prompt text.
            max_output_tokens (int): Upper bound of generated tokens.
            temperature (float): Sampling temperature.

        Returns:
            dict: JSON-serialisable request body.
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_generated_text(self, response_data: dict) -> str:
        """Extract the generated text from a raw generation response.

        Raises:
            ValueError: If the response does not contain generated text.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_generate(self, prompt: str, max_output_tokens: int = 256, temperature: float = 0.7) -> str:
        """Send a prompt to the generation backend and return the completion.

        Args:
            prompt (str): The complete prompt text.
            max_output_tokens (int): Upper bound of generated tokens.
            temperature (float): Sampling temperature.

        Returns:
            str: The generated text.

        Raises:
            PipelineError: If the request fails.
            ValueError: If the response carries no text.
        """
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_generate(),
            json=self.get_generate_payload(prompt, max_output_tokens, temperature),
            raise_on_error=True,
        )
        return self.extract_generated_text(response.json())
