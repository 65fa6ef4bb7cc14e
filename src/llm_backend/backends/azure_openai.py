"""
Azure OpenAI backend.
"""

from typing import Dict

from .openai_backend import OpenAIBackend

DEFAULT_DEPLOYMENT = "gpt-4"
DEFAULT_API_VERSION = "2024-02-15-preview"


class AzureOpenAIBackend(OpenAIBackend):
    """OpenAI payloads routed through an Azure deployment.

    Authenticates with the ``api-key`` header; the deployment falls back to
    the model name.
    """

    def _default_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        api_key = self.config.secret()
        if api_key:
            headers["api-key"] = api_key
        return headers

    @property
    def deployment(self) -> str:
        return self.config.deployment_name or self.model_name or DEFAULT_DEPLOYMENT

    @property
    def api_version(self) -> str:
        return self.config.api_version or DEFAULT_API_VERSION

    @property
    def completions_path(self) -> str:
        return (
            f"openai/deployments/{self.deployment}/chat/completions"
            f"?api-version={self.api_version}"
        )

    async def _probe(self, timeout: float) -> bool:
        response = await self._client.get(
            f"openai/deployments?api-version={self.api_version}", timeout=timeout
        )
        # Listing deployments is not always permitted; a 404 still proves reachability
        return response.is_success or response.status_code == 404
