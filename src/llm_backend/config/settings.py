"""Settings configuration"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator
from pydantic.alias_generators import to_pascal, to_snake
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..exceptions import ConfigurationError
from ..schemas.llm import BackendType, SelectionStrategy

logger = logging.getLogger(__name__)


class BackendConfig(BaseModel):
    """Connection details for one remote backend.

    Accepts snake_case keys or the PascalCase keys used by JSON config files
    (``BaseUrl``, ``ModelName`` ...).
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_pascal, populate_by_name=True, extra="ignore"
    )

    name: str = Field(..., min_length=1)
    type: BackendType
    base_url: str = Field(..., min_length=1)
    api_key: Optional[SecretStr] = None
    model_name: Optional[str] = None
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    max_input_tokens: Optional[int] = Field(default=None, gt=0)
    max_output_tokens: Optional[int] = Field(default=None, gt=0)
    priority: int = 100
    enabled: bool = True
    timeout_seconds: Optional[float] = Field(default=None, gt=0)
    additional_headers: Dict[str, str] = Field(default_factory=dict)

    # Azure OpenAI
    deployment_name: Optional[str] = None
    api_version: Optional[str] = None

    # OpenAI
    organization_id: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, v):
        if isinstance(v, str):
            try:
                return BackendType(v)
            except ValueError:
                raise ValueError(f"Unknown backend type: {v}") from None
        return v

    @field_validator("base_url")
    @classmethod
    def ensure_trailing_slash(cls, v: str) -> str:
        # relative request paths resolve under the configured prefix
        return v if v.endswith("/") else v + "/"

    def secret(self) -> Optional[str]:
        return self.api_key.get_secret_value() if self.api_key else None


class LlmSettings(BaseSettings):
    """Backend routing settings"""

    model_config = SettingsConfigDict(
        env_prefix="LLM_BACKEND_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    backends: List[BackendConfig] = Field(default_factory=list)
    strategy: SelectionStrategy = SelectionStrategy.FAILOVER
    specific_backend: Optional[str] = None

    # Retry / timeouts
    timeout_seconds: float = Field(default=120.0, gt=0)
    max_retries: int = Field(default=3, ge=0)
    retry_delay_ms: int = Field(default=1000, ge=0)
    use_exponential_backoff: bool = True

    # Model defaults
    default_temperature: float = Field(default=0.7, ge=0.0, le=2.0)

    # Logging
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"

    @field_validator("strategy", mode="before")
    @classmethod
    def parse_strategy(cls, v):
        if isinstance(v, str):
            try:
                return SelectionStrategy(v)
            except ValueError:
                raise ValueError(f"Unknown selection strategy: {v}") from None
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return v

    @field_validator("backends", mode="before")
    @classmethod
    def drop_invalid_backends(cls, v):
        # a bad entry disables only that backend
        if not isinstance(v, list):
            return v
        valid = []
        for index, entry in enumerate(v):
            try:
                valid.append(BackendConfig.model_validate(entry))
            except ValidationError as e:
                name = _entry_name(entry) or f"#{index}"
                logger.error("Ignoring invalid backend %s: %s", name, e)
        return valid

    @field_validator("backends")
    @classmethod
    def unique_backend_names(cls, v: List[BackendConfig]) -> List[BackendConfig]:
        seen = set()
        for backend in v:
            key = backend.name.casefold()
            if key in seen:
                raise ValueError(f"Duplicate backend name: {backend.name}")
            seen.add(key)
        return v

    @property
    def enabled_backends(self) -> List[BackendConfig]:
        return [b for b in self.backends if b.enabled]

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "LlmSettings":
        """Load settings from a JSON file.

        The document is either the settings object itself or an object with
        the settings under an ``LlmBackend`` key. Keys may be snake_case or
        PascalCase.
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read settings file {path}: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError(f"Settings file {path} must contain a JSON object")
        if "LlmBackend" in data:
            data = data["LlmBackend"]

        try:
            return cls(**_snake_keys(data))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings file {path}: {e}") from e


def _snake_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {to_snake(key): value for key, value in data.items()}


def _entry_name(entry: Any) -> Optional[str]:
    if isinstance(entry, BackendConfig):
        return entry.name
    if isinstance(entry, dict):
        return entry.get("name") or entry.get("Name")
    return None
