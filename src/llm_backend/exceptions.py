"""Custom exceptions for the LLM backend layer."""

from typing import Any, Dict, Optional


class LlmBackendError(Exception):
    """Base exception for backend orchestration errors."""

    def __init__(
        self,
        message: str,
        backend: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.backend = backend
        self.error_code = error_code or "BACKEND_ERROR"
        self.details = details or {}
        self.retryable = retryable
        if backend:
            self.details["backend"] = backend

    def __str__(self) -> str:
        if self.backend:
            return f"[{self.backend}] {self.message}"
        return self.message


class ConfigurationError(LlmBackendError):
    """Invalid or inconsistent backend configuration."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, error_code="CONFIGURATION_ERROR", **kwargs)


class UnsupportedBackendError(ConfigurationError):
    """Backend type has no adapter."""

    def __init__(self, backend_type: str, **kwargs):
        super().__init__(f"Backend type {backend_type} is not supported", **kwargs)
        self.error_code = "UNSUPPORTED_BACKEND"
        self.backend_type = backend_type


class BackendTransportError(LlmBackendError):
    """Network-level failure talking to a backend. Retryable."""

    def __init__(self, message: str, backend: Optional[str] = None, **kwargs):
        super().__init__(
            message, backend=backend, error_code="TRANSPORT_ERROR", retryable=True, **kwargs
        )


class BackendResponseError(LlmBackendError):
    """Backend answered with a payload that could not be interpreted."""

    def __init__(self, message: str, backend: Optional[str] = None, status_code: Optional[int] = None, **kwargs):
        super().__init__(message, backend=backend, error_code="RESPONSE_ERROR", **kwargs)
        self.status_code = status_code


__all__ = [
    "LlmBackendError",
    "ConfigurationError",
    "UnsupportedBackendError",
    "BackendTransportError",
    "BackendResponseError",
]
