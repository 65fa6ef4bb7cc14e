"""Configuration module"""
from functools import lru_cache

from .settings import BackendConfig, LlmSettings


@lru_cache()
def get_settings() -> LlmSettings:
    """Get cached settings instance"""
    return LlmSettings()


__all__ = ["BackendConfig", "LlmSettings", "get_settings"]
