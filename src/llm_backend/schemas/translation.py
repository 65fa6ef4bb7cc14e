"""Translation request and response models."""

from typing import List, Optional

from pydantic import BaseModel, Field


class TranslationRequest(BaseModel):
    text: str = Field(..., min_length=1)
    source_language: str = Field(default="auto")
    target_language: str = Field(..., min_length=1)
    context: Optional[str] = Field(None, description="Free-text hint about where the string is used")
    preserve_formatting: bool = True
    preferred_backend: Optional[str] = None


class TranslationResponse(BaseModel):
    translated_text: str = ""
    source_language: str
    target_language: str
    backend_used: str
    success: bool = True
    error_message: Optional[str] = None
    duration_ms: float = 0.0


class BatchTranslationRequest(BaseModel):
    requests: List[TranslationRequest] = Field(default_factory=list)
    max_concurrency: int = Field(default=5, ge=1)


class BatchTranslationResponse(BaseModel):
    responses: List[TranslationResponse] = Field(default_factory=list)
    success_count: int = 0
    failure_count: int = 0
    total_duration_ms: float = 0.0
