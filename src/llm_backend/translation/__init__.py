from .service import TranslationService

__all__ = ["TranslationService"]
