from .generator import OpenAIQuestionProvider, ParseError, ProviderError

__all__ = ["OpenAIQuestionProvider", "ParseError", "ProviderError"]
