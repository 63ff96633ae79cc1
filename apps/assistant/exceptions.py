"""
Domain exceptions for the assistant app.

Raised by the Gemini client and the assistant services; views translate
them into HTTP responses.
"""


class AssistantServiceError(Exception):
    """Base exception for assistant errors."""
    pass


class AssistantNotConfiguredError(AssistantServiceError):
    """Raised when GEMINI_API_KEY is missing."""
    pass


class AssistantProviderError(AssistantServiceError):
    """Raised when the Gemini API call fails."""
    pass
