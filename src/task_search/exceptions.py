"""Exception types raised by the task search core."""


class TaskSearchError(Exception):
    """Base class for task search errors."""


class InvalidArgumentError(TaskSearchError, ValueError):
    """Raised when a caller supplies an unusable argument."""


class PromptTemplateError(TaskSearchError, ValueError):
    """Raised when a prompt template cannot be formatted."""


class MissingVariablesError(PromptTemplateError):
    """Raised when placeholders remain after formatting a template."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing variables in prompt: {', '.join(missing)}")


class UnknownTemplateTypeError(TaskSearchError, LookupError):
    """Raised when no template is registered for a prompt type."""

    def __init__(self, prompt_type: str):
        self.prompt_type = prompt_type
        super().__init__(f"No prompt template registered for '{prompt_type}'")


class LanguageAnalysisError(TaskSearchError):
    """Raised when the language-analysis collaborator fails or times out."""


class LLMUnavailableError(TaskSearchError):
    """Raised when no LLM provider can serve a request."""


class TaskStoreError(TaskSearchError):
    """Raised when the task store cannot be read."""


class SearchError(TaskSearchError):
    """Raised when a search cannot be completed."""
