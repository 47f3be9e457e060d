"""Exception types raised by chapter-forge components."""


class ChapterForgeError(Exception):
    """Base class for all chapter-forge errors."""


class LLMCapabilityError(ChapterForgeError):
    """The configured LLM client cannot serve the requested kind of call."""


class PromptTemplateError(ChapterForgeError):
    """A prompt template is unknown or its context is incomplete."""


class ResumeError(ChapterForgeError):
    """A task cannot be resumed because no checkpoint was stored for it."""
