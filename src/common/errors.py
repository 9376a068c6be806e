"""Exceptions raised by the story pipeline."""


class PipelineError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(PipelineError):
    """Required configuration or credentials are missing. Aborts a run."""


class InvalidTransitionError(PipelineError):
    """An article status change is not permitted by the lifecycle."""


class SummarizationError(PipelineError):
    """The summarization model call failed or returned an unusable response."""


class TopicResolutionError(PipelineError):
    """The topic taxonomy cannot supply a fallback topic."""
