"""Exception types raised by the document pipeline."""


class DocumentGenerationError(Exception):
    """Base class for anything the generators catch and report as ok=False."""


class DocumentInputError(DocumentGenerationError):
    """Job payload is unusable or exceeds the configured limits."""


class TemplateContentError(DocumentGenerationError):
    """Template content is missing, not a string, or not valid base64."""


class TemplateRenderError(DocumentGenerationError):
    """Template package could not be opened, filled or re-serialized."""
