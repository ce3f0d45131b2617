"""Errors raised by the PDF render pipeline."""


class RenderError(Exception):
    """A render job could not produce its artifact."""


class EmptyDocumentError(RenderError):
    """The print view exposed no page containers."""


class RenderTimeoutError(RenderError):
    """The whole render exceeded its wall-clock budget."""


class RenderNotReadyError(RenderError):
    """No finished artifact exists for the assignment."""
