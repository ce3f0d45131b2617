"""Asynchronous PDF rendering: job queue, browser capture, worker."""
from talent_reports.rendering.errors import (
    RenderError,
    EmptyDocumentError,
    RenderTimeoutError,
    RenderNotReadyError,
)
from talent_reports.rendering.queue import RenderQueue

__all__ = [
    "RenderError",
    "EmptyDocumentError",
    "RenderTimeoutError",
    "RenderNotReadyError",
    "RenderQueue",
]
