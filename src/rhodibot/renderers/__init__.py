"""Output format renderers."""

from __future__ import annotations

from rich.console import Console

from rhodibot.renderers.base import BaseRenderer, OutputFormat, RenderContext, Renderer
from rhodibot.renderers.json import JSONRenderer
from rhodibot.renderers.markdown import MarkdownRenderer
from rhodibot.renderers.terminal import TerminalRenderer

__all__ = [
    "BaseRenderer",
    "OutputFormat",
    "RenderContext",
    "Renderer",
    "JSONRenderer",
    "MarkdownRenderer",
    "TerminalRenderer",
    "get_renderer",
]


def get_renderer(format: OutputFormat | str, console: Console | None = None) -> BaseRenderer:
    """Get a renderer for an output format.

    Args:
        format: Output format (OutputFormat enum or its value)
        console: Console the terminal renderer prints to

    Raises:
        ValueError: If the format is unknown
    """
    format = OutputFormat(format)
    if format == OutputFormat.TERMINAL:
        return TerminalRenderer(console)
    if format == OutputFormat.MARKDOWN:
        return MarkdownRenderer()
    return JSONRenderer()
