"""JSON renderer for rhodibot output."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

from rhodibot.renderers.base import BaseRenderer, OutputFormat, RenderContext


class JSONRenderer(BaseRenderer):
    """Renderer for JSON output format.

    Models are dumped by alias, so a report's ``passed`` field appears as
    ``pass``. Field order follows the model definition, which keeps the
    output stable from run to run.

    Example:
        renderer = JSONRenderer()
        json_str = renderer.render(report, RenderContext(format=OutputFormat.JSON))
    """

    @property
    def format(self) -> OutputFormat:
        return OutputFormat.JSON

    def render(self, data: Any, context: RenderContext) -> str:
        """Render data to a JSON string.

        Args:
            data: A model, or a list of models (e.g. fleet outcomes)
            context: Rendering context with options

        Returns:
            JSON string
        """
        return json.dumps(
            self._to_data(data),
            indent=context.indent if context.indent else None,
            ensure_ascii=False,
        )

    @classmethod
    def _to_data(cls, data: Any) -> Any:
        if isinstance(data, BaseModel):
            return data.model_dump(mode="json", by_alias=True)
        if isinstance(data, (list, tuple)):
            return [cls._to_data(item) for item in data]
        if isinstance(data, dict):
            return {key: cls._to_data(value) for key, value in data.items()}
        return data
