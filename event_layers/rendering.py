"""Rich rendering of layer lists for terminal inspection.

Provides LayerTreeRenderer, which turns aggregated layers into a Rich tree and
converts it to a string. Used by the ``event-layers`` CLI; the desktop client
renders layers itself.
"""

from __future__ import annotations

from io import StringIO
from typing import Any

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from event_layers.types import EventCategory, EventLayer, LifecycleStatus

CATEGORY_STYLES: dict[EventCategory, str] = {
    EventCategory.MILESTONE: "bold cyan",
    EventCategory.LIFECYCLE: "bold magenta",
    EventCategory.INCREMENTAL: "blue",
    EventCategory.REASONING: "yellow",
    EventCategory.OTHER: "dim",
}

STATUS_STYLES: dict[LifecycleStatus, str] = {
    LifecycleStatus.RUNNING: "yellow",
    LifecycleStatus.COMPLETED: "green",
    LifecycleStatus.ERROR: "bold red",
}


def _preview(text: str | None, limit: int) -> str:
    if not text:
        return ""
    text = " ".join(text.split())
    return text if len(text) <= limit else text[: limit - 3] + "..."


class LayerTreeRenderer:
    """Render layers as a Rich tree.

    Related events are listed only for expanded layers unless
    ``expand_all`` is set.
    """

    def __init__(self, width: int | None = None, preview_length: int = 60, expand_all: bool = False) -> None:
        self._width = width or 120
        self._preview_length = preview_length
        self._expand_all = expand_all

    def build(self, layers: list[EventLayer], title: str = "layers") -> Tree:
        tree = Tree(Text(f"{title} ({len(layers)})", style="bold"))
        for index, layer in enumerate(layers):
            node = tree.add(self._layer_label(index, layer))
            if self._expand_all or layer.is_expanded:
                for event in layer.related_events:
                    label = Text(event.type, style="dim")
                    preview = _preview(event.delta or event.message, self._preview_length)
                    if preview:
                        label.append(f"  {preview}")
                    node.add(label)
                if layer.lifecycle_data is not None and layer.lifecycle_data.end_event is not None:
                    node.add(Text(layer.lifecycle_data.end_event.type, style="dim"))
        return tree

    def _layer_label(self, index: int, layer: EventLayer) -> Text:
        label = Text(f"[{index}] ", style="dim")
        label.append(layer.category.value, style=CATEGORY_STYLES.get(layer.category, ""))
        label.append(f"  {layer.milestone.type}")
        if layer.is_virtual:
            label.append("  (placeholder)", style="italic")

        lifecycle = layer.lifecycle_data
        if lifecycle is not None:
            label.append(f"  {lifecycle.pair_type.label}: ")
            label.append(lifecycle.status.value, style=STATUS_STYLES[lifecycle.status])
            if lifecycle.duration is not None:
                label.append(f" ({lifecycle.duration:g}ms)", style="dim")

        label.append(f"  updates={layer.aggregated_data.total_updates}", style="dim")

        preview = _preview(
            layer.aggregated_data.combined_content or layer.milestone.message,
            self._preview_length,
        )
        if preview:
            label.append(f"  {preview}")
        return label

    def render(self, renderable: Any, width: int | None = None, color: bool = True) -> str:
        """Render a Rich object to a string.

        Args:
            renderable: Rich renderable object.
            width: Optional width override.
            color: Emit ANSI styles.
        """
        string_io = StringIO()
        console = Console(
            file=string_io,
            force_terminal=color,
            width=width or self._width,
            no_color=not color,
        )
        console.print(renderable)
        return string_io.getvalue()

    def render_layers(self, layers: list[EventLayer], title: str = "layers", color: bool = True) -> str:
        return self.render(self.build(layers, title=title), color=color)
