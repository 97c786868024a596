"""CLI entry point for event-layers.

Replays a recorded event log (one JSON event per line) through the
aggregator and prints the resulting layer tree. Handy for checking how a
crashed or truncated session will be displayed.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from event_layers import __version__
from event_layers._config import EventLayersSettings
from event_layers._logger import get_logger, set_log_level
from event_layers.aggregator import EventAggregator, EventMergeConfig, EventOrderError
from event_layers.events import ConversationEvent, EventDecodeError
from event_layers.rendering import LayerTreeRenderer

logger = get_logger(__name__)


def load_event_log(path: Path) -> tuple[list[ConversationEvent], list[tuple[int, str]]]:
    """Read a JSONL event log.

    Blank lines are ignored. Lines that are not valid JSON events are
    collected as ``(line_number, reason)`` instead of aborting the load.

    Raises:
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the file is not UTF-8.
    """
    events: list[ConversationEvent] = []
    skipped: list[tuple[int, str]] = []

    with path.open(encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                events.append(ConversationEvent.from_wire(json.loads(line)))
            except json.JSONDecodeError as e:
                skipped.append((line_number, f"invalid JSON: {e.msg}"))
            except EventDecodeError as e:
                skipped.append((line_number, str(e)))

    logger.info("Loaded %d events from %s (%d skipped)", len(events), path, len(skipped))
    return events, skipped


@click.group()
@click.version_option(version=__version__, prog_name="event-layers")
def cli() -> None:
    """Inspect how agent event streams are grouped into display layers."""


@cli.command()
@click.argument("log_file", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--locale", type=click.Choice(["en", "zh"]), default=None, help="Placeholder text language")
@click.option("--no-merge", is_flag=True, help="Disable folding of incremental events")
@click.option("--sort", "sort_events", is_flag=True, help="Sort events by timestamp before aggregating")
@click.option("--expand", is_flag=True, help="List related events under every layer")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def inspect(log_file: Path, locale: str | None, no_merge: bool, sort_events: bool, expand: bool, verbose: bool) -> None:
    """Aggregate LOG_FILE and print the layer tree."""
    if verbose:
        set_log_level("DEBUG")

    try:
        events, skipped = load_event_log(log_file)
    except (OSError, UnicodeDecodeError) as e:
        click.echo(click.style(f"Cannot read {log_file}: {e}", fg="red"), err=True)
        sys.exit(1)

    for line_number, reason in skipped:
        click.echo(click.style(f"Skipped line {line_number}: {reason}", fg="yellow"), err=True)

    if sort_events:
        # Stable, so ties keep their log order
        events.sort(key=lambda event: event.timestamp)

    settings = EventLayersSettings()
    config = EventMergeConfig(
        enable_incremental_merging=not no_merge,
        locale=locale or settings.locale,
        check_ordering=settings.check_ordering,
    )

    try:
        layers = EventAggregator(config).aggregate(events)
    except EventOrderError as e:
        click.echo(click.style(f"Out of order: {e} (try --sort)", fg="red"), err=True)
        sys.exit(1)

    renderer = LayerTreeRenderer(expand_all=expand)
    click.echo(renderer.render_layers(layers, title=log_file.name, color=sys.stdout.isatty()), nl=False)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
