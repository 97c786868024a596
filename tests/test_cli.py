"""Tests for event_layers.cli and event_layers.rendering modules."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from event_layers.aggregator import aggregate_events
from event_layers.cli import cli, load_event_log
from event_layers.rendering import LayerTreeRenderer


def _write_log(path: Path, lines: list[object]) -> Path:
    path.write_text(
        "\n".join(line if isinstance(line, str) else json.dumps(line) for line in lines) + "\n",
        encoding="utf-8",
    )
    return path


SESSION = [
    {"id": "1", "timestamp": 0, "event": {"type": "user_message", "message": "list files"}},
    {"id": "2", "timestamp": 1, "event": {"type": "exec_command_begin", "call_id": "c1", "command": ["ls"]}},
    {"id": "3", "timestamp": 2, "event": {"type": "exec_command_output_delta", "call_id": "c1", "chunk": "README.md"}},
    {"id": "4", "timestamp": 5, "status": "completed", "event": {"type": "exec_command_end", "call_id": "c1"}},
    {"id": "5", "timestamp": 6, "event": {"type": "agent_message_delta", "delta": "Done"}},
]

# =============================================================================
# load_event_log Tests
# =============================================================================


def test_load_event_log(tmp_path: Path) -> None:
    """load_event_log should decode every valid line."""
    log = _write_log(tmp_path / "session.jsonl", SESSION)

    events, skipped = load_event_log(log)

    assert [event.id for event in events] == ["1", "2", "3", "4", "5"]
    assert events[1].correlation_id == "c1"
    assert skipped == []


def test_load_event_log_skips_bad_lines(tmp_path: Path) -> None:
    """Invalid lines should be reported with their line numbers."""
    log = _write_log(tmp_path / "broken.jsonl", [SESSION[0], "{not json", "", {"timestamp": 3}, SESSION[1]])

    events, skipped = load_event_log(log)

    assert len(events) == 2
    assert [line_number for line_number, _ in skipped] == [2, 4]
    assert skipped[0][1].startswith("invalid JSON")


# =============================================================================
# LayerTreeRenderer Tests
# =============================================================================


def test_renderer_summarizes_layers(tmp_path: Path) -> None:
    """Rendered tree should list each layer with its category and status."""
    events, _ = load_event_log(_write_log(tmp_path / "session.jsonl", SESSION))
    layers = aggregate_events(events)

    output = LayerTreeRenderer(width=200).render_layers(layers, title="replay", color=False)

    assert "replay (3)" in output
    assert "[0] milestone  user_message" in output
    assert "Command execution: completed (4ms)" in output
    assert "(placeholder)" in output
    assert "Done" in output
    assert "exec_command_output_delta" not in output


def test_renderer_expand_all(tmp_path: Path) -> None:
    """expand_all should list related events under each layer."""
    events, _ = load_event_log(_write_log(tmp_path / "session.jsonl", SESSION))
    layers = aggregate_events(events)

    output = LayerTreeRenderer(width=200, expand_all=True).render_layers(layers, color=False)

    assert "exec_command_output_delta  README.md" in output
    assert "exec_command_end" in output


def test_renderer_respects_is_expanded(tmp_path: Path) -> None:
    """Only expanded layers should show related events by default."""
    events, _ = load_event_log(_write_log(tmp_path / "session.jsonl", SESSION))
    layers = aggregate_events(events)
    layers[1].is_expanded = True

    output = LayerTreeRenderer(width=200).render_layers(layers, color=False)

    assert "exec_command_output_delta" in output
    assert "agent_message_delta" not in output


# =============================================================================
# CLI Tests
# =============================================================================


def test_cli_inspect(tmp_path: Path) -> None:
    """inspect should print the layer tree for a log file."""
    log = _write_log(tmp_path / "session.jsonl", SESSION)

    result = CliRunner().invoke(cli, ["inspect", str(log)])

    assert result.exit_code == 0, result.output
    assert "session.jsonl (3)" in result.output
    assert "Command execution" in result.output
    assert "\x1b[" not in result.output


def test_cli_inspect_locale(tmp_path: Path) -> None:
    """--locale should switch placeholder text."""
    log = _write_log(tmp_path / "session.jsonl", SESSION[-1:])

    result = CliRunner().invoke(cli, ["inspect", str(log), "--locale", "zh"])

    assert result.exit_code == 0, result.output
    assert "agent_message" in result.output
    assert "Done" in result.output


def test_cli_inspect_no_merge(tmp_path: Path) -> None:
    """--no-merge should give every delta its own layer."""
    lines = [
        {"timestamp": 0, "type": "agent_message", "message": "hi"},
        {"timestamp": 1, "type": "agent_message_delta", "delta": "h"},
        {"timestamp": 2, "type": "agent_message_delta", "delta": "i"},
    ]
    log = _write_log(tmp_path / "flat.jsonl", lines)

    merged = CliRunner().invoke(cli, ["inspect", str(log)])
    unmerged = CliRunner().invoke(cli, ["inspect", str(log), "--no-merge"])

    assert "flat.jsonl (1)" in merged.output
    assert "flat.jsonl (3)" in unmerged.output


def test_cli_inspect_sort(tmp_path: Path) -> None:
    """--sort should order events by timestamp before pairing."""
    lines = [
        {"timestamp": 4, "type": "mcp_tool_call_end", "call_id": "t"},
        {"timestamp": 1, "type": "mcp_tool_call_begin", "call_id": "t"},
    ]
    log = _write_log(tmp_path / "shuffled.jsonl", lines)

    unsorted = CliRunner().invoke(cli, ["inspect", str(log)])
    ordered = CliRunner().invoke(cli, ["inspect", str(log), "--sort"])

    assert "shuffled.jsonl (2)" in unsorted.output
    assert "shuffled.jsonl (1)" in ordered.output
    assert "completed" in ordered.output


def test_cli_inspect_missing_file(tmp_path: Path) -> None:
    """A missing log file should exit with status 1."""
    result = CliRunner().invoke(cli, ["inspect", str(tmp_path / "nope.jsonl")])
    assert result.exit_code == 1


def test_cli_inspect_non_utf8_file(tmp_path: Path) -> None:
    """A log that is not UTF-8 should be reported, not crash the command."""
    log = tmp_path / "binary.jsonl"
    log.write_bytes(b'{"type": "user_message"}\n\xff\xfe garbage\n')

    result = CliRunner().invoke(cli, ["inspect", str(log)])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)


def test_cli_inspect_reads_settings_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """EVENT_LAYERS_ env vars should configure the command."""
    monkeypatch.setenv("EVENT_LAYERS_LOCALE", "zh")
    log = _write_log(tmp_path / "orphan.jsonl", [{"timestamp": 0, "type": "exec_command_output_delta"}])

    result = CliRunner().invoke(cli, ["inspect", str(log)])

    assert result.exit_code == 0, result.output
    assert "命令正在执行..." in result.output


def test_cli_inspect_ordering_check(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """With the ordering check enabled, unsorted logs should fail unless --sort is given."""
    monkeypatch.setenv("EVENT_LAYERS_CHECK_ORDERING", "true")
    lines = [
        {"timestamp": 4, "type": "user_message", "message": "b"},
        {"timestamp": 1, "type": "user_message", "message": "a"},
    ]
    log = _write_log(tmp_path / "shuffled.jsonl", lines)

    unsorted = CliRunner().invoke(cli, ["inspect", str(log)])
    ordered = CliRunner().invoke(cli, ["inspect", str(log), "--sort"])

    assert unsorted.exit_code == 1
    assert isinstance(unsorted.exception, SystemExit)
    assert ordered.exit_code == 0, ordered.output
    assert "shuffled.jsonl (2)" in ordered.output


def test_cli_version() -> None:
    """--version should print the program name."""
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "event-layers" in result.output
