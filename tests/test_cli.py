"""
Tests for the command line interface.
"""

import json

from typer.testing import CliRunner

from groupavailability.cli.app import app

runner = CliRunner()

EVENTS = [
    {"calendarId": "cal-alice", "start": "2024-11-25T09:00:00+00:00", "end": "2024-11-25T11:00:00+00:00"},
    {"calendarId": "bob@example.com", "start": "2024-11-25T10:30:00+00:00", "end": "2024-11-25T12:00:00+00:00"},
]

CONFIG_YAML = """
timezone: UTC
participants:
  - name: alice
    email: alice@example.com
    calendar_id: cal-alice
  - name: bob
    email: bob@example.com
events_file: events.json
blocks_file: blocks.json
"""


def _write_config(tmp_path):
    (tmp_path / "events.json").write_text(json.dumps(EVENTS), encoding="utf-8")
    config_path = tmp_path / "config.yaml"
    config_path.write_text(CONFIG_YAML, encoding="utf-8")
    return config_path


def test_find_lists_ranked_slots(tmp_path):
    config_path = _write_config(tmp_path)

    result = runner.invoke(app, [
        "find", "alice", "bob",
        "--config", str(config_path),
        "--start", "2024-11-25",
        "--end", "2024-11-25",
    ])

    assert result.exit_code == 0, result.output
    # 00:00-09:00 and 12:00-24:00
    assert "2 free slot(s) found" in result.output


def test_find_unknown_participant_fails(tmp_path):
    config_path = _write_config(tmp_path)

    result = runner.invoke(app, ["find", "carol", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "Unknown participant" in result.output


def test_materialize_writes_blocks(tmp_path):
    config_path = _write_config(tmp_path)

    result = runner.invoke(app, [
        "materialize", "alice",
        "--config", str(config_path),
        "--start", "2024-11-25",
        "--end", "2024-11-26",
    ])

    assert result.exit_code == 0, result.output
    assert "3 block(s) generated" in result.output
    rows = json.loads((tmp_path / "blocks.json").read_text(encoding="utf-8"))
    assert len(rows) == 3
    assert {row["userId"] for row in rows} == {"alice@example.com"}


def test_list_participants(tmp_path):
    config_path = _write_config(tmp_path)

    result = runner.invoke(app, ["list-participants", "--config", str(config_path)])

    assert result.exit_code == 0
    assert "alice" in result.output
    assert "bob@example.com" in result.output
