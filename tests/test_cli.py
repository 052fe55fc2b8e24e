"""Tests for the transgif CLI surface.

run_all is patched out so no browser or FFmpeg is started; these tests cover
option handling, validation panels and exit codes.
"""

import json
from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner

from transgif.cli import app
from transgif.driver import RunReport, VariantResult
from transgif.errors import ResourceError, StageError

runner = CliRunner()


def _report(*results: VariantResult) -> RunReport:
    return RunReport(results=list(results))


def test_list_prints_builtin_transitions():
    result = runner.invoke(app, ["--list"])
    assert result.exit_code == 0
    assert "coverflow" in result.output
    assert "iris-out" in result.output


def test_unknown_transition_rejected_before_run():
    with patch("transgif.cli.run_all") as mock_run:
        result = runner.invoke(app, ["fade", "sparkle"])
    assert result.exit_code == 1
    assert "Unknown transition" in result.output
    mock_run.assert_not_called()


def test_invalid_fps_rejected():
    with patch("transgif.cli.run_all") as mock_run:
        result = runner.invoke(app, ["fade", "--fps", "0"])
    assert result.exit_code == 1
    assert "Invalid settings" in result.output
    mock_run.assert_not_called()


def test_options_override_config_file(tmp_path: Path):
    config = tmp_path / "settings.json"
    config.write_text(json.dumps({"fps": 12, "width": 320, "height": 180}), encoding="utf-8")
    out_dir = tmp_path / "gifs"
    ok = VariantResult(name="fade", output_path=out_dir / "fade.gif")

    with patch("transgif.cli.run_all", return_value=_report(ok)) as mock_run:
        result = runner.invoke(app, ["fade", "--config", str(config), "--fps", "30", "-o", str(out_dir)])

    assert result.exit_code == 0, result.output
    variants, settings, passed_out = mock_run.call_args.args[:3]
    assert [v.name for v in variants] == ["fade"]
    assert settings.fps == 30
    assert settings.width == 320
    assert passed_out == out_dir.resolve()
    assert "All transitions rendered" in result.output


def test_bad_config_file_shows_config_error(tmp_path: Path):
    config = tmp_path / "settings.json"
    config.write_text("{broken", encoding="utf-8")
    result = runner.invoke(app, ["fade", "--config", str(config)])
    assert result.exit_code == 1
    assert "Config Error" in result.output


def test_default_runs_every_transition():
    with patch("transgif.cli.run_all", return_value=_report()) as mock_run:
        result = runner.invoke(app, [])
    assert result.exit_code == 0, result.output
    assert len(mock_run.call_args.args[0]) == 33


def test_duplicate_names_rendered_once():
    with patch("transgif.cli.run_all", return_value=_report()) as mock_run:
        runner.invoke(app, ["fade", "Fade", "cube"])
    assert [v.name for v in mock_run.call_args.args[0]] == ["fade", "cube"]


def test_failed_variant_exits_nonzero(tmp_path: Path):
    failed = VariantResult(name="cube", error=StageError("encode", tmp_path / "animation.gif", "boom"))
    ok = VariantResult(name="fade", output_path=tmp_path / "fade.gif")
    with patch("transgif.cli.run_all", return_value=_report(ok, failed)):
        result = runner.invoke(app, ["fade", "cube"])
    assert result.exit_code == 1
    assert "1 transition(s) failed" in result.output
    assert "cube" in result.output


def test_resource_error_aborts_run():
    with patch("transgif.cli.run_all", side_effect=ResourceError("Chromium did not close cleanly")):
        result = runner.invoke(app, ["fade"])
    assert result.exit_code == 1
    assert "Run Aborted" in result.output
