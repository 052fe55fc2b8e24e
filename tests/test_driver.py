"""Tests for transgif.driver: per-variant isolation across a batch.

Marp, the browser and FFmpeg are all faked; the resampler, materializer and
pipeline sequencing run for real.
"""

from __future__ import annotations

import base64
from contextlib import contextmanager
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from transgif.driver import run_all
from transgif.errors import ResourceError, SessionError, StageError, ResampleError
from transgif.models import CapturedSample, CaptureSession
from transgif.settings import RenderSettings, TransitionVariant

PNG_B64 = base64.b64encode(b"\x89PNG\r\n\x1a\nframe").decode("ascii")


def _session(payload: str | None = PNG_B64) -> CaptureSession:
    return CaptureSession(
        samples=tuple(CapturedSample(timestamp_ms=i * 150, payload=payload) for i in range(10)),
        session_start_ms=0,
        session_end_ms=1500,
    )


@contextmanager
def _fake_browser():
    yield MagicMock(name="browser")


class Harness:
    """Fakes for the external collaborators of run_variant()."""

    def __init__(self, fail_encode_for: set[str] | None = None) -> None:
        self.fail_encode_for = fail_encode_for or set()
        self.staging_dirs: dict[str, Path] = {}
        self.sessions: dict[str, object] = {}

    def build_document(self, variant, staging_dir, marp_command):
        self.staging_dirs[variant.name] = staging_dir
        html = staging_dir / "transition.html"
        html.write_text("<html></html>", encoding="utf-8")
        return html

    def orchestrator(self, browser, settings):
        orch = MagicMock()

        def _capture(variant, document):
            outcome = self.sessions.get(variant.name, _session())
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        orch.capture.side_effect = _capture
        return orch

    def ffmpeg(self, cmd, **kwargs):
        output = Path(cmd[-1])
        result = MagicMock(stderr="")
        variant = next(name for name, d in self.staging_dirs.items() if d in output.parents)
        if output.name == "animation.gif" and variant in self.fail_encode_for:
            result.returncode = 1
            result.stderr = "paletteuse: simulated failure"
            return result
        output.write_bytes(b"GIF89a" if output.suffix == ".gif" else b"data")
        result.returncode = 0
        return result

    @contextmanager
    def active(self):
        with patch("transgif.driver.build_document", side_effect=self.build_document), \
                patch("transgif.driver.CaptureOrchestrator", side_effect=self.orchestrator), \
                patch("transgif.transcode.pipeline.subprocess.run", side_effect=self.ffmpeg):
            yield


def _variants(*names: str) -> list[TransitionVariant]:
    return [TransitionVariant(name=n, duration_seconds=0.5) for n in names]


class TestRunAll:
    def test_all_variants_published(self, tmp_path: Path) -> None:
        harness = Harness()
        out_dir = tmp_path / "out"
        with harness.active():
            report = run_all(_variants("fade", "cube"), RenderSettings(), out_dir, browser_factory=_fake_browser)

        assert report.ok
        assert sorted(p.name for p in out_dir.iterdir()) == ["cube.gif", "fade.gif"]
        assert all(not d.exists() for d in harness.staging_dirs.values())

    def test_encode_failure_isolated_to_variant(self, tmp_path: Path) -> None:
        """Stage 3 fails for one variant: no output for it, staging purged, batch continues."""
        harness = Harness(fail_encode_for={"cube"})
        out_dir = tmp_path / "out"
        previous = out_dir / "fade.gif"

        with harness.active():
            report = run_all(
                _variants("fade", "cube", "zoom"), RenderSettings(), out_dir, browser_factory=_fake_browser
            )

        assert [r.name for r in report.succeeded] == ["fade", "zoom"]
        assert [r.name for r in report.failed] == ["cube"]
        failure = report.failed[0].error
        assert isinstance(failure, StageError)
        assert failure.stage == "encode"

        assert not (out_dir / "cube.gif").exists()
        assert not harness.staging_dirs["cube"].exists()
        assert (out_dir / "zoom.gif").exists()
        assert previous.read_bytes() == b"GIF89a"

    def test_empty_capture_fails_before_resampling(self, tmp_path: Path) -> None:
        harness = Harness()
        harness.sessions["fade"] = SessionError("fade", "Navigation did not produce any screencast frame")
        with harness.active(), patch("transgif.driver.resample") as mock_resample:
            report = run_all(_variants("fade"), RenderSettings(), tmp_path / "out", browser_factory=_fake_browser)

        assert isinstance(report.results[0].error, SessionError)
        mock_resample.assert_not_called()
        assert not harness.staging_dirs["fade"].exists()

    def test_no_usable_frames_is_resample_error(self, tmp_path: Path) -> None:
        harness = Harness()
        harness.sessions["fade"] = _session(payload=None)
        with harness.active():
            report = run_all(_variants("fade", "cube"), RenderSettings(), tmp_path / "out", browser_factory=_fake_browser)

        assert isinstance(report.results[0].error, ResampleError)
        assert report.results[1].ok

    def test_resource_error_ends_run(self, tmp_path: Path) -> None:
        harness = Harness()

        @contextmanager
        def _broken_browser():
            yield MagicMock()
            raise ResourceError("Chromium did not close cleanly")

        with harness.active():
            with pytest.raises(ResourceError):
                run_all(_variants("fade"), RenderSettings(), tmp_path / "out", browser_factory=_broken_browser)

    def test_resource_error_mid_run_skips_remaining(self, tmp_path: Path) -> None:
        harness = Harness()
        harness.sessions["cube"] = ResourceError("Page for 'cube' did not close")
        with harness.active():
            with pytest.raises(ResourceError):
                run_all(_variants("fade", "cube", "zoom"), RenderSettings(), tmp_path / "out",
                        browser_factory=_fake_browser)
        assert "zoom" not in harness.staging_dirs

    def test_events_reported_in_order(self, tmp_path: Path) -> None:
        harness = Harness()
        events = []
        with harness.active():
            run_all(
                _variants("fade"), RenderSettings(), tmp_path / "out",
                browser_factory=_fake_browser,
                on_event=lambda name, result: events.append((name, result is not None)),
            )
        assert events == [("fade", False), ("fade", True)]
