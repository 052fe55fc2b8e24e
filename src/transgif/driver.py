"""Run every requested transition variant end to end.

Each variant gets its own staging directory and its own capture session.
Variant-level failures are logged and recorded, then the run moves on.
A ResourceError means the shared browser can no longer be trusted and ends
the run.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Sequence

from playwright.sync_api import Browser

from transgif.capture.browser import open_browser
from transgif.capture.orchestrator import CaptureOrchestrator
from transgif.errors import VARIANT_ERRORS, ResampleError, TransGifError
from transgif.markup.render import build_document
from transgif.settings import RenderSettings, TransitionVariant
from transgif.timeline.materialize import materialize_frames
from transgif.timeline.resample import resample, usable_frames
from transgif.transcode.pipeline import run_pipeline

logger = logging.getLogger(__name__)


@dataclass
class VariantResult:
    name: str
    output_path: Optional[Path] = None
    error: Optional[TransGifError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RunReport:
    results: list[VariantResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[VariantResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[VariantResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failed


def run_variant(
    browser: Browser,
    variant: TransitionVariant,
    settings: RenderSettings,
    out_dir: Path,
) -> Path:
    """Render, capture, resample and transcode one variant.

    The staging directory is always removed afterwards, whether or not the
    variant succeeded; partial state is never resumed.

    Returns:
        Path to the published GIF.
    """
    staging_dir = Path(tempfile.mkdtemp(prefix=f"transgif-{variant.name}-"))
    try:
        document = build_document(variant, staging_dir, settings.marp_command)

        session = CaptureOrchestrator(browser, settings).capture(variant, document)

        frames = resample(session, settings.fps)
        usable = usable_frames(frames)
        if not usable:
            raise ResampleError(
                variant.name,
                f"{len(frames)} frames at {settings.fps} fps mapped to no captured image "
                f"({len(session.samples)} samples over {session.duration_ms} ms)",
            )
        logger.info("%s: %d/%d frames usable", variant.name, len(usable), len(frames))

        written = materialize_frames(usable, staging_dir / "frames")
        return run_pipeline(written, settings, staging_dir, out_dir, variant.name)
    finally:
        shutil.rmtree(staging_dir, ignore_errors=True)


def run_all(
    variants: Sequence[TransitionVariant],
    settings: RenderSettings,
    out_dir: Path,
    browser_factory: Callable[[], AbstractContextManager[Browser]] = open_browser,
    on_event: Optional[Callable[[str, VariantResult | None], None]] = None,
) -> RunReport:
    """Process *variants* one at a time with a single shared browser.

    Args:
        variants: Variants to render, in order.
        settings: Render settings shared by all variants.
        out_dir: Output directory, created if absent.
        browser_factory: Context manager factory yielding the browser.
        on_event: Optional callback, called with ``(name, None)`` before a
            variant starts and ``(name, result)`` once it has finished.

    Returns:
        RunReport with one result per processed variant.

    Raises:
        ResourceError: If the shared browser could not be released.
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    report = RunReport()

    with browser_factory() as browser:
        for variant in variants:
            logger.info("########## %s transition ##########", variant.name)
            if on_event is not None:
                on_event(variant.name, None)
            result = VariantResult(name=variant.name)
            try:
                result.output_path = run_variant(browser, variant, settings, out_dir)
            except VARIANT_ERRORS as exc:
                logger.error("%s: %s", variant.name, str(exc).splitlines()[0])
                result.error = exc
            report.results.append(result)
            if on_event is not None:
                on_event(variant.name, result)

    return report
