"""Drive one warm-up and one recorded navigation cycle against a loaded deck.

The recorded cycle runs a CDP screencast. Frames are pushed by the browser
while the orchestrator is waiting between key presses; the handler only
appends to the capture buffer and acknowledges the frame, so the two sides
meet at a single point: ``Page.stopScreencast``. Every frame dispatched
before the stop is acknowledged is in the buffer once the drain wait ends.
Frames that arrive after the buffer is sealed are dropped and counted.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from playwright.sync_api import Browser, Error as PlaywrightError, Page

from transgif.capture.buffer import CaptureBuffer
from transgif.errors import ResourceError, SessionError
from transgif.models import CaptureSession
from transgif.settings import RenderSettings, TransitionVariant

logger = logging.getLogger(__name__)

KEY_ADVANCE = "ArrowRight"
KEY_RETREAT = "ArrowLeft"


class CaptureState(str, Enum):
    IDLE = "idle"
    SESSION_OPEN = "session_open"
    WARMING_UP = "warming_up"
    RECORDING = "recording"
    STOPPED = "stopped"
    SEALED = "sealed"
    ABORTED = "aborted"


_ALLOWED: dict[CaptureState, frozenset[CaptureState]] = {
    CaptureState.IDLE: frozenset({CaptureState.SESSION_OPEN}),
    CaptureState.SESSION_OPEN: frozenset({CaptureState.WARMING_UP}),
    CaptureState.WARMING_UP: frozenset({CaptureState.RECORDING}),
    CaptureState.RECORDING: frozenset({CaptureState.STOPPED}),
    CaptureState.STOPPED: frozenset({CaptureState.SEALED}),
    CaptureState.SEALED: frozenset(),
    CaptureState.ABORTED: frozenset(),
}


def monotonic_ms() -> int:
    return time.monotonic_ns() // 1_000_000


class CaptureOrchestrator:
    """Capture session for a single transition variant. Not reusable."""

    def __init__(
        self,
        browser: Browser,
        settings: RenderSettings,
        clock: Callable[[], int] = monotonic_ms,
    ) -> None:
        self._browser = browser
        self._settings = settings
        self._clock = clock
        self.state = CaptureState.IDLE
        self.buffer = CaptureBuffer()

    def _advance(self, target: CaptureState) -> None:
        if target is not CaptureState.ABORTED and target not in _ALLOWED[self.state]:
            raise RuntimeError(f"illegal capture transition {self.state.value} -> {target.value}")
        logger.debug("capture state %s -> %s", self.state.value, target.value)
        self.state = target

    def capture(self, variant: TransitionVariant, document_path: Path) -> CaptureSession:
        """Record *variant*'s transition from the HTML deck at *document_path*.

        Raises:
            SessionError: If the deck fails to load, a browser call fails, or
                the screencast delivered no frames.
            ResourceError: If the page cannot be closed afterwards.
        """
        if self.state is not CaptureState.IDLE:
            raise RuntimeError("a CaptureOrchestrator runs exactly one session")

        try:
            page = self._browser.new_page(
                viewport={
                    "width": self._settings.viewport_width,
                    "height": self._settings.viewport_height,
                },
                device_scale_factor=1,
            )
        except PlaywrightError as exc:
            self._advance(CaptureState.ABORTED)
            raise SessionError(variant.name, f"Could not open a page: {exc}") from exc

        try:
            session = self._run(page, variant, document_path)
        except PlaywrightError as exc:
            self._advance(CaptureState.ABORTED)
            raise SessionError(variant.name, str(exc)) from exc
        except Exception:
            self._advance(CaptureState.ABORTED)
            raise
        finally:
            try:
                page.close()
            except PlaywrightError as exc:
                raise ResourceError(f"Page for '{variant.name}' did not close: {exc}") from exc

        if not session.samples:
            raise SessionError(variant.name, "Navigation did not produce any screencast frame")
        logger.info(
            "%s: captured %d frames over %d ms",
            variant.name, len(session.samples), session.duration_ms,
        )
        return session

    def _run(self, page: Page, variant: TransitionVariant, document_path: Path) -> CaptureSession:
        settings = self._settings
        duration = variant.duration_seconds

        logger.info("%s: loading deck", variant.name)
        page.goto(document_path.resolve().as_uri(), wait_until="networkidle")
        self._advance(CaptureState.SESSION_OPEN)

        # Run the transition once so the recorded cycle starts from a settled renderer.
        logger.info("%s: warming up", variant.name)
        self._advance(CaptureState.WARMING_UP)
        page.keyboard.press(KEY_ADVANCE)
        page.wait_for_timeout(settings.warmup_wait_ms(duration))
        page.keyboard.press(KEY_RETREAT)
        page.wait_for_timeout(settings.warmup_wait_ms(duration))

        logger.info("%s: recording", variant.name)
        cdp = page.context.new_cdp_session(page)
        cdp.send("Page.enable")

        def on_frame(params: dict[str, Any]) -> None:
            accepted = self.buffer.append(self._clock(), params.get("data") or None)
            if accepted:
                cdp.send("Page.screencastFrameAck", {"sessionId": params["sessionId"]})

        cdp.on("Page.screencastFrame", on_frame)
        cdp.send("Page.startScreencast", {"format": "png"})
        self._advance(CaptureState.RECORDING)

        page.wait_for_timeout(settings.preroll_ms())
        page.keyboard.press(KEY_ADVANCE)
        page.wait_for_timeout(settings.hold_ms(duration))
        page.keyboard.press(KEY_RETREAT)
        page.wait_for_timeout(settings.return_ms(duration))

        cdp.send("Page.stopScreencast")
        end_ms = self._clock()
        self._advance(CaptureState.STOPPED)

        # Let frames dispatched before the stop acknowledgment reach the handler.
        page.wait_for_timeout(settings.drain_ms)
        session = self.buffer.seal(end_ms)
        self._advance(CaptureState.SEALED)
        return session
