"""Append-only, time-ordered log of screencast samples for one capture session."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from transgif.models import CapturedSample, CaptureSession

logger = logging.getLogger(__name__)


class CaptureBuffer:
    """Collects screencast samples until sealed.

    Append order is authoritative. A timestamp that goes backwards is clamped
    to the previous sample's timestamp, so the stored sequence is always
    non-decreasing and a later append never sorts before an earlier one.

    Samples that arrive after :meth:`seal` are dropped and counted.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._samples: list[CapturedSample] = []
        self._sealed: Optional[CaptureSession] = None
        self._dropped_late = 0

    def append(self, timestamp_ms: int, payload: Optional[str]) -> bool:
        """Add one sample. Returns False if the buffer is already sealed."""
        with self._lock:
            if self._sealed is not None:
                self._dropped_late += 1
                logger.debug("capture buffer sealed; dropping late sample at %d ms", timestamp_ms)
                return False
            if self._samples and timestamp_ms < self._samples[-1].timestamp_ms:
                timestamp_ms = self._samples[-1].timestamp_ms
            self._samples.append(CapturedSample(timestamp_ms=int(timestamp_ms), payload=payload))
            return True

    def seal(self, end_ms: int) -> CaptureSession:
        """Freeze the buffer and return the session it describes.

        The session starts at the first sample. An empty buffer seals into a
        zero-length session with no samples.
        """
        with self._lock:
            if self._sealed is not None:
                raise RuntimeError("capture buffer is already sealed")
            samples = tuple(self._samples)
            start_ms = samples[0].timestamp_ms if samples else int(end_ms)
            self._sealed = CaptureSession(
                samples=samples,
                session_start_ms=start_ms,
                session_end_ms=max(int(end_ms), start_ms),
            )
            return self._sealed

    @property
    def is_sealed(self) -> bool:
        return self._sealed is not None

    @property
    def dropped_late(self) -> int:
        return self._dropped_late

    def samples(self) -> tuple[CapturedSample, ...]:
        """Read-only ordered view of the samples. Only valid once sealed."""
        if self._sealed is None:
            raise RuntimeError("capture buffer must be sealed before reading samples")
        return self._sealed.samples
