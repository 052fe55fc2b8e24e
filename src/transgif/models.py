from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class CapturedSample:
    """One screencast event as it arrived from the browser."""

    timestamp_ms: int           # Arrival time on the capture clock
    payload: Optional[str]      # Base64 PNG data; None when the event carried nothing usable


@dataclass(frozen=True)
class CaptureSession:
    """A sealed capture buffer for exactly one transition variant."""

    samples: tuple[CapturedSample, ...]
    session_start_ms: int
    session_end_ms: int

    @property
    def duration_ms(self) -> int:
        return max(0, self.session_end_ms - self.session_start_ms)


@dataclass(frozen=True)
class ResampledFrame:
    """A fixed-rate output frame mapped to the captured sample shown at its time."""

    index: int
    nominal_timestamp_ms: int
    source: Optional[CapturedSample]


@dataclass(frozen=True)
class FrameArtifact:
    """A numbered still written by the frame materializer."""

    index: int
    path: Path


@dataclass(frozen=True)
class StageArtifact:
    """The single file produced by one transcode stage."""

    stage: str                  # "assemble" | "palette" | "encode" | "publish"
    path: Path
    produced_by: Optional[str] = None
