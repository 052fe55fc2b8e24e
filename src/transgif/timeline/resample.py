"""Fixed-rate resampling of an irregular capture timeline.

Every output frame shows the most recent captured sample at or before its
nominal time (nearest-preceding-sample). Nothing is interpolated and the
resampler never looks ahead. Frames that fall before the first sample map to
no sample and are dropped later by the materializer.

All arithmetic stays in integers: the nominal time of frame ``i`` is
``start + i * 1000 / fps`` and a sample at ``t`` qualifies when
``(t - start) * fps <= i * 1000``.
"""

from __future__ import annotations

from typing import Optional, Sequence

from transgif.models import CaptureSession, ResampledFrame


def frame_count(duration_ms: int, fps: int) -> int:
    """Return ``floor(duration_ms * fps / 1000)``."""
    if not isinstance(fps, int) or isinstance(fps, bool) or fps <= 0:
        raise ValueError(f"fps must be a positive integer, got {fps!r}")
    if duration_ms <= 0:
        return 0
    return (duration_ms * fps) // 1000


def nominal_timestamps(start_ms: int, count: int, fps: int) -> list[int]:
    """Nominal frame times in whole milliseconds (floored)."""
    return [start_ms + (i * 1000) // fps for i in range(count)]


def find_preceding_samples(
    sample_offsets: Sequence[int],
    frame_offsets: Sequence[int],
) -> list[Optional[int]]:
    """Map each frame offset to the index of the last sample offset <= it.

    Both sequences must be sorted ascending and expressed on the same scale.
    A single forward cursor walks the samples, so the cost is
    O(len(sample_offsets) + len(frame_offsets)). Returns ``None`` for frames
    that precede the first sample.
    """
    mapping: list[Optional[int]] = []
    cursor = -1
    n_samples = len(sample_offsets)
    for target in frame_offsets:
        while cursor + 1 < n_samples and sample_offsets[cursor + 1] <= target:
            cursor += 1
        mapping.append(cursor if cursor >= 0 else None)
    return mapping


def resample(session: CaptureSession, fps: int) -> tuple[ResampledFrame, ...]:
    """Resample *session* onto *fps* frames per second.

    Returns one frame per index in ``[0, floor(duration_ms * fps / 1000))``.
    An empty session yields no frames.
    """
    count = frame_count(session.duration_ms, fps)
    if not session.samples or count == 0:
        return ()

    start = session.session_start_ms
    # Scale both sides by fps so the comparison is exact.
    sample_offsets = [(s.timestamp_ms - start) * fps for s in session.samples]
    frame_offsets = [i * 1000 for i in range(count)]
    mapping = find_preceding_samples(sample_offsets, frame_offsets)

    return tuple(
        ResampledFrame(
            index=i,
            nominal_timestamp_ms=nominal,
            source=session.samples[idx] if idx is not None else None,
        )
        for i, (nominal, idx) in enumerate(zip(nominal_timestamps(start, count, fps), mapping))
    )


def usable_frames(frames: Sequence[ResampledFrame]) -> list[ResampledFrame]:
    """Frames that have a source sample carrying image data."""
    return [f for f in frames if f.source is not None and f.source.payload is not None]
