"""Write resampled frames as numbered PNG stills."""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from typing import Sequence

from transgif.errors import FrameWriteError
from transgif.models import FrameArtifact, ResampledFrame

logger = logging.getLogger(__name__)

FRAME_PATTERN = "frame-%010d.png"


def frame_filename(index: int) -> str:
    """Zero-padded still name for frame *index*, e.g. ``frame-0000000012.png``."""
    return FRAME_PATTERN % index


def materialize_frames(frames: Sequence[ResampledFrame], frames_dir: Path) -> list[FrameArtifact]:
    """Decode and write every frame that has image data.

    The file number is the frame's index, not its position among written
    files, so a dropped frame leaves a gap in the numbering.

    Raises
    ------
    FrameWriteError
        If any payload cannot be decoded or written. No partial result is
        returned.
    """
    frames_dir.mkdir(parents=True, exist_ok=True)
    written: list[FrameArtifact] = []
    skipped = 0

    for frame in frames:
        if frame.source is None or frame.source.payload is None:
            skipped += 1
            continue

        path = frames_dir / frame_filename(frame.index)
        try:
            data = base64.b64decode(frame.source.payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise FrameWriteError(path, f"Invalid base64 payload: {exc}") from exc
        if not data:
            raise FrameWriteError(path, "Payload decoded to zero bytes")

        try:
            path.write_bytes(data)
        except OSError as exc:
            raise FrameWriteError(path, str(exc)) from exc
        written.append(FrameArtifact(index=frame.index, path=path))

    logger.debug("materialized %d frames into %s (%d skipped)", len(written), frames_dir, skipped)
    return written
