"""FFmpeg transcode pipeline for transition GIFs.

Four stages, each taking the previous stage's artifact as an explicit value:

- assemble_video(): numbered PNG stills -> lossless ``raw.mkv`` (stream copy)
- generate_palette(): ``raw.mkv`` -> ``palette.png``
- encode_animation(): ``raw.mkv`` + ``palette.png`` -> ``animation.gif``,
  exactly one GIF frame per index from the first still to the last
- publish_animation(): ``animation.gif`` -> ``<out_dir>/<variant>.gif``

run_pipeline() chains them. A failing stage raises StageError and the
remaining stages never run.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Sequence

from transgif.errors import StageError
from transgif.models import FrameArtifact, StageArtifact
from transgif.settings import RenderSettings

logger = logging.getLogger(__name__)

CONCAT_SCRIPT_NAME = "frames.ffconcat"
RAW_VIDEO_NAME = "raw.mkv"
PALETTE_NAME = "palette.png"
ANIMATION_NAME = "animation.gif"
OUTPUT_EXT = "gif"


def build_scale_filter(width: int, height: int) -> str:
    """Scale expression shared by the palette and encode stages."""
    return f"scale={width}:{height}:flags=lanczos"


def _run_ffmpeg(cmd: list[str], stage: str, output_path: Path) -> None:
    """Run one FFmpeg invocation and verify it produced *output_path*.

    Raises:
        StageError: On a missing binary, non-zero exit, or empty/missing output.
    """
    logger.debug("%s: %s", stage, " ".join(cmd))
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except FileNotFoundError as exc:
        raise StageError(stage, output_path, f"{cmd[0]} not found — is FFmpeg installed and in PATH?") from exc
    if result.returncode != 0:
        raise StageError(stage, output_path, (result.stderr or "")[-500:] or f"exit code {result.returncode}")
    if not output_path.exists() or output_path.stat().st_size == 0:
        raise StageError(stage, output_path, "FFmpeg exited 0 but produced no output file")


def write_concat_script(frames: Sequence[FrameArtifact], fps: int, script_path: Path) -> Path:
    """Write an ffconcat script that places each still at its own frame index.

    Each still lasts until the next written index, so gaps left by dropped
    frames stretch the previous still instead of shortening the timeline.
    The last still is listed twice because the concat demuxer ignores the
    duration of the final entry.

    Args:
        frames: Written stills, ordered by index.
        fps: Frame rate the indices were sampled at.
        script_path: Destination of the script.

    Returns:
        script_path on success.
    """
    ordered = sorted(frames, key=lambda f: f.index)
    lines = ["ffconcat version 1.0"]
    for current, following in zip(ordered, ordered[1:] + [None]):
        span = (following.index - current.index) if following is not None else 1
        # Escape single quotes in path (for ffmpeg concat list format)
        escaped = current.path.name.replace("'", "'\\''")
        lines.append(f"file '{escaped}'")
        lines.append(f"duration {span / fps:.6f}")
    if ordered:
        escaped = ordered[-1].path.name.replace("'", "'\\''")
        lines.append(f"file '{escaped}'")
    script_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return script_path


def assemble_video(
    frames: Sequence[FrameArtifact],
    fps: int,
    staging_dir: Path,
    ffmpeg: str = "ffmpeg",
) -> StageArtifact:
    """Stage 1: pack the stills into a lossless intermediate video.

    The stills are stream-copied into Matroska, so pixel data is never
    re-encoded here. The concat script lives next to the stills so its
    relative entries resolve.

    Raises:
        StageError: If there are no stills or FFmpeg fails.
    """
    output_path = staging_dir / RAW_VIDEO_NAME
    if not frames:
        raise StageError("assemble", output_path, "No frames to assemble")

    script_path = write_concat_script(frames, fps, frames[0].path.parent / CONCAT_SCRIPT_NAME)
    cmd = [
        ffmpeg, "-y",
        "-f", "concat",
        "-safe", "0",
        "-i", str(script_path),
        "-c:v", "copy",
        str(output_path),
    ]
    _run_ffmpeg(cmd, "assemble", output_path)
    return StageArtifact(stage="assemble", path=output_path, produced_by=None)


def generate_palette(
    video: StageArtifact,
    scale_filter: str,
    staging_dir: Path,
    ffmpeg: str = "ffmpeg",
) -> StageArtifact:
    """Stage 2: quantize the scaled intermediate video into a palette image."""
    output_path = staging_dir / PALETTE_NAME
    cmd = [
        ffmpeg, "-y",
        "-i", str(video.path),
        "-vf", f"{scale_filter},palettegen",
        str(output_path),
    ]
    _run_ffmpeg(cmd, "palette", output_path)
    return StageArtifact(stage="palette", path=output_path, produced_by=video.stage)


def expected_frame_count(frames: Sequence[FrameArtifact]) -> int:
    """Number of output frames spanned by *frames*, counting index gaps."""
    if not frames:
        return 0
    indices = [f.index for f in frames]
    return max(indices) + 1 - min(indices)


def encode_animation(
    video: StageArtifact,
    palette: StageArtifact,
    scale_filter: str,
    fps: int,
    frame_count: int,
    staging_dir: Path,
    ffmpeg: str = "ffmpeg",
) -> StageArtifact:
    """Stage 3: encode the looping GIF at *fps* using the stage-2 palette.

    *scale_filter* must be the same string given to generate_palette().
    The output is cut at *frame_count* frames, since the concat demuxer
    rounds still durations to its own time base and the repeated final
    still runs past the last index.
    """
    output_path = staging_dir / ANIMATION_NAME
    cmd = [
        ffmpeg, "-y",
        "-i", str(video.path),
        "-i", str(palette.path),
        "-lavfi", f"{scale_filter},fps={fps} [x]; [x][1:v] paletteuse",
        "-frames:v", str(frame_count),
        "-loop", "0",
        str(output_path),
    ]
    _run_ffmpeg(cmd, "encode", output_path)
    return StageArtifact(stage="encode", path=output_path, produced_by=palette.stage)


def make_output_path(out_dir: Path, variant_name: str) -> Path:
    """``<out_dir>/<variant>.gif``."""
    return out_dir / f"{variant_name}.{OUTPUT_EXT}"


def publish_animation(animation: StageArtifact, out_dir: Path, variant_name: str) -> StageArtifact:
    """Stage 4: move the finished GIF into the output directory."""
    output_path = make_output_path(out_dir, variant_name)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        shutil.move(str(animation.path), str(output_path))
    except OSError as exc:
        raise StageError("publish", output_path, str(exc)) from exc
    return StageArtifact(stage="publish", path=output_path, produced_by=animation.stage)


def run_pipeline(
    frames: Sequence[FrameArtifact],
    settings: RenderSettings,
    staging_dir: Path,
    out_dir: Path,
    variant_name: str,
) -> Path:
    """Run assemble -> palette -> encode -> publish for one variant.

    Args:
        frames: Materialized stills for the variant.
        settings: Render settings (fps, output size, ffmpeg binary).
        staging_dir: Per-variant scratch directory for intermediate artifacts.
        out_dir: Final output directory.
        variant_name: Used to name the published file.

    Returns:
        Path to the published GIF.

    Raises:
        StageError: From the first stage that fails; later stages are skipped.
    """
    scale_filter = build_scale_filter(settings.width, settings.height)

    logger.info("%s: assembling %d frames", variant_name, len(frames))
    video = assemble_video(frames, settings.fps, staging_dir, settings.ffmpeg)

    logger.info("%s: generating palette", variant_name)
    palette = generate_palette(video, scale_filter, staging_dir, settings.ffmpeg)

    logger.info("%s: encoding animation", variant_name)
    animation = encode_animation(
        video, palette, scale_filter, settings.fps, expected_frame_count(frames), staging_dir, settings.ffmpeg
    )

    published = publish_animation(animation, out_dir, variant_name)
    logger.info("%s: published %s", variant_name, published.path)
    return published.path
