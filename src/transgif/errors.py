from pathlib import Path


class TransGifError(Exception):
    """Base class for all transgif errors."""


class SessionError(TransGifError):
    def __init__(self, variant: str, detail: str) -> None:
        super().__init__(
            f"Capture session failed for transition '{variant}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: Did the deck load in Chromium? Does the transition name exist in the renderer?\n"
            f"  Tip: Run with --verbose to see each navigation step."
        )
        self.variant = variant
        self.detail = detail


class MarkupError(SessionError):
    def __init__(self, variant: str, detail: str) -> None:
        super().__init__(variant, f"Could not build the slide deck: {detail}")


class ResampleError(TransGifError):
    def __init__(self, variant: str, detail: str) -> None:
        super().__init__(
            f"No usable frames for transition '{variant}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is the capture window long enough for the configured frame rate?"
        )
        self.variant = variant
        self.detail = detail


class FrameWriteError(TransGifError):
    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(
            f"Failed to write frame '{path.name}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is there free space in the temp directory? Was the screencast payload valid PNG data?"
        )
        self.path = path
        self.detail = detail


class StageError(TransGifError):
    def __init__(self, stage: str, output_path: Path, detail: str) -> None:
        super().__init__(
            f"Transcode stage '{stage}' failed for '{output_path.name}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is FFmpeg installed and in PATH?\n"
            f"  Tip: Run the FFmpeg command manually with the same arguments to see full output."
        )
        self.stage = stage
        self.output_path = output_path
        self.detail = detail


class ResourceError(TransGifError):
    def __init__(self, detail: str) -> None:
        super().__init__(
            f"Shared browser resource could not be released.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is a stale Chromium process still running? The run was stopped to avoid reusing it."
        )
        self.detail = detail


class ConfigError(TransGifError):
    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(
            f"Cannot load settings '{path.name}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is the file valid JSON matching the RenderSettings fields?"
        )
        self.path = path
        self.detail = detail


# Errors that end one variant but leave the rest of the run intact.
VARIANT_ERRORS = (SessionError, ResampleError, FrameWriteError, StageError)
