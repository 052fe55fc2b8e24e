"""Run configuration: render settings, transition variants and their loader.

Settings are an explicit value handed to the orchestrator, the resampler and
the transcode pipeline. Nothing in the package reads them from module state.
"""

import re
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from transgif.errors import ConfigError

DEFAULT_TRANSITIONS: tuple[str, ...] = (
    "clockwise",
    "counterclockwise",
    "cover",
    "coverflow",
    "cube",
    "cylinder",
    "diamond",
    "drop",
    "explode",
    "fade",
    "fade-out",
    "fall",
    "flip",
    "glow",
    "implode",
    "in-out",
    "iris-in",
    "iris-out",
    "melt",
    "overlap",
    "pivot",
    "pull",
    "push",
    "reveal",
    "rotate",
    "slide",
    "star",
    "swap",
    "swipe",
    "swoosh",
    "wipe",
    "wiper",
    "zoom",
)

_VARIANT_NAME_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class RenderSettings(BaseModel):
    fps: int = Field(default=25, ge=1, le=1000, description="Output frame rate")
    width: int = Field(default=256, gt=0, description="Output GIF width in pixels")
    height: int = Field(default=144, gt=0, description="Output GIF height in pixels")
    duration_seconds: float = Field(default=0.5, gt=0.0, description="Transition duration")
    wait_seconds: float = Field(default=0.75, ge=0.0, description="Hold time after each transition")

    viewport_width: int = Field(default=1280, gt=0)
    viewport_height: int = Field(default=720, gt=0)
    warmup_margin_ms: int = Field(default=250, ge=0, description="Settle margin after warm-up navigation")
    drain_ms: int = Field(default=100, ge=0, description="Wait after stopScreencast for in-flight frames")

    ffmpeg: str = "ffmpeg"
    marp_command: list[str] = Field(
        default_factory=lambda: ["npx", "--yes", "@marp-team/marp-cli"],
        min_length=1,
    )

    # Waits are derived from the variant's own duration so that one settings
    # object can drive variants with different transition lengths.
    def warmup_wait_ms(self, duration_seconds: float) -> int:
        return int(duration_seconds * 1000) + self.warmup_margin_ms

    def preroll_ms(self) -> int:
        return int(self.wait_seconds * 500)

    def hold_ms(self, duration_seconds: float) -> int:
        return int((duration_seconds + self.wait_seconds) * 1000)

    def return_ms(self, duration_seconds: float) -> int:
        return int(duration_seconds * 1000 + self.wait_seconds * 500)


class TransitionVariant(BaseModel, frozen=True):
    """One named transition rendered and captured on its own."""

    name: str
    duration_seconds: float = Field(gt=0.0)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        normalized = str(v).strip().lower().replace(" ", "-")
        if not _VARIANT_NAME_RE.match(normalized):
            raise ValueError(f"Invalid transition name '{v}': use lowercase letters, digits and hyphens")
        return normalized

    @property
    def transition_spec(self) -> str:
        """Front-matter value, e.g. ``"fade 0.5s"``."""
        return f"{self.name} {self.duration_seconds:g}s"


def make_variants(names: list[str] | tuple[str, ...], settings: RenderSettings) -> list[TransitionVariant]:
    """Build variants for *names* using the settings' transition duration."""
    return [TransitionVariant(name=n, duration_seconds=settings.duration_seconds) for n in names]


def load_settings(path: Path) -> RenderSettings:
    """Load and validate a JSON settings file. Raises ConfigError on failure."""
    try:
        return RenderSettings.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        field_errors = "; ".join(
            f"{' -> '.join(str(x) for x in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(path, f"Schema validation failed: {field_errors}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(path, str(e)) from e
