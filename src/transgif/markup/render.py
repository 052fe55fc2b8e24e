"""Build the transition deck into a standalone HTML document with Marp CLI."""

import logging
import subprocess
from pathlib import Path

from transgif.errors import MarkupError
from transgif.markup.template import render_template
from transgif.settings import TransitionVariant

logger = logging.getLogger(__name__)

DECK_NAME = "transition.md"
DOCUMENT_NAME = "transition.html"


def build_document(variant: TransitionVariant, staging_dir: Path, marp_command: list[str]) -> Path:
    """Write the deck for *variant* and convert it to HTML.

    Bespoke's on-screen controller is disabled so it never shows up in the
    captured frames, and bespoke transitions are switched on.

    Returns:
        Path to the generated HTML document.

    Raises:
        MarkupError: If Marp CLI is missing, fails, or writes no HTML.
    """
    deck_path = staging_dir / DECK_NAME
    html_path = staging_dir / DOCUMENT_NAME
    deck_path.write_text(render_template(variant), encoding="utf-8")

    cmd = [
        *marp_command,
        str(deck_path),
        "-o", str(html_path),
        "--bespoke.osc=false",
        "--bespoke.transition=true",
    ]
    logger.debug("marp: %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except FileNotFoundError as exc:
        raise MarkupError(variant.name, f"{marp_command[0]} not found — is Node.js installed?") from exc
    if result.returncode != 0:
        raise MarkupError(variant.name, (result.stderr or "")[-500:] or f"exit code {result.returncode}")
    if not html_path.exists():
        raise MarkupError(variant.name, f"Marp CLI exited 0 but {html_path.name} was not written")
    return html_path
