"""Scoped acquisition of the headless Chromium shared by a run."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from playwright.sync_api import Browser, Error as PlaywrightError, sync_playwright

from transgif.errors import ResourceError

logger = logging.getLogger(__name__)

CHROMIUM_ARGS = ["--test-type", "--enable-blink-features=ViewTransition"]


@contextmanager
def open_browser(headless: bool = True) -> Iterator[Browser]:
    """Launch Chromium and guarantee it is closed when the block exits.

    Raises:
        ResourceError: If Chromium cannot be launched or closed. A browser
            that fails to close is not safe to keep using.
    """
    with sync_playwright() as playwright:
        try:
            browser = playwright.chromium.launch(headless=headless, args=CHROMIUM_ARGS)
        except PlaywrightError as exc:
            raise ResourceError(f"Could not launch Chromium: {exc}") from exc
        logger.debug("chromium %s launched", browser.version)
        try:
            yield browser
        finally:
            try:
                browser.close()
            except PlaywrightError as exc:
                raise ResourceError(f"Chromium did not close cleanly: {exc}") from exc
