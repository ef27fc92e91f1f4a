from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path

from .paths import DOCUMENT_GLOB

logger = logging.getLogger(__name__)


def sweep_expired_documents(data_dir: Path, max_age_seconds: float, *, now: float | None = None) -> list[Path]:
    """
    Delete stored documents whose mtime is older than `max_age_seconds`.

    Returns the removed paths. Files that vanish or can't be removed are
    logged and skipped so one bad file doesn't stop the sweep.
    """
    ts = time.time() if now is None else now
    files = sorted(data_dir.glob(DOCUMENT_GLOB))
    removed: list[Path] = []
    for path in files:
        try:
            age = ts - path.stat().st_mtime
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning("CLEANUP: error stating %s: %r", path, e)
            continue
        if age <= max_age_seconds:
            continue
        try:
            path.unlink()
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning("CLEANUP: error removing old file %s: %r", path, e)
            continue
        logger.info("CLEANUP: removed old file %s", path)
        removed.append(path)
    logger.info("CLEANUP: completed, checked %d files", len(files))
    return removed


async def run_cleanup_loop(data_dir: Path, *, interval_seconds: float, max_age_seconds: float) -> None:
    """Run the sweep every `interval_seconds` until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await asyncio.to_thread(sweep_expired_documents, data_dir, max_age_seconds)
        except Exception:
            logger.exception("CLEANUP: sweep failed")
