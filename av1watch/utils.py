"""Shared utility functions for av1watch."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterator
from datetime import datetime
from datetime import timezone
from pathlib import Path
from typing import Any

from av1watch.constants import MAX_JOB_FILE_SIZE

logger = logging.getLogger(__name__)

# Fractional seconds longer than Python's microsecond precision
_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


def truncate_string(text: str, max_len: int) -> str:
    """Shorten text to at most ``max_len`` characters, ending in "..." when cut."""
    if len(text) <= max_len:
        return text
    if max_len <= 3:
        return text[:max_len]
    return text[: max_len - 3] + "..."


def parse_timestamp(value: Any) -> float | None:
    """
    Convert a timestamp from a job file to a Unix timestamp.

    Accepts epoch seconds (int or float) or an RFC 3339 string such as
    "2024-05-01T12:00:00.123456789Z". Naive strings are taken as UTC.

    Args:
        value: The raw value.

    Returns:
        Unix timestamp, or None if the value is missing or unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None
    text = _EXCESS_FRACTION.sub(r"\1", value.strip())
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def iterate_job_files(job_state_dir: Path) -> Iterator[tuple[Path, dict[str, Any]]]:
    """
    Iterate the daemon's job files in file-name order.

    Files that are oversized, unreadable, not valid JSON, or not a JSON object
    are skipped with debug logging. A file deleted between listing and
    reading is treated the same way.

    Args:
        job_state_dir: Directory holding one ``*.json`` file per job.

    Yields:
        Tuples of (file_path, parsed_json_object).
    """
    for job_file in sorted(job_state_dir.glob("*.json")):
        try:
            file_size = job_file.stat().st_size
            if file_size > MAX_JOB_FILE_SIZE:
                logger.debug(
                    "Skipping oversized job file %s: %d bytes (max %d)",
                    job_file,
                    file_size,
                    MAX_JOB_FILE_SIZE,
                )
                continue
            data = json.loads(job_file.read_text())
        except json.JSONDecodeError as e:
            logger.debug("Malformed JSON in job file %s: %s", job_file, e)
            continue
        except OSError as e:
            logger.debug("Error reading job file %s: %s", job_file, e)
            continue

        if not isinstance(data, dict):
            logger.debug("Job file %s does not contain an object", job_file)
            continue
        yield job_file, data
