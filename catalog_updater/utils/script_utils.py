# utils/script_utils.py
"""
Helpers for the updater's run controller: the one-shot output directory reset,
the final catalog write, and duration formatting for the closing log line.
"""
import os
import json
import logging
import shutil
from datetime import date, datetime
from typing import Any

logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    # YAML manifests turn unquoted dates into date objects
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dump_catalog_json(data: Any) -> str:
    """Renders the catalog exactly as it is written to disk."""
    return json.dumps(data, ensure_ascii=False, indent=2, default=_json_default)


def reset_output_dir(output_dir: str) -> None:
    """Removes the output directory with its contents and creates it empty again."""
    if os.path.isdir(output_dir):
        shutil.rmtree(output_dir)
        logger.debug(f"Output directory '{output_dir}' cleared.")
    os.makedirs(output_dir, exist_ok=True)


def write_json_file(data, filepath) -> bool:
    try:
        rendered = dump_catalog_json(data)
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(rendered)
        logger.info(f"Successfully wrote data to {filepath}")
        return True
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Error writing JSON to {filepath}: {e}", exc_info=True)
        return False


def format_duration(total_seconds: float) -> str:
    """Converts total seconds into a string of hours, minutes, and rounded seconds."""
    if total_seconds < 0:
        return "0 seconds"
    hours = int(total_seconds // 3600)
    minutes = int((total_seconds % 3600) // 60)
    seconds = int(round(total_seconds % 60))

    if seconds == 60:
        seconds = 0
        minutes += 1
        if minutes == 60:
            minutes = 0
            hours += 1

    parts = []
    if hours > 0: parts.append(f"{hours} hour{'s' if hours != 1 else ''}")
    if minutes > 0: parts.append(f"{minutes} minute{'s' if minutes != 1 else ''}")
    if seconds > 0 or not parts:
        parts.append(f"{seconds} second{'s' if seconds != 1 else ''}")
    return ", ".join(parts)
