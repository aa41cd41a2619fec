# hbq/utils/settings.py
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

SETTINGS_FILE_NAME = "hbq_settings.json"


# Top directory = folder that contains the `hbq/` package
def _top_dir() -> Path:
    # This file is hbq/utils/settings.py → parents[2] is the folder above hbq/
    return Path(__file__).resolve().parents[2]


APP_SETTINGS_FILE = _top_dir() / SETTINGS_FILE_NAME

DEFAULT_SETTINGS = {
    "libhb_path": "",                  # empty → platform default library name
    "verbosity": 1,

    # Scan defaults
    "preview_count": 10,
    "min_duration_seconds": 10,

    # Polling
    "scan_poll_interval_ms": 200,
    "encode_poll_interval_ms": 200,
}


def load_settings(path: Path | None = None) -> dict:
    p = path or APP_SETTINGS_FILE
    if p.exists():
        try:
            data = json.loads(p.read_text())
            return {**DEFAULT_SETTINGS, **data}
        except (OSError, ValueError, TypeError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", p, e)
    # First run or broken file → write defaults so the file exists in the top dir
    try:
        p.write_text(json.dumps(DEFAULT_SETTINGS, indent=2))
    except OSError:
        # As a last resort, write into CWD so you still get a file
        Path(SETTINGS_FILE_NAME).write_text(json.dumps(DEFAULT_SETTINGS, indent=2))
    return DEFAULT_SETTINGS.copy()


def save_settings(data: dict, path: Path | None = None) -> None:
    p = path or APP_SETTINGS_FILE
    try:
        p.write_text(json.dumps(data, indent=2))
    except OSError:
        # Last resort fallback to CWD
        Path(SETTINGS_FILE_NAME).write_text(json.dumps(data, indent=2))
