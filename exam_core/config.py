"""Client configuration and constants."""
import os


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Storage boundary
EXAM_API_URL = os.environ.get("EXAM_API_URL", "http://127.0.0.1:8000")
USER_ID_HEADER = os.environ.get("USER_ID_HEADER", "X-User-Id")
REQUEST_TIMEOUT_SECONDS = _parse_int_env("REQUEST_TIMEOUT_SECONDS", 15)

# Autosave
AUTOSAVE_INTERVAL_SECONDS = _parse_int_env("AUTOSAVE_INTERVAL_SECONDS", 30)
