"""Application configuration and constants."""
import os
from pathlib import Path


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Read-only module content (tests, listening/reading/writing modules)
CONTENT_DIR = Path(os.environ.get("EXAM_CONTENT_DIR", Path.cwd() / "data" / "content"))

# Database
DB_DIR = Path(os.environ.get("DB_DIR", Path.cwd() / "data"))
DATABASE_URL = os.environ.get("DATABASE_URL")
if not DATABASE_URL:
    DB_DIR.mkdir(parents=True, exist_ok=True)
    DATABASE_URL = f"sqlite:///{DB_DIR / 'exam.db'}"

# Listings
DEFAULT_PAGE_SIZE = _parse_int_env("DEFAULT_PAGE_SIZE", 50)
MAX_PAGE_SIZE = _parse_int_env("MAX_PAGE_SIZE", 200)

# Header carrying the user id resolved by the upstream auth layer
USER_ID_HEADER = os.environ.get("USER_ID_HEADER", "X-User-Id")

# Module kinds served by the content endpoints, in mock exam order
MODULE_KINDS = ("listening", "reading", "writing")
