"""Path utilities for read-only exam content."""
from pathlib import Path

from exam_api.config import CONTENT_DIR


def exam_definition_path(test_id: str) -> Path:
    """Get path to a test definition JSON (module references)."""
    return CONTENT_DIR / "tests" / f"{test_id}.json"


def module_content_dir(kind: str) -> Path:
    """Get directory holding every module of one kind."""
    return CONTENT_DIR / kind


def module_content_path(kind: str, module_id: str) -> Path:
    """Get path to a listening/reading/writing module JSON."""
    return module_content_dir(kind) / f"{module_id}.json"
