"""Validation utilities."""
from pathlib import Path

from fastapi import HTTPException

from exam_api.config import MAX_PAGE_SIZE, MODULE_KINDS


def validate_id(name: str, value: str | None) -> str:
    """Validate ID string (no path traversal)."""
    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{name} is required")
    cleaned = value.strip()
    if not cleaned:
        raise HTTPException(status_code=400, detail=f"{name} is required")
    if Path(cleaned).name != cleaned or "/" in cleaned or "\\" in cleaned:
        raise HTTPException(status_code=400, detail=f"Invalid {name}")
    return cleaned


def validate_module_kind(kind: str) -> str:
    """Validate a module kind (listening, reading, writing)."""
    if kind not in MODULE_KINDS:
        raise HTTPException(status_code=400, detail=f"Unknown module kind: {kind}")
    return kind


def clamp_limit(limit: int) -> int:
    """Clamp a page size to the configured bounds."""
    return max(1, min(limit, MAX_PAGE_SIZE))
