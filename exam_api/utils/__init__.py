"""Utility modules."""
from exam_api.utils.json_utils import (
    json_dump,
    read_json_file,
    write_json_file,
)
from exam_api.utils.paths import exam_definition_path, module_content_dir, module_content_path
from exam_api.utils.time_utils import utc_now
from exam_api.utils.validation import clamp_limit, validate_id, validate_module_kind

__all__ = [
    "json_dump",
    "read_json_file",
    "write_json_file",
    "module_content_dir",
    "module_content_path",
    "exam_definition_path",
    "utc_now",
    "clamp_limit",
    "validate_id",
    "validate_module_kind",
]
