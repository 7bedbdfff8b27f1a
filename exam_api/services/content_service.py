"""Service layer for read-only exam content."""
from fastapi import HTTPException

from exam_api.utils import (
    exam_definition_path,
    module_content_path,
    read_json_file,
    validate_id,
    validate_module_kind,
)

# Key in a test definition listing the modules of each kind
_MODULE_LIST_KEYS = {
    "listening": "listenings",
    "reading": "readings",
    "writing": "writings",
}


def load_exam_definition(test_id: str) -> dict[str, object]:
    """Load a test definition (which modules it is made of)."""
    definition = read_json_file(exam_definition_path(validate_id("testId", test_id)), None)
    if definition is None:
        raise HTTPException(status_code=404, detail="Test not found")
    return definition


def load_module_content(kind: str, module_id: str) -> dict[str, object]:
    """Load the part/question tree of a listening, reading or writing module."""
    validate_module_kind(kind)
    content = read_json_file(module_content_path(kind, validate_id("moduleId", module_id)), None)
    if content is None:
        raise HTTPException(status_code=404, detail=f"No {kind} module found")
    return content

def module_refs(definition: dict[str, object]) -> dict[str, str | None]:
    """
    Get the content id of each module in a test definition.

    A test lists modules per kind; a mock exam uses the first of each.
    """
    refs: dict[str, str | None] = {}
    for kind, key in _MODULE_LIST_KEYS.items():
        modules = definition.get(key)
        first = modules[0] if isinstance(modules, list) and modules else None
        refs[kind] = first.get("id") if isinstance(first, dict) else None
    return refs


def strip_answer_key(node: object) -> object:
    """Copy of module content without ``correctAnswer`` entries, for learners."""
    if isinstance(node, dict):
        return {key: strip_answer_key(value) for key, value in node.items() if key != "correctAnswer"}
    if isinstance(node, list):
        return [strip_answer_key(item) for item in node]
    return node
