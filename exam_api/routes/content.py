"""Read-only module content endpoints."""
from fastapi import APIRouter

from exam_api.services.content_service import load_module_content, strip_answer_key

router = APIRouter(prefix="/api/content", tags=["content"])


@router.get("/{kind}/{module_id}")
def get_module_content(kind: str, module_id: str) -> dict[str, object]:
    """Get the part/question tree of a listening, reading or writing module, without the key."""
    return strip_answer_key(load_module_content(kind, module_id))
