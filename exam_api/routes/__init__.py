"""API route modules."""
from exam_api.routes import answers, attempts, content, grading, mock_tests

__all__ = ["answers", "attempts", "content", "grading", "mock_tests"]
