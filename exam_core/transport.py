"""HTTP client for the attempts/answers/mock-test/grading storage boundary."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from exam_core.config import EXAM_API_URL, REQUEST_TIMEOUT_SECONDS, USER_ID_HEADER
from exam_core.errors import AuthenticationError, InvalidStateError, TransientError, ValidationError

logger = logging.getLogger(__name__)


def _error_detail(response: httpx.Response) -> str:
    """Pull the FastAPI ``detail`` out of an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, list):
        return "; ".join(str(item.get("msg", item)) for item in detail if isinstance(item, dict)) or str(detail)
    return str(detail) if detail else response.reason_phrase


class ExamTransport:
    """
    Thin async wrapper around the storage boundary.

    Raises AuthenticationError for 401/403, ValidationError for 400/422,
    InvalidStateError for 404/409 and TransientError for network failures
    and any other status.
    """

    def __init__(
        self,
        base_url: str = EXAM_API_URL,
        user_id: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._headers = {USER_ID_HEADER: user_id} if user_id else {}

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "ExamTransport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        url: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method, url, json=json, params=params, headers=self._headers
            )
        except httpx.HTTPError as exc:
            raise TransientError(f"{method} {url} failed: {exc}") from exc

        if response.is_success:
            return response.json() if response.content else None

        detail = _error_detail(response)
        status = response.status_code
        logger.debug("%s %s -> %s %s", method, url, status, detail)
        if status in (401, 403):
            raise AuthenticationError(detail, status)
        if status in (400, 422):
            raise ValidationError(detail, status)
        if status in (404, 409):
            raise InvalidStateError(detail, status)
        raise TransientError(detail, status)

    # Attempts

    async def create_attempt(self, body: dict[str, str]) -> dict[str, Any]:
        return await self._request("POST", "/api/attempts", json=body)

    async def submit_attempt(self, attempt_id: str) -> dict[str, Any]:
        return await self._request("POST", f"/api/attempts/{attempt_id}/submit")

    async def abandon_attempt(self, attempt_id: str) -> dict[str, Any]:
        return await self._request("POST", f"/api/attempts/{attempt_id}/abandon")

    async def get_attempt(self, attempt_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/api/attempts/{attempt_id}")

    async def get_attempt_results(self, attempt_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/api/attempts/{attempt_id}/results")

    async def list_attempts(
        self, status: str | None = None, limit: int = 50, offset: int = 0
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        if status:
            params["status"] = status
        return await self._request("GET", "/api/attempts", params=params)

    # Answers

    async def save_reading_answers(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/api/answers/reading", json=payload)

    async def save_listening_answers(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/api/answers/listening", json=payload)

    async def save_writing_answers(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/api/answers/writing", json=payload)

    # Mock exams and content

    async def get_mock_test(self, mock_test_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/api/mock-tests/{mock_test_id}")

    async def update_mock_test(self, mock_test_id: str, data: dict[str, bool]) -> dict[str, Any]:
        return await self._request("PATCH", f"/api/mock-tests/{mock_test_id}", json=data)

    async def resolve_mock_test(self, mock_test_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/api/mock-tests/{mock_test_id}/modules")

    async def get_module_content(self, kind: str, module_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/api/content/{kind}/{module_id}")

    # Grading

    async def get_grading_queue(self, limit: int = 50, offset: int = 0) -> dict[str, Any]:
        return await self._request(
            "GET", "/api/grading/queue", params={"limit": limit, "offset": offset}
        )

    async def grade_writing(self, writing_answer_id: int | str, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request(
            "POST", f"/api/grading/writing-answers/{writing_answer_id}", json=data
        )
