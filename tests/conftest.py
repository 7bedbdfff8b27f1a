import os
import tempfile
from pathlib import Path

# Keep the default database and content dirs out of the working tree
_TMP_ROOT = tempfile.mkdtemp(prefix="exam-tests-")
os.environ.setdefault("DB_DIR", _TMP_ROOT)
os.environ.setdefault("EXAM_CONTENT_DIR", str(Path(_TMP_ROOT) / "content"))

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import exam_api.models.db  # noqa: F401  (registers tables)
from exam_api.app import app
from exam_api.database import Base, get_db
from exam_api.utils import paths, write_json_file
from exam_core.errors import TransientError
from exam_core.transport import ExamTransport

LEARNER = "learner-1"
OTHER_LEARNER = "learner-2"
GRADER = "grader-1"

EXAM_DEFINITION = {
    "id": "T1",
    "title": "Mock test 1",
    "listenings": [{"id": "L1"}],
    "readings": [{"id": "R1"}, {"id": "R9"}],
    "writings": [{"id": "W1"}],
}

READING_CONTENT = {
    "id": "R1",
    "parts": [
        {
            "id": "P1",
            "partLabel": "Part 1",
            "questions": [
                {"id": "q1", "questionNumber": 1, "correctAnswer": "TRUE"},
                {"id": "q2", "questionNumber": 2, "correctAnswer": "FALSE"},
                {
                    "id": "group-1",
                    "questionNumber": None,
                    "questions": [
                        {"id": "q3", "questionNumber": 3, "correctAnswer": "C"},
                        {"id": "q4", "questionNumber": 4, "correctAnswer": "A"},
                    ],
                },
            ],
        },
        {
            "id": "P2",
            "partLabel": "Part 2",
            "questions": [
                {"id": "q5", "questionNumber": 5, "correctAnswer": ["1990", "nineteen ninety"]},
                {"id": "instructions", "questionNumber": None},
            ],
        },
    ],
}

LISTENING_CONTENT = {
    "id": "L1",
    "parts": [
        {
            "id": "LP1",
            "questions": [
                {"id": "lq1", "questionNumber": 1, "correctAnswer": "library"},
                {"id": "lq2", "questionNumber": 2, "correctAnswer": "Tuesday"},
            ],
        }
    ],
}

WRITING_CONTENT = {
    "id": "W1",
    "tasks": [{"id": "task-1", "min_words": 150}, {"id": "task-2", "min_words": 250}],
}


@pytest.fixture
def content_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = tmp_path / "content"
    monkeypatch.setattr(paths, "CONTENT_DIR", root)
    write_json_file(root / "tests" / "T1.json", EXAM_DEFINITION)
    write_json_file(root / "reading" / "R1.json", READING_CONTENT)
    write_json_file(root / "listening" / "L1.json", LISTENING_CONTENT)
    write_json_file(root / "writing" / "W1.json", WRITING_CONTENT)
    return root


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def api(session_factory, content_dir):
    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(api) -> TestClient:
    return TestClient(api, headers={"X-User-Id": LEARNER})


@pytest_asyncio.fixture
async def http_client(api):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=api), base_url="http://testserver"
    ) as http:
        yield http


@pytest.fixture
def transport(http_client) -> ExamTransport:
    return ExamTransport(user_id=LEARNER, client=http_client)


@pytest.fixture
def grader_transport(http_client) -> ExamTransport:
    return ExamTransport(user_id=GRADER, client=http_client)


class FakeTransport:
    """Records calls; a method listed in ``failures`` raises instead."""

    def __init__(self):
        self.calls: list[tuple[str, object]] = []
        self.failures: dict[str, Exception] = {}
        self._next_id = 0

    def _record(self, name: str, payload: object = None) -> None:
        self.calls.append((name, payload))
        if name in self.failures:
            raise self.failures[name]

    def called(self, name: str) -> list[object]:
        return [payload for call, payload in self.calls if call == name]

    async def create_attempt(self, body):
        self._record("create_attempt", body)
        self._next_id += 1
        return {
            "id": f"attempt-{self._next_id}",
            "user_id": LEARNER,
            "status": "IN_PROGRESS",
            "started_at": "2026-01-01T10:00:00Z",
            "finished_at": None,
            **body,
        }

    async def _finish(self, name, attempt_id, status):
        self._record(name, attempt_id)
        return {
            "id": attempt_id,
            "user_id": LEARNER,
            "scope": "MODULE",
            "module_id": "R1",
            "status": status,
            "started_at": "2026-01-01T10:00:00Z",
            "finished_at": "2026-01-01T11:00:00Z",
        }

    async def submit_attempt(self, attempt_id):
        return await self._finish("submit_attempt", attempt_id, "SUBMITTED")

    async def abandon_attempt(self, attempt_id):
        return await self._finish("abandon_attempt", attempt_id, "ABANDONED")

    async def save_reading_answers(self, payload):
        self._record("save_reading_answers", payload)
        return {"status": "saved", "saved": len(payload["answers"])}

    async def save_listening_answers(self, payload):
        self._record("save_listening_answers", payload)
        return {"status": "saved", "saved": len(payload["answers"])}

    async def save_writing_answers(self, payload):
        self._record("save_writing_answers", payload)
        return {"status": "saved", "saved": len(payload["answers"])}

    async def update_mock_test(self, mock_test_id, data):
        self._record("update_mock_test", (mock_test_id, data))
        return {"id": mock_test_id, **data}

    async def resolve_mock_test(self, mock_test_id):
        self._record("resolve_mock_test", mock_test_id)
        return {"mock_test_id": mock_test_id, "test_id": "T1", "listening": "L1", "reading": "R1", "writing": "W1"}

    async def get_module_content(self, kind, module_id):
        self._record("get_module_content", (kind, module_id))
        return {"reading": READING_CONTENT, "listening": LISTENING_CONTENT, "writing": WRITING_CONTENT}[kind]


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def network_down() -> TransientError:
    return TransientError("POST /api/answers/reading failed: connection refused")
