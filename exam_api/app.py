"""Main FastAPI application with modularized routes."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from exam_api.database import init_db
from exam_api.routes import answers, attempts, content, grading, mock_tests
from exam_core.logging_setup import setup_console_logging

setup_console_logging()

app = FastAPI(title="Mock Exam Attempts API")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Startup events
@app.on_event("startup")
def startup_events() -> None:
    """Initialize database on startup."""
    init_db()


@app.get("/api/health")
def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


# Include routers
app.include_router(attempts.router)
app.include_router(answers.router)
app.include_router(mock_tests.router)
app.include_router(content.router)
app.include_router(grading.router)
