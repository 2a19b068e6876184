"""
FastAPI dependency injection functions.
"""

from fastapi import Request

from app.core.session import StudySession


def get_session(request: Request) -> StudySession:
    """Dependency: the app's study session."""
    return request.app.state.session
