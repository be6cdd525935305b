"""Session package: target orchestration and output layout."""

from wikiscraper.session.models import SearchSession, SessionConfig, SessionMode, SessionState
from wikiscraper.session.runner import SessionRunner, run_session
from wikiscraper.session.writer import sanitize_filename, write_session

__all__ = [
    "SearchSession",
    "SessionConfig",
    "SessionMode",
    "SessionState",
    "SessionRunner",
    "run_session",
    "sanitize_filename",
    "write_session",
]
