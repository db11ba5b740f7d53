"""Session journal exports."""

from .journal import SAVE_INTERVAL, SESSION_JOURNAL_KEY, SessionJournal
from .models import SESSION_MAX_AGE, PracticeMode, PracticeSessionRecord

__all__ = ["SAVE_INTERVAL", "SESSION_JOURNAL_KEY", "SESSION_MAX_AGE", "PracticeMode", "PracticeSessionRecord", "SessionJournal"]
