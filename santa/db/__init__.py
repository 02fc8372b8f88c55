from santa.db.models import (
    Assignment,
    AssignmentMetadata,
    Base,
    Participant,
    ParticipantExclusion,
    Party,
    PartyStatus,
    PreviousAssignment,
)
from santa.db.session import SessionLocal, get_session, init_engine

__all__ = [
    "Assignment",
    "AssignmentMetadata",
    "Base",
    "Participant",
    "ParticipantExclusion",
    "Party",
    "PartyStatus",
    "PreviousAssignment",
    "SessionLocal",
    "get_session",
    "init_engine",
]
