"""
CueBracket Database Models

SQLAlchemy ORM models for tournaments, participants and bracket matches.
"""

from models.base import Base, engine, SessionLocal, get_session, init_db
from models.player import PlayerProfile, RatingCategory
from models.tournament import (
    Tournament,
    TournamentParticipant,
    TournamentFormat,
    TournamentStatus,
    ParticipantStatus,
    ELIGIBLE_STATUSES,
)
from models.match import Match, MatchStatus, MatchType, SLOT_PLAYER1, SLOT_PLAYER2

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_session",
    "init_db",
    "PlayerProfile",
    "RatingCategory",
    "Tournament",
    "TournamentParticipant",
    "TournamentFormat",
    "TournamentStatus",
    "ParticipantStatus",
    "ELIGIBLE_STATUSES",
    "Match",
    "MatchStatus",
    "MatchType",
    "SLOT_PLAYER1",
    "SLOT_PLAYER2",
]
