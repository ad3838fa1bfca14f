"""
Tournament and participant models for bracket management and persistence.

A tournament owns its participants (one row per entered player) and its
bracket matches. Participant rows carry the seed, running stats and the
final position written when the tournament closes.
"""

import enum
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, Integer, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from config import BRACKET_SETTINGS
from models.base import Base
from models.player import PlayerProfile

if TYPE_CHECKING:
    from models.match import Match


class TournamentFormat(enum.Enum):
    """Bracket formats a tournament can be played in."""
    KNOCKOUT = "knockout"


class TournamentStatus(enum.Enum):
    """Tournament lifecycle states."""
    REGISTRATION = "registration"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ParticipantStatus(enum.Enum):
    """A participant's standing within one tournament."""
    REGISTERED = "registered"
    ACTIVE = "active"
    ELIMINATED = "eliminated"
    DISQUALIFIED = "disqualified"
    WINNER = "winner"

    @property
    def can_play(self) -> bool:
        """Registered and active participants are eligible for the bracket."""
        return self in (ParticipantStatus.REGISTERED, ParticipantStatus.ACTIVE)


ELIGIBLE_STATUSES = (ParticipantStatus.REGISTERED, ParticipantStatus.ACTIVE)


class Tournament(Base):
    """
    A knockout tournament.

    The bracket itself lives in the matches table; the tournament row only
    holds configuration (format, seeding mode, race-to) and lifecycle state.
    """
    __tablename__ = "tournaments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # Tournament configuration
    format: Mapped[TournamentFormat] = mapped_column(
        SAEnum(TournamentFormat),
        default=TournamentFormat.KNOCKOUT
    )
    seeding_mode: Mapped[str] = mapped_column(String(20), default="fair")
    race_to: Mapped[int] = mapped_column(Integer, default=5)
    finals_race_to: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Status
    status: Mapped[TournamentStatus] = mapped_column(
        SAEnum(TournamentStatus),
        default=TournamentStatus.REGISTRATION
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc)
    )
    starts_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Relationships
    participants: Mapped[list["TournamentParticipant"]] = relationship(
        back_populates="tournament",
        cascade="all, delete-orphan",
        order_by="TournamentParticipant.id",
    )
    matches: Mapped[list["Match"]] = relationship(
        back_populates="tournament",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Tournament(id={self.id}, name='{self.name}', status={self.status.value})>"

    @property
    def eligible_participants(self) -> list["TournamentParticipant"]:
        """Participants who can still be placed in a bracket."""
        return [p for p in self.participants if p.status.can_play]

    def race_to_for_match(self, is_final_round: bool) -> int:
        """Frames needed to win; finals may use a longer race."""
        if is_final_round and self.finals_race_to:
            return self.finals_race_to
        return self.race_to or BRACKET_SETTINGS.default_race_to


class TournamentParticipant(Base):
    """
    One player's entry in one tournament.

    Match slots (player1_id, player2_id, winner_id, loser_id) reference this
    table, not the player profile.
    """
    __tablename__ = "tournament_participants"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    tournament_id: Mapped[int] = mapped_column(
        ForeignKey("tournaments.id"),
        nullable=False
    )
    player_profile_id: Mapped[int] = mapped_column(
        ForeignKey("player_profiles.id"),
        nullable=False
    )

    # Seeding and result
    seed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    status: Mapped[ParticipantStatus] = mapped_column(
        SAEnum(ParticipantStatus),
        default=ParticipantStatus.REGISTERED
    )
    final_position: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Tournament stats (accumulated as matches complete)
    matches_played: Mapped[int] = mapped_column(Integer, default=0)
    matches_won: Mapped[int] = mapped_column(Integer, default=0)
    matches_lost: Mapped[int] = mapped_column(Integer, default=0)
    frames_won: Mapped[int] = mapped_column(Integer, default=0)
    frames_lost: Mapped[int] = mapped_column(Integer, default=0)
    frame_difference: Mapped[int] = mapped_column(Integer, default=0)

    # Timestamps
    registered_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc)
    )
    eliminated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Relationships
    tournament: Mapped["Tournament"] = relationship(back_populates="participants")
    player_profile: Mapped["PlayerProfile"] = relationship()

    def __repr__(self) -> str:
        return f"<TournamentParticipant(id={self.id}, seed={self.seed}, status={self.status.value})>"

    @property
    def display_name(self) -> str:
        if self.player_profile is None:
            return "Unknown"
        return self.player_profile.display_name

    @property
    def rating(self) -> Optional[int]:
        if self.player_profile is None:
            return None
        return self.player_profile.rating

    def record_match_result(self, frames_for: int, frames_against: int, won: bool) -> None:
        """
        Add one completed match to the running tournament stats.

        Args:
            frames_for: Frames this participant won
            frames_against: Frames the opponent won
            won: Whether this participant won the match
        """
        self.matches_played = (self.matches_played or 0) + 1
        if won:
            self.matches_won = (self.matches_won or 0) + 1
        else:
            self.matches_lost = (self.matches_lost or 0) + 1
        self.frames_won = (self.frames_won or 0) + frames_for
        self.frames_lost = (self.frames_lost or 0) + frames_against
        self.frame_difference = self.frames_won - self.frames_lost
