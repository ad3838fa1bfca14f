"""
Bracket match model.

Every match in a bracket is one row. Rows are created as empty placeholders
when the bracket is generated, linked to the match their winner feeds
(next_match_id / next_match_slot), and then updated in place as players are
placed, BYEs are resolved and results come in.
"""

import enum
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, Integer, ForeignKey, DateTime, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base

if TYPE_CHECKING:
    from models.tournament import Tournament, TournamentParticipant


SLOT_PLAYER1 = "player1"
SLOT_PLAYER2 = "player2"


class MatchStatus(enum.Enum):
    """Match lifecycle states."""
    SCHEDULED = "scheduled"
    PENDING_CONFIRMATION = "pending_confirmation"
    COMPLETED = "completed"
    DISPUTED = "disputed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"

    @property
    def is_finished(self) -> bool:
        return self in (MatchStatus.COMPLETED, MatchStatus.EXPIRED, MatchStatus.CANCELLED)


class MatchType(enum.Enum):
    """Where a match sits in the bracket."""
    REGULAR = "regular"
    QUARTER_FINAL = "quarter_final"
    SEMI_FINAL = "semi_final"
    FINAL = "final"
    THIRD_PLACE = "third_place"
    BYE = "bye"


class Match(Base):
    """
    A single-elimination bracket match between two tournament participants.

    Player, winner and loser columns hold TournamentParticipant ids.
    The final and the third-place match have no next match.
    """
    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    tournament_id: Mapped[int] = mapped_column(
        ForeignKey("tournaments.id"),
        nullable=False
    )

    # Bracket placement
    round_number: Mapped[int] = mapped_column(Integer, nullable=False)
    round_name: Mapped[str] = mapped_column(String(50), nullable=False)
    bracket_position: Mapped[int] = mapped_column(Integer, nullable=False)  # 0-indexed within round
    match_type: Mapped[MatchType] = mapped_column(SAEnum(MatchType), default=MatchType.REGULAR)
    status: Mapped[MatchStatus] = mapped_column(
        SAEnum(MatchStatus),
        default=MatchStatus.SCHEDULED
    )

    # Participants
    player1_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("tournament_participants.id"),
        nullable=True
    )
    player2_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("tournament_participants.id"),
        nullable=True
    )

    # Scores (frames)
    player1_score: Mapped[int] = mapped_column(Integer, default=0)
    player2_score: Mapped[int] = mapped_column(Integer, default=0)

    # Result
    winner_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("tournament_participants.id"),
        nullable=True
    )
    loser_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("tournament_participants.id"),
        nullable=True
    )

    # Bracket progression
    next_match_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("matches.id", ondelete="SET NULL"),
        nullable=True
    )
    next_match_slot: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)  # "player1"/"player2"

    # Timing
    played_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    tournament: Mapped["Tournament"] = relationship(back_populates="matches")
    player1: Mapped[Optional["TournamentParticipant"]] = relationship(foreign_keys=[player1_id])
    player2: Mapped[Optional["TournamentParticipant"]] = relationship(foreign_keys=[player2_id])
    next_match: Mapped[Optional["Match"]] = relationship(remote_side=[id])

    def __repr__(self) -> str:
        return (
            f"<Match(id={self.id}, round={self.round_number}, "
            f"position={self.bracket_position}, status={self.status.value})>"
        )

    @property
    def resolved_loser_id(self) -> Optional[int]:
        """Stored loser, or the non-winning player when it can be derived."""
        if self.loser_id is not None:
            return self.loser_id
        if self.winner_id and self.player1_id and self.player2_id:
            return self.player2_id if self.winner_id == self.player1_id else self.player1_id
        return None

    @property
    def is_final_round(self) -> bool:
        """Matches played over the longer finals race."""
        return self.match_type in (MatchType.FINAL, MatchType.SEMI_FINAL, MatchType.THIRD_PLACE)

    def has_player(self, participant_id: int) -> bool:
        return participant_id in (self.player1_id, self.player2_id)

    def assign_slot(self, slot: str, participant_id: Optional[int]) -> None:
        """Place a participant in a "player1"/"player2" slot."""
        if slot == SLOT_PLAYER1:
            self.player1_id = participant_id
        else:
            self.player2_id = participant_id

    def is_valid_score(self, player1_score: int, player2_score: int, race_to: int) -> bool:
        """
        Check a race-to-N score: exactly one player reached race_to.

        Args:
            player1_score: Frames won by player 1
            player2_score: Frames won by player 2
            race_to: Frames needed to win this match
        """
        if player1_score < 0 or player2_score < 0:
            return False
        if player1_score == race_to:
            return player2_score < race_to
        if player2_score == race_to:
            return player1_score < race_to
        return False

    def determine_result(self) -> None:
        """Set winner and loser from the recorded scores."""
        if self.player1_score > self.player2_score:
            self.winner_id = self.player1_id
            self.loser_id = self.player2_id
        else:
            self.winner_id = self.player2_id
            self.loser_id = self.player1_id
