"""
Player profile model for cue sports competitors.
"""

import enum

from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column

from config import BRACKET_SETTINGS
from models.base import Base


class RatingCategory(enum.Enum):
    """Skill bands derived from a player's rating."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    PRO = "pro"

    @classmethod
    def from_rating(cls, rating: int) -> "RatingCategory":
        """Determine the rating band for a rating."""
        if rating < 1200:
            return cls.BEGINNER
        elif rating < 1600:
            return cls.INTERMEDIATE
        elif rating < 2000:
            return cls.ADVANCED
        else:
            return cls.PRO


class PlayerProfile(Base):
    """
    A player's lifetime profile.

    One profile can enter many tournaments; each entry is a
    TournamentParticipant row.
    """
    __tablename__ = "player_profiles"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    display_name: Mapped[str] = mapped_column(String(200), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, default=1000)

    def __repr__(self) -> str:
        return f"<PlayerProfile(id={self.id}, name='{self.display_name}', rating={self.rating})>"

    @property
    def rating_category(self) -> RatingCategory:
        rating = self.rating if self.rating is not None else BRACKET_SETTINGS.default_rating
        return RatingCategory.from_rating(rating)
