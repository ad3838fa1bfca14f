"""
Participant Seeding

Ranks the eligible participants of a tournament and hands out seed numbers.
Seed 1 is the strongest player. The seed is written back onto the
participant row, so the seeder is the only writer of that column while a
bracket is being generated.
"""

import abc
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from config import BRACKET_SETTINGS
from models.tournament import Tournament, TournamentParticipant, ELIGIBLE_STATUSES

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeedAssignment:
    """A participant bound to a seed number and the rating it was ranked by."""
    participant: TournamentParticipant
    seed: int
    rating: int

    @property
    def participant_id(self) -> int:
        return self.participant.id

    @property
    def display_name(self) -> str:
        return self.participant.display_name

    @property
    def is_top_seed(self) -> bool:
        """Seeds 1 and 2."""
        return self.seed <= 2


class Seeder(abc.ABC):
    """Strategy for ordering a tournament's participants into seeds."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Short strategy name."""

    @abc.abstractmethod
    def seed(self, tournament: Tournament) -> list[SeedAssignment]:
        """
        Seed the tournament's eligible participants.

        Returns:
            Assignments in seed order (seed 1 first); empty if nobody is eligible
        """


class TraditionalSeeder(Seeder):
    """
    Seeds by rating, highest rated first.

    Equal ratings are ordered by registration time, then by participant id,
    so the seed order is a strict total order and repeatable.
    """

    def __init__(self, session: Session):
        self.session = session

    @property
    def name(self) -> str:
        return "traditional"

    def seed(self, tournament: Tournament) -> list[SeedAssignment]:
        participants = self._eligible_participants(tournament)

        if not participants:
            return []

        ordered = sorted(participants, key=self._sort_key)

        log.info(
            "Traditional seeding for tournament %s: %d participants",
            tournament.id, len(ordered),
        )

        return self._assign_seeds(ordered)

    def _eligible_participants(self, tournament: Tournament) -> list[TournamentParticipant]:
        """Registered/active participants, row-locked until the generation commits."""
        stmt = (
            select(TournamentParticipant)
            .where(TournamentParticipant.tournament_id == tournament.id)
            .where(TournamentParticipant.status.in_(ELIGIBLE_STATUSES))
            .options(joinedload(TournamentParticipant.player_profile))
            .order_by(TournamentParticipant.id)
            .with_for_update(of=TournamentParticipant)
        )
        return list(self.session.scalars(stmt).unique())

    @staticmethod
    def _rating(participant: TournamentParticipant) -> int:
        rating = participant.rating
        return BRACKET_SETTINGS.default_rating if rating is None else rating

    def _sort_key(self, participant: TournamentParticipant) -> tuple:
        # SQLite hands back naive datetimes; compare everything naive
        registered = (participant.registered_at or datetime.min).replace(tzinfo=None)
        return (-self._rating(participant), registered, participant.id)

    def _assign_seeds(self, ordered: list[TournamentParticipant]) -> list[SeedAssignment]:
        assignments = []
        for index, participant in enumerate(ordered):
            seed = index + 1
            rating = self._rating(participant)
            participant.seed = seed

            log.debug(
                "Seed %d: %s (rating %d, %s)",
                seed, participant.display_name, rating,
                participant.player_profile.rating_category.value,
            )

            assignments.append(SeedAssignment(participant=participant, seed=seed, rating=rating))

        self.session.flush()
        return assignments
