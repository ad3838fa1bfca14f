"""
Single Elimination Bracket Generator

Builds a knockout bracket in the matches table and moves winners through it.

Generation:
1. Seed participants by rating (highest = seed 1)
2. Work out bracket size, rounds and BYEs
3. Create every match of every round as an empty placeholder
4. Link each match to the match its winner feeds
5. Place the seeds into round 1
6. Resolve round-1 BYEs
7. Add the third-place match

Steps 1-5 commit as one transaction: a failure leaves no bracket behind.
Steps 6 and 7 run after that commit and can be re-run safely, which leaves a
short window where the bracket exists with BYEs still pending
(see resume_bye_processing).
"""

import abc
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from config import BRACKET_SETTINGS, BracketSettings
from engine.byes import ByeProcessor
from engine.exceptions import InvalidBracketInput
from engine.seeding import SeedAssignment, Seeder
from engine.structure import BracketStructureBuilder, SeedingMode
from models.match import Match, MatchStatus, MatchType, SLOT_PLAYER1, SLOT_PLAYER2
from models.schemas import BracketResult, RoundInfo
from models.tournament import Tournament, TournamentFormat

log = logging.getLogger(__name__)


THIRD_PLACE_ROUND_NAME = "Third Place"


class BracketGenerator(abc.ABC):
    """Contract every bracket format implements for BracketService."""

    @property
    @abc.abstractmethod
    def formats(self) -> tuple[TournamentFormat, ...]:
        """Tournament formats this generator is registered under."""

    def supports(self, tournament: Tournament) -> bool:
        """Whether this generator handles the tournament's format."""
        return tournament.format in self.formats

    @abc.abstractmethod
    def generate(self, tournament: Tournament) -> BracketResult:
        """Build the tournament's bracket."""

    @abc.abstractmethod
    def advance_winner(self, completed_match: Match) -> Optional[Match]:
        """Move a completed match's winner on; returns the next match, or None if nobody moved."""

    @property
    @abc.abstractmethod
    def minimum_participants(self) -> int:
        """Smallest field the format accepts."""

    def resume_bye_processing(self, tournament: Tournament) -> int:
        """Finish BYE handling after an interrupted generation. Formats without BYEs do nothing."""
        return 0


class SingleEliminationGenerator(BracketGenerator):
    """
    Knockout bracket: one loss and you're out.

    Usage:
        generator = SingleEliminationGenerator(session, seeder, builder, bye_processor)
        result = generator.generate(tournament)
        ...
        generator.advance_winner(completed_match)
    """

    MIN_PARTICIPANTS = 2

    def __init__(
        self,
        session: Session,
        seeder: Seeder,
        structure_builder: BracketStructureBuilder,
        bye_processor: ByeProcessor,
        settings: BracketSettings = BRACKET_SETTINGS,
    ):
        self.session = session
        self.seeder = seeder
        self.structure_builder = structure_builder
        self.bye_processor = bye_processor
        self.settings = settings

        # "round:position" -> Match, for the generation in progress
        self._match_map: dict[str, Match] = {}

    @property
    def formats(self) -> tuple[TournamentFormat, ...]:
        return (TournamentFormat.KNOCKOUT,)

    @property
    def minimum_participants(self) -> int:
        return max(self.MIN_PARTICIPANTS, self.settings.min_participants)

    # ============ Generation ============

    def generate(self, tournament: Tournament) -> BracketResult:
        """
        Build the full bracket for a tournament.

        Raises:
            InvalidBracketInput: Fewer eligible participants than the minimum
        """
        self._match_map = {}
        self.structure_builder.seeding_mode = SeedingMode(
            tournament.seeding_mode or self.settings.default_seeding_mode
        )

        try:
            seeded = self.seeder.seed(tournament)
            participant_count = len(seeded)

            if participant_count < self.minimum_participants:
                raise InvalidBracketInput(
                    f"Tournament requires at least {self.minimum_participants} "
                    f"participants, got {participant_count}"
                )

            bracket_size = self.structure_builder.bracket_size(participant_count)
            total_rounds = self.structure_builder.total_rounds(bracket_size)
            bye_count = self.structure_builder.bye_count(bracket_size, participant_count)

            log.info(
                "Bracket generation start: tournament=%s participants=%d size=%d "
                "rounds=%d byes=%d expected_matches=%d mode=%s",
                tournament.id, participant_count, bracket_size, total_rounds, bye_count,
                self.structure_builder.expected_match_count(bracket_size),
                self.structure_builder.seeding_mode.value,
            )

            round_structure = self._create_all_rounds(tournament, bracket_size, total_rounds)
            log.debug("Created %d placeholder matches", len(self._match_map))

            self._link_matches(total_rounds)
            log.debug("Linked matches across %d rounds", total_rounds)

            self._populate_first_round(seeded, bracket_size)
            log.debug("Populated round 1")

            self.session.commit()
        except Exception:
            self.session.rollback()
            self._match_map = {}
            raise

        # Outside the transaction; process_all skips anything already resolved
        byes_processed = self.bye_processor.process_all(self._matches_for_round(1))

        third_place_created = False
        if total_rounds >= 2 and self.settings.third_place_match:
            self._match_map["3rd_place"] = self.create_third_place_match(tournament, total_rounds)
            third_place_created = True

        log.info(
            "Bracket generation complete: tournament=%s matches=%d byes=%d third_place=%s",
            tournament.id, len(self._match_map), byes_processed, third_place_created,
        )
        for key, match in self._match_map.items():
            log.debug(
                "Match %s: id=%s round=%s pos=%s p1=%s p2=%s status=%s type=%s winner=%s",
                key, match.id, match.round_number, match.bracket_position,
                match.player1_id, match.player2_id, match.status.value,
                match.match_type.value, match.winner_id,
            )

        return BracketResult(
            bracket_size=bracket_size,
            total_rounds=total_rounds,
            bye_count=bye_count,
            matches_created=len(self._match_map),
            bye_matches_processed=byes_processed,
            round_structure=round_structure,
        )

    def _expires_at(self, tournament: Tournament) -> datetime:
        start = tournament.starts_at or datetime.now(timezone.utc)
        return start + timedelta(days=self.settings.match_expiry_days)

    def _create_all_rounds(
        self,
        tournament: Tournament,
        bracket_size: int,
        total_rounds: int
    ) -> dict[int, RoundInfo]:
        """Create empty matches for every round, before anyone is placed."""
        round_structure: dict[int, RoundInfo] = {}
        matches_in_round = bracket_size // 2
        expires_at = self._expires_at(tournament)

        for round_number in range(1, total_rounds + 1):
            round_name = self.structure_builder.round_name(matches_in_round, round_number, total_rounds)
            match_type = self.structure_builder.match_type_for_round(round_number, total_rounds)
            round_structure[round_number] = RoundInfo(name=round_name, matches=matches_in_round)

            for position in range(matches_in_round):
                match = Match(
                    tournament_id=tournament.id,
                    round_number=round_number,
                    round_name=round_name,
                    bracket_position=position,
                    match_type=match_type,
                    status=MatchStatus.SCHEDULED,
                    player1_id=None,
                    player2_id=None,
                    player1_score=0,
                    player2_score=0,
                    expires_at=expires_at,
                )
                self.session.add(match)
                self._match_map[f"{round_number}:{position}"] = match

            log.debug("Created %d matches for round %d (%s)", matches_in_round, round_number, round_name)
            matches_in_round //= 2

        # Assign ids so the links below can refer to them
        self.session.flush()
        return round_structure

    def _link_matches(self, total_rounds: int) -> None:
        """Point every non-final match at the match its winner feeds."""
        for round_number in range(1, total_rounds):
            for match in self._matches_for_round(round_number):
                info = self.structure_builder.next_match_info(match.bracket_position)
                next_match = self._match_map.get(f"{round_number + 1}:{info.position}")
                if next_match is not None:
                    match.next_match_id = next_match.id
                    match.next_match_slot = info.slot

        self.session.flush()

    def _populate_first_round(self, seeded: Sequence[SeedAssignment], bracket_size: int) -> None:
        """Fill round 1 with tournament-participant ids; empty slots stay None."""
        positions = self.structure_builder.build_positions(seeded, bracket_size)

        for match in self._matches_for_round(1):
            first = positions[match.bracket_position * 2]
            second = positions[match.bracket_position * 2 + 1]

            match.player1_id = first.participant_id if first else None
            match.player2_id = second.participant_id if second else None

            if first or second:
                log.debug(
                    "Match %s: %s vs %s", match.id,
                    first.display_name if first else "BYE",
                    second.display_name if second else "BYE",
                )

        self.session.flush()

    def _matches_for_round(self, round_number: int) -> list[Match]:
        prefix = f"{round_number}:"
        return [m for key, m in self._match_map.items() if key.startswith(prefix)]

    def create_third_place_match(self, tournament: Tournament, total_rounds: int) -> Match:
        """
        Add the play-off between the semi-final losers.

        Shares the final's round number at bracket position 1 (the final is 0)
        and feeds nothing.
        """
        match = Match(
            tournament_id=tournament.id,
            round_number=total_rounds,
            round_name=THIRD_PLACE_ROUND_NAME,
            bracket_position=1,
            match_type=MatchType.THIRD_PLACE,
            status=MatchStatus.SCHEDULED,
            player1_id=None,
            player2_id=None,
            player1_score=0,
            player2_score=0,
            next_match_id=None,
            next_match_slot=None,
            expires_at=self._expires_at(tournament),
        )
        self.session.add(match)
        self.session.commit()

        log.debug("Created third-place match %s for tournament %s", match.id, tournament.id)
        return match

    def resume_bye_processing(self, tournament: Tournament) -> int:
        """
        Finish the post-commit steps of a generation that was interrupted.

        Resolves any round-1 BYE still pending and adds the third-place match
        if it's missing. Running it on a complete bracket changes nothing.

        Returns:
            Number of BYEs resolved
        """
        round_one = list(self.session.scalars(
            select(Match)
            .where(Match.tournament_id == tournament.id)
            .where(Match.round_number == 1)
            .where(Match.match_type != MatchType.THIRD_PLACE)
            .order_by(Match.bracket_position)
        ))
        if not round_one:
            return 0

        processed = self.bye_processor.process_all(round_one)

        total_rounds = self.session.scalar(
            select(func.max(Match.round_number)).where(Match.tournament_id == tournament.id)
        )
        has_third_place = self.session.scalar(
            select(func.count(Match.id))
            .where(Match.tournament_id == tournament.id)
            .where(Match.match_type == MatchType.THIRD_PLACE)
        )
        if total_rounds >= 2 and self.settings.third_place_match and not has_third_place:
            self.create_third_place_match(tournament, total_rounds)

        return processed

    # ============ Advancement ============

    def advance_winner(self, completed_match: Match) -> Optional[Match]:
        """
        Move a completed match's winner into their next match.

        If that leaves the next match with one player and nobody can still
        arrive in the empty slot, the next match is resolved as a BYE.
        A missing next match is logged and the advancement dropped.

        Returns:
            The next match the winner was placed in, or None if nobody moved
        """
        if not completed_match.winner_id:
            log.warning("Cannot advance: match %s has no winner", completed_match.id)
            return None

        if completed_match.next_match_id is None:
            log.info("Match %s is the final - no next match", completed_match.id)
            return None

        next_match = self.bye_processor.advance_to_next_match(
            completed_match, completed_match.winner_id
        )
        if next_match is None:
            return None

        log.info(
            "Advanced participant %s from match %s to match %s",
            completed_match.winner_id, completed_match.id, next_match.id,
        )

        if (self.bye_processor.is_bye_match(next_match)
                and next_match.status == MatchStatus.SCHEDULED
                and not self._awaiting_opponent(next_match)):
            self.bye_processor.process_bye(next_match)

        self.session.commit()
        return next_match

    def _awaiting_opponent(self, match: Match) -> bool:
        """
        Whether an upstream match can still fill the match's empty slot.

        A feeder that is unfinished, or finished with a winner not yet moved
        on, still counts. Only feeders that ended without a winner (expired,
        cancelled) leave the slot permanently empty.
        """
        empty_slot = SLOT_PLAYER2 if match.player1_id is not None else SLOT_PLAYER1
        feeders = self.session.scalars(
            select(Match)
            .where(Match.next_match_id == match.id)
            .where(Match.next_match_slot == empty_slot)
        ).all()

        return any(
            not feeder.status.is_finished or feeder.winner_id is not None
            for feeder in feeders
        )

