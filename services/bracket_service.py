"""
Bracket Service - single entry point for bracket operations.

Picks the generator for a tournament's format from a registry of
BracketGenerator strategies and delegates to it. Also owns the parts of the
bracket lifecycle that don't depend on the format: recording results,
third-place wiring, completion checks, final positions and display data.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from engine.exceptions import (
    BracketIncompleteError,
    InvalidMatchResult,
    NoGeneratorError,
)
from engine.positions import PositionCalculator
from engine.single_elimination import BracketGenerator
from models.match import Match, MatchStatus, MatchType
from models.schemas import (
    BracketData,
    BracketMatchView,
    BracketPlayer,
    BracketResult,
    BracketRound,
)
from models.tournament import (
    ELIGIBLE_STATUSES,
    ParticipantStatus,
    Tournament,
    TournamentFormat,
    TournamentParticipant,
    TournamentStatus,
)
from services.event_bus import EventBus

log = logging.getLogger(__name__)


DEFAULT_MINIMUM_PARTICIPANTS = 2

PENDING_STATUSES = (MatchStatus.SCHEDULED, MatchStatus.PENDING_CONFIRMATION)

PLAYABLE_STATUSES = (
    MatchStatus.SCHEDULED,
    MatchStatus.PENDING_CONFIRMATION,
    MatchStatus.DISPUTED,
)


class BracketService:
    """
    Facade over the bracket generators and the position calculator.

    Usage:
        service = BracketService(session, PositionCalculator(session))
        service.register_generator(single_elimination)
        result = service.generate(tournament)
        service.record_result(match, 5, 3)
        service.process_match_result(match)
    """

    def __init__(
        self,
        session: Session,
        position_calculator: PositionCalculator,
        event_bus: Optional[EventBus] = None,
    ):
        self.session = session
        self.position_calculator = position_calculator
        self.event_bus = event_bus
        self._generators: dict[TournamentFormat, BracketGenerator] = {}

    # ============ Registry ============

    def register_generator(self, generator: BracketGenerator) -> "BracketService":
        """Register a generator under each format it handles, replacing any earlier one."""
        for tournament_format in generator.formats:
            if tournament_format in self._generators:
                log.warning("Replacing bracket generator for format %s", tournament_format.value)
            self._generators[tournament_format] = generator
        return self

    def _find_generator(self, tournament: Tournament) -> Optional[BracketGenerator]:
        return self._generators.get(tournament.format)

    # ============ Generation ============

    def generate(self, tournament: Tournament) -> BracketResult:
        """
        Generate the bracket for a tournament.

        Raises:
            NoGeneratorError: No generator supports the tournament's format
            InvalidBracketInput: Not enough eligible participants
        """
        generator = self._find_generator(tournament)
        if generator is None:
            raise NoGeneratorError(
                f"No bracket generator found for tournament format: {tournament.format.value}"
            )

        log.info("Using generator %s for tournament %s", type(generator).__name__, tournament.id)

        result = generator.generate(tournament)

        if self.event_bus is not None:
            self.event_bus.bracket_generated.emit(tournament.id, result.to_dict())
            self.event_bus.byes_processed.emit(tournament.id, result.bye_matches_processed)

        return result

    def start_tournament(self, tournament: Tournament) -> BracketResult:
        """
        Generate the bracket and open the tournament for play.

        Marks the tournament ACTIVE and every eligible participant ACTIVE.
        """
        try:
            result = self.generate(tournament)
        except Exception as e:
            log.error("Failed to generate bracket for tournament %s: %s", tournament.id, e)
            if self.event_bus is not None:
                self.event_bus.bracket_error.emit(tournament.id, str(e))
            raise

        tournament.status = TournamentStatus.ACTIVE
        tournament.started_at = datetime.now(timezone.utc)
        for participant in tournament.eligible_participants:
            participant.status = ParticipantStatus.ACTIVE
        self.session.commit()

        log.info(
            "Tournament %s started: size=%d rounds=%d matches=%d byes=%d",
            tournament.id, result.bracket_size, result.total_rounds,
            result.matches_created, result.bye_matches_processed,
        )

        if self.event_bus is not None:
            self.event_bus.tournament_started.emit(tournament.id)

        return result

    def reprocess_byes(self, tournament: Tournament) -> int:
        """
        Re-run the post-generation BYE pass for a tournament.

        For recovering a generation that crashed after its bracket committed.
        A no-op on a bracket whose BYEs are already resolved.
        """
        generator = self._find_generator(tournament)
        if generator is None:
            raise NoGeneratorError(
                f"No bracket generator found for tournament format: {tournament.format.value}"
            )

        processed = generator.resume_bye_processing(tournament)
        log.info("Reprocessed BYEs for tournament %s: %d resolved", tournament.id, processed)

        if self.event_bus is not None and processed:
            self.event_bus.byes_processed.emit(tournament.id, processed)
        return processed

    def can_start_tournament(self, tournament: Tournament) -> bool:
        """Whether a generator exists and enough participants are eligible."""
        generator = self._find_generator(tournament)
        if generator is None:
            return False

        return self._eligible_count(tournament) >= generator.minimum_participants

    def get_minimum_participants(self, tournament: Tournament) -> int:
        generator = self._find_generator(tournament)
        if generator is None:
            return DEFAULT_MINIMUM_PARTICIPANTS
        return generator.minimum_participants

    def _eligible_count(self, tournament: Tournament) -> int:
        return self.session.scalar(
            select(func.count(TournamentParticipant.id))
            .where(TournamentParticipant.tournament_id == tournament.id)
            .where(TournamentParticipant.status.in_(ELIGIBLE_STATUSES))
        )

    # ============ Results & Progression ============

    def record_result(self, match: Match, player1_score: int, player2_score: int) -> Match:
        """
        Record a confirmed race-to-N result and update participant stats.

        Raises:
            InvalidMatchResult: Match isn't playable, lacks a player, or the score is invalid
        """
        if match.status not in PLAYABLE_STATUSES:
            raise InvalidMatchResult(
                f"Match {match.id} is {match.status.value} and can't take a result"
            )
        if match.player1_id is None or match.player2_id is None:
            raise InvalidMatchResult(f"Match {match.id} is still waiting for an opponent")

        race_to = match.tournament.race_to_for_match(match.is_final_round)
        if not match.is_valid_score(player1_score, player2_score, race_to):
            raise InvalidMatchResult(
                f"Invalid score {player1_score}-{player2_score} for a race to {race_to}"
            )

        match.player1_score = player1_score
        match.player2_score = player2_score
        match.status = MatchStatus.COMPLETED
        match.played_at = datetime.now(timezone.utc)
        match.determine_result()

        match.player1.record_match_result(
            player1_score, player2_score, match.winner_id == match.player1_id
        )
        match.player2.record_match_result(
            player2_score, player1_score, match.winner_id == match.player2_id
        )

        self.session.commit()
        log.info(
            "Recorded result for match %s: %d-%d, winner %s",
            match.id, player1_score, player2_score, match.winner_id,
        )
        return match

    def advance_winner(self, match: Match) -> Optional[Match]:
        """
        Delegate winner advancement to the tournament's generator.

        Returns:
            The next match the winner was placed in, or None if nobody moved
        """
        generator = self._find_generator(match.tournament)
        if generator is None:
            log.warning("No generator for tournament %s; match %s not advanced",
                        match.tournament_id, match.id)
            return None

        next_match = generator.advance_winner(match)

        if self.event_bus is not None and next_match is not None:
            self.event_bus.emit_advance(match.id, match.winner_id, next_match.id)
        return next_match

    def handle_semi_finals_completion(self, match: Match) -> Optional[Match]:
        """
        Send a semi-final loser into the first open slot of the third-place match.

        Returns:
            The third-place match if the loser was placed, else None
        """
        loser_id = match.resolved_loser_id
        if match.match_type != MatchType.SEMI_FINAL or not loser_id:
            return None

        third_place = self.session.scalars(
            select(Match)
            .where(Match.tournament_id == match.tournament_id)
            .where(Match.match_type == MatchType.THIRD_PLACE)
            .with_for_update()
        ).first()

        if third_place is None or third_place.has_player(loser_id):
            return None

        if third_place.player1_id is None:
            third_place.player1_id = loser_id
        elif third_place.player2_id is None:
            third_place.player2_id = loser_id
        else:
            log.warning(
                "Third-place match %s already full; loser %s of match %s not placed",
                third_place.id, loser_id, match.id,
            )
            return None

        self.session.flush()
        self._settle_third_place(third_place)
        self.session.commit()
        log.info("Placed semi-final loser %s in third-place match %s", loser_id, third_place.id)

        if self.event_bus is not None:
            self.event_bus.emit_third_place(match.id, loser_id, third_place.id)
        return third_place

    def _settle_third_place(self, third_place: Match) -> None:
        """
        Close a third-place match that can't get a second player.

        Once every semi-final is finished, a single player wins by walkover
        and an empty match is cancelled. A semi-final resolved as a BYE has
        no loser to send.
        """
        if third_place.status != MatchStatus.SCHEDULED:
            return

        semi_finals = self.session.scalars(
            select(Match)
            .where(Match.tournament_id == third_place.tournament_id)
            .where(Match.round_number == third_place.round_number - 1)
        ).all()
        if any(not semi.status.is_finished for semi in semi_finals):
            return

        if third_place.player1_id is not None and third_place.player2_id is not None:
            return

        if third_place.player1_id is None and third_place.player2_id is None:
            third_place.status = MatchStatus.CANCELLED
            log.info("Cancelled empty third-place match %s", third_place.id)
            return

        winner_id = third_place.player1_id or third_place.player2_id
        third_place.winner_id = winner_id
        third_place.player1_score = 0
        third_place.player2_score = 0
        third_place.status = MatchStatus.COMPLETED
        third_place.played_at = datetime.now(timezone.utc)
        log.info("Third-place match %s won by walkover: participant %s", third_place.id, winner_id)

    def _third_place_match(self, tournament: Tournament) -> Optional[Match]:
        return self.session.scalars(
            select(Match)
            .where(Match.tournament_id == tournament.id)
            .where(Match.match_type == MatchType.THIRD_PLACE)
        ).first()

    def process_match_result(self, match: Match) -> None:
        """Everything that follows a completed match: advancement and third-place wiring."""
        if match.status != MatchStatus.COMPLETED:
            log.warning("Match %s is not completed; nothing to process", match.id)
            return

        self.advance_winner(match)
        self.handle_semi_finals_completion(match)

    # ============ Completion ============

    def is_bracket_complete(self, tournament: Tournament) -> bool:
        """True once no non-BYE match is scheduled or awaiting confirmation."""
        return self._pending_match_count(tournament) == 0

    def _pending_match_count(self, tournament: Tournament) -> int:
        return self.session.scalar(
            select(func.count(Match.id))
            .where(Match.tournament_id == tournament.id)
            .where(Match.status.in_(PENDING_STATUSES))
            .where(Match.match_type != MatchType.BYE)
        )

    def calculate_final_positions(self, tournament: Tournament) -> int:
        """Assign final positions; returns how many were assigned."""
        assigned = self.position_calculator.calculate(tournament)
        self.session.commit()

        if self.event_bus is not None:
            self.event_bus.positions_calculated.emit(tournament.id, assigned)
        return assigned

    def complete_tournament(self, tournament: Tournament) -> int:
        """
        Close a tournament whose bracket has been played out.

        Raises:
            BracketIncompleteError: Matches are still pending
        """
        third_place = self._third_place_match(tournament)
        if third_place is not None:
            self._settle_third_place(third_place)
            self.session.flush()

        pending = self._pending_match_count(tournament)
        if pending:
            raise BracketIncompleteError(f"Cannot complete: {pending} matches still pending")

        assigned = self.calculate_final_positions(tournament)

        for participant in tournament.participants:
            if participant.final_position == 1:
                participant.status = ParticipantStatus.WINNER
            elif participant.status.can_play:
                participant.status = ParticipantStatus.ELIMINATED

        tournament.status = TournamentStatus.COMPLETED
        tournament.completed_at = datetime.now(timezone.utc)
        self.session.commit()

        log.info("Tournament %s completed with %d positions", tournament.id, assigned)

        if self.event_bus is not None:
            self.event_bus.tournament_completed.emit(tournament.id)
        return assigned

    # ============ Display ============

    def get_bracket_data(self, tournament: Tournament) -> BracketData:
        """Matches grouped by round for bracket rendering. Read-only."""
        matches = self.session.scalars(
            select(Match)
            .where(Match.tournament_id == tournament.id)
            .options(
                selectinload(Match.player1).selectinload(TournamentParticipant.player_profile),
                selectinload(Match.player2).selectinload(TournamentParticipant.player_profile),
            )
            .order_by(Match.round_number, Match.bracket_position, Match.id)
        ).all()

        rounds: dict[int, BracketRound] = {}
        for match in matches:
            if match.round_number not in rounds:
                rounds[match.round_number] = BracketRound(
                    round=match.round_number,
                    round_name=match.round_name,
                )
            rounds[match.round_number].matches.append(self._format_match(match))

        return BracketData(
            tournament_id=tournament.id,
            total_rounds=len(rounds),
            rounds=list(rounds.values()),
        )

    def _format_match(self, match: Match) -> BracketMatchView:
        return BracketMatchView(
            id=match.id,
            round_number=match.round_number,
            bracket_position=match.bracket_position,
            match_type=match.match_type.value,
            status=match.status.value,
            player1=self._format_player(match.player1, match.player1_score),
            player2=self._format_player(match.player2, match.player2_score),
            winner_id=match.winner_id,
            next_match_id=match.next_match_id,
            next_match_slot=match.next_match_slot,
        )

    @staticmethod
    def _format_player(
        participant: Optional[TournamentParticipant],
        score: Optional[int]
    ) -> Optional[BracketPlayer]:
        if participant is None:
            return None
        return BracketPlayer(
            id=participant.id,
            name=participant.display_name,
            seed=participant.seed,
            score=score or 0,
        )
