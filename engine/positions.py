"""
Final Position Calculator

Ranks every participant once the bracket is finished.

Positions 1-4 come straight from the Final and the third-place match.
Everyone else is ordered by:
  1. Round eliminated (later round = better position)
  2. Frame difference across the tournament (higher = better)
  3. Frames won (higher = better)
  4. Original seed (lower = better)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from config import BRACKET_SETTINGS
from models.match import Match, MatchStatus, MatchType
from models.tournament import Tournament, TournamentParticipant

log = logging.getLogger(__name__)


@dataclass
class ParticipantStats:
    """Tie-break figures for one participant, from completed non-BYE matches."""
    participant_id: int
    seed: int
    eliminated_round: Optional[int] = None
    frames_won: int = 0
    frames_lost: int = 0
    matches_played: int = 0

    @property
    def frame_difference(self) -> int:
        return self.frames_won - self.frames_lost

    @property
    def sort_key(self) -> tuple:
        # Never-eliminated participants outside the top four sort last
        return (
            -(self.eliminated_round or 0),
            -self.frame_difference,
            -self.frames_won,
            self.seed,
        )


def format_position(position: int) -> str:
    """English ordinal: 1st, 2nd, 3rd, 4th, 11th, 21st, 112th."""
    if position % 100 in (11, 12, 13):
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(position % 10, "th")
    return f"{position}{suffix}"


class PositionCalculator:
    """Assigns final_position to every participant of a finished tournament."""

    def __init__(self, session: Session):
        self.session = session

    def calculate(self, tournament: Tournament) -> int:
        """
        Calculate and store final positions.

        Returns:
            Number of positions assigned (0 if no match has been completed)
        """
        matches = self._completed_matches(tournament)
        if not matches:
            return 0

        participants = list(self.session.scalars(
            select(TournamentParticipant)
            .where(TournamentParticipant.tournament_id == tournament.id)
            .order_by(TournamentParticipant.id)
        ))
        by_id = {p.id: p for p in participants}

        final = self._find_final(matches)
        third_place = next((m for m in matches if m.match_type == MatchType.THIRD_PLACE), None)

        stats = self.build_participant_stats(participants, matches, final)

        placed: list[int] = []
        for decider in (final, third_place):
            if decider is None:
                continue
            for participant_id in (decider.winner_id, decider.resolved_loser_id):
                if participant_id is not None and participant_id not in placed:
                    placed.append(participant_id)

        remaining = sorted(
            (s for s in stats if s.participant_id not in placed),
            key=lambda s: s.sort_key,
        )

        position = 0
        for participant_id in placed + [s.participant_id for s in remaining]:
            participant = by_id.get(participant_id)
            if participant is None:
                continue
            position += 1
            participant.final_position = position

        self.session.flush()

        log.info(
            "Calculated final positions for tournament %s: %d participants, %d positions assigned",
            tournament.id, len(participants), position,
        )
        return position

    def build_participant_stats(
        self,
        participants: list[TournamentParticipant],
        matches: list[Match],
        final: Optional[Match] = None,
    ) -> list[ParticipantStats]:
        """
        Tie-break statistics for each participant.

        Args:
            participants: Everyone entered in the tournament
            matches: Completed matches in round order
            final: The completed Final, if any
        """
        real_matches = [m for m in matches if m.match_type != MatchType.BYE]
        stats = []

        for participant in participants:
            pid = participant.id
            entry = ParticipantStats(
                participant_id=pid,
                seed=participant.seed if participant.seed is not None
                else BRACKET_SETTINGS.unseeded_sort_value,
            )

            for match in real_matches:
                if not match.has_player(pid):
                    continue

                entry.matches_played += 1
                if match.player1_id == pid:
                    entry.frames_won += match.player1_score or 0
                    entry.frames_lost += match.player2_score or 0
                else:
                    entry.frames_won += match.player2_score or 0
                    entry.frames_lost += match.player1_score or 0

                lost = match.winner_id is not None and match.winner_id != pid
                if (lost and entry.eliminated_round is None
                        and match.match_type != MatchType.THIRD_PLACE):
                    entry.eliminated_round = match.round_number

            if final is not None and final.winner_id == pid:
                entry.eliminated_round = None

            stats.append(entry)

        return stats

    @staticmethod
    def _find_final(matches: list[Match]) -> Optional[Match]:
        """The completed Final; falls back to a last-round BYE when the Final was a walkover."""
        final = next((m for m in matches if m.match_type == MatchType.FINAL), None)
        if final is not None:
            return final

        last_round = max(m.round_number for m in matches)
        return next(
            (m for m in matches
             if m.round_number == last_round
             and m.match_type == MatchType.BYE
             and m.next_match_id is None),
            None,
        )

    def _completed_matches(self, tournament: Tournament) -> list[Match]:
        return list(self.session.scalars(
            select(Match)
            .where(Match.tournament_id == tournament.id)
            .where(Match.status == MatchStatus.COMPLETED)
            .order_by(Match.round_number, Match.bracket_position, Match.id)
        ))
