"""
Tests for BYE Processing

Tests BYE detection, automatic completion, advancement into the
next match and re-run safety.
"""

import logging

from sqlalchemy import select

from engine.byes import ByeProcessor
from models.match import Match, MatchStatus, MatchType


def add_match(session, tournament, round_number, position, player1=None, player2=None,
              next_match=None, slot=None, match_type=MatchType.REGULAR):
    match = Match(
        tournament_id=tournament.id,
        round_number=round_number,
        round_name=f"Round {round_number}",
        bracket_position=position,
        match_type=match_type,
        status=MatchStatus.SCHEDULED,
        player1_id=player1,
        player2_id=player2,
        next_match_id=next_match.id if next_match is not None else None,
        next_match_slot=slot,
    )
    session.add(match)
    session.flush()
    return match


class TestByeDetection:
    """Tests for is_bye_match."""

    def test_one_player_is_a_bye(self, session):
        processor = ByeProcessor(session)

        assert processor.is_bye_match(Match(player1_id=1, player2_id=None))
        assert processor.is_bye_match(Match(player1_id=None, player2_id=2))

    def test_full_and_empty_matches_are_not_byes(self, session):
        processor = ByeProcessor(session)

        assert not processor.is_bye_match(Match(player1_id=1, player2_id=2))
        assert not processor.is_bye_match(Match(player1_id=None, player2_id=None))


class TestByeProcessing:
    """Tests for resolving BYEs and moving the player on."""

    def _bracket(self, session, make_tournament):
        """Two round-1 matches feeding one final; match 1 is a BYE."""
        tournament = make_tournament([1800, 1700, 1600])
        p1, p2, p3 = [p.id for p in tournament.participants]

        final = add_match(session, tournament, 2, 0, match_type=MatchType.FINAL)
        real = add_match(session, tournament, 1, 0, p1, p2, final, "player1")
        bye = add_match(session, tournament, 1, 1, p3, None, final, "player2")
        session.commit()

        self.processor = ByeProcessor(session)
        return tournament, final, real, bye

    def test_process_bye_completes_match(self, session, make_tournament):
        """Test a BYE is completed 0:0 with the lone player as winner."""
        tournament, final, real, bye = self._bracket(session, make_tournament)

        assert self.processor.process_bye(bye) is True

        assert bye.status == MatchStatus.COMPLETED
        assert bye.match_type == MatchType.BYE
        assert bye.winner_id == bye.player1_id
        assert (bye.player1_score, bye.player2_score) == (0, 0)
        assert bye.played_at is not None

    def test_process_bye_advances_into_slot(self, session, make_tournament):
        """Test the BYE winner lands in the slot the match feeds."""
        tournament, final, real, bye = self._bracket(session, make_tournament)

        self.processor.process_bye(bye)

        assert final.player2_id == bye.player1_id
        assert final.player1_id is None

    def test_advanced_bye_winner_is_not_cascaded(self, session, make_tournament):
        """Test the next match stays scheduled while its other feeder is unplayed."""
        tournament, final, real, bye = self._bracket(session, make_tournament)

        self.processor.process_bye(bye)

        assert final.status == MatchStatus.SCHEDULED
        assert final.match_type == MatchType.FINAL

    def test_real_match_is_not_a_bye(self, session, make_tournament):
        """Test a match with two players is left alone."""
        tournament, final, real, bye = self._bracket(session, make_tournament)

        assert self.processor.process_bye(real) is False
        assert real.status == MatchStatus.SCHEDULED

    def test_process_all_counts_and_is_rerunnable(self, session, make_tournament):
        """Test process_all resolves pending BYEs once and then returns 0."""
        tournament, final, real, bye = self._bracket(session, make_tournament)

        assert self.processor.process_all([real, bye]) == 1
        assert self.processor.process_all([real, bye]) == 0

        # Winner placed exactly once
        assert final.player2_id == bye.winner_id

    def test_process_all_commits(self, session, make_tournament):
        """Test resolved BYEs survive a rollback of later work."""
        tournament, final, real, bye = self._bracket(session, make_tournament)

        self.processor.process_all([bye])
        session.rollback()

        stored = session.scalars(select(Match).where(Match.id == bye.id)).one()
        assert stored.status == MatchStatus.COMPLETED


class TestAdvanceToNextMatch:
    """Tests for writing a winner into the next match."""

    def test_no_next_match(self, session, make_tournament):
        """Test the final has nowhere to advance to."""
        tournament = make_tournament([1500, 1400])
        p1, p2 = [p.id for p in tournament.participants]
        final = add_match(session, tournament, 1, 0, p1, p2, match_type=MatchType.FINAL)

        assert ByeProcessor(session).advance_to_next_match(final, p1) is None

    def test_missing_next_match(self, session, make_tournament):
        """Test a dangling next_match_id drops the advancement."""
        tournament = make_tournament([1500, 1400])
        p1, p2 = [p.id for p in tournament.participants]
        match = add_match(session, tournament, 1, 0, p1, p2)
        match.next_match_id = 9999
        match.next_match_slot = "player1"
        session.flush()

        result = ByeProcessor(session).advance_to_next_match(match, p1)

        assert result is None
        assert match.next_match_id == 9999

    def test_missing_slot_defaults_to_player1(self, session, make_tournament, caplog):
        """Test a link without a slot fills player1 and warns."""
        tournament = make_tournament([1500, 1400])
        p1, p2 = [p.id for p in tournament.participants]
        final = add_match(session, tournament, 2, 0, match_type=MatchType.FINAL)
        match = add_match(session, tournament, 1, 0, p1, p2, final, None)

        with caplog.at_level(logging.WARNING, logger="engine.byes"):
            ByeProcessor(session).advance_to_next_match(match, p2)

        assert final.player1_id == p2
        assert [r.levelno for r in caplog.records if r.name == "engine.byes"] == [logging.WARNING]
