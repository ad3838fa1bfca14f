"""
BYE Processing

A BYE is a round-1 match with exactly one player: the bracket was padded to
a power of two and this player has no opponent. The player wins
automatically and moves into their round-2 slot.

BYEs are only swept in one batch, over round 1, after the bracket has been
built. A round-2+ match holding one player is waiting for an opponent and is
left alone here; SingleEliminationGenerator.advance_winner is the only other
place allowed to resolve one.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from models.match import Match, MatchStatus, MatchType, SLOT_PLAYER1

log = logging.getLogger(__name__)


class ByeProcessor:
    """Resolves BYE matches and moves their winners forward."""

    def __init__(self, session: Session):
        self.session = session

    def is_bye_match(self, match: Match) -> bool:
        """Exactly one of the two slots is filled."""
        return (match.player1_id is not None) != (match.player2_id is not None)

    def process_all(self, matches: Iterable[Match]) -> int:
        """
        Resolve every pending BYE in a set of matches.

        Safe to run again: matches already completed are skipped.

        Returns:
            Number of BYEs resolved by this call
        """
        processed = 0
        checked = 0

        for match in matches:
            checked += 1
            if self.process_bye(match):
                processed += 1

        self.session.commit()

        log.info("BYE processing complete: %d of %d matches resolved", processed, checked)
        return processed

    def process_bye(self, match: Match) -> bool:
        """
        Complete a single BYE match and advance its player.

        Returns:
            True if the match was resolved, False if it was not a pending BYE
        """
        if not self.is_bye_match(match) or match.status != MatchStatus.SCHEDULED:
            return False

        winner_id = match.player1_id if match.player1_id is not None else match.player2_id

        log.debug(
            "Resolving BYE match %s (round %d, position %d): participant %s advances",
            match.id, match.round_number, match.bracket_position, winner_id,
        )

        # 0:0 score; display code shows "BYE" from the match type
        match.match_type = MatchType.BYE
        match.winner_id = winner_id
        match.status = MatchStatus.COMPLETED
        match.player1_score = 0
        match.player2_score = 0
        match.played_at = datetime.now(timezone.utc)

        self.advance_to_next_match(match, winner_id)
        return True

    def advance_to_next_match(self, match: Match, winner_id: int) -> Optional[Match]:
        """
        Write a winner into the next match's slot.

        Does not look at whether the next match has become a BYE.

        Returns:
            The updated next match, or None for the final or a missing row
        """
        if match.next_match_id is None:
            log.debug("Match %s has no next match", match.id)
            return None

        next_match = self.session.get(Match, match.next_match_id, with_for_update=True)
        if next_match is None:
            log.error(
                "Next match %s of match %s not found; winner %s not advanced",
                match.next_match_id, match.id, winner_id,
            )
            return None

        slot = match.next_match_slot
        if slot is None:
            log.warning(
                "Match %s links to match %s without a slot; placing winner %s as %s",
                match.id, next_match.id, winner_id, SLOT_PLAYER1,
            )
            slot = SLOT_PLAYER1
        next_match.assign_slot(slot, winner_id)
        self.session.flush()

        log.debug("Advanced participant %s to match %s as %s", winner_id, next_match.id, slot)
        return next_match
