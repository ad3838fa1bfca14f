"""
Bracket Structure Builder

The arithmetic of a single elimination bracket: bracket size, rounds,
BYEs, where each seed sits in round 1, and which slot of which match a
winner moves into. Nothing here touches the database.

Two seeding modes:
- FAIR (default): adjacent seeds meet in round 1 (1 vs 2, 3 vs 4). When the
  field isn't a power of two the top seeds take the BYEs.
- STANDARD: classic draw (1 vs 16, 2 vs 15) so the top two seeds can only
  meet in the final.
"""

import enum
from dataclasses import dataclass
from typing import Optional, Sequence

from engine.exceptions import InvalidBracketInput
from engine.seeding import SeedAssignment
from models.match import MatchType, SLOT_PLAYER1, SLOT_PLAYER2


class SeedingMode(enum.Enum):
    """How seeds are laid out across round 1."""
    FAIR = "fair"
    STANDARD = "standard"


@dataclass(frozen=True)
class NextMatchInfo:
    """Where a match's winner goes in the following round."""
    position: int
    slot: str  # "player1" or "player2"


# Seed -> 0-indexed bracket slot for the classic draw.
# Seeds 1 and 2 sit at opposite ends so they can only meet in the final.
STANDARD_SEED_POSITIONS: dict[int, dict[int, int]] = {
    2: {1: 0, 2: 1},
    4: {1: 0, 2: 3, 3: 2, 4: 1},
    8: {1: 0, 2: 7, 3: 4, 4: 3, 5: 2, 6: 5, 7: 6, 8: 1},
    16: {
        1: 0, 2: 15, 3: 8, 4: 7,
        5: 4, 6: 11, 7: 12, 8: 3,
        9: 2, 10: 13, 11: 10, 12: 5,
        13: 6, 14: 9, 15: 14, 16: 1,
    },
}


class BracketStructureBuilder:
    """
    Stateless bracket calculations.

    Usage:
        builder = BracketStructureBuilder(SeedingMode.STANDARD)
        size = builder.bracket_size(12)          # 16
        slots = builder.build_positions(seeds, size)
        info = builder.next_match_info(3)        # position 1, slot "player2"
    """

    def __init__(self, seeding_mode: SeedingMode = SeedingMode.FAIR):
        self.seeding_mode = SeedingMode(seeding_mode)

    # ============ Sizes ============

    def bracket_size(self, participant_count: int) -> int:
        """Smallest power of two that holds every participant."""
        if participant_count < 2:
            raise InvalidBracketInput(
                f"Need at least 2 participants, got {participant_count}"
            )

        size = 2
        while size < participant_count:
            size *= 2
        return size

    def total_rounds(self, bracket_size: int) -> int:
        """log2 of the bracket size."""
        if bracket_size < 2 or bracket_size & (bracket_size - 1):
            raise InvalidBracketInput(f"Bracket size must be a power of two >= 2, got {bracket_size}")
        return bracket_size.bit_length() - 1

    def bye_count(self, bracket_size: int, participant_count: int) -> int:
        return bracket_size - participant_count

    def expected_match_count(self, bracket_size: int) -> int:
        """Matches across all rounds, not counting a third-place match."""
        return bracket_size - 1

    # ============ Seed placement ============

    def seed_positions(self, bracket_size: int, mode: Optional[SeedingMode] = None) -> dict[int, int]:
        """
        Seed -> 0-indexed bracket slot.

        Args:
            bracket_size: Power-of-two bracket size
            mode: Overrides the builder's seeding mode
        """
        mode = SeedingMode(mode) if mode is not None else self.seeding_mode

        if mode == SeedingMode.FAIR:
            # 1->0, 2->1, 3->2: slots 0/1 form match 0, so seed 1 plays seed 2
            return {seed: seed - 1 for seed in range(1, bracket_size + 1)}

        if bracket_size in STANDARD_SEED_POSITIONS:
            return dict(STANDARD_SEED_POSITIONS[bracket_size])

        return self._generate_standard_positions(bracket_size)

    def _generate_standard_positions(self, bracket_size: int) -> dict[int, int]:
        """
        Classic draw for brackets beyond the lookup tables.

        Each doubling keeps seed s at 2p and puts its complement
        (next_size + 1 - s) right after it at 2p + 1, so every seed's first
        opponent is its mirror and seeds 1 and 2 stay in opposite halves.
        """
        positions = {1: 0, 2: 1}
        current_size = 2

        while current_size < bracket_size:
            next_size = current_size * 2
            doubled = {}
            for seed, position in positions.items():
                doubled[seed] = position * 2
                doubled[next_size + 1 - seed] = position * 2 + 1
            positions = doubled
            current_size = next_size

        return dict(sorted(positions.items()))

    def fair_bye_positions(self, bracket_size: int, bye_count: int) -> dict[int, int]:
        """
        Seed -> slot for fair mode when some round-1 matches are BYEs.

        BYE matches alternate between the top and bottom of the bracket
        (match 0, last match, match 1, second-to-last, ...). Seeds 1..bye_count
        each sit alone in one of them. Everyone else is paired in seed order
        across the remaining matches.

        Example, 6 players in a bracket of 8:
            match 0: seed 1 vs BYE
            match 1: seed 3 vs seed 4
            match 2: seed 5 vs seed 6
            match 3: seed 2 vs BYE
        """
        match_count = bracket_size // 2
        playing_seeds = bracket_size - bye_count
        positions: dict[int, int] = {}

        bye_match_indices = []
        for i in range(bye_count):
            if i % 2 == 0:
                bye_match_indices.append(i // 2)
            else:
                bye_match_indices.append(match_count - 1 - i // 2)

        for i, match_index in enumerate(bye_match_indices):
            positions[i + 1] = match_index * 2

        real_match_indices = [m for m in range(match_count) if m not in bye_match_indices]

        next_seed = bye_count + 1
        for match_index in real_match_indices:
            for slot in (match_index * 2, match_index * 2 + 1):
                if next_seed <= playing_seeds:
                    positions[next_seed] = slot
                    next_seed += 1

        return positions

    def build_positions(
        self,
        seeded: Sequence[SeedAssignment],
        bracket_size: int
    ) -> list[Optional[SeedAssignment]]:
        """
        Lay the seeded participants out across the round-1 slots.

        Returns:
            One entry per slot; None marks an empty slot (a BYE opponent)
        """
        positions: list[Optional[SeedAssignment]] = [None] * bracket_size
        bye_count = bracket_size - len(seeded)

        if self.seeding_mode == SeedingMode.FAIR and bye_count > 0:
            seed_map = self.fair_bye_positions(bracket_size, bye_count)
        else:
            seed_map = self.seed_positions(bracket_size)

        for assignment in seeded:
            position = seed_map.get(assignment.seed, assignment.seed - 1)
            if position < bracket_size:
                positions[position] = assignment

        return positions

    # ============ Progression ============

    def next_match_info(self, position: int) -> NextMatchInfo:
        """Position p feeds match p // 2; even positions fill player1."""
        return NextMatchInfo(
            position=position // 2,
            slot=SLOT_PLAYER1 if position % 2 == 0 else SLOT_PLAYER2,
        )

    def round_name(self, matches_in_round: int, round_number: int, total_rounds: int) -> str:
        rounds_from_final = total_rounds - round_number
        if rounds_from_final == 0:
            return "Final"
        elif rounds_from_final == 1:
            return "Semi-Finals"
        elif rounds_from_final == 2:
            return "Quarter-Finals"
        return f"Round of {matches_in_round * 2}"

    def match_type_for_round(self, round_number: int, total_rounds: int) -> MatchType:
        rounds_from_final = total_rounds - round_number
        if rounds_from_final == 0:
            return MatchType.FINAL
        elif rounds_from_final == 1:
            return MatchType.SEMI_FINAL
        elif rounds_from_final == 2:
            return MatchType.QUARTER_FINAL
        return MatchType.REGULAR
