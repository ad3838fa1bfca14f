"""
Tests for Bracket Structure Builder

Tests bracket sizing, seed placement in both seeding modes,
winner progression and round naming.
"""

import pytest

from engine.exceptions import InvalidBracketInput
from engine.seeding import SeedAssignment
from engine.structure import (
    BracketStructureBuilder,
    NextMatchInfo,
    SeedingMode,
    STANDARD_SEED_POSITIONS,
)
from models.match import MatchType


def seeds(count):
    """Seed assignments 1..count without participants attached."""
    return [SeedAssignment(participant=None, seed=s, rating=1000) for s in range(1, count + 1)]


def slot_seeds(positions):
    return [a.seed if a is not None else None for a in positions]


class TestBracketSizing:
    """Tests for bracket size, rounds and BYE arithmetic."""

    def setup_method(self):
        self.builder = BracketStructureBuilder()

    @pytest.mark.parametrize("count,expected", [
        (2, 2), (3, 4), (4, 4), (5, 8), (6, 8), (12, 16), (16, 16), (17, 32),
    ])
    def test_bracket_size_is_next_power_of_two(self, count, expected):
        """Test that the bracket holds every participant in the smallest power of two."""
        assert self.builder.bracket_size(count) == expected

    @pytest.mark.parametrize("count", [0, 1])
    def test_bracket_size_rejects_fewer_than_two(self, count):
        """Test that a bracket needs at least two participants."""
        with pytest.raises(InvalidBracketInput):
            self.builder.bracket_size(count)

    def test_total_rounds(self):
        """Test rounds are log2 of the bracket size."""
        assert self.builder.total_rounds(2) == 1
        assert self.builder.total_rounds(8) == 3
        assert self.builder.total_rounds(32) == 5

    def test_total_rounds_rejects_non_power_of_two(self):
        """Test that only power-of-two sizes have a round count."""
        with pytest.raises(InvalidBracketInput):
            self.builder.total_rounds(6)

    def test_bye_and_match_counts(self):
        """Test BYEs fill the bracket and a bracket of N has N-1 matches."""
        assert self.builder.bye_count(8, 6) == 2
        assert self.builder.bye_count(16, 16) == 0
        assert self.builder.expected_match_count(8) == 7
        assert self.builder.expected_match_count(2) == 1


class TestFairSeeding:
    """Tests for fair mode: adjacent seeds meet in round 1."""

    def setup_method(self):
        self.builder = BracketStructureBuilder(SeedingMode.FAIR)

    def test_fair_positions_are_sequential(self):
        """Test seed s sits in slot s-1 so 1 plays 2 and 3 plays 4."""
        assert self.builder.seed_positions(4) == {1: 0, 2: 1, 3: 2, 4: 3}

    def test_full_bracket_pairs_adjacent_seeds(self):
        """Test an 8-player fair bracket pairs 1v2, 3v4, 5v6, 7v8."""
        positions = self.builder.build_positions(seeds(8), 8)

        assert slot_seeds(positions) == [1, 2, 3, 4, 5, 6, 7, 8]

    def test_six_players_top_seeds_take_byes(self):
        """Test 6 players: seed 1 on top, seed 2 at the bottom, the rest paired in order."""
        assert self.builder.fair_bye_positions(8, 2) == {1: 0, 2: 6, 3: 2, 4: 3, 5: 4, 6: 5}

        positions = self.builder.build_positions(seeds(6), 8)

        assert slot_seeds(positions) == [1, None, 3, 4, 5, 6, 2, None]

    def test_bye_matches_alternate_top_and_bottom(self):
        """Test 5 players: BYE matches go to match 0, match 3, then match 1."""
        positions = self.builder.fair_bye_positions(8, 3)

        assert positions == {1: 0, 2: 6, 3: 2, 4: 4, 5: 5}

    def test_every_bye_match_has_exactly_one_player(self):
        """Test no round-1 match is left empty on both sides."""
        for count in range(2, 33):
            size = self.builder.bracket_size(count)
            positions = self.builder.build_positions(seeds(count), size)

            filled = [p for p in positions if p is not None]
            assert len(filled) == count
            for match in range(size // 2):
                assert positions[2 * match] is not None or positions[2 * match + 1] is not None


class TestStandardSeeding:
    """Tests for standard mode: the classic 1 vs N draw."""

    def setup_method(self):
        self.builder = BracketStructureBuilder(SeedingMode.STANDARD)

    def test_eight_player_draw(self):
        """Test the 8-player draw is 1v8, 5v4, 3v6, 7v2."""
        positions = self.builder.build_positions(seeds(8), 8)

        assert slot_seeds(positions) == [1, 8, 5, 4, 3, 6, 7, 2]

    def test_table_sizes_pair_seed_with_mirror(self):
        """Test every first-round pairing in the lookup tables adds up to size + 1."""
        for size, table in STANDARD_SEED_POSITIONS.items():
            by_slot = {slot: seed for seed, slot in table.items()}
            for match in range(size // 2):
                assert by_slot[2 * match] + by_slot[2 * match + 1] == size + 1

    def test_generated_draw_for_32(self):
        """Test a 32 bracket beyond the tables keeps mirror pairings and splits seeds 1 and 2."""
        positions = self.builder.seed_positions(32)

        assert sorted(positions.values()) == list(range(32))
        assert positions[1] == 0

        by_slot = {slot: seed for seed, slot in positions.items()}
        for match in range(16):
            assert by_slot[2 * match] + by_slot[2 * match + 1] == 33

        # Opposite halves
        assert positions[1] < 16 <= positions[2]

    def test_twelve_players_top_four_get_byes(self):
        """Test 12 players in a 16 bracket: seeds 1-4 face an empty slot."""
        positions = self.builder.build_positions(seeds(12), 16)

        by_seed = {a.seed: i for i, a in enumerate(positions) if a is not None}
        for seed in (1, 2, 3, 4):
            slot = by_seed[seed]
            opponent = slot + 1 if slot % 2 == 0 else slot - 1
            assert positions[opponent] is None

        assert sum(1 for p in positions if p is None) == 4

    def test_mode_override(self):
        """Test seed_positions can be asked for the other mode."""
        assert self.builder.seed_positions(4, SeedingMode.FAIR) == {1: 0, 2: 1, 3: 2, 4: 3}
        assert self.builder.seed_positions(4) == {1: 0, 2: 3, 3: 2, 4: 1}

    def test_mode_from_string(self):
        """Test the builder accepts the stored string form of the mode."""
        builder = BracketStructureBuilder("standard")

        assert builder.seeding_mode == SeedingMode.STANDARD


class TestProgression:
    """Tests for winner progression and round labels."""

    def setup_method(self):
        self.builder = BracketStructureBuilder()

    def test_next_match_info(self):
        """Test position p feeds match p // 2, even positions into player1."""
        assert self.builder.next_match_info(0) == NextMatchInfo(position=0, slot="player1")
        assert self.builder.next_match_info(1) == NextMatchInfo(position=0, slot="player2")
        assert self.builder.next_match_info(3) == NextMatchInfo(position=1, slot="player2")
        assert self.builder.next_match_info(6) == NextMatchInfo(position=3, slot="player1")

    def test_round_names(self):
        """Test round names count back from the final."""
        assert self.builder.round_name(1, 4, 4) == "Final"
        assert self.builder.round_name(2, 3, 4) == "Semi-Finals"
        assert self.builder.round_name(4, 2, 4) == "Quarter-Finals"
        assert self.builder.round_name(8, 1, 4) == "Round of 16"
        assert self.builder.round_name(16, 1, 5) == "Round of 32"

    def test_match_types(self):
        """Test match types follow the rounds remaining."""
        assert self.builder.match_type_for_round(4, 4) == MatchType.FINAL
        assert self.builder.match_type_for_round(3, 4) == MatchType.SEMI_FINAL
        assert self.builder.match_type_for_round(2, 4) == MatchType.QUARTER_FINAL
        assert self.builder.match_type_for_round(1, 4) == MatchType.REGULAR

    def test_single_round_bracket_is_a_final(self):
        """Test a 2-player bracket's only match is the Final."""
        assert self.builder.round_name(1, 1, 1) == "Final"
        assert self.builder.match_type_for_round(1, 1) == MatchType.FINAL
