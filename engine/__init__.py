"""
CueBracket Bracket Engine

Seeding, bracket structure, BYE handling, generation and final positions.
This module contains no GUI dependencies.
"""

from engine.exceptions import (
    BracketError,
    InvalidBracketInput,
    NoGeneratorError,
    BracketIncompleteError,
    InvalidMatchResult,
)
from engine.seeding import Seeder, TraditionalSeeder, SeedAssignment
from engine.structure import BracketStructureBuilder, SeedingMode, NextMatchInfo
from engine.byes import ByeProcessor
from engine.positions import PositionCalculator, ParticipantStats, format_position
from engine.single_elimination import BracketGenerator, SingleEliminationGenerator

__all__ = [
    "BracketError",
    "InvalidBracketInput",
    "NoGeneratorError",
    "BracketIncompleteError",
    "InvalidMatchResult",
    "Seeder",
    "TraditionalSeeder",
    "SeedAssignment",
    "BracketStructureBuilder",
    "SeedingMode",
    "NextMatchInfo",
    "ByeProcessor",
    "PositionCalculator",
    "ParticipantStats",
    "format_position",
    "BracketGenerator",
    "SingleEliminationGenerator",
]
