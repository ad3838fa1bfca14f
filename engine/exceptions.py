"""
Bracket engine errors.

Invalid input and configuration problems are raised to the caller before
anything is written. Integrity faults found while advancing a winner are
logged and contained instead (see SingleEliminationGenerator.advance_winner).
"""


class BracketError(Exception):
    """Base class for bracket engine errors."""


class InvalidBracketInput(BracketError, ValueError):
    """Too few participants or a bracket parameter below the minimum."""


class NoGeneratorError(BracketError, RuntimeError):
    """No registered generator supports the tournament's format."""


class BracketIncompleteError(BracketError, ValueError):
    """The tournament still has matches waiting to be played."""


class InvalidMatchResult(BracketError, ValueError):
    """A result was submitted for a match that can't take it."""
