"""
Pydantic schemas for bracket results and bracket display data.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============ Generation Result ============

class RoundInfo(BaseModel):
    """Name and match count of one bracket round."""
    model_config = ConfigDict(frozen=True)

    name: str
    matches: int = Field(..., ge=1)


class BracketResult(BaseModel):
    """Summary of a generated bracket."""
    model_config = ConfigDict(frozen=True)

    bracket_size: int = Field(..., ge=2)
    total_rounds: int = Field(..., ge=1)
    bye_count: int = Field(..., ge=0)
    matches_created: int = Field(..., ge=0)
    bye_matches_processed: int = Field(..., ge=0)
    round_structure: dict[int, RoundInfo] = Field(default_factory=dict)

    @field_validator("bracket_size")
    @classmethod
    def power_of_two(cls, v: int) -> int:
        if v & (v - 1):
            raise ValueError("Bracket size must be a power of two")
        return v

    def to_dict(self) -> dict:
        """Plain dict for logging and signal payloads."""
        return self.model_dump()


# ============ Bracket Display ============

class BracketPlayer(BaseModel):
    """A participant as shown in a bracket slot."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    seed: Optional[int]
    score: int = 0


class BracketMatchView(BaseModel):
    """One match as shown in the bracket."""
    id: int
    round_number: int
    bracket_position: int
    match_type: str
    status: str
    player1: Optional[BracketPlayer] = None
    player2: Optional[BracketPlayer] = None
    winner_id: Optional[int] = None
    next_match_id: Optional[int] = None
    next_match_slot: Optional[str] = None


class BracketRound(BaseModel):
    """All matches of one round, in bracket order."""
    round: int
    round_name: str
    matches: list[BracketMatchView] = Field(default_factory=list)


class BracketData(BaseModel):
    """Display structure for a whole tournament bracket."""
    tournament_id: int
    total_rounds: int
    rounds: list[BracketRound] = Field(default_factory=list)
