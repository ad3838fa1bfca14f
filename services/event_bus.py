"""
Event Bus - Central signal hub for bracket lifecycle events.

Notification senders, bracket renderers and audit logging connect to this
single object instead of to the bracket service directly.
"""

from PySide6.QtCore import QObject, Signal


class EventBus(QObject):
    """
    Central signal hub for CueBracket.

    Usage:
        # In BracketService
        self.event_bus.bracket_generated.emit(tournament_id, result.to_dict())

        # In a notifier
        event_bus.tournament_started.connect(self._send_start_notifications)
    """

    # ============ Bracket Lifecycle ============
    bracket_generated = Signal(int, object)     # tournament_id, BracketResult dict (int round keys)
    byes_processed = Signal(int, int)           # tournament_id, BYEs resolved

    # ============ Match Progression ============
    winner_advanced = Signal(dict)              # {match_id, winner_id, next_match_id}
    third_place_assigned = Signal(dict)         # {match_id, loser_id, third_place_match_id}

    # ============ Tournament Lifecycle ============
    tournament_started = Signal(int)            # tournament_id
    positions_calculated = Signal(int, int)     # tournament_id, positions assigned
    tournament_completed = Signal(int)          # tournament_id

    # ============ System Events ============
    bracket_error = Signal(int, str)            # tournament_id, error message

    def __init__(self):
        super().__init__()

    def emit_advance(self, match_id: int, winner_id: int, next_match_id: int) -> None:
        """Convenience method to emit a winner advancement."""
        self.winner_advanced.emit({
            "match_id": match_id,
            "winner_id": winner_id,
            "next_match_id": next_match_id,
        })

    def emit_third_place(self, match_id: int, loser_id: int, third_place_match_id: int) -> None:
        """Convenience method to emit a semi-final loser placement."""
        self.third_place_assigned.emit({
            "match_id": match_id,
            "loser_id": loser_id,
            "third_place_match_id": third_place_match_id,
        })
